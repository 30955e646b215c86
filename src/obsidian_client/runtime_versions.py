"""
Installable Java runtime management.

Composes the tracker registry with a unit progress aggregator: an install
fetches the runtime's file manifest, counts per-file completions from the
install event stream, and refreshes the version list once the stream reports
completion. The list is replaced wholesale on every refresh, so selections
must be re-resolved by ``runtime`` key with :meth:`RuntimeVersionManager.reselect`.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from .data_models.runtime_version import RuntimeVersion, RuntimeVersionRange
from .errors import OperationFailedError, RuntimeNotInstalledError, StreamClosedError, UnknownRuntimeError
from .progress_aggregator import UnitProgressAggregator
from .remote_api import routes
from .remote_api.sse import ServerSentEvent
from .tracker_registry import TrackerRegistry
from .tracker_registry_helpers.models import (
    CancelledCallback,
    ErrorCallback,
    OperationCallbacks,
    OperationTracker,
    ProgressCallback,
    SuccessCallback,
    TrackerKind,
)

logger = logging.getLogger(__name__)

VersionRef = Union[RuntimeVersion, str]

_VERSION_PART = re.compile(r"\d+")


def _version_key(version: str) -> Tuple[int, ...]:
    return tuple(int(part) for part in _VERSION_PART.findall(version))


def _progress_reports(event: ServerSentEvent) -> List[Mapping[str, Any]]:
    try:
        payload = event.json()
    except ValueError:
        logger.debug("Ignoring non-JSON install progress: %r", event.data)
        return []
    if isinstance(payload, Mapping):
        return [payload]
    if isinstance(payload, list):
        return [report for report in payload if isinstance(report, Mapping)]
    return []


def _install_error_message(event: ServerSentEvent) -> str:
    try:
        payload = event.json()
    except ValueError:
        return event.data or "Runtime installation failed"
    if isinstance(payload, Mapping):
        message = str(payload.get("message") or "Runtime installation failed")
        detail = payload.get("stacktrace") or payload.get("error")
        return f"{message}: {detail}" if detail else message
    return str(payload)


class RuntimeVersionManager:
    """Owned list of runtime versions plus install and uninstall operations."""

    def __init__(self, api, trackers: TrackerRegistry):
        self._api = api
        self._trackers = trackers
        self._versions: List[RuntimeVersion] = []

    @property
    def versions(self) -> List[RuntimeVersion]:
        return list(self._versions)

    def get(self, runtime: str) -> Optional[RuntimeVersion]:
        for version in self._versions:
            if version.runtime == runtime:
                return version
        return None

    def _runtime_of(self, version: VersionRef) -> str:
        return version.runtime if isinstance(version, RuntimeVersion) else str(version)

    async def refresh(self) -> List[RuntimeVersion]:
        payload = await self._api.get_json(routes.java_versions())
        self._versions = [RuntimeVersion.from_payload(item) for item in payload or [] if isinstance(item, Mapping)]
        logger.debug("Loaded %d runtime versions", len(self._versions))
        return self.versions

    async def get_runtime_files(self, runtime: str) -> List[str]:
        payload = await self._api.get_json(routes.java_files(runtime))
        return [str(name) for name in payload or []]

    def reselect(self, selected: Optional[VersionRef]) -> Optional[RuntimeVersion]:
        """Resolve a previous selection against the current list by runtime key."""
        if selected is None:
            return None
        return self.get(self._runtime_of(selected))

    def install(
        self,
        version: VersionRef,
        *,
        on_progress: Optional[ProgressCallback] = None,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        on_cancelled: Optional[CancelledCallback] = None,
    ) -> OperationTracker:
        """Install a runtime; an already installed runtime succeeds without any remote call."""
        runtime = self._runtime_of(version)
        current = self.get(runtime)
        if current is None and not isinstance(version, RuntimeVersion):
            raise UnknownRuntimeError(runtime)
        target = current or version
        callbacks = OperationCallbacks(on_progress, on_success, on_error, on_cancelled)
        tracker = self._trackers.begin(TrackerKind.RUNTIME_INSTALL, None, callbacks, label=runtime)

        if target.installed:
            logger.info("Runtime %s is already installed; skipping install", runtime)

            async def already_installed(_: OperationTracker) -> RuntimeVersion:
                return target

            self._trackers.run(tracker, already_installed)
            return tracker

        async def body(current_tracker: OperationTracker) -> Optional[RuntimeVersion]:
            await self._run_install(runtime, current_tracker)
            await self.refresh()
            return self.get(runtime)

        self._trackers.run(tracker, body)
        return tracker

    async def _run_install(self, runtime: str, tracker: OperationTracker) -> None:
        aggregator = UnitProgressAggregator(await self.get_runtime_files(runtime))
        tracker.report_progress(aggregator.snapshot())

        path = routes.java_install(runtime)
        stream = await self._api.open_event_stream(path)
        try:
            async for event in stream:
                if event.event == "progress":
                    for report in _progress_reports(event):
                        if report.get("completed") and report.get("file") is not None:
                            tracker.report_progress(aggregator.mark_completed(str(report["file"])))
                elif event.event == "completed":
                    logger.info("Runtime %s installed", runtime)
                    return
                elif event.event == "error":
                    raise OperationFailedError(_install_error_message(event))
                else:
                    logger.debug("Install stream for %s sent %s", runtime, event.event)
            raise StreamClosedError(path)
        finally:
            await stream.close()

    async def uninstall(self, version: VersionRef) -> List[RuntimeVersion]:
        runtime = self._runtime_of(version)
        current = self.get(runtime)
        if current is None and not isinstance(version, RuntimeVersion):
            raise UnknownRuntimeError(runtime)
        target = current or version
        if not target.installed:
            raise RuntimeNotInstalledError(runtime)
        await self._api.delete_json(routes.java_version(runtime))
        logger.info("Uninstalled runtime %s", runtime)
        return await self.refresh()

    async def fetch_version_map(self) -> List[RuntimeVersionRange]:
        payload = await self._api.get_json(routes.java_version_map())
        ranges: List[RuntimeVersionRange] = []
        for runtime, bounds in (payload or {}).items():
            if not isinstance(bounds, Mapping):
                continue
            ranges.append(
                RuntimeVersionRange(
                    runtime=str(runtime),
                    min_version=str(bounds.get("min") or ""),
                    max_version=str(bounds.get("max") or ""),
                )
            )
        return ranges

    @staticmethod
    def runtime_for_game_version(game_version: str, version_map: Iterable[RuntimeVersionRange]) -> Optional[str]:
        """Return the runtime whose inclusive range contains *game_version*."""
        wanted = _version_key(game_version)
        if not wanted:
            return None
        for entry in version_map:
            low = _version_key(entry.min_version) if entry.min_version else ()
            high = _version_key(entry.max_version) if entry.max_version else ()
            if low and wanted < low:
                continue
            if high and wanted > high:
                continue
            return entry.runtime
        return None


__all__ = ["RuntimeVersionManager", "VersionRef"]
