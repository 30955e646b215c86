"""
Uniform entry point for file operations on a managed process.

Tracked operations (archive, extract, upload, URL upload, download, search)
return an :class:`OperationTracker` synchronously and report through the
caller's ``on_progress``/``on_success``/``on_error``/``on_cancelled`` callbacks.
Untracked operations are plain coroutines that raise on failure.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from .data_models.filesystem import FilesystemData, FilesystemEntry
from .operation_facade_helpers.filesystem_ops import FilesystemOperations, encode_items, join_remote_path
from .operation_facade_helpers.signals import percent_status_signal, upload_status_signal, url_download_signal
from .operation_facade_helpers.streamed_operation import StreamedOperation
from .progress_aggregator import PERCENT_TOTAL, ByteProgressAggregator, RatioProgressAggregator
from .remote_api import routes
from .session_state_machine_helpers.registry import ProcessRegistry
from .tracker_registry import TrackerRegistry
from .tracker_registry_helpers.models import (
    CancelledCallback,
    ErrorCallback,
    OperationCallbacks,
    OperationTracker,
    ProgressCallback,
    RemoteCancelled,
    SuccessCallback,
    TrackerKind,
)

logger = logging.getLogger(__name__)


class OperationFacade:
    """File operations scoped to a process id (default: the loaded process)."""

    def __init__(self, api, processes: ProcessRegistry, trackers: TrackerRegistry):
        self._api = api
        self._processes = processes
        self._trackers = trackers
        self._fs = FilesystemOperations(api)

    @property
    def trackers(self) -> TrackerRegistry:
        return self._trackers

    def _resolve(self, process_id: Optional[str], operation: str) -> str:
        return self._processes.resolve_id(process_id, operation)

    def cancel(self, tracker_id: str) -> bool:
        return self._trackers.cancel(tracker_id)

    # Untracked operations

    async def list_entries(self, path: str = "", process_id: Optional[str] = None) -> FilesystemData:
        return await self._fs.list_entries(self._resolve(process_id, "list_entries"), path)

    async def copy_entries(self, sources: Sequence[str], destination: str, process_id: Optional[str] = None) -> None:
        await self._fs.copy_entries(self._resolve(process_id, "copy_entries"), sources, destination)

    async def move_entries(self, sources: Sequence[str], destination: str, process_id: Optional[str] = None) -> None:
        await self._fs.move_entries(self._resolve(process_id, "move_entries"), sources, destination)

    async def rename_entry(self, source: str, destination: str, process_id: Optional[str] = None) -> None:
        await self._fs.rename_entry(self._resolve(process_id, "rename_entry"), source, destination)

    async def delete_entries(self, paths: Sequence[str], process_id: Optional[str] = None) -> None:
        await self._fs.delete_entries(self._resolve(process_id, "delete_entries"), paths)

    async def create_entry(
        self, filename: str, cwd: str, is_directory: bool = False, process_id: Optional[str] = None
    ) -> None:
        await self._fs.create_entry(self._resolve(process_id, "create_entry"), filename, cwd, is_directory)

    async def read_file(self, filepath: str, process_id: Optional[str] = None) -> str:
        return await self._fs.read_file(self._resolve(process_id, "read_file"), filepath)

    async def write_file(self, filepath: str, content: str, process_id: Optional[str] = None) -> None:
        await self._fs.write_file(self._resolve(process_id, "write_file"), filepath, content)

    async def send_console_input(self, text: str, process_id: Optional[str] = None) -> None:
        """Write one line of input to the process console."""
        await self._api.post_text(routes.send_command(self._resolve(process_id, "send_console_input")), text)

    # Tracked operations

    def _begin(
        self,
        kind: TrackerKind,
        process_id: str,
        on_progress: Optional[ProgressCallback],
        on_success: Optional[SuccessCallback],
        on_error: Optional[ErrorCallback],
        on_cancelled: Optional[CancelledCallback],
        *,
        label: Optional[str] = None,
    ) -> OperationTracker:
        callbacks = OperationCallbacks(on_progress, on_success, on_error, on_cancelled)
        return self._trackers.begin(kind, process_id, callbacks, label=label)

    def _remote_cancel(self, process_id: str, action: str, tracker_id: str) -> Callable[[], Awaitable[Any]]:
        async def cancel() -> Any:
            return await self._api.post_json(routes.filesystem_tracker(process_id, f"{action}/cancel", tracker_id))

        return cancel

    def archive(
        self,
        filename: str,
        entries: Sequence[str],
        cwd: str,
        *,
        process_id: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        on_cancelled: Optional[CancelledCallback] = None,
    ) -> OperationTracker:
        """Compress *entries* under *cwd* into *filename*."""
        resolved = self._resolve(process_id, "archive")
        tracker = self._begin(
            TrackerKind.ARCHIVE, resolved, on_progress, on_success, on_error, on_cancelled, label=filename
        )
        tracker_id = tracker.tracker_id

        async def start() -> Any:
            return await self._api.post_json(
                routes.filesystem(resolved, "archive"),
                {"entries": list(entries), "cwd": cwd, "filename": filename, "tracker_id": tracker_id},
            )

        operation = StreamedOperation(
            lambda: self._api.open_event_stream(routes.filesystem_tracker(resolved, "archive/status", tracker_id)),
            percent_status_signal,
            RatioProgressAggregator(PERCENT_TOTAL),
            start=start,
            completes_with_request=True,
        )
        self._trackers.run(tracker, operation.run, remote_cancel=self._remote_cancel(resolved, "archive", tracker_id))
        return tracker

    def extract(
        self,
        archive_path: str,
        destination: str,
        *,
        process_id: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        on_cancelled: Optional[CancelledCallback] = None,
    ) -> OperationTracker:
        """Unpack *archive_path* into *destination*."""
        resolved = self._resolve(process_id, "extract")
        tracker = self._begin(
            TrackerKind.EXTRACT,
            resolved,
            on_progress,
            on_success,
            on_error,
            on_cancelled,
            label=Path(archive_path).name,
        )
        tracker_id = tracker.tracker_id

        async def start() -> Any:
            return await self._api.post_json(
                routes.filesystem(resolved, "extract"),
                {"path": archive_path, "destination": destination, "tracker_id": tracker_id},
            )

        operation = StreamedOperation(
            lambda: self._api.open_event_stream(routes.filesystem_tracker(resolved, "extract/status", tracker_id)),
            percent_status_signal,
            RatioProgressAggregator(PERCENT_TOTAL),
            start=start,
            completes_with_request=True,
        )
        self._trackers.run(tracker, operation.run, remote_cancel=self._remote_cancel(resolved, "extract", tracker_id))
        return tracker

    def upload_file(
        self,
        local_path,
        remote_dir: str,
        *,
        process_id: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        on_cancelled: Optional[CancelledCallback] = None,
    ) -> OperationTracker:
        """Stream a local file into *remote_dir*; progress is bytes written remotely."""
        local_path = Path(local_path)
        resolved = self._resolve(process_id, "upload_file")
        tracker = self._begin(TrackerKind.UPLOAD, resolved, on_progress, on_success, on_error, on_cancelled)
        tracker_id = tracker.tracker_id
        remote_path = join_remote_path(remote_dir, local_path.name)

        async def start() -> Any:
            payload = await self._api.upload_file(
                routes.filesystem(resolved, "upload"),
                local_path,
                params={"upload_id": tracker_id, "path": remote_path},
            )
            if isinstance(payload, dict) and str(payload.get("status") or "").lower() == "cancelled":
                raise RemoteCancelled(tracker_id)
            return payload

        async def body(current: OperationTracker) -> Any:
            size = local_path.stat().st_size
            operation = StreamedOperation(
                lambda: self._api.open_event_stream(routes.filesystem_tracker(resolved, "upload/progress", tracker_id)),
                upload_status_signal,
                ByteProgressAggregator(size),
                start=start,
                completes_with_request=True,
            )
            await operation.run(current)
            return remote_path

        self._trackers.run(tracker, body, remote_cancel=self._remote_cancel(resolved, "upload", tracker_id))
        return tracker

    def upload_from_url(
        self,
        url: str,
        filepath: str,
        *,
        process_id: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        on_cancelled: Optional[CancelledCallback] = None,
    ) -> OperationTracker:
        """Have the panel fetch *url* into *filepath*; cancellation is local only."""
        resolved = self._resolve(process_id, "upload_from_url")
        tracker = self._begin(TrackerKind.UPLOAD_URL, resolved, on_progress, on_success, on_error, on_cancelled)
        operation = StreamedOperation(
            lambda: self._api.open_event_stream(
                routes.filesystem(resolved, "upload-url"), {"url": url, "filepath": filepath}
            ),
            url_download_signal,
            RatioProgressAggregator(),
        )
        self._trackers.run(tracker, operation.run)
        return tracker

    def download_entries(
        self,
        paths: Sequence[str],
        cwd: str,
        destination,
        *,
        process_id: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        on_cancelled: Optional[CancelledCallback] = None,
    ) -> OperationTracker:
        """Download one file, or a zip of several entries, to a local *destination* path."""
        destination = Path(destination)
        resolved = self._resolve(process_id, "download_entries")
        tracker = self._begin(TrackerKind.DOWNLOAD, resolved, on_progress, on_success, on_error, on_cancelled)

        async def body(current: OperationTracker) -> Path:
            aggregator = ByteProgressAggregator()

            def on_chunk(written: int, total: Optional[int]) -> None:
                current.report_progress(aggregator.update(written, total))

            finished = False
            try:
                await self._api.download_to(
                    routes.filesystem(resolved, "download"),
                    destination,
                    params={"items": encode_items(paths), "cwd": cwd},
                    on_chunk=on_chunk,
                )
                finished = True
            finally:
                if not finished:
                    destination.unlink(missing_ok=True)
            return destination

        self._trackers.run(tracker, body)
        return tracker

    def search_files(
        self,
        query: str,
        filename_only: bool = False,
        *,
        process_id: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        on_cancelled: Optional[CancelledCallback] = None,
    ) -> OperationTracker:
        """Search the process's files; the entry list is passed to ``on_success``."""
        resolved = self._resolve(process_id, "search_files")
        tracker = self._begin(TrackerKind.SEARCH, resolved, on_progress, on_success, on_error, on_cancelled)

        async def body(current: OperationTracker) -> List[FilesystemEntry]:
            return await self._fs.search(resolved, query, filename_only)

        self._trackers.run(tracker, body)
        return tracker


__all__ = ["OperationFacade"]
