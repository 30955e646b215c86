"""Dependency factory for PanelClient."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .action_log import ActionLog
from .config import ClientSettings, load_client_settings
from .operation_facade import OperationFacade
from .remote_api import RemoteApiClient
from .runtime_versions import RuntimeVersionManager
from .session_state_machine import SessionStateMachine
from .session_state_machine_helpers.poller import Sleeper
from .session_state_machine_helpers.registry import ProcessRegistry
from .stream_multiplexer import StreamMultiplexer
from .tracker_registry import TrackerRegistry


@dataclass
class ClientDependencies:
    """Container for every table and service a PanelClient owns."""

    settings: ClientSettings
    api: RemoteApiClient
    processes: ProcessRegistry
    trackers: TrackerRegistry
    streams: StreamMultiplexer
    sessions: SessionStateMachine
    operations: OperationFacade
    runtimes: RuntimeVersionManager
    actions: ActionLog

    @classmethod
    def create(
        cls,
        settings: Optional[ClientSettings] = None,
        *,
        api: Optional[RemoteApiClient] = None,
        sleep: Optional[Sleeper] = None,
    ) -> "ClientDependencies":
        """
        Build the full object graph around one remote API client.

        Args:
            settings: Client settings; loaded from the environment when omitted
            api: Remote API client to share (a fake in tests)
            sleep: Sleep function used by the status poller

        Returns:
            ClientDependencies instance
        """
        settings = settings or load_client_settings()
        api = api or RemoteApiClient(settings)
        processes = ProcessRegistry()
        trackers = TrackerRegistry(cancel_ack_timeout_seconds=settings.cancel_ack_timeout_seconds)
        streams = StreamMultiplexer.for_api(api)
        sessions = SessionStateMachine(
            api,
            processes,
            streams,
            poll_interval_seconds=settings.status_poll_seconds,
            refresh_interval_seconds=settings.process_refresh_seconds,
            sleep=sleep,
        )
        operations = OperationFacade(api, processes, trackers)
        runtimes = RuntimeVersionManager(api, trackers)
        actions = ActionLog(api)

        return cls(
            settings=settings,
            api=api,
            processes=processes,
            trackers=trackers,
            streams=streams,
            sessions=sessions,
            operations=operations,
            runtimes=runtimes,
            actions=actions,
        )


__all__ = ["ClientDependencies"]
