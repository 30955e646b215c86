"""URL paths of the panel's HTTP API."""

from __future__ import annotations

from urllib.parse import quote

API_PREFIX = "/api"
SERVER_ROOT = f"{API_PREFIX}/server"
JAVA_ROOT = f"{API_PREFIX}/java"
ACTIONS_ROOT = f"{API_PREFIX}/actions"

LIFECYCLE_COMMANDS = ("start", "stop", "restart", "kill")


def _segment(value: str) -> str:
    return quote(str(value), safe="")


def servers() -> str:
    return SERVER_ROOT


def server(process_id: str) -> str:
    return f"{SERVER_ROOT}/{_segment(process_id)}"


def lifecycle(process_id: str, command: str) -> str:
    if command not in LIFECYCLE_COMMANDS:
        raise ValueError(f"Unknown lifecycle command: {command!r}")
    return f"{server(process_id)}/{command}"


def send_command(process_id: str) -> str:
    return f"{server(process_id)}/send-command"


def console(process_id: str) -> str:
    return f"{server(process_id)}/console"


def filesystem(process_id: str, action: str = "") -> str:
    base = f"{server(process_id)}/filesystem"
    return f"{base}/{action}" if action else f"{base}/"


def filesystem_tracker(process_id: str, action: str, tracker_id: str) -> str:
    return f"{server(process_id)}/filesystem/{action}/{_segment(tracker_id)}"


def java_versions() -> str:
    return f"{JAVA_ROOT}/versions"


def java_version(runtime: str) -> str:
    return f"{java_versions()}/{_segment(runtime)}"


def java_files(runtime: str) -> str:
    return f"{java_version(runtime)}/files"


def java_install(runtime: str) -> str:
    return f"{java_version(runtime)}/install"


def java_version_map() -> str:
    return f"{JAVA_ROOT}/version-map"


def actions() -> str:
    return ACTIONS_ROOT


def completed_actions() -> str:
    return f"{ACTIONS_ROOT}/completed"


def action(tracker_id: str) -> str:
    return f"{ACTIONS_ROOT}/{_segment(tracker_id)}"
