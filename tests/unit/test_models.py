from datetime import timezone

import pytest

from obsidian_client.data_models import (
    ActionRecord,
    Confirmed,
    FilesystemData,
    FilesystemEntry,
    ManagedProcess,
    Optimistic,
    ProcessStatus,
    RuntimeVersion,
)


def test_process_status_parse_is_case_insensitive():
    assert ProcessStatus.parse("Running") is ProcessStatus.RUNNING
    assert ProcessStatus.parse("CRASHED") is ProcessStatus.CRASHED
    assert ProcessStatus.parse(ProcessStatus.STOPPED) is ProcessStatus.STOPPED
    assert ProcessStatus.parse("Sleeping") is ProcessStatus.IDLE
    assert ProcessStatus.parse(None) is ProcessStatus.IDLE


def test_managed_process_from_snapshot_keeps_extra_fields_as_config():
    record = ManagedProcess.from_snapshot(
        {"id": "abc", "status": "Running", "name": "Survival", "owner_id": 3, "memory": 4096, "java": "java-21"}
    )

    assert isinstance(record.observation, Confirmed)
    assert record.status is ProcessStatus.RUNNING
    assert record.owner_id == 3
    assert record.config == {"memory": 4096, "java": "java-21"}
    assert record.is_running_like


def test_snapshot_supersedes_optimistic_status():
    record = ManagedProcess.from_snapshot({"id": "abc", "status": "Stopped"})

    record.mark_optimistic(ProcessStatus.STARTING)
    assert isinstance(record.observation, Optimistic)
    assert record.is_optimistic

    record.apply_snapshot({"id": "abc", "status": "Starting"})
    assert isinstance(record.observation, Confirmed)
    assert record.status is ProcessStatus.STARTING


def test_snapshot_for_another_process_is_rejected():
    record = ManagedProcess.from_snapshot({"id": "abc", "status": "Idle"})

    with pytest.raises(ValueError):
        record.apply_snapshot({"id": "xyz", "status": "Running"})
    with pytest.raises(ValueError):
        ManagedProcess.from_snapshot({"status": "Running"})


def test_to_payload_uses_remote_field_names():
    record = ManagedProcess.from_snapshot({"id": "abc", "status": "Idle", "last_started": 1700000000, "port": 25565})

    payload = record.to_payload()

    assert payload["last_started"] == 1700000000.0
    assert payload["port"] == 25565
    assert payload["status"] == "idle"


def test_uninstalled_runtime_has_no_executable():
    version = RuntimeVersion.from_payload(
        {"runtime": "java-delta", "version": "21.0.2", "installed": False, "executable": "/opt/java/bin/java"}
    )

    assert version.executable is None
    with pytest.raises(ValueError):
        RuntimeVersion(runtime="", version="1", installed=False)


def test_filesystem_listing_converts_system_times():
    data = FilesystemData.from_payload(
        {
            "parent": "/",
            "entries": [
                {
                    "filename": "world",
                    "path": "/world",
                    "is_dir": True,
                    "last_modified": {"secs_since_epoch": 1700000000, "nanos_since_epoch": 500000000},
                }
            ],
        }
    )

    entry = data.entries[0]
    assert data.parent == "/"
    assert entry.is_dir
    assert entry.last_modified.tzinfo is timezone.utc
    assert entry.last_modified.timestamp() == 1700000000.5


def test_search_results_are_files():
    entry = FilesystemEntry.from_search_result({"filename": "level.dat", "path": "/world/level.dat", "size": 12, "mtime": 5})

    assert entry.is_dir is False
    assert entry.size == 12


def test_action_record_activity():
    record = ActionRecord.from_payload(
        {"id": 4, "tracker_id": "archive-1-aa", "action_type": "archive", "status": "in_progress", "progress": 0.4}
    )

    assert record.is_active
    assert record.progress == 0.4
