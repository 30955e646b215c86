"""Root pytest configuration and shared fixtures."""

from __future__ import annotations

import os

import pytest

from tests.helpers.panel_fakes import CallbackRecorder, FakeRemoteApi

# Set required environment variables for tests
os.environ.setdefault("OBSIDIAN_BASE_URL", "http://127.0.0.1:8080")
os.environ.setdefault("OBSIDIAN_STATUS_POLL_SECONDS", "1")
os.environ.setdefault("OBSIDIAN_CANCEL_ACK_TIMEOUT_SECONDS", "5")
os.environ.setdefault("OBSIDIAN_MAX_RETRIES", "1")


@pytest.fixture
def fake_api() -> FakeRemoteApi:
    return FakeRemoteApi()


@pytest.fixture
def recorder() -> CallbackRecorder:
    return CallbackRecorder()
