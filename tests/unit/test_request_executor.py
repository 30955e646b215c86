from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from obsidian_client.errors import RemoteRequestError
from obsidian_client.remote_api.request_executor import RequestExecutor, _parse_response, extract_error_message


class _FakeResponse:
    def __init__(self, status, body=b""):
        self.status = status
        self._body = body

    async def read(self):
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


def _executor(session, max_retries=1):
    manager = MagicMock()
    manager.initialize = AsyncMock()
    manager.get_session.return_value = session
    return RequestExecutor(manager, max_retries, 0.0, 0.0)


def test_retry_delay_grows_exponentially_and_caps():
    executor = RequestExecutor(None, 3, 1.0, 5.0)

    assert [executor._compute_retry_delay(attempt) for attempt in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 5.0]
    with pytest.raises(TypeError):
        executor._compute_retry_delay(0)


def test_extract_error_message_prefers_known_fields():
    assert extract_error_message('{"error": "Server not found"}') == "Server not found"
    assert extract_error_message('{"message": "bad input"}') == "bad input"
    assert extract_error_message("plain failure") == "plain failure"
    assert extract_error_message("") == "no response body"


def test_parse_response_decodes_json_text_and_empty_bodies():
    assert _parse_response("GET", "/p", 200, b"") is None
    assert _parse_response("GET", "/p", 200, b'{"id": "a"}') == {"id": "a"}
    assert _parse_response("GET", "/p", 200, b"OK") == "OK"


def test_parse_response_maps_status_errors():
    with pytest.raises(RemoteRequestError) as not_found:
        _parse_response("GET", "/api/server/x", 404, b'{"error": "missing"}')
    with pytest.raises(RemoteRequestError) as unavailable:
        _parse_response("GET", "/api/server/x", 503, b"")

    assert not_found.value.status == 404
    assert not_found.value.transient is False
    assert "missing" in str(not_found.value)
    assert unavailable.value.transient is True


@pytest.mark.asyncio
async def test_execute_request_retries_rate_limited_calls():
    session = MagicMock()
    session.request = MagicMock(side_effect=[_FakeResponse(429), _FakeResponse(200, b'{"ok": true}')])

    result = await _executor(session, max_retries=2).execute_request("GET", "http://h/api/server", {}, "/api/server")

    assert result == {"ok": True}
    assert session.request.call_count == 2


@pytest.mark.asyncio
async def test_execute_request_surfaces_transport_failure_with_single_attempt():
    session = MagicMock()
    session.request = MagicMock(side_effect=aiohttp.ServerDisconnectedError())

    with pytest.raises(RemoteRequestError) as excinfo:
        await _executor(session).execute_request("POST", "http://h/api/server/a/start", {}, "/api/server/a/start")

    assert excinfo.value.transient is True
    assert excinfo.value.path == "/api/server/a/start"
    assert session.request.call_count == 1


@pytest.mark.asyncio
async def test_execute_request_retries_transient_transport_failure():
    session = MagicMock()
    session.request = MagicMock(side_effect=[aiohttp.ServerDisconnectedError(), _FakeResponse(200, b"[]")])

    assert await _executor(session, max_retries=2).execute_request("GET", "http://h/x", {}, "/x") == []


@pytest.mark.asyncio
async def test_open_response_releases_and_raises_on_error_status():
    response = MagicMock()
    response.status = 500
    response.text = AsyncMock(return_value='{"message": "disk full"}')
    session = MagicMock()
    session.request = AsyncMock(return_value=response)

    with pytest.raises(RemoteRequestError) as excinfo:
        await _executor(session).open_response("GET", "http://h/x", {}, "/x")

    assert excinfo.value.status == 500
    assert "disk full" in str(excinfo.value)
    response.release.assert_called_once()
