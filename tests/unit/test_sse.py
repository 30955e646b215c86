from unittest.mock import AsyncMock, MagicMock

import pytest

from obsidian_client.remote_api.sse import EventStream, ServerSentEvent, SseDecoder


def _feed(decoder, *lines):
    return [event for event in (decoder.feed_line(line) for line in lines) if event is not None]


def test_decoder_dispatches_named_event_on_blank_line():
    events = _feed(SseDecoder(), "event: progress", 'data: {"progress": 40}', "")

    assert events == [ServerSentEvent(event="progress", data='{"progress": 40}')]
    assert events[0].json() == {"progress": 40}


def test_decoder_joins_multiple_data_lines():
    events = _feed(SseDecoder(), "data: first", "data:second", "")

    assert events[0].data == "first\nsecond"
    assert events[0].event == "message"


def test_decoder_skips_comments_and_resets_empty_events():
    decoder = SseDecoder()

    assert _feed(decoder, ": keep-alive", "event: orphan", "") == []
    events = _feed(decoder, "data: payload", "")

    assert events == [ServerSentEvent(event="message", data="payload")]


def test_decoder_tracks_id_and_retry():
    decoder = SseDecoder()

    events = _feed(decoder, "id: 7", "retry: 1500", "retry: soon", "id: bad\0id", "data: x", "")

    assert events[0].id == "7"
    assert events[0].retry == 1500
    assert decoder.last_event_id == "7"


def _response(*lines):
    response = MagicMock()
    response.content.readline = AsyncMock(side_effect=[*lines, b""])
    return response


@pytest.mark.asyncio
async def test_event_stream_yields_events_until_end_of_body():
    response = _response(b"event: server-a-console\n", b"data: Done (3.2s)!\r\n", b"\n", b"data: tail\n", b"\n")
    stream = EventStream(response, "/api/server/a/console")

    events = [event async for event in stream]

    assert [event.event for event in events] == ["server-a-console", "message"]
    assert events[0].data == "Done (3.2s)!"
    assert stream.path == "/api/server/a/console"


@pytest.mark.asyncio
async def test_event_stream_close_is_idempotent():
    response = _response()
    stream = EventStream(response, "/x")

    async with stream:
        pass
    await stream.close()

    assert stream.closed
    response.close.assert_called_once()
