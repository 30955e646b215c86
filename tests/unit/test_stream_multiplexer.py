import asyncio
import logging

import pytest

from obsidian_client.errors import RemoteRequestError, StreamClosedError, StreamError
from obsidian_client.stream_multiplexer import StreamMultiplexer
from obsidian_client.stream_multiplexer_helpers import console_event_names
from tests.helpers.panel_fakes import FakeEventStream, drain, sse


class _Opener:
    """Hands out scripted streams per process id, in order."""

    def __init__(self, **streams):
        self._streams = {pid: list(items) for pid, items in streams.items()}
        self.opened = []

    async def __call__(self, process_id):
        self.opened.append(process_id)
        item = self._streams[process_id].pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


def test_console_event_names_include_process_specific_event():
    assert console_event_names("abc") == frozenset({"console", "message", "server-abc-console"})


def test_subscribe_requires_process_id():
    multiplexer = StreamMultiplexer(_Opener())

    with pytest.raises(ValueError):
        multiplexer.subscribe("", lambda chunk: None)


@pytest.mark.asyncio
async def test_resubscribing_replaces_previous_subscription():
    first, second = FakeEventStream(), FakeEventStream()
    opener = _Opener(a=[first, second])
    multiplexer = StreamMultiplexer(opener)
    old, new = [], []

    multiplexer.subscribe("a", old.append)
    await drain()
    multiplexer.subscribe("a", new.append)
    await drain()

    first.push(sse("server-a-console", "stale"))
    second.push(sse("server-a-console", "[Server] Done"))
    await drain()

    assert first.closed
    assert not second.closed
    assert old == []
    assert new == ["[Server] Done"]
    assert len(multiplexer) == 1
    await multiplexer.close_all()


@pytest.mark.asyncio
async def test_streams_for_different_processes_are_independent():
    stream_a, stream_b = FakeEventStream(), FakeEventStream()
    multiplexer = StreamMultiplexer(_Opener(a=[stream_a], b=[stream_b]))
    seen_a, seen_b = [], []

    unsubscribe_a = multiplexer.subscribe("a", seen_a.append)
    multiplexer.subscribe("b", seen_b.append)
    await drain()

    stream_a.push(sse("console", "from a"))
    stream_b.push(sse("console", "from b"))
    await drain()
    unsubscribe_a()
    await drain()
    stream_b.push(sse("message", "still b"))
    await drain()

    assert seen_a == ["from a"]
    assert seen_b == ["from b", "still b"]
    assert stream_a.closed
    assert multiplexer.has_active("b")
    assert not multiplexer.has_active("a")
    await multiplexer.close_all()
    assert stream_b.closed


@pytest.mark.asyncio
async def test_no_delivery_after_cleanup():
    stream = FakeEventStream()
    multiplexer = StreamMultiplexer(_Opener(a=[stream]))
    seen = []

    multiplexer.subscribe("a", seen.append)
    await drain()
    multiplexer.cleanup("a")
    stream.push(sse("console", "too late"))
    await drain()

    assert seen == []
    assert stream.closed
    multiplexer.cleanup("a")


@pytest.mark.asyncio
async def test_only_console_events_are_delivered():
    stream = FakeEventStream(
        sse("open", "connected"),
        sse("console", "one"),
        sse("heartbeat", "ignored"),
        sse("server-a-console", "two"),
        sse("server-b-console", "not mine"),
        sse("message", "three"),
    )
    multiplexer = StreamMultiplexer(_Opener(a=[stream]))
    seen = []

    multiplexer.subscribe("a", seen.append)
    await drain()

    assert seen == ["one", "two", "three"]
    await multiplexer.wait_closed("a")


@pytest.mark.asyncio
async def test_open_failure_is_reported_and_subscription_kept():
    multiplexer = StreamMultiplexer(_Opener(a=[RemoteRequestError("boom", path="/console", status=502)]))
    errors = []

    multiplexer.subscribe("a", lambda chunk: None, errors.append)
    await drain()

    assert len(errors) == 1
    assert isinstance(errors[0], StreamError)
    assert multiplexer.has_active("a")
    assert multiplexer.subscription_for("a").error is errors[0]


@pytest.mark.asyncio
async def test_remote_end_of_stream_reports_closed_error():
    stream = FakeEventStream(sse("console", "bye"), finished=True)
    multiplexer = StreamMultiplexer(_Opener(a=[stream]))
    seen, errors = [], []

    multiplexer.subscribe("a", seen.append, errors.append)
    await drain()

    assert seen == ["bye"]
    assert len(errors) == 1
    assert isinstance(errors[0], StreamClosedError)
    assert stream.closed


@pytest.mark.asyncio
async def test_unexpected_stream_failure_is_wrapped_as_stream_error():
    stream = FakeEventStream(sse("console", "partial"))
    stream.fail(RuntimeError("decoder exploded"))
    multiplexer = StreamMultiplexer(_Opener(a=[stream]))
    seen, errors = [], []

    multiplexer.subscribe("a", seen.append, errors.append)
    await drain()

    assert seen == ["partial"]
    assert len(errors) == 1
    assert isinstance(errors[0], StreamError)
    assert "decoder exploded" in str(errors[0])
    assert stream.closed


@pytest.mark.asyncio
async def test_stale_unsubscribe_leaves_current_subscription():
    first, second = FakeEventStream(), FakeEventStream()
    multiplexer = StreamMultiplexer(_Opener(a=[first, second]))
    seen = []

    stale_unsubscribe = multiplexer.subscribe("a", lambda chunk: None)
    await drain()
    multiplexer.subscribe("a", seen.append)
    await drain()
    stale_unsubscribe()
    second.push(sse("console", "current"))
    await drain()

    assert seen == ["current"]
    assert multiplexer.has_active("a")
    await multiplexer.close_all()


@pytest.mark.asyncio
async def test_callback_exception_does_not_stop_delivery(caplog):
    stream = FakeEventStream()
    multiplexer = StreamMultiplexer(_Opener(a=[stream]))
    seen = []

    def on_data(chunk):
        seen.append(chunk)
        if chunk == "bad":
            raise RuntimeError("render failed")

    multiplexer.subscribe("a", on_data)
    await drain()
    with caplog.at_level(logging.ERROR):
        stream.push(sse("console", "bad"), sse("console", "good"))
        await drain()

    assert seen == ["bad", "good"]
    assert "on_data callback raised" in caplog.text
    await multiplexer.close_all()


@pytest.mark.asyncio
async def test_close_all_releases_every_stream():
    streams = {pid: FakeEventStream() for pid in ("a", "b", "c")}
    multiplexer = StreamMultiplexer(_Opener(**{pid: [stream] for pid, stream in streams.items()}))
    for pid in streams:
        multiplexer.subscribe(pid, lambda chunk: None)
    await drain()

    await multiplexer.close_all()
    await asyncio.sleep(0)

    assert len(multiplexer) == 0
    assert all(stream.closed for stream in streams.values())
