"""
Test SSE broadcaster
"""

import asyncio
import json
import logging

import pytest

from app.core.events import TaskDeleted, TaskEventBus
from app.core.realtime import RealtimeBroadcaster, sse_event
from app.models.task import TaskCreate


def _decode(frame: bytes) -> tuple[str | None, dict]:
    event = None
    data = ""
    for line in frame.decode("utf-8").splitlines():
        if line.startswith("event: "):
            event = line.removeprefix("event: ")
        elif line.startswith("data: "):
            data += line.removeprefix("data: ")
    return event, json.loads(data)


def test_sse_event_format():
    frame = sse_event({"kind": "deleted", "task_id": "abc"}, event="deleted")

    assert frame == b'event: deleted\ndata: {"kind":"deleted","task_id":"abc"}\n\n'
    assert sse_event({"a": 1}) == b'data: {"a":1}\n\n'


@pytest.mark.asyncio
async def test_events_reach_every_connected_client():
    bus = TaskEventBus()
    broadcaster = RealtimeBroadcaster()
    broadcaster.attach(bus)
    _, first = broadcaster.connect("first")
    _, second = broadcaster.connect("second")

    bus.publish(TaskDeleted(task_id="abc"))

    for queue in (first, second):
        event, data = _decode(queue.get_nowait())
        assert event == "deleted"
        assert data == {"kind": "deleted", "task_id": "abc"}


@pytest.mark.asyncio
async def test_store_events_are_broadcast(task_store, event_bus):
    broadcaster = RealtimeBroadcaster()
    broadcaster.attach(event_bus)
    _, queue = broadcaster.connect()

    task = await task_store.create(TaskCreate(title="Realtime"))

    event, data = _decode(queue.get_nowait())
    assert event == "created"
    assert data["task"]["id"] == task.id
    assert data["task"]["title"] == "Realtime"
    broadcaster.detach()


@pytest.mark.asyncio
async def test_full_queue_drops_frames_for_that_client_only(caplog):
    bus = TaskEventBus()
    broadcaster = RealtimeBroadcaster(queue_size=1)
    broadcaster.attach(bus)
    _, slow = broadcaster.connect("slow")

    with caplog.at_level(logging.WARNING):
        bus.publish(TaskDeleted(task_id="one"))
        bus.publish(TaskDeleted(task_id="two"))

    assert slow.qsize() == 1
    assert _decode(slow.get_nowait())[1]["task_id"] == "one"
    assert "not reading" in caplog.text


@pytest.mark.asyncio
async def test_detach_stops_delivery():
    bus = TaskEventBus()
    broadcaster = RealtimeBroadcaster()
    broadcaster.attach(bus)
    _, queue = broadcaster.connect()

    broadcaster.detach()
    bus.publish(TaskDeleted(task_id="abc"))

    assert queue.empty()
    assert bus.subscriber_count == 0


@pytest.mark.asyncio
async def test_stream_starts_with_connected_frame_and_cleans_up():
    bus = TaskEventBus()
    broadcaster = RealtimeBroadcaster(keepalive_seconds=0.05)
    broadcaster.attach(bus)

    stream = broadcaster.stream("client-1")
    event, data = _decode(await anext(stream))
    assert event == "system"
    assert data == {"type": "connected", "client": "client-1"}
    assert broadcaster.client_count == 1

    bus.publish(TaskDeleted(task_id="abc"))
    event, _ = _decode(await anext(stream))
    assert event == "deleted"

    assert await asyncio.wait_for(anext(stream), timeout=1) == b": keepalive\n\n"

    await stream.aclose()
    assert broadcaster.client_count == 0


@pytest.mark.asyncio
async def test_stream_ends_when_client_disconnects():
    broadcaster = RealtimeBroadcaster(keepalive_seconds=0.01)

    async def gone() -> bool:
        return True

    frames = [frame async for frame in broadcaster.stream(disconnect_check=gone)]

    assert len(frames) == 1
    assert broadcaster.client_count == 0
