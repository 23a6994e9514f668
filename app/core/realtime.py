"""
Realtime task event fan-out (Server-Sent Events)

The broadcaster subscribes to the TaskEventBus and copies every event, encoded as
an SSE frame, into one bounded queue per connected client. The SSE event name is
the event kind, so browsers can listen with:

    source.addEventListener("created", ...)
    source.addEventListener("updated", ...)
    source.addEventListener("completed", ...)
    source.addEventListener("deleted", ...)

A client that stops reading loses frames once its queue is full; other clients
and the mutation that produced the event are unaffected.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

from uuid_utils import uuid7

from app.core.events import TaskCompleted, TaskCreated, TaskDeleted, TaskEventBus, TaskUpdated
from app.core.logger import get_logger

logger = get_logger(__name__, logging.INFO)


def sse_event(data: dict[str, Any], event: str | None = None) -> bytes:
    """
    Encode dict as SSE (Server-Sent Events) format.

    Args:
        data: payload to send
        event: optional event type

    Returns:
        SSE-formatted bytes

    Example:
        yield sse_event({"kind": "deleted", "task_id": "..."}, event="deleted")
    """
    payload = json.dumps(data, ensure_ascii=False, separators=(",", ":"), default=str)
    lines: list[str] = []
    if event:
        lines.append(f"event: {event}\n")
    for chunk in payload.splitlines() or [payload]:
        lines.append(f"data: {chunk}\n")
    lines.append("\n")
    return "".join(lines).encode("utf-8")


class RealtimeBroadcaster:
    """Fans task events out to SSE client queues"""

    __slots__ = ("queue_size", "keepalive_seconds", "_clients", "_unsubscribe")

    def __init__(self, *, queue_size: int = 100, keepalive_seconds: float = 15.0) -> None:
        self.queue_size = queue_size
        self.keepalive_seconds = keepalive_seconds
        self._clients: dict[str, asyncio.Queue[bytes]] = {}
        self._unsubscribe: Callable[[], None] | None = None

    # -------------------- bus wiring --------------------

    def attach(self, bus: TaskEventBus) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = bus.subscribe(self.handle)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def handle(self, event: TaskCreated | TaskUpdated | TaskCompleted | TaskDeleted) -> None:
        frame = sse_event(event.model_dump(mode="json"), event=event.kind)
        for client_id, queue in list(self._clients.items()):
            try:
                queue.put_nowait(frame)
            except asyncio.QueueFull:
                logger.warning(f"SSE client '{client_id}' is not reading; dropped '{event.kind}' event")

    # -------------------- clients --------------------

    @property
    def client_count(self) -> int:
        return len(self._clients)

    def connect(self, client_id: str | None = None) -> tuple[str, asyncio.Queue[bytes]]:
        client_id = client_id or str(uuid7())
        queue: asyncio.Queue[bytes] = asyncio.Queue(maxsize=self.queue_size)
        self._clients[client_id] = queue
        logger.info(f"SSE client connected '{client_id}' (clients={len(self._clients)})")
        return client_id, queue

    def disconnect(self, client_id: str) -> None:
        if self._clients.pop(client_id, None) is not None:
            logger.info(f"SSE client disconnected '{client_id}' (clients={len(self._clients)})")

    async def stream(
        self,
        client_id: str | None = None,
        *,
        disconnect_check: Callable[[], Awaitable[bool]] | None = None,
    ) -> AsyncGenerator[bytes]:
        """
        Yield SSE frames for one client until it disconnects.

        Starts with a "system" connected frame, then relays task events. While idle,
        a comment line is sent every keepalive_seconds and disconnect_check (e.g.
        Request.is_disconnected) is polled.
        """
        client_id, queue = self.connect(client_id)
        try:
            yield sse_event({"type": "connected", "client": client_id}, event="system")

            while True:
                try:
                    frame = await asyncio.wait_for(queue.get(), timeout=self.keepalive_seconds)
                except TimeoutError:
                    if disconnect_check is not None and await disconnect_check():
                        break
                    yield b": keepalive\n\n"
                    continue
                yield frame
        finally:
            self.disconnect(client_id)
