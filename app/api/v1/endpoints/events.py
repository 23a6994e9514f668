"""
Realtime task events (SSE)
"""

import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse

from app.api.deps import get_broadcaster
from app.core.logger import get_logger
from app.core.realtime import RealtimeBroadcaster

logger = get_logger(__name__, logging.INFO)

router: APIRouter = APIRouter()


@router.get("/", summary="Subscribe to task events (SSE)")
async def subscribe_to_task_events(
    request: Request,
    client: str | None = Query(None, description="Optional client id (auto-generated if not provided)"),
    broadcaster: RealtimeBroadcaster = Depends(get_broadcaster),
):
    """
    Stream task change events using Server-Sent Events (SSE).

    SSE event names: created, updated, completed, deleted (plus "system" on connect).

    Example:

        $ curl -N http://localhost:4000/api/v1/events/
    """

    headers = {
        "Content-Type": "text/event-stream",
        "Cache-Control": "no-cache, no-transform",
        "Connection": "keep-alive",
        "X-Accel-Buffering": "no",
    }

    logger.info(f"Starting task event stream (client={client or 'auto'})")
    return StreamingResponse(
        broadcaster.stream(client, disconnect_check=request.is_disconnected),
        headers=headers,
        status_code=200,
    )
