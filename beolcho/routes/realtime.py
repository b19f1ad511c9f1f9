"""
Live subscriptions over Server-Sent Events.

A stream is attached when the client connects and detached when it goes
away; the change feed subscription is scoped to the response body.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from ..auth import Actor, get_current_actor
from ..domain.lifecycle import ensure_owner_or_admin
from ..realtime import ChangeEvent, ChangeFeed, get_feed, stream_events

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/realtime", tags=["Realtime"])

SSE_HEADERS = {"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}


def reservation_filter(actor: Actor):
    """Admins see every reservation change, customers only their own"""

    def accepts(event: ChangeEvent) -> bool:
        if event.collection != "reservations":
            return False
        return actor.is_admin or event.owner_id == actor.uid

    return accepts


def chat_room_filter(room_id: str):
    def accepts(event: ChangeEvent) -> bool:
        return event.collection == "chats" and event.owner_id == room_id

    return accepts


@router.get("/reservations")
async def stream_reservations(
    request: Request,
    actor: Actor = Depends(get_current_actor),
    change_feed: ChangeFeed = Depends(get_feed),
):
    logger.info(f"📡 Reservation stream opened for {actor.uid}")
    return StreamingResponse(
        stream_events(change_feed, reservation_filter(actor), request.is_disconnected),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.get("/chats/{room_id}")
async def stream_chat_room(
    room_id: str,
    request: Request,
    actor: Actor = Depends(get_current_actor),
    change_feed: ChangeFeed = Depends(get_feed),
):
    ensure_owner_or_admin(room_id, actor, "본인의 상담방만 구독할 수 있습니다.")
    return StreamingResponse(
        stream_events(change_feed, chat_room_filter(room_id), request.is_disconnected),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
