"""Chat router - consultation rooms"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import Actor, get_current_actor
from ...database import get_db
from ...realtime import ChangeFeed, get_feed
from .schemas import MessageCreate, MessageResponse, RoomSummary
from .service import ChatService

router = APIRouter(prefix="/chats", tags=["Chat"])


def get_chat_service(
    db: Session = Depends(get_db),
    feed: ChangeFeed = Depends(get_feed),
) -> ChatService:
    """Dependency injection for ChatService"""
    return ChatService(db, feed)


@router.get("/rooms", response_model=list[RoomSummary])
async def list_rooms(
    actor: Actor = Depends(get_current_actor),
    service: ChatService = Depends(get_chat_service),
):
    return service.list_rooms(actor)


@router.get("/{room_id}", response_model=list[MessageResponse])
async def list_messages(
    room_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ChatService = Depends(get_chat_service),
):
    return [MessageResponse.from_model(m) for m in service.list_messages(room_id, actor)]


@router.post("/{room_id}", response_model=MessageResponse, status_code=201)
async def send_message(
    room_id: str,
    data: MessageCreate,
    actor: Actor = Depends(get_current_actor),
    service: ChatService = Depends(get_chat_service),
):
    return MessageResponse.from_model(service.send_message(room_id, data.text, actor))


@router.delete("/{room_id}")
async def delete_room(
    room_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ChatService = Depends(get_chat_service),
):
    return service.delete_room(room_id, actor)
