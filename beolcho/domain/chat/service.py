"""Chat service - Business logic for consultation rooms"""

import logging

from sqlalchemy.orm import Session

from ...auth import Actor, require_admin
from ...database import transaction
from ...errors import AuthorizationError, ValidationError
from ...models import ChatMessage
from ...realtime import ChangeEvent, ChangeFeed
from ..lifecycle import ensure_owner_or_admin
from .repository import ChatRepository
from .schemas import RoomSummary

logger = logging.getLogger(__name__)

# The admin room list is built from this many recent messages
ROOM_SCAN_LIMIT = 100


class ChatService:
    """Service layer for chat business logic"""

    def __init__(self, db: Session, feed: ChangeFeed):
        self.db = db
        self.feed = feed
        self.repo = ChatRepository()

    def send_message(self, room_id: str, text: str, actor: Actor) -> ChatMessage:
        if not actor.is_admin and room_id != actor.uid:
            logger.warning(f"🚫 {actor.uid} tried to post into room {room_id}")
            raise AuthorizationError("본인의 상담방에만 메시지를 보낼 수 있습니다.")
        text = (text or "").strip()
        if not text:
            raise ValidationError("메시지를 입력해주세요.")

        fallback = "관리자" if actor.is_admin else "사용자"
        with transaction(self.db):
            message = self.repo.add(
                self.db,
                room_id=room_id,
                sender_id=actor.uid,
                sender_name=actor.display_name or fallback,
                text=text,
                is_read=False,
            )

        self.db.refresh(message)
        self.feed.publish(
            ChangeEvent(
                collection="chats",
                action="created",
                doc_id=message.id,
                owner_id=room_id,
                data={
                    "roomId": room_id,
                    "senderId": message.sender_id,
                    "senderName": message.sender_name,
                    "text": message.text,
                    "createdAt": message.created_at,
                },
            )
        )
        return message

    def list_messages(self, room_id: str, actor: Actor) -> list[ChatMessage]:
        ensure_owner_or_admin(room_id, actor, "본인의 상담 내역만 볼 수 있습니다.")
        return self.repo.list_room(self.db, room_id)

    def list_rooms(self, actor: Actor) -> list[RoomSummary]:
        """
        Rooms with recent activity, newest first. The customer name is the
        latest name a non-admin sender used in the room, if any.
        """
        require_admin(actor)
        rooms: dict[str, RoomSummary] = {}
        for message in self.repo.latest(self.db, ROOM_SCAN_LIMIT):
            summary = rooms.get(message.room_id)
            if summary is None:
                summary = RoomSummary(
                    roomId=message.room_id,
                    customerName="",
                    lastMessage=message.text,
                    lastMessageAt=message.created_at,
                )
                rooms[message.room_id] = summary
            if not summary.customerName and message.sender_id == message.room_id:
                summary.customerName = message.sender_name

        for summary in rooms.values():
            summary.customerName = summary.customerName or "고객"
        return list(rooms.values())

    def delete_room(self, room_id: str, actor: Actor) -> dict:
        ensure_owner_or_admin(room_id, actor, "본인의 상담방만 삭제할 수 있습니다.")
        with transaction(self.db):
            deleted = self.repo.delete_room(self.db, room_id)

        logger.info(f"🗑️ Chat room {room_id} cleared by {actor.uid} ({deleted} message(s))")
        self.feed.publish(ChangeEvent(collection="chats", action="deleted", doc_id=room_id, owner_id=room_id))
        return {"message": "상담 내역이 삭제되었습니다.", "deleted": deleted}
