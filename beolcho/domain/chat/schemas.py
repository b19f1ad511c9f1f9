"""Chat domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ...models import ChatMessage


class MessageCreate(BaseModel):
    text: str


class MessageResponse(BaseModel):
    id: str
    roomId: str
    senderId: str
    senderName: str
    text: str
    isRead: bool
    createdAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, m: ChatMessage) -> "MessageResponse":
        return cls(
            id=m.id,
            roomId=m.room_id,
            senderId=m.sender_id,
            senderName=m.sender_name,
            text=m.text,
            isRead=bool(m.is_read),
            createdAt=m.created_at,
        )


class RoomSummary(BaseModel):
    """One entry in the admin room list"""

    roomId: str
    customerName: str
    lastMessage: str
    lastMessageAt: Optional[datetime] = None
