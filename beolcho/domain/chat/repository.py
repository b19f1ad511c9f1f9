"""Chat repository - Database operations for chat messages"""

from sqlalchemy.orm import Session

from ...models import ChatMessage


class ChatRepository:
    """Repository for chat message database operations"""

    @staticmethod
    def list_room(db: Session, room_id: str) -> list[ChatMessage]:
        return (
            db.query(ChatMessage)
            .filter(ChatMessage.room_id == room_id)
            .order_by(ChatMessage.created_at.asc())
            .all()
        )

    @staticmethod
    def latest(db: Session, limit: int) -> list[ChatMessage]:
        return db.query(ChatMessage).order_by(ChatMessage.created_at.desc()).limit(limit).all()

    @staticmethod
    def add(db: Session, **message_data) -> ChatMessage:
        message = ChatMessage(**message_data)
        db.add(message)
        return message

    @staticmethod
    def delete_room(db: Session, room_id: str) -> int:
        return (
            db.query(ChatMessage)
            .filter(ChatMessage.room_id == room_id)
            .delete(synchronize_session=False)
        )
