import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .database import Base


def utcnow():
    """Server-side timestamp; clients never supply it"""
    return datetime.now(timezone.utc)


def generate_id():
    """Opaque document id assigned by the store"""
    return uuid.uuid4().hex


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    CUSTOMER = "CUSTOMER"
    WORKER = "WORKER"


class ReservationStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def label(self) -> str:
        return RESERVATION_STATUS_LABELS[self]


RESERVATION_STATUS_LABELS = {
    ReservationStatus.PENDING: "접수대기",
    ReservationStatus.CONFIRMED: "예약확정",
    ReservationStatus.COMPLETED: "작업완료",
    ReservationStatus.CANCELLED: "취소됨",
}


class UserAccount(Base):
    __tablename__ = "users"

    uid = Column(String(128), primary_key=True)  # identity provider uid
    email = Column(String(255), index=True, nullable=False, default="")
    display_name = Column(String(255), nullable=True)
    photo_url = Column(String(1000), nullable=True)
    role = Column(String(20), nullable=False, default=UserRole.CUSTOMER.value)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    worker_profile = relationship(
        "WorkerProfile", back_populates="account", uselist=False, passive_deletes=True
    )


class WorkerProfile(Base):
    __tablename__ = "worker_profiles"

    uid = Column(String(128), ForeignKey("users.uid", ondelete="CASCADE"), primary_key=True)
    display_name = Column(String(255), nullable=False, default="")
    phone = Column(String(50), nullable=False, default="")
    bio = Column(Text, nullable=False, default="")
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    address = Column(String(500), nullable=False, default="")
    experience_years = Column(Integer, nullable=False, default=1)
    is_available = Column(Boolean, nullable=False, default=True)  # accepting new work
    photo_url = Column(String(1000), nullable=True)
    max_distance = Column(Integer, nullable=False, default=10)  # km
    equipment_count = Column(Integer, nullable=False, default=1)  # brush cutters owned
    portfolio_urls = Column(JSON, nullable=False, default=list)
    is_approved = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    account = relationship("UserAccount", back_populates="worker_profile")


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(128), index=True, nullable=False)
    user_name = Column(String(255), nullable=False)
    user_phone = Column(String(50), nullable=False)
    location_name = Column(String(500), nullable=False)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    request_date = Column(Date, nullable=False)
    description = Column(Text, nullable=False, default="")
    image_urls = Column(JSON, nullable=False, default=list)
    status = Column(String(20), index=True, nullable=False, default=ReservationStatus.PENDING.value)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)


class ChatMessage(Base):
    __tablename__ = "chats"

    id = Column(String(32), primary_key=True, default=generate_id)
    room_id = Column(String(128), index=True, nullable=False)  # customer uid
    sender_id = Column(String(128), nullable=False)
    sender_name = Column(String(255), nullable=False)
    text = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)


class Review(Base):
    __tablename__ = "reviews"

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(128), index=True, nullable=False)
    user_name = Column(String(255), nullable=False)
    rating = Column(Integer, nullable=False)  # 1..5
    text = Column(Text, nullable=False)
    photo_url = Column(String(1000), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)


class Notice(Base):
    __tablename__ = "notices"

    id = Column(String(32), primary_key=True, default=generate_id)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    author_id = Column(String(128), nullable=False)
    author_name = Column(String(255), nullable=False)
    image_urls = Column(JSON, nullable=False, default=list)  # at most one
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    comments = relationship(
        "NoticeComment",
        back_populates="notice",
        cascade="all, delete-orphan",
        order_by="NoticeComment.created_at.desc()",
    )


class NoticeComment(Base):
    __tablename__ = "notice_comments"

    id = Column(String(32), primary_key=True, default=generate_id)
    notice_id = Column(String(32), ForeignKey("notices.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id = Column(String(128), nullable=False)
    user_name = Column(String(255), nullable=False)
    text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    notice = relationship("Notice", back_populates="comments")
