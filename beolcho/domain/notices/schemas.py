"""Notice domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ...models import Notice, NoticeComment


class CommentCreate(BaseModel):
    text: str


class CommentResponse(BaseModel):
    id: str
    userId: str
    userName: str
    text: str
    createdAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, c: NoticeComment) -> "CommentResponse":
        return cls(id=c.id, userId=c.user_id, userName=c.user_name, text=c.text, createdAt=c.created_at)


class NoticeResponse(BaseModel):
    id: str
    title: str
    content: str
    authorId: str
    authorName: str
    imageUrls: list[str] = []
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class NoticeDetailResponse(NoticeResponse):
    comments: list[CommentResponse]


def notice_fields(n: Notice) -> dict:
    return {
        "id": n.id,
        "title": n.title,
        "content": n.content,
        "authorId": n.author_id,
        "authorName": n.author_name,
        "imageUrls": list(n.image_urls or []),
        "createdAt": n.created_at,
        "updatedAt": n.updated_at,
    }
