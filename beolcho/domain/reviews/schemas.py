"""Review domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ...models import Review


class ReviewUpdate(BaseModel):
    rating: Optional[int] = None
    text: Optional[str] = None


class ReviewResponse(BaseModel):
    id: str
    userId: str
    userName: str
    rating: int
    text: str
    photoUrl: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, r: Review) -> "ReviewResponse":
        return cls(
            id=r.id,
            userId=r.user_id,
            userName=r.user_name,
            rating=r.rating,
            text=r.text,
            photoUrl=r.photo_url or None,
            createdAt=r.created_at,
            updatedAt=r.updated_at,
        )
