"""User domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ...models import UserAccount, UserRole


class RoleUpdate(BaseModel):
    role: str  # ADMIN / CUSTOMER / WORKER


class UserEdit(BaseModel):
    """Admin edit of an account's basic fields"""

    displayName: Optional[str] = None
    email: Optional[str] = None


class BasicInfoUpdate(BaseModel):
    displayName: str


class UserResponse(BaseModel):
    uid: str
    email: str
    displayName: str
    photoUrl: Optional[str] = None
    role: UserRole
    createdAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, a: UserAccount) -> "UserResponse":
        return cls(
            uid=a.uid,
            email=a.email or "",
            displayName=a.display_name or "",
            photoUrl=a.photo_url or None,
            role=UserRole(a.role),
            createdAt=a.created_at,
        )


class RoleChangeResponse(BaseModel):
    user: UserResponse
    workerProfileSynced: bool
