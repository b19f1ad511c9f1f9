"""User router - admin account management"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import Actor, get_current_actor
from ...database import get_db
from ...realtime import ChangeFeed, get_feed
from .schemas import RoleChangeResponse, RoleUpdate, UserEdit, UserResponse
from .service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


def get_user_service(
    db: Session = Depends(get_db),
    feed: ChangeFeed = Depends(get_feed),
) -> UserService:
    """Dependency injection for UserService"""
    return UserService(db, feed)


@router.get("", response_model=list[UserResponse])
async def list_users(
    actor: Actor = Depends(get_current_actor),
    service: UserService = Depends(get_user_service),
):
    return [UserResponse.from_model(a) for a in service.list_users(actor)]


@router.put("/{uid}/role", response_model=RoleChangeResponse)
async def set_user_role(
    uid: str,
    data: RoleUpdate,
    actor: Actor = Depends(get_current_actor),
    service: UserService = Depends(get_user_service),
):
    account, synced = service.set_role(uid, data.role, actor)
    return RoleChangeResponse(user=UserResponse.from_model(account), workerProfileSynced=synced)


@router.patch("/{uid}", response_model=UserResponse)
async def edit_user(
    uid: str,
    data: UserEdit,
    actor: Actor = Depends(get_current_actor),
    service: UserService = Depends(get_user_service),
):
    return UserResponse.from_model(service.edit_user(uid, data, actor))


@router.delete("/{uid}")
async def delete_user(
    uid: str,
    actor: Actor = Depends(get_current_actor),
    service: UserService = Depends(get_user_service),
):
    return service.delete_user(uid, actor)
