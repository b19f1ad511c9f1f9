import logging
from typing import Optional

import firebase_admin
from fastapi import APIRouter, Depends
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .. import config
from ..auth import Actor, bootstrap_seed_admin, get_current_account, get_current_actor
from ..database import get_db, transaction
from ..domain.users.repository import UserRepository
from ..domain.users.schemas import BasicInfoUpdate, UserResponse
from ..domain.users.router import get_user_service
from ..domain.users.service import UserService
from ..errors import TransientIOError, ValidationError
from ..models import UserAccount, UserRole

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def get_firebase_app():
    """Initialize the Firebase Admin SDK on first use"""
    try:
        return firebase_admin.get_app()
    except ValueError:
        try:
            cred = credentials.ApplicationDefault()
            app = firebase_admin.initialize_app(cred, {"projectId": config.FIREBASE_PROJECT_ID})
            logger.info("Firebase Admin initialized with default credentials")
        except Exception:
            # Initialize without credentials (limited functionality)
            app = firebase_admin.initialize_app(options={"projectId": config.FIREBASE_PROJECT_ID})
            logger.info("Firebase Admin initialized with project ID only")
        return app


class SignUpRequest(BaseModel):
    email: str
    password: str
    displayName: str


@router.post("/signup", response_model=UserResponse, status_code=201)
async def sign_up(data: SignUpRequest, db: Session = Depends(get_db)):
    """Create the identity provider account and its CUSTOMER record"""
    email = (data.email or "").strip().lower()
    name = (data.displayName or "").strip()
    if not email or not name or not data.password:
        raise ValidationError("필수 정보를 입력해주세요.")
    if len(data.password) < 6:
        raise ValidationError("비밀번호는 6자 이상이어야 합니다.")

    get_firebase_app()
    try:
        record = firebase_auth.create_user(email=email, password=data.password, display_name=name)
    except firebase_auth.EmailAlreadyExistsError as e:
        raise ValidationError("이미 가입된 이메일입니다.") from e
    except firebase_admin.exceptions.FirebaseError as e:
        logger.error(f"❌ Firebase sign-up failed for {email}: {e}")
        raise TransientIOError("회원가입 중 오류가 발생했습니다. 다시 시도해주세요.") from e

    try:
        with transaction(db):
            account = UserRepository.add(
                db,
                uid=record.uid,
                email=email,
                display_name=name,
                role=UserRole.CUSTOMER.value,
            )
    except TransientIOError:
        discard_identity(record.uid)
        raise
    db.refresh(account)
    account = bootstrap_seed_admin(db, account)

    logger.info(f"🆕 Signed up {email} ({record.uid})")
    return UserResponse.from_model(account)


@router.get("/me", response_model=UserResponse)
async def get_me(account: UserAccount = Depends(get_current_account)):
    """Current account; the first call after sign-in creates the record"""
    return UserResponse.from_model(account)


@router.patch("/me", response_model=UserResponse)
async def update_me(
    data: BasicInfoUpdate,
    actor: Actor = Depends(get_current_actor),
    service: UserService = Depends(get_user_service),
):
    """Rename the current account (and its worker profile, if any)"""
    account = service.update_basic_info(actor, data.displayName)
    sync_identity_display_name(actor.uid, account.display_name)
    return UserResponse.from_model(account)


def discard_identity(uid: str) -> None:
    """Remove a provider account whose record was never written"""
    try:
        firebase_auth.delete_user(uid)
        logger.info(f"↩️ Removed identity {uid} after failed sign-up")
    except firebase_admin.exceptions.FirebaseError as e:
        logger.error(f"❌ Orphaned identity left in Firebase: {uid} ({e})")


def sync_identity_display_name(uid: str, display_name: Optional[str]) -> None:
    """Mirror the display name into the identity provider profile"""
    get_firebase_app()
    try:
        firebase_auth.update_user(uid, display_name=display_name)
    except firebase_admin.exceptions.FirebaseError as e:
        # The account record is already committed; the provider copy catches up on next edit
        logger.error(f"❌ Firebase profile update failed for {uid}: {e}")
