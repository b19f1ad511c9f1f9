"""User service - Business logic for account management"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...auth import Actor, require_admin
from ...database import transaction
from ...errors import AuthorizationError, NotFoundError, ValidationError
from ...models import UserAccount, UserRole
from ...realtime import ChangeEvent, ChangeFeed
from ..lifecycle import change_role
from ..workers.repository import WorkerRepository
from .repository import UserRepository
from .schemas import UserEdit

logger = logging.getLogger(__name__)


class UserService:
    """Service layer for account business logic"""

    def __init__(self, db: Session, feed: ChangeFeed):
        self.db = db
        self.feed = feed
        self.repo = UserRepository()
        self.workers = WorkerRepository()

    def _publish(self, action: str, uid: str, data: Optional[dict] = None) -> None:
        self.feed.publish(ChangeEvent(collection="users", action=action, doc_id=uid, owner_id=uid, data=data or {}))

    def get_user(self, uid: str) -> UserAccount:
        account = self.repo.get_by_uid(self.db, uid)
        if not account:
            raise NotFoundError("회원 정보를 찾을 수 없습니다.")
        return account

    def list_users(self, actor: Actor) -> list[UserAccount]:
        require_admin(actor)
        return self.repo.list_all(self.db)

    def set_role(self, uid: str, new_role: str, actor: Actor) -> tuple[UserAccount, bool]:
        """
        Direct role assignment. A linked worker profile's approval follows
        the new role in the same commit.
        """
        require_admin(actor)
        account = self.get_user(uid)
        profile = self.workers.get_by_uid(self.db, uid)
        previous = account.role

        with transaction(self.db):
            synced = change_role(account, profile, new_role, actor)

        self.db.refresh(account)
        logger.info(
            f"🔐 Role of {uid} changed {previous} → {account.role} by {actor.uid}"
            + (" (worker approval synced)" if synced else "")
        )
        self._publish("updated", uid, {"role": account.role})
        return account, synced

    def edit_user(self, uid: str, data: UserEdit, actor: Actor) -> UserAccount:
        require_admin(actor)
        account = self.get_user(uid)

        display_name = data.displayName.strip() if data.displayName is not None else None
        if display_name is not None and not display_name:
            raise ValidationError("이름을 입력해주세요.")
        email = data.email.strip() if data.email is not None else None
        if email is not None and "@" not in email:
            raise ValidationError("올바른 이메일 주소를 입력해주세요.")

        profile = self.workers.get_by_uid(self.db, uid)
        with transaction(self.db):
            if display_name is not None:
                account.display_name = display_name
                if profile and account.role == UserRole.WORKER.value:
                    profile.display_name = display_name
            if email is not None:
                account.email = email

        self.db.refresh(account)
        logger.info(f"✏️ Account {uid} edited by {actor.uid}")
        self._publish("updated", uid)
        return account

    def delete_user(self, uid: str, actor: Actor) -> dict:
        """Remove the account record and its worker profile together."""
        require_admin(actor)
        if uid == actor.uid:
            raise AuthorizationError("본인 계정은 삭제할 수 없습니다.")
        account = self.get_user(uid)
        profile = self.workers.get_by_uid(self.db, uid)

        with transaction(self.db):
            if profile:
                self.workers.delete(self.db, profile)
            self.repo.delete(self.db, account)

        logger.info(f"🗑️ Account {uid} deleted by {actor.uid}" + (" with worker profile" if profile else ""))
        self._publish("deleted", uid)
        return {"message": "회원이 삭제되었습니다.", "uid": uid}

    def update_basic_info(self, actor: Actor, display_name: str) -> UserAccount:
        name = (display_name or "").strip()
        if not name:
            raise ValidationError("이름을 입력해주세요.")
        account = self.get_user(actor.uid)
        profile = self.workers.get_by_uid(self.db, actor.uid)

        with transaction(self.db):
            account.display_name = name
            if profile:
                profile.display_name = name

        self.db.refresh(account)
        logger.info(f"✏️ {actor.uid} updated their display name")
        self._publish("updated", actor.uid)
        return account
