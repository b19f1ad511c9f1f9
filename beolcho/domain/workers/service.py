"""Worker service - Business logic for worker applications and approval"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...auth import Actor, require_admin
from ...database import transaction
from ...errors import AuthorizationError, NotFoundError, TransientIOError, ValidationError
from ...models import UserAccount, UserRole, WorkerProfile
from ...realtime import ChangeEvent, ChangeFeed
from ...shared.validators import validate_coordinates, validate_kr_phone
from ...storage import ImageUpload, R2BlobStore, discard, discard_urls, upload_all, validate_images
from ..lifecycle import approve_worker, revoke_worker, visible_workers
from ..users.repository import UserRepository
from .repository import WorkerRepository
from .schemas import WorkerProfileUpdate

logger = logging.getLogger(__name__)

# Seongju-eup, used until the applicant picks a base on the map
DEFAULT_BASE_COORDINATES = (35.919069, 128.283038)
DEFAULT_BIO = "신규 지원자입니다."


class WorkerService:
    """Service layer for worker profile business logic"""

    def __init__(self, db: Session, store: R2BlobStore, feed: ChangeFeed):
        self.db = db
        self.store = store
        self.feed = feed
        self.repo = WorkerRepository()
        self.users = UserRepository()

    def _publish(self, action: str, profile: WorkerProfile) -> None:
        self.feed.publish(
            ChangeEvent(
                collection="worker_profiles",
                action=action,
                doc_id=profile.uid,
                owner_id=profile.uid,
                data={"isApproved": bool(profile.is_approved), "isAvailable": bool(profile.is_available)},
            )
        )

    def _account(self, uid: str) -> UserAccount:
        account = self.users.get_by_uid(self.db, uid)
        if not account:
            raise NotFoundError("회원 정보를 찾을 수 없습니다.")
        return account

    def get_profile(self, uid: str) -> WorkerProfile:
        profile = self.repo.get_by_uid(self.db, uid)
        if not profile:
            raise NotFoundError("반장 지원 내역이 없습니다.")
        return profile

    def apply_as_worker(self, actor: Actor, display_name: Optional[str] = None) -> tuple[WorkerProfile, bool]:
        """
        Create an unapproved profile with placeholder values. The account
        keeps its role until an admin approves. Applying again updates the
        existing profile instead of replacing it. Returns (profile, created).
        """
        if actor.is_admin:
            raise AuthorizationError("관리자 계정은 반장으로 지원할 수 없습니다.")

        name = (display_name or "").strip()
        existing = self.repo.get_by_uid(self.db, actor.uid)
        if existing:
            if name:
                with transaction(self.db):
                    existing.display_name = name
                self.db.refresh(existing)
            logger.info(f"🔁 Worker application repeated by {actor.uid}; existing profile kept")
            return existing, False

        # A WORKER without a profile was set by role alone; a pending profile would contradict it
        if actor.role != UserRole.CUSTOMER:
            logger.warning(f"🚫 Worker application from {actor.uid} rejected: role is {actor.role.value}")
            raise AuthorizationError("일반 회원만 반장으로 지원할 수 있습니다.")

        account = self._account(actor.uid)
        lat, lng = DEFAULT_BASE_COORDINATES
        with transaction(self.db):
            profile = self.repo.add(
                self.db,
                uid=actor.uid,
                display_name=name or account.display_name or actor.display_name,
                phone="",
                bio=DEFAULT_BIO,
                lat=lat,
                lng=lng,
                address="",
                experience_years=1,
                is_available=True,
                photo_url=account.photo_url or None,
                max_distance=10,
                equipment_count=1,
                portfolio_urls=[],
                is_approved=False,
            )

        self.db.refresh(profile)
        logger.info(f"📝 Worker application received from {actor.uid}")
        self._publish("created", profile)
        return profile, True

    @staticmethod
    def _merge_fields(data: WorkerProfileUpdate) -> dict:
        """Translate the supplied fields into column updates, validating each."""
        updates = {}
        if data.displayName is not None:
            if not data.displayName.strip():
                raise ValidationError("이름을 입력해주세요.")
            updates["display_name"] = data.displayName.strip()
        if data.phone is not None:
            if not data.phone.strip():
                raise ValidationError("연락처를 입력해주세요.")
            try:
                updates["phone"] = validate_kr_phone(data.phone)
            except ValueError as e:
                raise ValidationError(str(e)) from e
        if data.bio is not None:
            updates["bio"] = data.bio

        # Base location: address and coordinates move together
        location_fields = (data.address, data.lat, data.lng)
        if any(v is not None for v in location_fields):
            if any(v is None for v in location_fields) or not data.address.strip():
                raise ValidationError("활동 거점을 지도에서 선택해주세요.")
            try:
                lat, lng = validate_coordinates(data.lat, data.lng)
            except ValueError as e:
                raise ValidationError(str(e)) from e
            updates.update(address=data.address.strip(), lat=lat, lng=lng)

        for field, column, minimum in (
            ("experienceYears", "experience_years", 0),
            ("equipmentCount", "equipment_count", 0),
            ("maxDistance", "max_distance", 1),
        ):
            value = getattr(data, field)
            if value is None:
                continue
            if value < minimum:
                raise ValidationError(f"{field} 값은 {minimum} 이상이어야 합니다.")
            updates[column] = value

        if data.isAvailable is not None:
            updates["is_available"] = data.isAvailable
        return updates

    async def update_profile(
        self, actor: Actor, data: WorkerProfileUpdate, portfolio: list[ImageUpload]
    ) -> WorkerProfile:
        """
        Merge the supplied fields into the caller's profile. New portfolio
        photos are appended to the existing list. Approval is never changed here.
        """
        profile = self.get_profile(actor.uid)
        updates = self._merge_fields(data)
        validate_images(portfolio)

        stored = await upload_all(self.store, "portfolios", actor.uid, portfolio)
        try:
            with transaction(self.db):
                for column, value in updates.items():
                    setattr(profile, column, value)
                if stored:
                    profile.portfolio_urls = list(profile.portfolio_urls or []) + [b.url for b in stored]
        except TransientIOError:
            await discard(self.store, stored)
            raise

        self.db.refresh(profile)
        logger.info(
            f"✏️ Worker profile {actor.uid} updated ({', '.join(sorted(updates)) or 'no fields'}"
            f", +{len(stored)} portfolio photo(s))"
        )
        self._publish("updated", profile)
        return profile

    async def remove_portfolio_photo(self, actor: Actor, url: str) -> WorkerProfile:
        profile = self.get_profile(actor.uid)
        urls = list(profile.portfolio_urls or [])
        if url not in urls:
            raise NotFoundError("포트폴리오 사진을 찾을 수 없습니다.")
        urls.remove(url)

        with transaction(self.db):
            profile.portfolio_urls = urls

        # The object stays while another entry still points at it
        if url not in urls:
            await discard_urls(self.store, [url])

        self.db.refresh(profile)
        logger.info(f"🗑️ Portfolio photo removed from {actor.uid}")
        self._publish("updated", profile)
        return profile

    async def upload_photo(self, actor: Actor, photo: Optional[ImageUpload]) -> str:
        """Avatar upload: always written to the account, and to the profile if one exists."""
        if photo is None:
            raise ValidationError("업로드할 사진을 선택해주세요.")
        validate_images([photo])

        account = self._account(actor.uid)
        profile = self.repo.get_by_uid(self.db, actor.uid)
        stored = await upload_all(self.store, "profiles", actor.uid, [photo])
        try:
            with transaction(self.db):
                account.photo_url = stored[0].url
                if profile:
                    profile.photo_url = stored[0].url
        except TransientIOError:
            await discard(self.store, stored)
            raise

        logger.info(f"🖼️ Profile photo updated for {actor.uid}")
        if profile:
            self.db.refresh(profile)
            self._publish("updated", profile)
        return stored[0].url

    def list_public_workers(self) -> list[WorkerProfile]:
        return visible_workers(self.repo.list_all(self.db))

    def list_workers(self, actor: Actor) -> tuple[list[WorkerProfile], list[WorkerProfile]]:
        """(pending, active) for the admin management view"""
        require_admin(actor)
        return self.repo.list_by_approval(self.db, False), self.repo.list_by_approval(self.db, True)

    def approve(self, worker_id: str, actor: Actor) -> tuple[WorkerProfile, UserAccount]:
        require_admin(actor)
        profile = self.get_profile(worker_id)
        account = self._account(worker_id)

        with transaction(self.db):
            approve_worker(profile, account, actor)

        self.db.refresh(profile)
        self.db.refresh(account)
        logger.info(f"✅ Worker {worker_id} approved by {actor.uid}")
        self._publish_pair(profile, account)
        return profile, account

    def revoke(self, worker_id: str, actor: Actor) -> tuple[WorkerProfile, UserAccount]:
        require_admin(actor)
        profile = self.get_profile(worker_id)
        account = self._account(worker_id)

        with transaction(self.db):
            revoke_worker(profile, account, actor)

        self.db.refresh(profile)
        self.db.refresh(account)
        logger.info(f"↩️ Worker {worker_id} approval revoked by {actor.uid}")
        self._publish_pair(profile, account)
        return profile, account

    def _publish_pair(self, profile: WorkerProfile, account: UserAccount) -> None:
        self._publish("updated", profile)
        self.feed.publish(
            ChangeEvent(
                collection="users",
                action="updated",
                doc_id=account.uid,
                owner_id=account.uid,
                data={"role": account.role},
            )
        )
