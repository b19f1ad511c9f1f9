"""Reservation service - Business logic for service requests"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ... import config
from ...auth import Actor, require_admin
from ...database import transaction
from ...errors import NotFoundError, TransientIOError, ValidationError
from ...models import Reservation, ReservationStatus
from ...realtime import ChangeEvent, ChangeFeed
from ...shared.validators import parse_request_date, validate_coordinates, validate_kr_phone
from ...storage import ImageUpload, R2BlobStore, discard, upload_all, validate_images
from ..lifecycle import ensure_owner_or_admin, parse_status, set_reservation_status
from .repository import ReservationRepository
from .schemas import ReservationCreate

logger = logging.getLogger(__name__)


class ReservationService:
    """Service layer for reservation business logic"""

    def __init__(self, db: Session, store: R2BlobStore, feed: ChangeFeed):
        self.db = db
        self.store = store
        self.feed = feed
        self.repo = ReservationRepository()

    def _publish(self, action: str, reservation: Reservation) -> None:
        self.feed.publish(
            ChangeEvent(
                collection="reservations",
                action=action,
                doc_id=reservation.id,
                owner_id=reservation.user_id,
                data={"status": reservation.status},
            )
        )

    @staticmethod
    def validate_submission(data: ReservationCreate) -> dict:
        """Check required fields before any upload or write happens."""
        if not data.locationName.strip() or data.lat is None or data.lng is None:
            raise ValidationError("지도에서 벌초할 위치를 선택해주세요.")
        if not data.requestDate.strip() or not data.userPhone.strip() or not data.userName.strip():
            raise ValidationError("필수 정보를 입력해주세요.")

        try:
            request_date = parse_request_date(data.requestDate)
            phone = validate_kr_phone(data.userPhone)
            lat, lng = validate_coordinates(data.lat, data.lng)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        return {
            "user_name": data.userName.strip(),
            "user_phone": phone,
            "location_name": data.locationName.strip(),
            "lat": lat,
            "lng": lng,
            "request_date": request_date,
            "description": data.description or "",
        }

    async def create_reservation(
        self, data: ReservationCreate, photos: list[ImageUpload], actor: Actor
    ) -> Reservation:
        """
        Submit a request. Photos upload in parallel and the record is only
        written after all of them are stored; any failure removes the
        photos already uploaded.
        """
        fields = self.validate_submission(data)
        validate_images(photos, max_count=config.MAX_RESERVATION_PHOTOS)

        stored = await upload_all(self.store, "reservations", actor.uid, photos)
        try:
            with transaction(self.db):
                reservation = self.repo.add(
                    self.db,
                    user_id=actor.uid,
                    image_urls=[blob.url for blob in stored],
                    status=ReservationStatus.PENDING.value,
                    **fields,
                )
        except TransientIOError:
            await discard(self.store, stored)
            raise

        self.db.refresh(reservation)
        logger.info(
            f"📥 Reservation {reservation.id} created by {actor.uid} "
            f"for {reservation.request_date} ({len(stored)} photo(s))"
        )
        self._publish("created", reservation)
        return reservation

    def get_reservation(self, reservation_id: str, actor: Actor) -> Reservation:
        reservation = self.repo.get_by_id(self.db, reservation_id)
        if not reservation:
            raise NotFoundError("예약 정보를 찾을 수 없습니다.")
        ensure_owner_or_admin(reservation.user_id, actor, "본인의 예약만 조회할 수 있습니다.")
        return reservation

    def list_my_reservations(self, actor: Actor, status: Optional[str] = None) -> list[Reservation]:
        status_value = parse_status(status).value if status else None
        return self.repo.list_for_user(self.db, actor.uid, status_value)

    def list_reservations(self, actor: Actor) -> list[Reservation]:
        require_admin(actor)
        return self.repo.list_all(self.db)

    def set_status(self, reservation_id: str, new_status: str, actor: Actor) -> tuple[Reservation, Optional[str]]:
        """Unconditional overwrite by an admin; last write wins."""
        require_admin(actor)
        reservation = self.repo.get_by_id(self.db, reservation_id)
        if not reservation:
            raise NotFoundError("예약 정보를 찾을 수 없습니다.")

        previous = reservation.status
        with transaction(self.db):
            warning = set_reservation_status(reservation, new_status, actor)

        self.db.refresh(reservation)
        logger.info(f"✅ Reservation {reservation.id} status {previous} → {reservation.status} by {actor.uid}")
        self._publish("updated", reservation)
        return reservation, warning

    def delete_reservation(self, reservation_id: str, actor: Actor) -> dict:
        require_admin(actor)
        reservation = self.repo.get_by_id(self.db, reservation_id)
        if not reservation:
            raise NotFoundError("예약 정보를 찾을 수 없습니다.")

        owner_id = reservation.user_id
        with transaction(self.db):
            self.repo.delete(self.db, reservation)

        logger.info(f"🗑️ Reservation {reservation_id} deleted by {actor.uid}")
        self.feed.publish(
            ChangeEvent(
                collection="reservations",
                action="deleted",
                doc_id=reservation_id,
                owner_id=owner_id,
            )
        )
        return {"message": "예약이 삭제되었습니다.", "id": reservation_id}
