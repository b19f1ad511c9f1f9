"""Review service - Business logic for customer reviews"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...auth import Actor
from ...database import transaction
from ...errors import AuthorizationError, NotFoundError, TransientIOError, ValidationError
from ...models import Review
from ...storage import ImageUpload, R2BlobStore, discard, upload_all, validate_images
from ..lifecycle import ensure_owner_or_admin
from .repository import ReviewRepository

logger = logging.getLogger(__name__)


def _check_rating(rating) -> int:
    if rating is None or not 1 <= int(rating) <= 5:
        raise ValidationError("별점은 1점에서 5점 사이로 선택해주세요.")
    return int(rating)


def _check_text(text: Optional[str]) -> str:
    text = (text or "").strip()
    if not text:
        raise ValidationError("후기 내용을 입력해주세요.")
    return text


class ReviewService:
    def __init__(self, db: Session, store: R2BlobStore):
        self.db = db
        self.store = store
        self.repo = ReviewRepository()

    def list_reviews(self, limit: Optional[int] = None) -> list[Review]:
        return self.repo.list_recent(self.db, limit)

    def get_review(self, review_id: str) -> Review:
        review = self.repo.get_by_id(self.db, review_id)
        if not review:
            raise NotFoundError("후기를 찾을 수 없습니다.")
        return review

    async def create_review(
        self, actor: Actor, rating: Optional[int], text: Optional[str], photo: Optional[ImageUpload]
    ) -> Review:
        rating = _check_rating(rating)
        text = _check_text(text)
        photos = [photo] if photo else []
        validate_images(photos, max_count=1)

        stored = await upload_all(self.store, "reviews", actor.uid, photos)
        try:
            with transaction(self.db):
                review = self.repo.add(
                    self.db,
                    user_id=actor.uid,
                    user_name=actor.display_name or "익명",
                    rating=rating,
                    text=text,
                    photo_url=stored[0].url if stored else None,
                )
        except TransientIOError:
            await discard(self.store, stored)
            raise

        self.db.refresh(review)
        logger.info(f"⭐ Review {review.id} ({rating}) posted by {actor.uid}")
        return review

    def update_review(self, review_id: str, actor: Actor, rating: Optional[int], text: Optional[str]) -> Review:
        review = self.get_review(review_id)
        if review.user_id != actor.uid:
            raise AuthorizationError("본인이 작성한 후기만 수정할 수 있습니다.")

        with transaction(self.db):
            if rating is not None:
                review.rating = _check_rating(rating)
            if text is not None:
                review.text = _check_text(text)

        self.db.refresh(review)
        return review

    def delete_review(self, review_id: str, actor: Actor) -> dict:
        review = self.get_review(review_id)
        ensure_owner_or_admin(review.user_id, actor, "본인이 작성한 후기만 삭제할 수 있습니다.")

        with transaction(self.db):
            self.repo.delete(self.db, review)

        logger.info(f"🗑️ Review {review_id} deleted by {actor.uid}")
        return {"message": "후기가 삭제되었습니다.", "id": review_id}
