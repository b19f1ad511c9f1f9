"""Review repository - Database operations for reviews"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Review


class ReviewRepository:
    """Repository for review database operations"""

    @staticmethod
    def get_by_id(db: Session, review_id: str) -> Optional[Review]:
        return db.query(Review).filter(Review.id == review_id).first()

    @staticmethod
    def list_recent(db: Session, limit: Optional[int] = None) -> list[Review]:
        query = db.query(Review).order_by(Review.created_at.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def add(db: Session, **review_data) -> Review:
        review = Review(**review_data)
        db.add(review)
        return review

    @staticmethod
    def delete(db: Session, review: Review) -> None:
        db.delete(review)
