"""Notice repository - Database operations for notices and comments"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Notice, NoticeComment


class NoticeRepository:
    """Repository for notice database operations"""

    @staticmethod
    def get_by_id(db: Session, notice_id: str) -> Optional[Notice]:
        return db.query(Notice).filter(Notice.id == notice_id).first()

    @staticmethod
    def list_all(db: Session) -> list[Notice]:
        return db.query(Notice).order_by(Notice.created_at.desc()).all()

    @staticmethod
    def add(db: Session, **notice_data) -> Notice:
        notice = Notice(**notice_data)
        db.add(notice)
        return notice

    @staticmethod
    def delete(db: Session, notice: Notice) -> None:
        db.delete(notice)

    @staticmethod
    def get_comment(db: Session, notice_id: str, comment_id: str) -> Optional[NoticeComment]:
        return (
            db.query(NoticeComment)
            .filter(NoticeComment.id == comment_id, NoticeComment.notice_id == notice_id)
            .first()
        )

    @staticmethod
    def add_comment(db: Session, **comment_data) -> NoticeComment:
        comment = NoticeComment(**comment_data)
        db.add(comment)
        return comment

    @staticmethod
    def delete_comment(db: Session, comment: NoticeComment) -> None:
        db.delete(comment)
