"""Worker profile repository - Database operations for worker profiles"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import WorkerProfile


class WorkerRepository:
    """Repository for worker profile database operations"""

    @staticmethod
    def get_by_uid(db: Session, uid: str) -> Optional[WorkerProfile]:
        return db.query(WorkerProfile).filter(WorkerProfile.uid == uid).first()

    @staticmethod
    def list_all(db: Session) -> list[WorkerProfile]:
        return db.query(WorkerProfile).order_by(WorkerProfile.display_name).all()

    @staticmethod
    def list_by_approval(db: Session, approved: bool) -> list[WorkerProfile]:
        return (
            db.query(WorkerProfile)
            .filter(WorkerProfile.is_approved == approved)
            .order_by(WorkerProfile.display_name)
            .all()
        )

    @staticmethod
    def add(db: Session, **profile_data) -> WorkerProfile:
        profile = WorkerProfile(**profile_data)
        db.add(profile)
        return profile

    @staticmethod
    def delete(db: Session, profile: WorkerProfile) -> None:
        db.delete(profile)
