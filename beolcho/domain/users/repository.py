"""User repository - Database operations for accounts"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import UserAccount


class UserRepository:
    """Repository for account database operations"""

    @staticmethod
    def get_by_uid(db: Session, uid: str) -> Optional[UserAccount]:
        return db.query(UserAccount).filter(UserAccount.uid == uid).first()

    @staticmethod
    def list_all(db: Session) -> list[UserAccount]:
        return db.query(UserAccount).order_by(UserAccount.created_at.desc()).all()

    @staticmethod
    def add(db: Session, **account_data) -> UserAccount:
        account = UserAccount(**account_data)
        db.add(account)
        return account

    @staticmethod
    def delete(db: Session, account: UserAccount) -> None:
        db.delete(account)
