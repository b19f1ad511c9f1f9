"""Reservation repository - Database operations for reservations"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Reservation


class ReservationRepository:
    """Repository for reservation database operations"""

    @staticmethod
    def get_by_id(db: Session, reservation_id: str) -> Optional[Reservation]:
        return db.query(Reservation).filter(Reservation.id == reservation_id).first()

    @staticmethod
    def list_all(db: Session) -> list[Reservation]:
        return db.query(Reservation).order_by(Reservation.created_at.desc()).all()

    @staticmethod
    def list_for_user(db: Session, user_id: str, status: Optional[str] = None) -> list[Reservation]:
        query = db.query(Reservation).filter(Reservation.user_id == user_id)
        if status:
            query = query.filter(Reservation.status == status)
        return query.order_by(Reservation.created_at.desc()).all()

    @staticmethod
    def add(db: Session, **reservation_data) -> Reservation:
        reservation = Reservation(**reservation_data)
        db.add(reservation)
        return reservation

    @staticmethod
    def delete(db: Session, reservation: Reservation) -> None:
        db.delete(reservation)
