"""Reservation domain schemas"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel

from ...models import Reservation, ReservationStatus


class Coordinates(BaseModel):
    lat: float
    lng: float


class ReservationCreate(BaseModel):
    """Submission form. Required fields are checked by the service so a
    missing value is reported the same way whichever client sent it."""

    userName: str = ""
    userPhone: str = ""
    locationName: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None
    requestDate: str = ""
    description: str = ""


class StatusUpdate(BaseModel):
    status: str  # enum name (CONFIRMED) or label (예약확정)


class ReservationResponse(BaseModel):
    id: str
    userId: str
    userName: str
    userPhone: str
    locationName: str
    coordinates: Coordinates
    requestDate: date
    description: str
    imageUrls: list[str]
    status: ReservationStatus
    statusLabel: str
    createdAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, r: Reservation) -> "ReservationResponse":
        status = ReservationStatus(r.status)
        return cls(
            id=r.id,
            userId=r.user_id,
            userName=r.user_name,
            userPhone=r.user_phone,
            locationName=r.location_name,
            coordinates=Coordinates(lat=r.lat, lng=r.lng),
            requestDate=r.request_date,
            description=r.description or "",
            imageUrls=list(r.image_urls or []),
            status=status,
            statusLabel=status.label,
            createdAt=r.created_at,
        )


class StatusChangeResponse(BaseModel):
    reservation: ReservationResponse
    warning: Optional[str] = None
