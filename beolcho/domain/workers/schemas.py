"""Worker domain schemas"""

from typing import Optional

from pydantic import BaseModel

from ...models import WorkerProfile
from ...shared.validators import mask_phone
from ..reservations.schemas import Coordinates


class WorkerApplication(BaseModel):
    displayName: Optional[str] = None


class WorkerProfileUpdate(BaseModel):
    """Fields merged into an existing profile; None means unchanged"""

    displayName: Optional[str] = None
    phone: Optional[str] = None
    bio: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    address: Optional[str] = None
    experienceYears: Optional[int] = None
    equipmentCount: Optional[int] = None
    maxDistance: Optional[int] = None
    isAvailable: Optional[bool] = None


class PortfolioPhotoRemove(BaseModel):
    url: str


class WorkerProfileResponse(BaseModel):
    uid: str
    displayName: str
    phone: str
    bio: str
    coordinates: Coordinates
    address: str
    experienceYears: int
    isAvailable: bool
    photoUrl: Optional[str] = None
    maxDistance: int
    equipmentCount: int
    portfolioUrls: list[str]
    isApproved: bool

    @classmethod
    def from_model(cls, p: WorkerProfile) -> "WorkerProfileResponse":
        return cls(
            uid=p.uid,
            displayName=p.display_name or "",
            phone=p.phone or "",
            bio=p.bio or "",
            coordinates=Coordinates(lat=p.lat, lng=p.lng),
            address=p.address or "",
            experienceYears=p.experience_years,
            isAvailable=p.is_available,
            photoUrl=p.photo_url or None,
            maxDistance=p.max_distance or 10,
            equipmentCount=p.equipment_count or 1,
            portfolioUrls=list(p.portfolio_urls or []),
            isApproved=bool(p.is_approved),
        )


class PublicWorkerResponse(BaseModel):
    """Map marker entry; the phone number is masked"""

    uid: str
    displayName: str
    phone: str
    bio: str
    coordinates: Coordinates
    address: str
    experienceYears: int
    isAvailable: bool
    photoUrl: Optional[str] = None
    maxDistance: int
    equipmentCount: int
    portfolioUrls: list[str]

    @classmethod
    def from_model(cls, p: WorkerProfile) -> "PublicWorkerResponse":
        full = WorkerProfileResponse.from_model(p)
        return cls(**full.model_dump(exclude={"isApproved", "phone"}), phone=mask_phone(p.phone))


class WorkerListResponse(BaseModel):
    pending: list[WorkerProfileResponse]
    active: list[WorkerProfileResponse]


class ApprovalResponse(BaseModel):
    uid: str
    isApproved: bool
    role: str
