"""Worker router - applications, profiles and admin approval"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from sqlalchemy.orm import Session

from ...auth import Actor, get_current_actor
from ...database import get_db
from ...realtime import ChangeFeed, get_feed
from ...storage import R2BlobStore, get_blob_store, read_uploads
from .schemas import (
    ApprovalResponse,
    PortfolioPhotoRemove,
    PublicWorkerResponse,
    WorkerApplication,
    WorkerListResponse,
    WorkerProfileResponse,
    WorkerProfileUpdate,
)
from .service import WorkerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workers", tags=["Workers"])


def get_worker_service(
    db: Session = Depends(get_db),
    store: R2BlobStore = Depends(get_blob_store),
    feed: ChangeFeed = Depends(get_feed),
) -> WorkerService:
    """Dependency injection for WorkerService"""
    return WorkerService(db, store, feed)


@router.post("/apply", response_model=WorkerProfileResponse)
async def apply_as_worker(
    response: Response,
    data: Optional[WorkerApplication] = None,
    actor: Actor = Depends(get_current_actor),
    service: WorkerService = Depends(get_worker_service),
):
    """Apply to become a worker; 201 for a new application, 200 when one already exists"""
    profile, created = service.apply_as_worker(actor, data.displayName if data else None)
    response.status_code = 201 if created else 200
    return WorkerProfileResponse.from_model(profile)


@router.get("/me", response_model=WorkerProfileResponse)
async def get_my_worker_profile(
    actor: Actor = Depends(get_current_actor),
    service: WorkerService = Depends(get_worker_service),
):
    return WorkerProfileResponse.from_model(service.get_profile(actor.uid))


@router.patch("/me", response_model=WorkerProfileResponse)
async def update_my_worker_profile(
    displayName: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    bio: Optional[str] = Form(None),
    lat: Optional[float] = Form(None),
    lng: Optional[float] = Form(None),
    address: Optional[str] = Form(None),
    experienceYears: Optional[int] = Form(None),
    equipmentCount: Optional[int] = Form(None),
    maxDistance: Optional[int] = Form(None),
    isAvailable: Optional[bool] = Form(None),
    portfolio: Optional[list[UploadFile]] = File(None),
    actor: Actor = Depends(get_current_actor),
    service: WorkerService = Depends(get_worker_service),
):
    """Merge profile fields; portfolio photos are appended, never replaced"""
    data = WorkerProfileUpdate(
        displayName=displayName,
        phone=phone,
        bio=bio,
        lat=lat,
        lng=lng,
        address=address,
        experienceYears=experienceYears,
        equipmentCount=equipmentCount,
        maxDistance=maxDistance,
        isAvailable=isAvailable,
    )
    uploads = await read_uploads(portfolio)
    profile = await service.update_profile(actor, data, uploads)
    return WorkerProfileResponse.from_model(profile)


@router.delete("/me/portfolio", response_model=WorkerProfileResponse)
async def remove_portfolio_photo(
    data: PortfolioPhotoRemove,
    actor: Actor = Depends(get_current_actor),
    service: WorkerService = Depends(get_worker_service),
):
    return WorkerProfileResponse.from_model(await service.remove_portfolio_photo(actor, data.url))


@router.post("/me/photo")
async def upload_worker_photo(
    photo: UploadFile = File(...),
    actor: Actor = Depends(get_current_actor),
    service: WorkerService = Depends(get_worker_service),
):
    uploads = await read_uploads([photo])
    url = await service.upload_photo(actor, uploads[0] if uploads else None)
    return {"photoUrl": url}


@router.get("/public", response_model=list[PublicWorkerResponse])
async def list_public_workers(
    actor: Actor = Depends(get_current_actor),
    service: WorkerService = Depends(get_worker_service),
):
    """Approved workers for the customer map"""
    return [PublicWorkerResponse.from_model(p) for p in service.list_public_workers()]


@router.get("", response_model=WorkerListResponse)
async def list_workers(
    approved: Optional[bool] = Query(None),
    actor: Actor = Depends(get_current_actor),
    service: WorkerService = Depends(get_worker_service),
):
    """Admin view split into pending applications and active workers"""
    pending, active = service.list_workers(actor)
    if approved is True:
        pending = []
    elif approved is False:
        active = []
    return WorkerListResponse(
        pending=[WorkerProfileResponse.from_model(p) for p in pending],
        active=[WorkerProfileResponse.from_model(p) for p in active],
    )


@router.post("/{worker_id}/approve", response_model=ApprovalResponse)
async def approve_worker(
    worker_id: str,
    actor: Actor = Depends(get_current_actor),
    service: WorkerService = Depends(get_worker_service),
):
    profile, account = service.approve(worker_id, actor)
    return ApprovalResponse(uid=profile.uid, isApproved=profile.is_approved, role=account.role)


@router.post("/{worker_id}/revoke", response_model=ApprovalResponse)
async def revoke_worker(
    worker_id: str,
    actor: Actor = Depends(get_current_actor),
    service: WorkerService = Depends(get_worker_service),
):
    profile, account = service.revoke(worker_id, actor)
    return ApprovalResponse(uid=profile.uid, isApproved=profile.is_approved, role=account.role)
