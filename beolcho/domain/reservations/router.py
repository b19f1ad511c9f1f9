"""Reservation router - FastAPI endpoints for service requests"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from ...auth import Actor, get_current_actor
from ...database import get_db
from ...realtime import ChangeFeed, get_feed
from ...storage import R2BlobStore, get_blob_store, read_uploads
from .schemas import ReservationCreate, ReservationResponse, StatusChangeResponse, StatusUpdate
from .service import ReservationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reservations", tags=["Reservations"])


def get_reservation_service(
    db: Session = Depends(get_db),
    store: R2BlobStore = Depends(get_blob_store),
    feed: ChangeFeed = Depends(get_feed),
) -> ReservationService:
    """Dependency injection for ReservationService"""
    return ReservationService(db, store, feed)


@router.post("", response_model=ReservationResponse, status_code=201)
async def create_reservation(
    userName: str = Form(""),
    userPhone: str = Form(""),
    locationName: str = Form(""),
    lat: Optional[float] = Form(None),
    lng: Optional[float] = Form(None),
    requestDate: str = Form(""),
    description: str = Form(""),
    photos: Optional[list[UploadFile]] = File(None),
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    """Submit a service request (multipart form with up to 5 photos)"""
    data = ReservationCreate(
        userName=userName,
        userPhone=userPhone,
        locationName=locationName,
        lat=lat,
        lng=lng,
        requestDate=requestDate,
        description=description,
    )
    uploads = await read_uploads(photos)
    reservation = await service.create_reservation(data, uploads, actor)
    return ReservationResponse.from_model(reservation)


@router.get("/me", response_model=list[ReservationResponse])
async def list_my_reservations(
    status: Optional[str] = Query(None, description="PENDING/CONFIRMED/COMPLETED/CANCELLED"),
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    return [ReservationResponse.from_model(r) for r in service.list_my_reservations(actor, status)]


@router.get("", response_model=list[ReservationResponse])
async def list_reservations(
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    """All reservations, newest first (admin)"""
    return [ReservationResponse.from_model(r) for r in service.list_reservations(actor)]


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(
    reservation_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    return ReservationResponse.from_model(service.get_reservation(reservation_id, actor))


@router.put("/{reservation_id}/status", response_model=StatusChangeResponse)
async def set_reservation_status(
    reservation_id: str,
    data: StatusUpdate,
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    reservation, warning = service.set_status(reservation_id, data.status, actor)
    return StatusChangeResponse(reservation=ReservationResponse.from_model(reservation), warning=warning)


@router.delete("/{reservation_id}")
async def delete_reservation(
    reservation_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    return service.delete_reservation(reservation_id, actor)
