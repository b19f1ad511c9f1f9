"""Review router"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from ...auth import Actor, get_current_actor
from ...database import get_db
from ...storage import R2BlobStore, get_blob_store, read_uploads
from .schemas import ReviewResponse, ReviewUpdate
from .service import ReviewService

router = APIRouter(prefix="/reviews", tags=["Reviews"])


def get_review_service(
    db: Session = Depends(get_db),
    store: R2BlobStore = Depends(get_blob_store),
) -> ReviewService:
    """Dependency injection for ReviewService"""
    return ReviewService(db, store)


@router.get("", response_model=list[ReviewResponse])
async def list_reviews(
    limit: Optional[int] = Query(None, ge=1, le=100),
    service: ReviewService = Depends(get_review_service),
):
    """Newest first; the home page asks for 3"""
    return [ReviewResponse.from_model(r) for r in service.list_reviews(limit)]


@router.post("", response_model=ReviewResponse, status_code=201)
async def create_review(
    rating: Optional[int] = Form(None),
    text: str = Form(""),
    photo: Optional[UploadFile] = File(None),
    actor: Actor = Depends(get_current_actor),
    service: ReviewService = Depends(get_review_service),
):
    uploads = await read_uploads([photo] if photo else None)
    review = await service.create_review(actor, rating, text, uploads[0] if uploads else None)
    return ReviewResponse.from_model(review)


@router.patch("/{review_id}", response_model=ReviewResponse)
async def update_review(
    review_id: str,
    data: ReviewUpdate,
    actor: Actor = Depends(get_current_actor),
    service: ReviewService = Depends(get_review_service),
):
    return ReviewResponse.from_model(service.update_review(review_id, actor, data.rating, data.text))


@router.delete("/{review_id}")
async def delete_review(
    review_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ReviewService = Depends(get_review_service),
):
    return service.delete_review(review_id, actor)
