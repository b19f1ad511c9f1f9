"""Notice router"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from ...auth import Actor, get_current_actor
from ...database import get_db
from ...storage import R2BlobStore, get_blob_store, read_uploads
from .schemas import (
    CommentCreate,
    CommentResponse,
    NoticeDetailResponse,
    NoticeResponse,
    notice_fields,
)
from .service import NoticeService

router = APIRouter(prefix="/notices", tags=["Notices"])


def get_notice_service(
    db: Session = Depends(get_db),
    store: R2BlobStore = Depends(get_blob_store),
) -> NoticeService:
    """Dependency injection for NoticeService"""
    return NoticeService(db, store)


@router.get("", response_model=list[NoticeResponse])
async def list_notices(service: NoticeService = Depends(get_notice_service)):
    return [NoticeResponse(**notice_fields(n)) for n in service.list_notices()]


@router.get("/{notice_id}", response_model=NoticeDetailResponse)
async def get_notice(notice_id: str, service: NoticeService = Depends(get_notice_service)):
    notice = service.get_notice(notice_id)
    return NoticeDetailResponse(
        **notice_fields(notice),
        comments=[CommentResponse.from_model(c) for c in notice.comments],
    )


@router.post("", response_model=NoticeResponse, status_code=201)
async def create_notice(
    title: str = Form(""),
    content: str = Form(""),
    image: Optional[UploadFile] = File(None),
    actor: Actor = Depends(get_current_actor),
    service: NoticeService = Depends(get_notice_service),
):
    uploads = await read_uploads([image] if image else None)
    notice = await service.create_notice(actor, title, content, uploads[0] if uploads else None)
    return NoticeResponse(**notice_fields(notice))


@router.patch("/{notice_id}", response_model=NoticeResponse)
async def update_notice(
    notice_id: str,
    title: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    removeImage: bool = Form(False),
    image: Optional[UploadFile] = File(None),
    actor: Actor = Depends(get_current_actor),
    service: NoticeService = Depends(get_notice_service),
):
    """A new image replaces the current one; removeImage clears it"""
    uploads = await read_uploads([image] if image else None)
    notice = await service.update_notice(
        notice_id,
        actor,
        title=title,
        content=content,
        image=uploads[0] if uploads else None,
        remove_image=removeImage,
    )
    return NoticeResponse(**notice_fields(notice))


@router.delete("/{notice_id}")
async def delete_notice(
    notice_id: str,
    actor: Actor = Depends(get_current_actor),
    service: NoticeService = Depends(get_notice_service),
):
    return await service.delete_notice(notice_id, actor)


@router.post("/{notice_id}/comments", response_model=CommentResponse, status_code=201)
async def add_comment(
    notice_id: str,
    data: CommentCreate,
    actor: Actor = Depends(get_current_actor),
    service: NoticeService = Depends(get_notice_service),
):
    return CommentResponse.from_model(service.add_comment(notice_id, data.text, actor))


@router.delete("/{notice_id}/comments/{comment_id}")
async def delete_comment(
    notice_id: str,
    comment_id: str,
    actor: Actor = Depends(get_current_actor),
    service: NoticeService = Depends(get_notice_service),
):
    return service.delete_comment(notice_id, comment_id, actor)
