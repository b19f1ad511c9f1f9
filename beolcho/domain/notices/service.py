"""Notice service - Business logic for announcements and comments"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...auth import Actor, require_admin
from ...database import transaction
from ...errors import NotFoundError, TransientIOError, ValidationError
from ...models import Notice, NoticeComment
from ...storage import ImageUpload, R2BlobStore, discard, discard_urls, upload_all, validate_images
from ..lifecycle import ensure_owner_or_admin
from .repository import NoticeRepository

logger = logging.getLogger(__name__)


class NoticeService:
    def __init__(self, db: Session, store: R2BlobStore):
        self.db = db
        self.store = store
        self.repo = NoticeRepository()

    def list_notices(self) -> list[Notice]:
        return self.repo.list_all(self.db)

    def get_notice(self, notice_id: str) -> Notice:
        notice = self.repo.get_by_id(self.db, notice_id)
        if not notice:
            raise NotFoundError("존재하지 않는 공지사항입니다.")
        return notice

    async def create_notice(
        self, actor: Actor, title: str, content: str, image: Optional[ImageUpload] = None
    ) -> Notice:
        require_admin(actor)
        title, content = (title or "").strip(), (content or "").strip()
        if not title or not content:
            raise ValidationError("제목과 내용을 입력해주세요.")
        images = [image] if image else []
        validate_images(images, max_count=1)

        stored = await upload_all(self.store, "notices", actor.uid, images)
        try:
            with transaction(self.db):
                notice = self.repo.add(
                    self.db,
                    title=title,
                    content=content,
                    author_id=actor.uid,
                    author_name=actor.display_name or "관리자",
                    image_urls=[b.url for b in stored],
                )
        except TransientIOError:
            await discard(self.store, stored)
            raise

        self.db.refresh(notice)
        logger.info(f"📢 Notice {notice.id} published by {actor.uid}")
        return notice

    async def update_notice(
        self,
        notice_id: str,
        actor: Actor,
        title: Optional[str] = None,
        content: Optional[str] = None,
        image: Optional[ImageUpload] = None,
        remove_image: bool = False,
    ) -> Notice:
        """
        Edit title and content. A new image replaces the current one;
        remove_image clears it. Replaced objects are deleted after the commit.
        """
        require_admin(actor)
        notice = self.get_notice(notice_id)
        if title is not None and not title.strip():
            raise ValidationError("제목을 입력해주세요.")
        if content is not None and not content.strip():
            raise ValidationError("내용을 입력해주세요.")
        images = [image] if image else []
        validate_images(images, max_count=1)

        previous = list(notice.image_urls or [])
        stored = await upload_all(self.store, "notices", actor.uid, images)
        try:
            with transaction(self.db):
                if title is not None:
                    notice.title = title.strip()
                if content is not None:
                    notice.content = content.strip()
                if stored:
                    notice.image_urls = [stored[0].url]
                elif remove_image:
                    notice.image_urls = []
        except TransientIOError:
            await discard(self.store, stored)
            raise

        self.db.refresh(notice)
        dropped = [url for url in previous if url not in (notice.image_urls or [])]
        if dropped:
            await discard_urls(self.store, dropped)
        logger.info(f"✏️ Notice {notice_id} updated by {actor.uid}")
        return notice

    async def delete_notice(self, notice_id: str, actor: Actor) -> dict:
        require_admin(actor)
        notice = self.get_notice(notice_id)
        images = list(notice.image_urls or [])

        with transaction(self.db):
            self.repo.delete(self.db, notice)

        await discard_urls(self.store, images)
        logger.info(f"🗑️ Notice {notice_id} deleted by {actor.uid}")
        return {"message": "공지사항이 삭제되었습니다.", "id": notice_id}

    def add_comment(self, notice_id: str, text: str, actor: Actor) -> NoticeComment:
        self.get_notice(notice_id)
        text = (text or "").strip()
        if not text:
            raise ValidationError("댓글 내용을 입력해주세요.")

        with transaction(self.db):
            comment = self.repo.add_comment(
                self.db,
                notice_id=notice_id,
                user_id=actor.uid,
                user_name=actor.display_name or "익명",
                text=text,
            )

        self.db.refresh(comment)
        return comment

    def delete_comment(self, notice_id: str, comment_id: str, actor: Actor) -> dict:
        comment = self.repo.get_comment(self.db, notice_id, comment_id)
        if not comment:
            raise NotFoundError("댓글을 찾을 수 없습니다.")
        ensure_owner_or_admin(comment.user_id, actor, "본인이 작성한 댓글만 삭제할 수 있습니다.")

        with transaction(self.db):
            self.repo.delete_comment(self.db, comment)
        return {"message": "댓글이 삭제되었습니다.", "id": comment_id}
