"""
Photo storage on Cloudflare R2.

Reservation photos, worker portfolios, avatars and review photos are all
uploaded here. A multi-photo submission is validated up front, uploaded in
parallel, and rolled back (already stored objects deleted) if any upload
fails, so the parent record is only written once every photo is stored.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional
from urllib.parse import unquote, urlparse

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from . import config
from .errors import TransientIOError, ValidationError

logger = logging.getLogger(__name__)

# Presigned URL expiration time (7 days, the S3 maximum)
PRESIGNED_URL_EXPIRATION = 7 * 24 * 3600

ALLOWED_IMAGE_TYPES = [
    "image/png",
    "image/jpeg",
    "image/jpg",
    "image/webp",
    "image/gif",
    "image/heic",
    "image/heif",
]

DANGEROUS_FILENAME_CHARS = ["..", "/", "\\", "<", ">", ":", '"', "|", "?", "*"]


@dataclass
class ImageUpload:
    filename: str
    content_type: str
    data: bytes


@dataclass
class StoredBlob:
    key: str
    url: str


class R2BlobStore:
    """Blob store backed by an R2 bucket through the S3 API."""

    def __init__(self, bucket: str = None, public_base_url: Optional[str] = None):
        self.bucket = bucket or config.R2_BUCKET_NAME
        self.public_base_url = (public_base_url or config.R2_PUBLIC_BASE_URL or "").rstrip("/")
        self._client = None

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=f"https://{config.R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
                aws_access_key_id=config.R2_ACCESS_KEY_ID,
                aws_secret_access_key=config.R2_SECRET_ACCESS_KEY,
                config=Config(signature_version="s3v4"),
                region_name="auto",
            )
        return self._client

    def url_for(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        return self.client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": key, "ResponseContentDisposition": "inline"},
            ExpiresIn=PRESIGNED_URL_EXPIRATION,
        )

    def key_for_url(self, url: str) -> Optional[str]:
        """Object key behind a URL this store handed out, None for anything else"""
        if self.public_base_url and url.startswith(f"{self.public_base_url}/"):
            return unquote(url[len(self.public_base_url) + 1 :].split("?", 1)[0])
        parsed = urlparse(url)
        if not parsed.netloc.endswith(".r2.cloudflarestorage.com"):
            return None
        path = unquote(parsed.path).lstrip("/")
        if parsed.netloc.startswith(f"{self.bucket}."):
            return path or None
        if path.startswith(f"{self.bucket}/"):
            return path[len(self.bucket) + 1 :]
        return None

    def put(self, key: str, data: bytes, content_type: str) -> str:
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
            return self.url_for(key)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"❌ Upload failed for {key}: {e}")
            raise TransientIOError("사진 업로드 중 오류가 발생했습니다.") from e

    def delete(self, key: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"❌ Failed to delete {key}: {e}")
            raise TransientIOError("사진 삭제 중 오류가 발생했습니다.") from e


@lru_cache
def get_blob_store() -> R2BlobStore:
    return R2BlobStore()


def validate_images(files: list[ImageUpload], max_count: Optional[int] = None) -> None:
    """Reject the whole submission before anything is uploaded."""
    if max_count is not None and len(files) > max_count:
        raise ValidationError(f"사진은 최대 {max_count}장까지 첨부할 수 있습니다.")

    for f in files:
        if f.content_type not in ALLOWED_IMAGE_TYPES:
            raise ValidationError("이미지 파일만 업로드할 수 있습니다.")
        if len(f.data) == 0:
            raise ValidationError(f"빈 파일은 업로드할 수 없습니다: {f.filename}")
        if len(f.data) > config.MAX_UPLOAD_BYTES:
            limit_mb = config.MAX_UPLOAD_BYTES / (1024 * 1024)
            raise ValidationError(f"파일 크기는 {limit_mb:.0f}MB를 넘을 수 없습니다: {f.filename}")
        if len(f.filename) > 255:
            raise ValidationError("파일 이름이 너무 깁니다.")
        for char in DANGEROUS_FILENAME_CHARS:
            if char in f.filename:
                logger.warning(f"❌ Dangerous character '{char}' detected in filename: '{f.filename}'")
                raise ValidationError("파일 이름에 사용할 수 없는 문자가 있습니다.")


def build_key(prefix: str, owner_uid: str, filename: str) -> str:
    return f"{prefix}/{owner_uid}/{uuid.uuid4().hex}_{filename or 'photo'}"


async def upload_all(
    store: R2BlobStore, prefix: str, owner_uid: str, files: list[ImageUpload]
) -> list[StoredBlob]:
    """
    Upload every file in parallel and return them in input order.

    If any upload fails the ones that succeeded are deleted and
    TransientIOError is raised.
    """
    if not files:
        return []

    keys = [build_key(prefix, owner_uid, f.filename) for f in files]
    results = await asyncio.gather(
        *(run_in_threadpool(store.put, key, f.data, f.content_type) for key, f in zip(keys, files)),
        return_exceptions=True,
    )

    stored = [StoredBlob(key, url) for key, url in zip(keys, results) if not isinstance(url, BaseException)]
    failures = [r for r in results if isinstance(r, BaseException)]
    if failures:
        logger.error(
            f"❌ {len(failures)}/{len(files)} uploads failed under {prefix}/{owner_uid}, "
            f"rolling back {len(stored)} stored object(s)"
        )
        await discard(store, stored)
        raise TransientIOError("사진 업로드 중 오류가 발생했습니다. 다시 시도해주세요.") from failures[0]

    logger.info(f"📤 Uploaded {len(stored)} photo(s) under {prefix}/{owner_uid}")
    return stored


async def discard(store: R2BlobStore, blobs: list[StoredBlob]) -> None:
    """Best-effort removal of objects whose parent record was never written."""
    for blob in blobs:
        try:
            await run_in_threadpool(store.delete, blob.key)
        except TransientIOError:
            logger.error(f"❌ Orphaned object left in bucket: {blob.key}")


async def discard_urls(store: R2BlobStore, urls: list[str]) -> None:
    """Best-effort removal of objects a record no longer references."""
    blobs = []
    for url in urls:
        key = store.key_for_url(url)
        if key:
            blobs.append(StoredBlob(key, url))
        else:
            logger.warning(f"⚠️ Not a stored object, nothing to delete: {url}")
    await discard(store, blobs)


async def read_uploads(files: Optional[list[UploadFile]]) -> list[ImageUpload]:
    uploads = []
    for file in files or []:
        if not file.filename:
            continue
        uploads.append(
            ImageUpload(
                filename=file.filename or "photo",
                content_type=file.content_type or "",
                data=await file.read(),
            )
        )
    return uploads
