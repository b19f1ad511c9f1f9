import base64
import json
import logging
import time
from dataclasses import dataclass
from typing import Optional

import httpx
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.x509 import load_pem_x509_certificate
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import config
from .database import get_db
from .errors import AuthorizationError
from .models import UserAccount, UserRole

logger = logging.getLogger(__name__)

security = HTTPBearer()

GOOGLE_CERTS_URL = (
    "https://www.googleapis.com/robot/v1/metadata/x509/securetoken@system.gserviceaccount.com"
)

# Cache for Google's public keys
_cached_keys = None


@dataclass(frozen=True)
class Actor:
    """
    The signed-in account performing an operation.

    Built once per request and passed explicitly to every service call.
    """

    uid: str
    email: str
    display_name: str
    role: UserRole
    photo_url: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @classmethod
    def from_account(cls, account: UserAccount) -> "Actor":
        return cls(
            uid=account.uid,
            email=account.email or "",
            display_name=account.display_name or "고객",
            role=UserRole(account.role),
            photo_url=account.photo_url,
        )


def require_admin(actor: Actor) -> None:
    if actor.role != UserRole.ADMIN:
        logger.warning(f"🚫 Admin-only action rejected for {actor.uid} ({actor.role.value})")
        raise AuthorizationError("관리자 권한이 필요합니다.")


def _b64decode(segment: str) -> bytes:
    pad = 4 - len(segment) % 4
    return base64.urlsafe_b64decode(segment + ("=" * pad if pad != 4 else ""))


async def get_google_public_keys():
    """Fetch Google's public keys for Firebase token verification"""
    global _cached_keys
    if _cached_keys:
        return _cached_keys

    try:
        async with httpx.AsyncClient(timeout=8.0) as client:
            response = await client.get(GOOGLE_CERTS_URL)
            if response.status_code == 200:
                _cached_keys = response.json()
                logger.info(f"✅ Fetched {len(_cached_keys)} Google public keys")
                return _cached_keys
            logger.error(f"❌ Failed to fetch Google public keys: HTTP {response.status_code}")
    except httpx.HTTPError as e:
        logger.error(f"❌ Error fetching Google public keys: {str(e)}")
    return None


async def verify_firebase_token(token: str) -> dict:
    """
    Verify a Firebase ID token: RS256 signature against Google's certificates,
    then audience, issuer, expiry and issued-at claims.
    """
    global _cached_keys

    if not config.FIREBASE_PROJECT_ID:
        logger.error("❌ FIREBASE_PROJECT_ID not configured")
        raise HTTPException(status_code=500, detail="Firebase not configured")

    parts = token.split(".")
    if len(parts) != 3:
        raise HTTPException(status_code=401, detail="Invalid token format")
    header_b64, payload_b64, signature_b64 = parts

    try:
        header = json.loads(_b64decode(header_b64))
    except ValueError as e:
        raise HTTPException(status_code=401, detail="Invalid token header") from e

    kid = header.get("kid")
    if header.get("alg") != "RS256" or not kid:
        raise HTTPException(status_code=401, detail="Invalid token algorithm")

    public_keys = await get_google_public_keys()
    if not public_keys or kid not in public_keys:
        logger.warning(f"⚠️ Key ID {kid} not found in public keys, invalidating cache and retrying")
        _cached_keys = None
        public_keys = await get_google_public_keys()
        if not public_keys or kid not in public_keys:
            raise HTTPException(status_code=401, detail="Unable to verify token signature")

    cert = load_pem_x509_certificate(public_keys[kid].encode(), default_backend())
    try:
        cert.public_key().verify(
            _b64decode(signature_b64),
            f"{header_b64}.{payload_b64}".encode(),
            padding.PKCS1v15(),
            hashes.SHA256(),
        )
    except Exception as e:
        logger.error(f"❌ Token signature verification failed: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid token signature") from e

    payload = json.loads(_b64decode(payload_b64))

    if payload.get("aud") != config.FIREBASE_PROJECT_ID:
        raise HTTPException(status_code=401, detail="Invalid token audience")
    if payload.get("iss") != f"https://securetoken.google.com/{config.FIREBASE_PROJECT_ID}":
        raise HTTPException(status_code=401, detail="Invalid token issuer")

    now = time.time()
    if payload.get("exp", 0) < now:
        raise HTTPException(
            status_code=401,
            detail="Token has expired. Please refresh your session.",
            headers={"X-Token-Expired": "true"},
        )
    if payload.get("iat", 0) > now + 60:  # Allow 60 seconds clock skew
        raise HTTPException(status_code=401, detail="Invalid token")

    return payload


def bootstrap_seed_admin(db: Session, account: UserAccount) -> UserAccount:
    """
    Promote the configured seed administrator.

    The only place the admin email override lives; it does nothing unless
    SEED_ADMIN_EMAIL is set.
    """
    seed = config.SEED_ADMIN_EMAIL
    if not seed or (account.email or "").lower() != seed:
        return account
    if account.role != UserRole.ADMIN.value:
        logger.info(f"🔑 Promoting seed administrator {account.email} to ADMIN")
        account.role = UserRole.ADMIN.value
        db.commit()
        db.refresh(account)
    return account


def _lookup_account(db: Session, uid: str) -> Optional[UserAccount]:
    return db.query(UserAccount).filter(UserAccount.uid == uid).first()


def find_or_create_account(
    db: Session,
    uid: str,
    email: Optional[str],
    display_name: Optional[str],
    photo_url: Optional[str] = None,
) -> UserAccount:
    """Resolve the account record for an identity, creating it on first sign-in."""
    account = _lookup_account(db, uid)
    if not account:
        logger.info(f"🆕 Creating account for {email}")
        account = UserAccount(
            uid=uid,
            email=email or "",
            display_name=display_name or "고객",
            photo_url=photo_url,
            role=UserRole.CUSTOMER.value,
        )
        db.add(account)
        try:
            db.commit()
            db.refresh(account)
        except IntegrityError:
            db.rollback()
            # Another request for the same identity inserted the row first
            account = _lookup_account(db, uid)
            if not account:
                raise
            logger.info(f"🔄 Account for {uid} was created concurrently, using the stored record")
    return bootstrap_seed_admin(db, account)


async def get_current_account(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> UserAccount:
    """Get the account behind the Firebase bearer token"""
    if not credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")

    decoded = await verify_firebase_token(credentials.credentials)
    uid = decoded.get("sub") or decoded.get("user_id") or decoded.get("uid")
    if not uid:
        logger.error(f"❌ Token missing user ID claim. Available claims: {list(decoded.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    return find_or_create_account(
        db, uid, decoded.get("email"), decoded.get("name"), decoded.get("picture")
    )


async def get_current_actor(account: UserAccount = Depends(get_current_account)) -> Actor:
    return Actor.from_account(account)
