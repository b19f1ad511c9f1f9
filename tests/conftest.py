import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")

import pytest
from fastapi import Depends, HTTPException
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from beolcho.auth import Actor, get_current_account
from beolcho.database import Base, get_db
from beolcho.errors import TransientIOError
from beolcho.main import app
from beolcho.models import UserAccount, UserRole, WorkerProfile
from beolcho.realtime import ChangeFeed, get_feed
from beolcho.storage import get_blob_store


class FakeBlobStore:
    """In-memory stand-in for the R2 bucket"""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.fail_filenames: set[str] = set()

    def url_for(self, key: str) -> str:
        return f"https://photos.test/{key}"

    def key_for_url(self, url: str):
        prefix = "https://photos.test/"
        return url[len(prefix) :] if url.startswith(prefix) else None

    def put(self, key: str, data: bytes, content_type: str) -> str:
        if any(key.endswith(f"_{name}") for name in self.fail_filenames):
            raise TransientIOError("사진 업로드 중 오류가 발생했습니다.")
        self.objects[key] = data
        return self.url_for(key)

    def delete(self, key: str) -> None:
        self.objects.pop(key, None)
        self.deleted.append(key)


class SignedIn:
    """Which account the test client is signed in as"""

    uid = None


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def blob_store():
    return FakeBlobStore()


@pytest.fixture
def change_feed():
    return ChangeFeed()


@pytest.fixture
def signed_in():
    return SignedIn()


@pytest.fixture
def client(session_factory, blob_store, change_feed, signed_in):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    async def override_current_account(db: Session = Depends(get_db)):
        if signed_in.uid is None:
            raise HTTPException(status_code=401, detail="Not authenticated")
        account = db.query(UserAccount).filter(UserAccount.uid == signed_in.uid).first()
        if not account:
            raise HTTPException(status_code=401, detail="Not authenticated")
        return account

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_account] = override_current_account
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_feed] = lambda: change_feed
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_account(db, uid, role=UserRole.CUSTOMER, name=None, email=None):
    account = UserAccount(
        uid=uid,
        email=email or f"{uid}@example.com",
        display_name=name or uid,
        role=role.value,
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def make_profile(db, uid, approved=False, available=True, phone="010-1234-5678", name=None):
    profile = WorkerProfile(
        uid=uid,
        display_name=name or uid,
        phone=phone,
        bio="",
        lat=35.919069,
        lng=128.283038,
        address="경북 성주군 성주읍",
        is_available=available,
        is_approved=approved,
        portfolio_urls=[],
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


def actor_for(account) -> Actor:
    return Actor.from_account(account)


@pytest.fixture
def customer(db, signed_in):
    account = make_account(db, "cust-1", name="김철수")
    signed_in.uid = account.uid
    return account


@pytest.fixture
def admin(db):
    return make_account(db, "admin-1", role=UserRole.ADMIN, name="관리자")


@pytest.fixture
def as_admin(admin, signed_in):
    signed_in.uid = admin.uid
    return admin
