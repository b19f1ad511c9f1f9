import pytest
from conftest import actor_for, make_account, make_profile
from sqlalchemy.exc import OperationalError

from beolcho.errors import AuthorizationError, TransientIOError
from beolcho.models import UserAccount, UserRole, WorkerProfile
from beolcho.domain.workers.service import WorkerService


def public_uids(client):
    return {w["uid"] for w in client.get("/workers/public").json()}


def test_apply_creates_unapproved_profile_and_keeps_role(client, customer, db):
    resp = client.post("/workers/apply", json={"displayName": "김반장"})

    assert resp.status_code == 201
    body = resp.json()
    assert body["isApproved"] is False
    assert body["displayName"] == "김반장"
    assert body["experienceYears"] == 1
    assert body["maxDistance"] == 10
    assert body["equipmentCount"] == 1
    assert body["portfolioUrls"] == []
    assert body["bio"] == "신규 지원자입니다."
    assert body["coordinates"] == {"lat": 35.919069, "lng": 128.283038}

    db.expire_all()
    assert db.get(UserAccount, customer.uid).role == UserRole.CUSTOMER.value
    assert customer.uid not in public_uids(client)


def test_apply_again_updates_existing_profile(client, customer, db):
    client.post("/workers/apply", json={"displayName": "김반장"})

    resp = client.post("/workers/apply", json={"displayName": "김철수 반장"})

    assert resp.status_code == 200
    assert resp.json()["displayName"] == "김철수 반장"
    assert db.query(WorkerProfile).count() == 1


def test_apply_without_body_uses_account_name(client, customer):
    resp = client.post("/workers/apply")

    assert resp.status_code == 201
    assert resp.json()["displayName"] == "김철수"


def test_admin_cannot_apply(client, as_admin):
    assert client.post("/workers/apply", json={}).status_code == 403


def test_my_profile_not_found_before_applying(client, customer):
    assert client.get("/workers/me").status_code == 404


def test_approve_sets_flag_and_role_together(client, customer, admin, db, signed_in):
    client.post("/workers/apply", json={"displayName": "김반장"})

    signed_in.uid = admin.uid
    resp = client.post(f"/workers/{customer.uid}/approve")

    assert resp.status_code == 200
    assert resp.json() == {"uid": customer.uid, "isApproved": True, "role": "WORKER"}
    db.expire_all()
    assert db.get(WorkerProfile, customer.uid).is_approved is True
    assert db.get(UserAccount, customer.uid).role == UserRole.WORKER.value
    assert customer.uid in public_uids(client)


def test_revoke_is_exact_inverse(client, customer, admin, db, signed_in):
    client.post("/workers/apply")
    signed_in.uid = admin.uid
    client.post(f"/workers/{customer.uid}/approve")

    resp = client.post(f"/workers/{customer.uid}/revoke")

    assert resp.json() == {"uid": customer.uid, "isApproved": False, "role": "CUSTOMER"}
    db.expire_all()
    assert db.get(WorkerProfile, customer.uid).is_approved is False
    assert db.get(UserAccount, customer.uid).role == UserRole.CUSTOMER.value
    assert customer.uid not in public_uids(client)


def test_non_admin_cannot_approve(client, customer, db):
    client.post("/workers/apply")

    resp = client.post(f"/workers/{customer.uid}/approve")

    assert resp.status_code == 403
    db.expire_all()
    assert db.get(WorkerProfile, customer.uid).is_approved is False
    assert db.get(UserAccount, customer.uid).role == UserRole.CUSTOMER.value


def test_approve_unknown_worker_is_not_found(client, as_admin):
    assert client.post("/workers/ghost/approve").status_code == 404


def test_failed_commit_leaves_both_records_unchanged(db, admin, change_feed, blob_store, monkeypatch):
    account = make_account(db, "applicant")
    make_profile(db, account.uid)
    service = WorkerService(db, blob_store, change_feed)

    def failing_commit():
        raise OperationalError("UPDATE worker_profiles", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "commit", failing_commit)
    with pytest.raises(TransientIOError):
        service.approve(account.uid, actor_for(admin))
    monkeypatch.undo()

    db.expire_all()
    assert db.get(WorkerProfile, account.uid).is_approved is False
    assert db.get(UserAccount, account.uid).role == UserRole.CUSTOMER.value


def test_service_rejects_non_admin_approval(db, change_feed, blob_store):
    account = make_account(db, "applicant")
    make_profile(db, account.uid)
    service = WorkerService(db, blob_store, change_feed)

    with pytest.raises(AuthorizationError):
        service.approve(account.uid, actor_for(account))


def test_public_listing_is_exactly_the_approved_profiles(client, customer, db):
    make_account(db, "w-approved-busy")
    make_profile(db, "w-approved-busy", approved=True, available=False)
    make_account(db, "w-approved")
    make_profile(db, "w-approved", approved=True)
    make_account(db, "w-pending")
    make_profile(db, "w-pending", approved=False)
    # role alone does not make a worker public
    make_account(db, "w-role-only", role=UserRole.WORKER)

    listed = client.get("/workers/public").json()

    assert {w["uid"] for w in listed} == {"w-approved-busy", "w-approved"}
    busy = next(w for w in listed if w["uid"] == "w-approved-busy")
    assert busy["isAvailable"] is False
    assert busy["phone"] == "010-1234-****"
    assert "isApproved" not in busy


def test_admin_list_splits_pending_and_active(client, as_admin, db):
    make_account(db, "w1")
    make_profile(db, "w1", approved=True)
    make_account(db, "w2")
    make_profile(db, "w2", approved=False)

    body = client.get("/workers").json()
    only_pending = client.get("/workers", params={"approved": "false"}).json()

    assert [w["uid"] for w in body["active"]] == ["w1"]
    assert [w["uid"] for w in body["pending"]] == ["w2"]
    assert only_pending["active"] == []


def test_customer_cannot_list_workers(client, customer):
    assert client.get("/workers").status_code == 403


def test_update_profile_merges_fields_and_keeps_approval(client, customer, db):
    make_profile(db, customer.uid, approved=True)

    resp = client.patch(
        "/workers/me",
        data={"phone": "01098765432", "bio": "경력 10년", "isAvailable": "false", "maxDistance": "30"},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["phone"] == "010-9876-5432"
    assert body["bio"] == "경력 10년"
    assert body["isAvailable"] is False
    assert body["maxDistance"] == 30
    assert body["address"] == "경북 성주군 성주읍"
    assert body["isApproved"] is True


def test_update_location_needs_coordinates_and_address(client, customer, db):
    make_profile(db, customer.uid)

    partial = client.patch("/workers/me", data={"lat": "36.0"})
    full = client.patch("/workers/me", data={"lat": "36.0", "lng": "128.5", "address": "경북 칠곡군"})

    assert partial.status_code == 400
    assert full.status_code == 200
    assert full.json()["coordinates"] == {"lat": 36.0, "lng": 128.5}


def test_negative_counts_rejected(client, customer, db):
    make_profile(db, customer.uid)

    assert client.patch("/workers/me", data={"equipmentCount": "-1"}).status_code == 400


def test_portfolio_photos_are_appended(client, customer, db):
    make_profile(db, customer.uid)

    first = client.patch("/workers/me", files=[("portfolio", ("p1.jpg", b"one", "image/jpeg"))])
    second = client.patch(
        "/workers/me",
        files=[
            ("portfolio", ("p2.jpg", b"two", "image/jpeg")),
            ("portfolio", ("p3.png", b"three", "image/png")),
        ],
    )

    assert len(first.json()["portfolioUrls"]) == 1
    urls = second.json()["portfolioUrls"]
    assert len(urls) == 3
    assert urls[0] == first.json()["portfolioUrls"][0]
    assert all("/portfolios/cust-1/" in url for url in urls)


def test_remove_portfolio_photo_removes_exactly_one(client, customer, db):
    profile = make_profile(db, customer.uid)
    profile.portfolio_urls = ["https://x/a.jpg", "https://x/b.jpg", "https://x/a.jpg"]
    db.commit()

    resp = client.request("DELETE", "/workers/me/portfolio", json={"url": "https://x/a.jpg"})
    missing = client.request("DELETE", "/workers/me/portfolio", json={"url": "https://x/zzz.jpg"})

    assert resp.json()["portfolioUrls"] == ["https://x/b.jpg", "https://x/a.jpg"]
    assert missing.status_code == 404


def test_upload_photo_updates_account_and_profile(client, customer, db):
    make_profile(db, customer.uid)

    resp = client.post("/workers/me/photo", files={"photo": ("me.jpg", b"avatar", "image/jpeg")})

    assert resp.status_code == 200
    url = resp.json()["photoUrl"]
    assert "/profiles/cust-1/" in url
    db.expire_all()
    assert db.get(UserAccount, customer.uid).photo_url == url
    assert db.get(WorkerProfile, customer.uid).photo_url == url


def test_approval_publishes_change_events(client, customer, admin, signed_in, change_feed, monkeypatch):
    client.post("/workers/apply")
    received = []
    monkeypatch.setattr(change_feed, "publish", received.append)
    signed_in.uid = admin.uid

    client.post(f"/workers/{customer.uid}/approve")

    assert {(e.collection, e.doc_id) for e in received} == {
        ("worker_profiles", customer.uid),
        ("users", customer.uid),
    }


def test_worker_without_profile_cannot_apply(client, db, signed_in):
    make_account(db, "w-role-only", role=UserRole.WORKER)
    signed_in.uid = "w-role-only"

    resp = client.post("/workers/apply", json={"displayName": "김반장"})

    assert resp.status_code == 403
    assert db.get(WorkerProfile, "w-role-only") is None


def test_approved_worker_may_repeat_application(client, db, signed_in):
    make_account(db, "w-1", role=UserRole.WORKER)
    make_profile(db, "w-1", approved=True)
    signed_in.uid = "w-1"

    resp = client.post("/workers/apply", json={"displayName": "새이름"})

    assert resp.status_code == 200
    assert resp.json()["isApproved"] is True


def test_admin_cannot_approve_own_profile(client, db, signed_in):
    make_account(db, "adm-2", role=UserRole.ADMIN)
    make_profile(db, "adm-2", approved=False)
    signed_in.uid = "adm-2"

    resp = client.post("/workers/adm-2/approve")

    assert resp.status_code == 403
    db.expire_all()
    assert db.get(UserAccount, "adm-2").role == UserRole.ADMIN.value
    assert db.get(WorkerProfile, "adm-2").is_approved is False


@pytest.mark.parametrize("action", ["approve", "revoke"])
def test_other_admins_keep_their_role(client, as_admin, db, action):
    make_account(db, "adm-2", role=UserRole.ADMIN)
    make_profile(db, "adm-2", approved=False)

    resp = client.post(f"/workers/adm-2/{action}")

    assert resp.status_code == 403
    db.expire_all()
    assert db.get(UserAccount, "adm-2").role == UserRole.ADMIN.value


def test_removing_portfolio_photo_deletes_stored_object(client, customer, db, blob_store):
    make_profile(db, customer.uid)
    uploaded = client.patch(
        "/workers/me",
        files=[
            ("portfolio", ("p1.jpg", b"one", "image/jpeg")),
            ("portfolio", ("p2.jpg", b"two", "image/jpeg")),
        ],
    ).json()["portfolioUrls"]

    resp = client.request("DELETE", "/workers/me/portfolio", json={"url": uploaded[0]})

    assert resp.json()["portfolioUrls"] == [uploaded[1]]
    removed_key = uploaded[0].removeprefix("https://photos.test/")
    assert blob_store.deleted == [removed_key]
    assert removed_key not in blob_store.objects
    assert len(blob_store.objects) == 1
