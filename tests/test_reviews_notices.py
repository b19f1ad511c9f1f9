from conftest import make_account


def post_review(client, rating="5", text="깔끔하게 해주셨어요", files=None):
    return client.post("/reviews", data={"rating": rating, "text": text}, files=files or [])


def test_create_review_with_photo(client, customer):
    resp = post_review(client, files=[("photo", ("after.jpg", b"jpeg", "image/jpeg"))])

    assert resp.status_code == 201
    body = resp.json()
    assert body["rating"] == 5
    assert body["userName"] == "김철수"
    assert "/reviews/cust-1/" in body["photoUrl"]


def test_rating_out_of_range(client, customer):
    assert post_review(client, rating="0").status_code == 400
    assert post_review(client, rating="6").status_code == 400
    assert post_review(client, text="").status_code == 400


def test_list_reviews_with_limit(client, customer):
    for i in range(4):
        post_review(client, text=f"후기 {i}")

    latest = client.get("/reviews", params={"limit": 3}).json()

    assert [r["text"] for r in latest] == ["후기 3", "후기 2", "후기 1"]


def test_only_owner_updates_review(client, customer, db, signed_in):
    review_id = post_review(client).json()["id"]
    other = make_account(db, "cust-2")

    signed_in.uid = other.uid
    assert client.patch(f"/reviews/{review_id}", json={"rating": 1}).status_code == 403
    signed_in.uid = customer.uid
    resp = client.patch(f"/reviews/{review_id}", json={"rating": 4})

    assert resp.json()["rating"] == 4


def test_admin_deletes_any_review(client, customer, admin, signed_in):
    review_id = post_review(client).json()["id"]
    signed_in.uid = admin.uid

    assert client.delete(f"/reviews/{review_id}").status_code == 200
    assert client.delete(f"/reviews/{review_id}").status_code == 404


def test_admin_publishes_notice(client, as_admin):
    resp = client.post("/notices", data={"title": "추석 벌초 예약 안내", "content": "8월 중 예약을 받습니다."})

    assert resp.status_code == 201
    assert resp.json()["authorName"] == "관리자"
    assert len(client.get("/notices").json()) == 1


def test_customer_cannot_publish_notice(client, customer):
    assert client.post("/notices", data={"title": "t", "content": "c"}).status_code == 403


def test_missing_notice_is_not_found(client, customer):
    assert client.get("/notices/missing").status_code == 404


def test_notice_comments(client, customer, admin, db, signed_in):
    signed_in.uid = admin.uid
    notice_id = client.post("/notices", data={"title": "t", "content": "c"}).json()["id"]
    signed_in.uid = customer.uid
    comment = client.post(f"/notices/{notice_id}/comments", json={"text": "감사합니다"}).json()
    other = make_account(db, "cust-2")

    detail = client.get(f"/notices/{notice_id}").json()
    assert [c["text"] for c in detail["comments"]] == ["감사합니다"]

    signed_in.uid = other.uid
    assert client.delete(f"/notices/{notice_id}/comments/{comment['id']}").status_code == 403
    signed_in.uid = customer.uid
    assert client.delete(f"/notices/{notice_id}/comments/{comment['id']}").status_code == 200
    assert client.get(f"/notices/{notice_id}").json()["comments"] == []


def test_update_and_delete_notice(client, as_admin):
    notice_id = client.post("/notices", data={"title": "t", "content": "c"}).json()["id"]
    client.post(f"/notices/{notice_id}/comments", json={"text": "first"})

    updated = client.patch(f"/notices/{notice_id}", data={"title": "수정된 제목"})
    deleted = client.delete(f"/notices/{notice_id}")

    assert updated.json()["title"] == "수정된 제목"
    assert updated.json()["content"] == "c"
    assert deleted.status_code == 200
    assert client.get(f"/notices/{notice_id}").status_code == 404


def post_notice(client, files=None):
    return client.post("/notices", data={"title": "벌초 시즌 안내", "content": "예약이 몰립니다."}, files=files or [])


def test_notice_with_image(client, as_admin):
    resp = post_notice(client, files=[("image", ("poster.png", b"png", "image/png"))])

    assert resp.status_code == 201
    urls = resp.json()["imageUrls"]
    assert len(urls) == 1
    assert "/notices/admin-1/" in urls[0]


def test_new_notice_image_replaces_old_one(client, as_admin, blob_store):
    created = post_notice(client, files=[("image", ("old.png", b"old", "image/png"))]).json()
    old_url = created["imageUrls"][0]

    resp = client.patch(
        f"/notices/{created['id']}",
        data={"title": "수정"},
        files=[("image", ("new.png", b"new", "image/png"))],
    )

    new_urls = resp.json()["imageUrls"]
    assert len(new_urls) == 1
    assert new_urls[0] != old_url
    assert blob_store.deleted == [old_url.removeprefix("https://photos.test/")]


def test_notice_image_can_be_cleared(client, as_admin, blob_store):
    created = post_notice(client, files=[("image", ("old.png", b"old", "image/png"))]).json()

    resp = client.patch(f"/notices/{created['id']}", data={"removeImage": "true"})

    assert resp.json()["imageUrls"] == []
    assert resp.json()["title"] == "벌초 시즌 안내"
    assert blob_store.objects == {}


def test_edit_without_image_keeps_it(client, as_admin, blob_store):
    created = post_notice(client, files=[("image", ("old.png", b"old", "image/png"))]).json()

    resp = client.patch(f"/notices/{created['id']}", data={"content": "내용 수정"})

    assert resp.json()["imageUrls"] == created["imageUrls"]
    assert blob_store.deleted == []


def test_deleting_notice_removes_its_image(client, as_admin, blob_store):
    created = post_notice(client, files=[("image", ("old.png", b"old", "image/png"))]).json()

    client.delete(f"/notices/{created['id']}")

    assert blob_store.objects == {}


def test_notice_rejects_non_image(client, as_admin, blob_store):
    resp = post_notice(client, files=[("image", ("notes.txt", b"text", "text/plain"))])

    assert resp.status_code == 400
    assert blob_store.objects == {}
