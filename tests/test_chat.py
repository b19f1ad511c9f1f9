from conftest import make_account


def test_customer_writes_only_to_own_room(client, customer):
    own = client.post(f"/chats/{customer.uid}", json={"text": "벌초 견적 문의드립니다."})
    other = client.post("/chats/someone-else", json={"text": "hi"})

    assert own.status_code == 201
    assert own.json()["senderName"] == "김철수"
    assert own.json()["roomId"] == customer.uid
    assert other.status_code == 403


def test_empty_message_rejected(client, customer):
    assert client.post(f"/chats/{customer.uid}", json={"text": "   "}).status_code == 400


def test_messages_listed_oldest_first(client, customer, admin, signed_in):
    client.post(f"/chats/{customer.uid}", json={"text": "첫 질문"})
    signed_in.uid = admin.uid
    client.post(f"/chats/{customer.uid}", json={"text": "답변입니다"})
    signed_in.uid = customer.uid

    texts = [m["text"] for m in client.get(f"/chats/{customer.uid}").json()]

    assert texts == ["첫 질문", "답변입니다"]


def test_customer_cannot_read_other_rooms(client, customer):
    assert client.get("/chats/someone-else").status_code == 403


def test_admin_rooms_newest_activity_first(client, customer, admin, db, signed_in):
    other = make_account(db, "cust-2", name="이영희")
    client.post(f"/chats/{customer.uid}", json={"text": "first"})
    signed_in.uid = other.uid
    client.post(f"/chats/{other.uid}", json={"text": "second"})
    signed_in.uid = admin.uid
    client.post(f"/chats/{customer.uid}", json={"text": "reply"})

    rooms = client.get("/chats/rooms").json()

    assert [r["roomId"] for r in rooms] == [customer.uid, other.uid]
    assert rooms[0]["customerName"] == "김철수"
    assert rooms[0]["lastMessage"] == "reply"
    assert rooms[1]["customerName"] == "이영희"


def test_room_list_is_admin_only(client, customer):
    assert client.get("/chats/rooms").status_code == 403


def test_delete_room(client, customer, admin, signed_in):
    client.post(f"/chats/{customer.uid}", json={"text": "a"})
    client.post(f"/chats/{customer.uid}", json={"text": "b"})
    signed_in.uid = admin.uid

    resp = client.delete(f"/chats/{customer.uid}")

    assert resp.json()["deleted"] == 2
    assert client.get(f"/chats/{customer.uid}").json() == []
