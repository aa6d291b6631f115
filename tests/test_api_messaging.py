from factories import headers_for, make_user


async def test_visitor_chat_flow(client, admin, auth_headers):
    started = await client.post(
        "/chat/public/conversations",
        json={"visitor_id": "visitor-42", "visitor_name": "Ramesh", "content": "When do admissions open?"},
    )
    assert started.status_code == 200
    conversation = started.json()["data"]
    assert conversation["status"] == "open"
    assert [m["sender_type"] for m in conversation["messages"]] == ["visitor"]

    stranger = await client.get(
        f"/chat/public/conversations/{conversation['id']}", params={"visitor_id": "visitor-7"}
    )
    assert stranger.status_code == 404

    reply = await client.post(
        f"/chat/conversations/{conversation['id']}/messages",
        json={"content": "Admissions open in Baisakh."},
        headers=auth_headers,
    )
    assert reply.json()["data"]["staff_user_id"] == admin.id

    detail = (await client.get(f"/chat/conversations/{conversation['id']}", headers=auth_headers)).json()["data"]
    assert detail["user_id"] == admin.id
    assert [m["sender_type"] for m in detail["messages"]] == ["visitor", "staff"]

    closed = await client.post(f"/chat/conversations/{conversation['id']}/close", headers=auth_headers)
    assert closed.json()["data"]["status"] == "closed"

    late = await client.post(
        f"/chat/public/conversations/{conversation['id']}/messages",
        json={"visitor_id": "visitor-42", "content": "Thanks!"},
    )
    assert late.status_code == 400


async def test_staff_inbox_requires_permission(client, db):
    clerk = await make_user(db, "+9779833333333")
    response = await client.get("/chat/conversations", headers=headers_for(clerk))
    assert response.status_code == 403


async def test_direct_messages(client, db, admin, auth_headers):
    teacher = await make_user(db, "+9779844444444", full_name="Maya Gurung")
    teacher_headers = headers_for(teacher)

    sent = await client.post(
        "/messages",
        json={"recipient_id": teacher.id, "subject": "Timetable", "content": "Please review class 10 timetable."},
        headers=auth_headers,
    )
    assert sent.status_code == 200
    message = sent.json()["data"]

    assert (await client.get("/messages/unread-count", headers=teacher_headers)).json()["data"] == {"unread": 1}

    reply = await client.post(
        "/messages",
        json={"recipient_id": admin.id, "content": "Reviewed.", "parent_message_id": message["id"]},
        headers=teacher_headers,
    )
    assert reply.status_code == 200

    read = await client.post(f"/messages/{message['id']}/read", headers=teacher_headers)
    assert read.json()["data"]["is_read"] is True
    assert (await client.get("/messages/unread-count", headers=teacher_headers)).json()["data"] == {"unread": 0}

    thread = (await client.get(f"/messages/{message['id']}/thread", headers=auth_headers)).json()["data"]
    assert [m["content"] for m in thread] == ["Please review class 10 timetable.", "Reviewed."]


async def test_cannot_message_yourself(client, admin, auth_headers):
    response = await client.post(
        "/messages", json={"recipient_id": admin.id, "content": "Note to self"}, headers=auth_headers
    )
    assert response.status_code == 400
