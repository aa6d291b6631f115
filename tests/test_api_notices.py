from factories import headers_for, make_user

FUTURE = "2099-01-01T00:00:00Z"
PAST = "2000-01-01T00:00:00Z"


async def _notice(client, auth_headers, title, **fields):
    payload = {"title": title, "content": f"{title} details", "is_published": True}
    payload.update(fields)
    return (await client.post("/notices", json=payload, headers=auth_headers)).json()["data"]


async def test_notice_crud(client, auth_headers):
    notice = await _notice(client, auth_headers, "Dashain vacation", category="holiday", is_published=False)
    assert notice["is_pinned"] is False
    assert notice["created_by_user_id"] is not None

    updated = await client.patch(
        f"/notices/{notice['id']}", json={"content": "School closes on Ashwin 20"}, headers=auth_headers
    )
    assert updated.json()["data"]["content"] == "School closes on Ashwin 20"

    drafts = await client.get("/notices", params={"is_published": False}, headers=auth_headers)
    assert drafts.json()["meta"]["total"] == 1

    assert (await client.delete(f"/notices/{notice['id']}", headers=auth_headers)).status_code == 200
    assert (await client.get(f"/notices/{notice['id']}", headers=auth_headers)).status_code == 404


async def test_publish_and_pin_toggle(client, auth_headers):
    notice = await _notice(client, auth_headers, "Parent meeting", is_published=False)

    published = await client.post(f"/notices/{notice['id']}/publish", headers=auth_headers)
    assert published.json()["data"]["is_published"] is True
    unpublished = await client.post(f"/notices/{notice['id']}/publish", headers=auth_headers)
    assert unpublished.json()["data"]["is_published"] is False

    pinned = await client.post(f"/notices/{notice['id']}/pin", headers=auth_headers)
    assert pinned.json()["data"]["is_pinned"] is True


async def test_published_board(client, auth_headers):
    older = await _notice(client, auth_headers, "Sports week", category="event")
    await _notice(client, auth_headers, "Draft circular", is_published=False)
    await _notice(client, auth_headers, "Last year's results", expire_at=PAST)
    pinned = await _notice(client, auth_headers, "Exam routine", category="exam", is_pinned=True, expire_at=FUTURE)
    newer = await _notice(client, auth_headers, "Library timing", category="event")

    board = (await client.get("/notices/published")).json()["data"]
    assert [n["id"] for n in board] == [pinned["id"], newer["id"], older["id"]]

    events = (await client.get("/notices/published", params={"category": "event"})).json()["data"]
    assert [n["id"] for n in events] == [newer["id"], older["id"]]


async def test_portal_notices(client, db, auth_headers):
    await _notice(client, auth_headers, "Holiday tomorrow")
    user = await make_user(db, "+9779833333333")

    response = await client.get("/portal/notices", headers=headers_for(user))
    assert [n["title"] for n in response.json()["data"]] == ["Holiday tomorrow"]
    assert (await client.get("/portal/notices")).status_code in (401, 403)


async def test_staff_endpoints_need_permission(client, db):
    user = await make_user(db, "+9779833333333")
    response = await client.post("/notices", json={"title": "x", "content": "y"}, headers=headers_for(user))
    assert response.status_code == 403
