async def test_convert_between_calendars(client):
    response = await client.get("/calendar/to-bs", params={"gregorian": "2025-06-15"})
    bs = response.json()["data"]
    assert (bs["year"], bs["month"], bs["day"]) == (2082, 3, 1)
    assert bs["formatted"].endswith("२०८२")

    response = await client.get("/calendar/to-ad", params={"month": 1, "day": 1})
    assert response.json()["data"]["gregorian"] == "2025-04-14"


async def test_conversion_errors(client):
    outside = await client.get("/calendar/to-bs", params={"gregorian": "2024-01-01"})
    assert outside.status_code == 400

    # Magh has 29 days
    invalid = await client.get("/calendar/to-ad", params={"month": 10, "day": 30})
    assert invalid.status_code == 400

    month = await client.get("/calendar/months/13")
    assert month.status_code == 400


async def test_month_view_includes_overlapping_events(client, auth_headers):
    spanning = await client.post(
        "/calendar/events",
        json={"title": "Summer Camp", "event_date": "2025-06-13", "end_date": "2025-06-16"},
        headers=auth_headers,
    )
    assert spanning.json()["data"]["bs_date"] == "2082-02-30"
    await client.post(
        "/calendar/events",
        json={"title": "Shrawan Holiday", "event_date": "2025-07-20", "event_type": "holiday"},
        headers=auth_headers,
    )

    month = (await client.get("/calendar/months/3")).json()["data"]
    assert month["days"] == 32
    assert [e["title"] for e in month["events"]] == ["Summer Camp"]
    assert len(month["weeks"][0]) == 7

    holidays = await client.get("/calendar/events", params={"event_type": "holiday"})
    assert [e["title"] for e in holidays.json()["data"]] == ["Shrawan Holiday"]


async def test_event_validation_and_access(client, auth_headers):
    backwards = await client.post(
        "/calendar/events",
        json={"title": "Sports Week", "event_date": "2025-06-20", "end_date": "2025-06-18"},
        headers=auth_headers,
    )
    assert backwards.status_code == 400

    anonymous = await client.post("/calendar/events", json={"title": "Sports Week", "event_date": "2025-06-20"})
    assert anonymous.status_code in (401, 403)
