async def test_bulk_update_creates_and_overwrites(client, auth_headers):
    first = await client.patch(
        "/settings/system",
        json={"values": {"school_name": "Shree Janata Secondary School", "academic_year": "2081"}},
        headers=auth_headers,
    )
    assert first.status_code == 200
    assert [s["key"] for s in first.json()["data"]] == ["academic_year", "school_name"]

    second = await client.patch(
        "/settings/system", json={"values": {"academic_year": "2082", "sms_sender": None}}, headers=auth_headers
    )
    values = {s["key"]: s["value"] for s in second.json()["data"]}
    assert values == {
        "academic_year": "2082",
        "school_name": "Shree Janata Secondary School",
        "sms_sender": None,
    }

    single = await client.get("/settings/system/academic_year", headers=auth_headers)
    assert single.json()["data"]["value"] == "2082"


async def test_empty_update_rejected(client, auth_headers):
    response = await client.patch("/settings/system", json={"values": {}}, headers=auth_headers)
    assert response.status_code == 422


async def test_unknown_setting(client, auth_headers):
    response = await client.get("/settings/system/missing", headers=auth_headers)
    assert response.status_code == 404
