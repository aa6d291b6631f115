async def _create(client, headers, registration_number, **fields):
    payload = {"full_name": "Ram Bahadur", "registration_number": registration_number, "class_name": "10"}
    payload.update(fields)
    return await client.post("/students", json=payload, headers=headers)


async def test_create_and_get_student(client, auth_headers):
    response = await _create(client, auth_headers, "REG-001", section="A", roll_number=4)
    assert response.status_code == 200
    student = response.json()["data"]
    assert student["class_name"] == "10"
    assert student["status"] == "active"

    fetched = await client.get(f"/students/{student['id']}", headers=auth_headers)
    assert fetched.status_code == 200
    assert fetched.json()["data"]["registration_number"] == "REG-001"


async def test_registration_number_is_unique(client, auth_headers):
    await _create(client, auth_headers, "REG-001")
    response = await _create(client, auth_headers, "REG-001")
    assert response.status_code == 400


async def test_list_filters_and_pagination(client, auth_headers):
    await _create(client, auth_headers, "REG-001", full_name="Sita Sharma")
    await _create(client, auth_headers, "REG-002", full_name="Gita Thapa")
    await _create(client, auth_headers, "REG-003", full_name="Hari Karki", class_name="9")

    response = await client.get("/students", params={"class_name": "10", "page_size": 1}, headers=auth_headers)
    body = response.json()
    assert len(body["data"]) == 1
    assert body["meta"]["total"] == 2
    assert body["meta"]["total_pages"] == 2

    response = await client.get("/students", params={"search": "thapa"}, headers=auth_headers)
    assert [s["registration_number"] for s in response.json()["data"]] == ["REG-002"]


async def test_update_and_delete(client, auth_headers):
    student = (await _create(client, auth_headers, "REG-001")).json()["data"]

    response = await client.patch(f"/students/{student['id']}", json={"section": "B"}, headers=auth_headers)
    assert response.json()["data"]["section"] == "B"

    response = await client.delete(f"/students/{student['id']}", headers=auth_headers)
    assert response.status_code == 200
    response = await client.get(f"/students/{student['id']}", headers=auth_headers)
    assert response.status_code == 404


async def test_changes_are_logged(client, auth_headers):
    student = (await _create(client, auth_headers, "REG-001")).json()["data"]

    response = await client.get(
        "/activity", params={"entity_type": "student", "entity_id": str(student["id"])}, headers=auth_headers
    )
    logs = response.json()["data"]
    assert [log["action"] for log in logs] == ["create"]
