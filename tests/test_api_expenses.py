async def _expense(client, auth_headers, **fields):
    payload = {"category": "utilities", "amount": 1200.5, "expense_date": "2025-06-03", "paid_to": "NEA"}
    payload.update(fields)
    return await client.post("/expenses", json=payload, headers=auth_headers)


async def test_expense_crud(client, auth_headers):
    response = await _expense(client, auth_headers, payment_method="bank_transfer")
    assert response.status_code == 200
    expense = response.json()["data"]
    assert expense["amount"] == 1200.5
    assert expense["created_by_user_id"] is not None

    updated = await client.patch(
        f"/expenses/{expense['id']}", json={"amount": 900, "description": "June bill"}, headers=auth_headers
    )
    assert updated.json()["data"]["amount"] == 900
    assert updated.json()["data"]["description"] == "June bill"

    deleted = await client.delete(f"/expenses/{expense['id']}", headers=auth_headers)
    assert deleted.status_code == 200
    missing = await client.patch(f"/expenses/{expense['id']}", json={"amount": 1}, headers=auth_headers)
    assert missing.status_code == 404


async def test_expense_filters(client, auth_headers):
    await _expense(client, auth_headers, expense_date="2025-05-20")
    await _expense(client, auth_headers, category="salary", amount=50000, expense_date="2025-06-01")
    await _expense(client, auth_headers, expense_date="2025-06-10")

    by_category = await client.get("/expenses", params={"category": "utilities"}, headers=auth_headers)
    assert by_category.json()["meta"]["total"] == 2

    june = await client.get(
        "/expenses", params={"from_date": "2025-06-01", "to_date": "2025-06-30"}, headers=auth_headers
    )
    assert [e["expense_date"] for e in june.json()["data"]] == ["2025-06-10", "2025-06-01"]


async def test_non_positive_expense_rejected(client, auth_headers):
    response = await _expense(client, auth_headers, amount=0)
    assert response.status_code == 422


async def test_expenses_require_permission(client):
    response = await client.get("/expenses")
    assert response.status_code in (401, 403)
