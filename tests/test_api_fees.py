from io import BytesIO
from openpyxl import load_workbook
from factories import make_student, make_structure


async def _invoice(client, auth_headers, student, structure, **fields):
    payload = {"student_id": student.id, "fee_structure_id": structure.id, "due_date": "2025-06-10", "month_year": "2025-06"}
    payload.update(fields)
    return await client.post("/fees/invoices", json=payload, headers=auth_headers)


async def test_create_structure(client, auth_headers):
    response = await client.post(
        "/fees/structures",
        json={"class_name": "10", "fee_type": "tuition", "amount": 1500, "academic_year": "2082", "due_day": 5},
        headers=auth_headers,
    )
    assert response.status_code == 200
    structure = response.json()["data"]
    assert structure["frequency"] == "monthly"

    listed = await client.get("/fees/structures", params={"class_name": "10"}, headers=auth_headers)
    assert [s["id"] for s in listed.json()["data"]] == [structure["id"]]


async def test_invoice_with_discount(client, db, auth_headers):
    student = await make_student(db, "REG-001")
    structure = await make_structure(db)

    response = await _invoice(client, auth_headers, student, structure, discount=250, discount_reason="Sibling")
    invoice = response.json()["data"]
    assert invoice["total_amount"] == 750
    assert invoice["balance"] == 750
    assert invoice["status"] == "pending"

    duplicate = await _invoice(client, auth_headers, student, structure)
    assert duplicate.status_code == 400

    too_much = await _invoice(client, auth_headers, student, structure, month_year="2025-07", discount=2000)
    assert too_much.status_code == 400


async def test_payments_and_receipts(client, db, auth_headers):
    student = await make_student(db, "REG-001")
    structure = await make_structure(db)
    invoice = (await _invoice(client, auth_headers, student, structure)).json()["data"]

    response = await client.post(
        "/fees/payments",
        json={"student_fee_id": invoice["id"], "amount": 400, "payment_method": "esewa", "paid_at": "2025-06-01T10:00:00"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    receipt = response.json()["data"]
    assert receipt["payment"]["receipt_number"] == "RCP-20250601-0001"
    assert receipt["invoice"]["status"] == "partial"
    assert receipt["invoice"]["balance"] == 600

    response = await client.post(
        "/fees/payments",
        json={"student_fee_id": invoice["id"], "amount": 700, "paid_at": "2025-06-01T11:00:00"},
        headers=auth_headers,
    )
    receipt = response.json()["data"]
    assert receipt["payment"]["receipt_number"] == "RCP-20250601-0002"
    assert receipt["invoice"]["status"] == "paid"
    assert receipt["invoice"]["balance"] == 0
    assert receipt["invoice"]["paid_amount"] == 1100

    lookup = await client.get("/fees/payments/receipt/RCP-20250601-0001", headers=auth_headers)
    assert lookup.json()["data"]["payment"]["amount"] == 400
    missing = await client.get("/fees/payments/receipt/RCP-20250601-0099", headers=auth_headers)
    assert missing.status_code == 404

    history = await client.get("/fees/payments", params={"student_id": student.id}, headers=auth_headers)
    assert history.json()["meta"]["total"] == 2


async def test_zero_payment_rejected(client, db, auth_headers):
    student = await make_student(db, "REG-001")
    structure = await make_structure(db)
    invoice = (await _invoice(client, auth_headers, student, structure)).json()["data"]

    response = await client.post(
        "/fees/payments", json={"student_fee_id": invoice["id"], "amount": 0}, headers=auth_headers
    )
    assert response.status_code == 422


async def test_bulk_invoices_for_class(client, db, auth_headers):
    await make_student(db, "REG-001")
    await make_student(db, "REG-002")
    await make_student(db, "REG-003", class_name="9")
    structure = await make_structure(db)

    payload = {"fee_structure_id": structure.id, "due_date": "2025-06-10", "month_year": "2025-06"}
    first = await client.post("/fees/invoices/bulk", json=payload, headers=auth_headers)
    assert len(first.json()["data"]) == 2

    second = await client.post("/fees/invoices/bulk", json=payload, headers=auth_headers)
    assert second.json()["data"] == []


async def test_dues_export(client, db, auth_headers):
    student = await make_student(db, "REG-001", full_name="Sita Sharma")
    structure = await make_structure(db)
    await _invoice(client, auth_headers, student, structure)

    response = await client.get("/fees/dues/export", headers=auth_headers)
    assert response.status_code == 200
    assert "spreadsheetml" in response.headers["content-type"]

    sheet = load_workbook(BytesIO(response.content)).active
    assert sheet.cell(row=1, column=2).value == "Name"
    assert sheet.cell(row=2, column=2).value == "Sita Sharma"
    assert sheet.cell(row=2, column=6).value == 1000


async def test_fee_jobs(client, db, auth_headers):
    await make_student(db, "REG-001")
    await make_student(db, "REG-002")
    await make_structure(db, late_fee_percentage="5")

    first = await client.post("/fees/jobs/run", params={"today": "2025-06-01"}, headers=auth_headers)
    assert first.json()["data"] == {"invoices_created": 2, "invoices_marked_overdue": 0}

    later = await client.post("/fees/jobs/run", params={"today": "2025-06-15"}, headers=auth_headers)
    assert later.json()["data"] == {"invoices_created": 0, "invoices_marked_overdue": 2}

    invoices = (await client.get("/fees/invoices", params={"status": "overdue"}, headers=auth_headers)).json()["data"]
    assert {i["late_fee"] for i in invoices} == {50}
    assert {i["total_amount"] for i in invoices} == {1050}


async def test_cancelled_invoice_refuses_payment(client, db, auth_headers):
    student = await make_student(db, "REG-001")
    structure = await make_structure(db)
    invoice = (await _invoice(client, auth_headers, student, structure)).json()["data"]

    cancelled = await client.patch(
        f"/fees/invoices/{invoice['id']}", json={"status": "cancelled"}, headers=auth_headers
    )
    assert cancelled.json()["data"]["status"] == "cancelled"

    response = await client.post(
        "/fees/payments", json={"student_fee_id": invoice["id"], "amount": 100}, headers=auth_headers
    )
    assert response.status_code == 400
    assert "cancelled" in response.json()["detail"]


async def test_receipt_dated_in_school_timezone(client, db, auth_headers):
    student = await make_student(db, "REG-001")
    structure = await make_structure(db)
    invoice = (await _invoice(client, auth_headers, student, structure)).json()["data"]

    # 20:00 UTC is already the next morning in Kathmandu
    response = await client.post(
        "/fees/payments",
        json={"student_fee_id": invoice["id"], "amount": 100, "paid_at": "2025-06-01T20:00:00+00:00"},
        headers=auth_headers,
    )
    assert response.json()["data"]["payment"]["receipt_number"] == "RCP-20250602-0001"

    response = await client.post(
        "/fees/payments",
        json={"student_fee_id": invoice["id"], "amount": 100, "paid_at": "2025-06-02T08:00:00+05:45"},
        headers=auth_headers,
    )
    assert response.json()["data"]["payment"]["receipt_number"] == "RCP-20250602-0002"


async def test_overdue_invoice_partially_paid(client, db, auth_headers):
    student = await make_student(db, "REG-001")
    structure = await make_structure(db, late_fee_percentage="10")
    invoice = (await _invoice(client, auth_headers, student, structure)).json()["data"]

    await client.post("/fees/jobs/run", params={"today": "2025-06-15"}, headers=auth_headers)
    overdue = (await client.get(f"/fees/invoices/{invoice['id']}", headers=auth_headers)).json()["data"]
    assert overdue["status"] == "overdue"
    assert overdue["total_amount"] == 1100

    response = await client.post(
        "/fees/payments", json={"student_fee_id": invoice["id"], "amount": 300}, headers=auth_headers
    )
    paid = response.json()["data"]["invoice"]
    assert paid["status"] == "partial"
    assert paid["balance"] == 800

    # Rerunning the job flags it again without a second late fee
    await client.post("/fees/jobs/run", params={"today": "2025-06-16"}, headers=auth_headers)
    again = (await client.get(f"/fees/invoices/{invoice['id']}", headers=auth_headers)).json()["data"]
    assert again["status"] == "overdue"
    assert again["late_fee"] == 100
    assert again["balance"] == 800

    response = await client.post(
        "/fees/payments", json={"student_fee_id": invoice["id"], "amount": 800}, headers=auth_headers
    )
    assert response.json()["data"]["invoice"]["status"] == "paid"
