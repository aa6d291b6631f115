from factories import make_student, make_structure


async def _invoice_and_pay(client, auth_headers, student, structure, payments):
    invoice = (await client.post(
        "/fees/invoices",
        json={"student_id": student.id, "fee_structure_id": structure.id, "due_date": "2025-06-10"},
        headers=auth_headers,
    )).json()["data"]
    for amount, method, paid_at in payments:
        await client.post(
            "/fees/payments",
            json={"student_fee_id": invoice["id"], "amount": amount, "payment_method": method, "paid_at": paid_at},
            headers=auth_headers,
        )


async def test_collection_report_groups_by_method(client, db, auth_headers):
    structure = await make_structure(db)
    asha = await make_student(db, "REG-001")
    bikash = await make_student(db, "REG-002")
    await _invoice_and_pay(client, auth_headers, asha, structure, [
        (300, "cash", "2025-06-01T04:00:00"),
        (200, "esewa", "2025-06-01T05:00:00"),
    ])
    await _invoice_and_pay(client, auth_headers, bikash, structure, [
        (400, "cash", "2025-06-01T06:00:00"),
        (100, "cash", "2025-06-03T06:00:00"),
    ])

    report = (await client.get(
        "/reports/finance/collections", params={"from_date": "2025-06-01", "to_date": "2025-06-01"}, headers=auth_headers
    )).json()["data"]
    assert report["total_collection"] == 900
    assert report["breakdown"][0] == {"payment_method": "cash", "total_amount": 700, "payment_count": 2}

    backwards = await client.get(
        "/reports/finance/collections", params={"from_date": "2025-06-02", "to_date": "2025-06-01"}, headers=auth_headers
    )
    assert backwards.status_code == 400


async def test_pending_dues_largest_first(client, db, auth_headers):
    structure = await make_structure(db)
    asha = await make_student(db, "REG-001", full_name="Asha")
    bikash = await make_student(db, "REG-002", full_name="Bikash")
    await _invoice_and_pay(client, auth_headers, asha, structure, [(600, "cash", "2025-06-01T04:00:00")])
    await _invoice_and_pay(client, auth_headers, bikash, structure, [])

    response = await client.get("/reports/finance/pending-dues", params={"page_size": 1}, headers=auth_headers)
    body = response.json()
    assert [(i["student_name"], i["total_balance"]) for i in body["data"]] == [("Bikash", 1000)]
    assert body["meta"]["total"] == 2

    summary = (await client.get("/reports/dashboard/summary", headers=auth_headers)).json()["data"]
    assert summary["active_students"] == 2
    assert summary["pending_dues"] == 1400
    assert summary["today_attendance_rate"] is None


async def _paid_students(client, db, auth_headers):
    structure = await make_structure(db)
    asha = await make_student(db, "REG-001")
    bikash = await make_student(db, "REG-002")
    await _invoice_and_pay(client, auth_headers, asha, structure, [
        (300, "cash", "2025-06-01T04:00:00"),
        (200, "esewa", "2025-06-01T05:00:00"),
    ])
    await _invoice_and_pay(client, auth_headers, bikash, structure, [
        (400, "cash", "2025-06-01T06:00:00"),
        (100, "cash", "2025-06-03T06:00:00"),
    ])


async def test_accountant_overview(client, db, auth_headers):
    await _paid_students(client, db, auth_headers)

    overview = (await client.get(
        "/reports/finance/overview", params={"today": "2025-06-03", "recent": 2}, headers=auth_headers
    )).json()["data"]
    assert overview["today_collection"] == 100
    assert overview["month_collection"] == 1000
    assert overview["year_collection"] == 1000
    assert overview["pending_dues"] == 1000
    assert overview["outstanding_fines"] == 0
    assert [p["amount"] for p in overview["recent_payments"]] == [100, 400]

    next_month = (await client.get(
        "/reports/finance/overview", params={"today": "2025-07-01"}, headers=auth_headers
    )).json()["data"]
    assert next_month["month_collection"] == 0
    assert next_month["year_collection"] == 1000


async def test_monthly_trend(client, db, auth_headers):
    await _paid_students(client, db, auth_headers)
    for amount, day in [(300, "2025-06-05"), (200, "2025-05-10")]:
        await client.post(
            "/expenses", json={"category": "utilities", "amount": amount, "expense_date": day}, headers=auth_headers
        )

    trend = (await client.get(
        "/reports/finance/trend", params={"months": 3, "today": "2025-06-15"}, headers=auth_headers
    )).json()["data"]
    assert [(t["month"], t["label"]) for t in trend] == [("2025-04", "Apr"), ("2025-05", "May"), ("2025-06", "Jun")]
    assert trend[0] == {"month": "2025-04", "label": "Apr", "collection": 0, "expenses": 0, "net": 0}
    assert (trend[1]["collection"], trend[1]["expenses"], trend[1]["net"]) == (0, 200, -200)
    assert (trend[2]["collection"], trend[2]["expenses"], trend[2]["net"]) == (1000, 300, 700)


async def test_admin_summary_counts(client, db, auth_headers):
    asha = await make_student(db, "REG-001")
    bikash = await make_student(db, "REG-002")
    for employee_id, status in [("EMP-001", "active"), ("EMP-002", "on_leave")]:
        await client.post(
            "/teachers", json={"full_name": employee_id, "employee_id": employee_id, "status": status}, headers=auth_headers
        )
    for title, day in [("Sports week", "2025-06-20"), ("New year", "2025-04-14")]:
        await client.post("/calendar/events", json={"title": title, "event_date": day}, headers=auth_headers)
    for title, published in [("Holiday", True), ("Draft", False)]:
        await client.post(
            "/notices", json={"title": title, "content": title, "is_published": published}, headers=auth_headers
        )
    await client.post(
        "/attendance/bulk",
        json={
            "attendance_date": "2025-06-01",
            "entries": [{"student_id": asha.id, "status": "present"}, {"student_id": bikash.id, "status": "absent"}],
            "notify_guardians": False,
        },
        headers=auth_headers,
    )

    summary = (await client.get(
        "/reports/dashboard/summary", params={"today": "2025-06-01"}, headers=auth_headers
    )).json()["data"]
    assert summary == {
        "active_students": 2,
        "active_teachers": 1,
        "today_attendance_rate": 50.0,
        "pending_dues": 0,
        "books_issued": 0,
        "upcoming_events": 1,
        "published_notices": 1,
        "pending_admissions": 0,
        "pending_payment_requests": 0,
    }
