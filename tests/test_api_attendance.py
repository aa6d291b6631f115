from io import BytesIO
from openpyxl import load_workbook
from factories import make_student

PERIOD = {"from_date": "2025-06-01", "to_date": "2025-06-30"}


async def _mark(client, auth_headers, day, entries):
    return await client.post(
        "/attendance/bulk",
        json={
            "attendance_date": day,
            "entries": [{"student_id": s.id, "status": status} for s, status in entries],
            "notify_guardians": False,
        },
        headers=auth_headers,
    )


async def test_bulk_marking_upserts(client, db, auth_headers):
    asha = await make_student(db, "REG-001", full_name="Asha", roll_number=1)
    bikash = await make_student(db, "REG-002", full_name="Bikash", roll_number=2)

    first = await _mark(client, auth_headers, "2025-06-02", [(asha, "present"), (bikash, "absent")])
    assert first.json()["data"] == {"created": 2, "updated": 0, "notifications_sent": 0}

    again = await _mark(client, auth_headers, "2025-06-02", [(bikash, "excused")])
    assert again.json()["data"] == {"created": 0, "updated": 1, "notifications_sent": 0}

    rows = await client.get("/attendance", params={"attendance_date": "2025-06-02"}, headers=auth_headers)
    statuses = {r["student_id"]: r["status"] for r in rows.json()["data"]}
    assert statuses == {asha.id: "present", bikash.id: "excused"}


async def test_empty_and_duplicate_sheets_rejected(client, db, auth_headers):
    asha = await make_student(db, "REG-001")
    empty = await client.post(
        "/attendance/bulk", json={"attendance_date": "2025-06-02", "entries": []}, headers=auth_headers
    )
    assert empty.status_code == 400

    duplicate = await _mark(client, auth_headers, "2025-06-02", [(asha, "present"), (asha, "absent")])
    assert duplicate.status_code == 400


async def test_student_stats_and_class_summary(client, db, auth_headers):
    asha = await make_student(db, "REG-001", full_name="Asha", roll_number=1)
    bikash = await make_student(db, "REG-002", full_name="Bikash", roll_number=2)
    await _mark(client, auth_headers, "2025-06-02", [(asha, "present"), (bikash, "late")])
    await _mark(client, auth_headers, "2025-06-03", [(asha, "present"), (bikash, "present")])

    stats = (await client.get(
        f"/attendance/students/{bikash.id}/stats", params=PERIOD, headers=auth_headers
    )).json()["data"]
    assert stats["attendance_percentage"] == 50
    assert stats["late_days"] == 1
    assert stats["rating"] == "Poor"

    summary = (await client.get("/attendance/classes/10/summary", params=PERIOD, headers=auth_headers)).json()["data"]
    assert summary["total_students"] == 2
    assert summary["perfect_attendance"] == 2
    assert [s["student_name"] for s in summary["students"]] == ["Asha", "Bikash"]

    export = await client.get("/attendance/classes/10/summary/export", params=PERIOD, headers=auth_headers)
    sheet = load_workbook(BytesIO(export.content)).active
    assert sheet.cell(row=2, column=2).value == "Asha"
    assert sheet.cell(row=2, column=8).value == 100


async def test_backwards_period_rejected(client, db, auth_headers):
    student = await make_student(db, "REG-001")
    response = await client.get(
        f"/attendance/students/{student.id}/stats",
        params={"from_date": "2025-06-30", "to_date": "2025-06-01"},
        headers=auth_headers,
    )
    assert response.status_code == 400
