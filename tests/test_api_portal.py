from datetime import date
import pytest
from schoolms.models.academics import Subject
from schoolms.models.homework import Homework
from schoolms.models.people import Parent, parent_student_association
from factories import headers_for, make_student, make_structure, make_user


@pytest.fixture
async def family(db):
    """A parent account linked to one child, plus an unrelated student."""
    parent_user = await make_user(db, "+9779811111111", full_name="Hari Sharma")
    child = await make_student(db, "REG-001", full_name="Sita Sharma", section="A")
    other = await make_student(db, "REG-002", full_name="Gita Thapa")

    parent = Parent(full_name="Hari Sharma", phone="+9779811111111", user_id=parent_user.id)
    db.add(parent)
    await db.flush()
    await db.execute(parent_student_association.insert().values(parent_id=parent.id, student_id=child.id))
    await db.commit()
    return headers_for(parent_user), child, other


async def test_parent_sees_only_linked_children(client, family):
    headers, child, other = family

    response = await client.get("/portal/students", headers=headers)
    assert [s["id"] for s in response.json()["data"]] == [child.id]

    me = await client.get("/auth/me", headers=headers)
    assert me.json()["linked_student_ids"] == [child.id]

    assert (await client.get(f"/portal/students/{child.id}", headers=headers)).status_code == 200
    assert (await client.get(f"/portal/students/{other.id}", headers=headers)).status_code == 404
    assert (await client.get(f"/portal/students/{other.id}/fees", headers=headers)).status_code == 404


async def test_fee_balance(client, db, auth_headers, family):
    headers, child, _ = family
    structure = await make_structure(db)
    await client.post(
        "/fees/invoices",
        json={"student_id": child.id, "fee_structure_id": structure.id, "due_date": "2025-06-10"},
        headers=auth_headers,
    )

    fees = (await client.get(f"/portal/students/{child.id}/fees", headers=headers)).json()["data"]
    assert len(fees["invoices"]) == 1
    assert fees["total_balance"] == 1000


async def test_only_published_results_are_visible(client, auth_headers, family):
    headers, child, _ = family
    subject = (await client.post("/subjects", json={"name": "Nepali", "code": "NEP"}, headers=auth_headers)).json()["data"]
    exam = (await client.post(
        "/exams", json={"title": "Half Yearly", "class_name": "10", "academic_year": "2082"}, headers=auth_headers
    )).json()["data"]
    await client.post(
        f"/exams/{exam['id']}/marks",
        json={"subject_id": subject["id"], "marks": [{"student_id": child.id, "theory_marks": 72}]},
        headers=auth_headers,
    )
    await client.post(f"/exams/{exam['id']}/results/calculate", headers=auth_headers)

    before = await client.get(f"/portal/students/{child.id}/results", headers=headers)
    assert before.json()["data"] == []
    sheet = await client.get(f"/portal/students/{child.id}/results/{exam['id']}/grade-sheet", headers=headers)
    assert sheet.status_code == 404

    await client.post(f"/exams/{exam['id']}/publish", headers=auth_headers)

    after = (await client.get(f"/portal/students/{child.id}/results", headers=headers)).json()["data"]
    assert len(after) == 1
    assert after[0]["gpa"] == 3.2
    assert after[0]["subjects"][0]["grade"] == "B+"
    assert after[0]["subjects"][0]["subject_name"] == "Nepali"


async def test_only_students_submit_homework(client, db, family):
    parent_headers, child, _ = family
    subject = Subject(name="English", code="ENG")
    db.add(subject)
    await db.commit()
    homework = Homework(title="Essay", class_name="10", section="A", due_date=date(2099, 1, 1), subject_id=subject.id)
    db.add(homework)

    student_user = await make_user(db, "+9779822222222", full_name="Sita Sharma")
    child.user_id = student_user.id
    await db.commit()
    await db.refresh(homework)

    payload = {"submission_text": "My village"}
    denied = await client.post(f"/portal/homework/{homework.id}/submit", json=payload, headers=parent_headers)
    assert denied.status_code == 403

    student_headers = headers_for(student_user)
    response = await client.post(f"/portal/homework/{homework.id}/submit", json=payload, headers=student_headers)
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "submitted"
    assert response.json()["data"]["is_late"] is False

    listed = (await client.get(f"/portal/students/{child.id}/homework", headers=student_headers)).json()["data"]
    assert listed[0]["submission"]["submission_text"] == "My village"


async def _child_invoice(client, db, auth_headers, student):
    structure = await make_structure(db)
    return (await client.post(
        "/fees/invoices",
        json={"student_id": student.id, "fee_structure_id": structure.id, "due_date": "2025-06-10"},
        headers=auth_headers,
    )).json()["data"]


async def test_payment_request_approved(client, db, auth_headers, family):
    headers, child, _ = family
    invoice = await _child_invoice(client, db, auth_headers, child)
    url = f"/portal/students/{child.id}/payment-requests"

    no_proof = await client.post(url, json={"student_fee_id": invoice["id"], "gateway": "esewa", "amount": 600}, headers=headers)
    assert no_proof.status_code == 400

    submitted = await client.post(
        url,
        json={"student_fee_id": invoice["id"], "gateway": "esewa", "amount": 600, "transaction_id": "ES-778899"},
        headers=headers,
    )
    assert submitted.status_code == 200
    request = submitted.json()["data"]
    assert request["status"] == "pending"

    # Nothing is credited until the accounts office approves
    fees = (await client.get(f"/portal/students/{child.id}/fees", headers=headers)).json()["data"]
    assert fees["total_balance"] == 1000

    pending = await client.get("/fees/payment-requests", params={"status": "pending"}, headers=auth_headers)
    assert [r["id"] for r in pending.json()["data"]] == [request["id"]]
    summary = (await client.get("/reports/dashboard/summary", headers=auth_headers)).json()["data"]
    assert summary["pending_payment_requests"] == 1

    approved = await client.post(f"/fees/payment-requests/{request['id']}/approve", headers=auth_headers)
    assert approved.status_code == 200
    receipt = approved.json()["data"]
    assert receipt["payment"]["payment_method"] == "esewa"
    assert receipt["payment"]["transaction_id"] == "ES-778899"
    assert receipt["payment"]["receipt_number"].startswith("RCP-")
    assert receipt["invoice"]["status"] == "partial"
    assert receipt["invoice"]["balance"] == 400

    twice = await client.post(f"/fees/payment-requests/{request['id']}/approve", headers=auth_headers)
    assert twice.status_code == 400

    history = (await client.get(url, headers=headers)).json()["data"]
    assert history[0]["status"] == "approved"
    assert history[0]["fee_payment_id"] == receipt["payment"]["id"]


async def test_payment_request_rejected(client, db, auth_headers, family):
    headers, child, other = family
    invoice = await _child_invoice(client, db, auth_headers, child)
    payload = {"student_fee_id": invoice["id"], "gateway": "khalti", "amount": 1000, "screenshot_url": "https://cdn.example/p.png"}

    elsewhere = await client.post(f"/portal/students/{other.id}/payment-requests", json=payload, headers=headers)
    assert elsewhere.status_code == 404

    request = (await client.post(
        f"/portal/students/{child.id}/payment-requests", json=payload, headers=headers
    )).json()["data"]

    blank = await client.post(f"/fees/payment-requests/{request['id']}/reject", json={"reason": "  "}, headers=auth_headers)
    assert blank.status_code == 400

    rejected = await client.post(
        f"/fees/payment-requests/{request['id']}/reject", json={"reason": "Screenshot unreadable"}, headers=auth_headers
    )
    assert rejected.json()["data"]["status"] == "rejected"
    assert rejected.json()["data"]["rejection_reason"] == "Screenshot unreadable"

    approve_after = await client.post(f"/fees/payment-requests/{request['id']}/approve", headers=auth_headers)
    assert approve_after.status_code == 400

    fees = (await client.get(f"/portal/students/{child.id}/fees", headers=headers)).json()["data"]
    assert fees["payments"] == []
    assert (await client.post("/fees/payment-requests/999/reject", json={"reason": "x"}, headers=auth_headers)).status_code == 404
