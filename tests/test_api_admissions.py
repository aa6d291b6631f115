from datetime import datetime
import pytz
from schoolms.core.config import settings


def _form(**fields):
    form = {
        "student_name": "Aarav Karki",
        "date_of_birth": "2015-03-12",
        "gender": "male",
        "applying_for_class": "5",
        "guardian_name": "Bimala Karki",
        "guardian_phone": "+9779844444444",
        "address": "Baneshwor, Kathmandu",
    }
    form.update(fields)
    return form


async def test_public_application_numbered(client):
    year = datetime.now(pytz.timezone(settings.TIMEZONE)).year

    first = await client.post("/admissions/apply", json=_form())
    assert first.status_code == 200
    assert first.json()["data"]["application_number"] == f"ADM-{year}-0001"
    assert first.json()["data"]["status"] == "pending"

    second = await client.post("/admissions/apply", json=_form(student_name="Anisha Rai"))
    assert second.json()["data"]["application_number"] == f"ADM-{year}-0002"


async def test_application_form_validated(client):
    missing = _form()
    del missing["guardian_phone"]
    assert (await client.post("/admissions/apply", json=missing)).status_code == 422
    assert (await client.post("/admissions/apply", json=_form(guardian_email="not-an-email"))).status_code == 422


async def test_review_flow(client, auth_headers):
    admission = (await client.post("/admissions/apply", json=_form())).json()["data"]
    url = f"/admissions/{admission['id']}/review"

    still_pending = await client.post(url, json={"status": "pending"}, headers=auth_headers)
    assert still_pending.status_code == 400

    approved = await client.post(url, json={"status": "approved", "notes": "Entrance test passed"}, headers=auth_headers)
    assert approved.status_code == 200
    data = approved.json()["data"]
    assert data["status"] == "approved"
    assert data["notes"] == "Entrance test passed"
    assert data["reviewed_at"] is not None
    assert data["reviewed_by_user_id"] is not None

    again = await client.post(url, json={"status": "rejected"}, headers=auth_headers)
    assert again.status_code == 400

    assert (await client.post("/admissions/999/review", json={"status": "approved"}, headers=auth_headers)).status_code == 404


async def test_search_filter_and_stats(client, auth_headers):
    for name, grade in [("Aarav Karki", "5"), ("Anisha Rai", "5"), ("Bibek Tamang", "8")]:
        await client.post("/admissions/apply", json=_form(student_name=name, applying_for_class=grade))
    listed = (await client.get("/admissions", headers=auth_headers)).json()["data"]
    await client.post(f"/admissions/{listed[0]['id']}/review", json={"status": "rejected"}, headers=auth_headers)

    search = await client.get("/admissions", params={"search": "rai"}, headers=auth_headers)
    assert [a["student_name"] for a in search.json()["data"]] == ["Anisha Rai"]

    class_five = await client.get(
        "/admissions", params={"applying_for_class": "5", "status": "pending"}, headers=auth_headers
    )
    assert class_five.json()["meta"]["total"] == 2

    stats = (await client.get("/admissions/stats", headers=auth_headers)).json()["data"]
    assert stats == {"total": 3, "pending": 2, "approved": 0, "rejected": 1}

    summary = (await client.get("/reports/dashboard/summary", headers=auth_headers)).json()["data"]
    assert summary["pending_admissions"] == 2


async def test_staff_listing_needs_login(client):
    assert (await client.get("/admissions")).status_code in (401, 403)
