from factories import make_student


async def _setup(client, db, auth_headers):
    math = (await client.post(
        "/subjects", json={"name": "Mathematics", "code": "MATH", "display_order": 1}, headers=auth_headers
    )).json()["data"]
    science = (await client.post(
        "/subjects", json={"name": "Science", "code": "SCI", "display_order": 2}, headers=auth_headers
    )).json()["data"]
    exam = (await client.post(
        "/exams",
        json={"title": "First Terminal", "class_name": "10", "academic_year": "2082"},
        headers=auth_headers,
    )).json()["data"]
    students = [
        await make_student(db, "REG-001", full_name="Asha", roll_number=1),
        await make_student(db, "REG-002", full_name="Bikash", roll_number=2),
        await make_student(db, "REG-003", full_name="Chandra", roll_number=3),
    ]
    return math, science, exam, students


async def _enter(client, auth_headers, exam, subject, marks):
    return await client.post(
        f"/exams/{exam['id']}/marks",
        json={
            "subject_id": subject["id"],
            "marks": [{"student_id": s.id, "theory_marks": m} for s, m in marks],
        },
        headers=auth_headers,
    )


async def test_exam_dates_validated(client, auth_headers):
    response = await client.post(
        "/exams",
        json={
            "title": "Unit Test",
            "class_name": "10",
            "academic_year": "2082",
            "start_date": "2025-06-10",
            "end_date": "2025-06-01",
        },
        headers=auth_headers,
    )
    assert response.status_code == 400


async def test_marks_above_full_marks_rejected(client, db, auth_headers):
    math, _, exam, students = await _setup(client, db, auth_headers)
    response = await _enter(client, auth_headers, exam, math, [(students[0], 101)])
    assert response.status_code == 400
    assert "exceed" in response.json()["detail"]


async def test_results_ranked_and_graded(client, db, auth_headers):
    math, science, exam, (asha, bikash, chandra) = await _setup(client, db, auth_headers)

    response = await _enter(client, auth_headers, exam, math, [(asha, 95), (bikash, 92), (chandra, 15)])
    assert response.status_code == 200
    assert [m["grade"] for m in response.json()["data"]] == ["A+", "A+", "NG"]
    await _enter(client, auth_headers, exam, science, [(asha, 91), (bikash, 90), (chandra, 55)])

    response = await client.post(f"/exams/{exam['id']}/results/calculate", headers=auth_headers)
    assert response.status_code == 200
    results = {r["student_id"]: r for r in response.json()["data"]}

    assert results[asha.id]["gpa"] == 4.0
    assert results[asha.id]["rank"] == 1
    assert results[bikash.id]["rank"] == 1
    assert results[chandra.id]["rank"] == 3
    assert results[chandra.id]["result_status"] == "fail"
    assert results[chandra.id]["passed_subjects"] == 1

    analytics = (await client.get(f"/exams/{exam['id']}/analytics", headers=auth_headers)).json()["data"]
    assert analytics["total_students"] == 3
    assert analytics["pass_count"] == 2
    assert analytics["grade_distribution"]["A+"] == 2

    detail = await client.get(f"/exams/{exam['id']}/results/{asha.id}", headers=auth_headers)
    assert [s["subject_name"] for s in detail.json()["data"]["subjects"]] == ["Mathematics", "Science"]

    sheet = await client.get(f"/exams/{exam['id']}/results/{asha.id}/grade-sheet", headers=auth_headers)
    assert sheet.status_code == 200
    assert sheet.headers["content-type"] == "application/pdf"
    assert sheet.content.startswith(b"%PDF")


async def test_recalculation_updates_results(client, db, auth_headers):
    math, _, exam, (asha, bikash, _) = await _setup(client, db, auth_headers)
    await _enter(client, auth_headers, exam, math, [(asha, 60), (bikash, 80)])
    await client.post(f"/exams/{exam['id']}/results/calculate", headers=auth_headers)

    await _enter(client, auth_headers, exam, math, [(asha, 99)])
    await client.post(f"/exams/{exam['id']}/results/calculate", headers=auth_headers)

    results = (await client.get(f"/exams/{exam['id']}/results", headers=auth_headers)).json()["data"]
    assert len(results) == 2
    ranks = {r["student_id"]: r["rank"] for r in results}
    assert ranks == {asha.id: 1, bikash.id: 2}


async def test_calculate_without_marks(client, db, auth_headers):
    _, _, exam, _ = await _setup(client, db, auth_headers)
    response = await client.post(f"/exams/{exam['id']}/results/calculate", headers=auth_headers)
    assert response.status_code == 400


async def test_grading_scale(client):
    bands = (await client.get("/exams/grading-scale")).json()["data"]
    assert bands[0] == {"grade": "A+", "min_percentage": 90, "max_percentage": 100, "grade_point": 4.0}
    assert bands[-1]["grade"] == "NG"
    assert bands[-1]["max_percentage"] == 19


async def test_duplicate_student_in_marks_sheet_rejected(client, db, auth_headers):
    math, _, exam, students = await _setup(client, db, auth_headers)
    response = await _enter(client, auth_headers, exam, math, [(students[0], 50), (students[0], 60)])
    assert response.status_code == 400
    assert "only once" in response.json()["detail"]

    marks = await client.get(f"/exams/{exam['id']}/marks", params={"subject_id": math["id"]}, headers=auth_headers)
    assert marks.json()["data"] == []


async def test_lowering_full_marks_below_entered_marks_rejected(client, db, auth_headers):
    math, _, exam, students = await _setup(client, db, auth_headers)
    await _enter(client, auth_headers, exam, math, [(students[0], 80), (students[1], 40)])

    response = await client.patch(f"/subjects/{math['id']}", json={"full_marks": 75}, headers=auth_headers)
    assert response.status_code == 400
    assert "80" in response.json()["detail"]

    response = await client.patch(
        f"/subjects/{math['id']}", json={"full_marks": 80, "pass_marks": 32}, headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["full_marks"] == 80

    marks = await client.get(f"/exams/{exam['id']}/marks", params={"subject_id": math["id"]}, headers=auth_headers)
    grades = {m["student_id"]: m["grade"] for m in marks.json()["data"]}
    assert grades == {students[0].id: "A+", students[1].id: "C+"}
