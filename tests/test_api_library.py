from factories import make_book, make_student


async def _issue(client, auth_headers, book, student, **fields):
    payload = {"book_id": book.id, "student_id": student.id}
    payload.update(fields)
    return await client.post("/library/issues", json=payload, headers=auth_headers)


async def test_create_book_rejects_duplicate_isbn(client, auth_headers):
    payload = {"title": "Palpasa Cafe", "author": "Narayan Wagle", "isbn": "9789937", "total_copies": 3}
    first = await client.post("/library/books", json=payload, headers=auth_headers)
    assert first.status_code == 200
    assert first.json()["data"]["available_copies"] == 3

    second = await client.post("/library/books", json=payload, headers=auth_headers)
    assert second.status_code == 400


async def test_issue_and_return_on_time(client, db, auth_headers):
    book = await make_book(db, copies=1)
    student = await make_student(db, "REG-001")

    response = await _issue(client, auth_headers, book, student, days=7)
    assert response.status_code == 200
    issue = response.json()["data"]
    assert issue["status"] == "issued"

    no_copies = await _issue(client, auth_headers, book, await make_student(db, "REG-002"))
    assert no_copies.status_code == 400

    returned = await client.post(f"/library/issues/{issue['id']}/return", headers=auth_headers)
    assert returned.status_code == 200
    assert returned.json()["data"]["issue"]["status"] == "returned"
    assert returned.json()["data"]["fine"] is None

    again = await client.post(f"/library/issues/{issue['id']}/return", headers=auth_headers)
    assert again.status_code == 400

    fetched = await client.get(f"/library/books/{book.id}", headers=auth_headers)
    assert fetched.json()["data"]["available_copies"] == 1


async def test_lost_book_fine_and_stats(client, db, auth_headers):
    book = await make_book(db, copies=2)
    student = await make_student(db, "REG-001")
    issue = (await _issue(client, auth_headers, book, student)).json()["data"]

    response = await client.post(f"/library/issues/{issue['id']}/lost", headers=auth_headers)
    assert response.status_code == 200
    fine = response.json()["data"]["fine"]
    assert fine["fine_reason"] == "lost"
    assert fine["fine_amount"] == 140

    stats = (await client.get("/library/stats", headers=auth_headers)).json()["data"]
    assert stats["total_copies"] == 1
    assert stats["available_copies"] == 1
    assert stats["issued_count"] == 0
    assert stats["pending_fines_amount"] == 140

    partial = await client.post(f"/library/fines/{fine['id']}/pay", json={"amount": 40}, headers=auth_headers)
    assert partial.json()["data"]["status"] == "pending"
    waived = await client.post(
        f"/library/fines/{fine['id']}/waive", json={"reason": "Book recovered"}, headers=auth_headers
    )
    assert waived.json()["data"]["status"] == "waived"

    pending = await client.get("/library/fines", params={"status": "pending"}, headers=auth_headers)
    assert pending.json()["data"] == []


async def test_settings_update(client, auth_headers):
    defaults = (await client.get("/library/settings", headers=auth_headers)).json()["data"]
    assert defaults["max_books_per_student"] == 3

    response = await client.patch("/library/settings", json={"max_books_per_student": 1}, headers=auth_headers)
    assert response.json()["data"]["max_books_per_student"] == 1


async def test_blocked_membership_cannot_borrow(client, db, auth_headers):
    book = await make_book(db)
    student = await make_student(db, "REG-001")

    membership = (await client.post(
        "/library/memberships", json={"member_id": student.id}, headers=auth_headers
    )).json()["data"]
    assert membership["status"] == "active"

    await client.post(
        f"/library/memberships/{membership['id']}/block", json={"reason": "Unpaid fines"}, headers=auth_headers
    )
    response = await _issue(client, auth_headers, book, student)
    assert response.status_code == 400
    assert "blocked" in response.json()["detail"]

    await client.post(f"/library/memberships/{membership['id']}/unblock", headers=auth_headers)
    assert (await _issue(client, auth_headers, book, student)).status_code == 200
