from schoolms.core.permissions import PERM_LIBRARY_VIEW, PERM_STUDENTS_VIEW, permission_module
from schoolms.models.auth import Permission, Role
from factories import headers_for, make_user


async def _permission(db, code):
    permission = Permission(code=code, module=permission_module(code), description=code)
    db.add(permission)
    await db.commit()
    await db.refresh(permission)
    return permission


async def test_role_grants_access(client, db, auth_headers):
    students_view = await _permission(db, PERM_STUDENTS_VIEW)
    await _permission(db, PERM_LIBRARY_VIEW)
    clerk = await make_user(db, "+9779855555555", full_name="Office Clerk")
    clerk_headers = headers_for(clerk)

    assert (await client.get("/students", headers=clerk_headers)).status_code == 403

    role = (await client.post(
        "/roles", json={"name": "Front Office", "permission_ids": [students_view.id]}, headers=auth_headers
    )).json()["data"]
    assert role["is_system"] is False
    assert [p["module"] for p in role["permissions"]] == ["students"]

    assigned = await client.patch(f"/users/{clerk.id}/roles", json={"role_ids": [role["id"]]}, headers=auth_headers)
    assert [r["name"] for r in assigned.json()["data"]["roles"]] == ["Front Office"]

    assert (await client.get("/students", headers=clerk_headers)).status_code == 200
    assert (await client.get("/library/books", headers=clerk_headers)).status_code == 403


async def test_permissions_filtered_by_module(client, db, auth_headers):
    await _permission(db, PERM_STUDENTS_VIEW)
    await _permission(db, PERM_LIBRARY_VIEW)

    response = await client.get("/roles/permissions", params={"module": "library"}, headers=auth_headers)
    assert [p["code"] for p in response.json()["data"]] == [PERM_LIBRARY_VIEW]


async def test_default_roles_are_protected(client, db, auth_headers):
    teacher = Role(name="Teacher", description="Attendance, marks entry and homework", is_system=True)
    db.add(teacher)
    await db.commit()

    renamed = await client.patch(f"/roles/{teacher.id}", json={"name": "Instructor"}, headers=auth_headers)
    assert renamed.status_code == 400
    deleted = await client.delete(f"/roles/{teacher.id}", headers=auth_headers)
    assert deleted.status_code == 400

    described = await client.patch(f"/roles/{teacher.id}", json={"description": "Class teachers"}, headers=auth_headers)
    assert described.json()["data"]["description"] == "Class teachers"
