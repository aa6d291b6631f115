from schoolms.core.permissions import ALL_PERMISSIONS
from factories import ADMIN_PASSWORD, ADMIN_PHONE, headers_for, make_user


async def test_login_and_me(client, admin):
    response = await client.post("/auth/login", json={"phone_or_email": ADMIN_PHONE, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    tokens = response.json()
    assert tokens["token_type"] == "bearer"

    me = await client.get("/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"})
    assert me.status_code == 200
    body = me.json()
    assert body["user"]["phone"] == ADMIN_PHONE
    assert len(body["permissions"]) == len(ALL_PERMISSIONS)


async def test_login_by_email(client, admin):
    response = await client.post("/auth/login", json={"phone_or_email": "admin@test.school", "password": ADMIN_PASSWORD})
    assert response.status_code == 200


async def test_wrong_password(client, admin):
    response = await client.post("/auth/login", json={"phone_or_email": ADMIN_PHONE, "password": "nope"})
    assert response.status_code == 401


async def test_refresh_token_issues_new_pair(client, admin):
    login = await client.post("/auth/login", json={"phone_or_email": ADMIN_PHONE, "password": ADMIN_PASSWORD})
    tokens = login.json()

    response = await client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 200
    assert response.json()["access_token"]

    # An access token is not accepted as a refresh token
    rejected = await client.post("/auth/refresh", json={"refresh_token": tokens["access_token"]})
    assert rejected.status_code == 401


async def test_missing_or_bad_token(client):
    response = await client.get("/students")
    assert response.status_code in (401, 403)

    response = await client.get("/students", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


async def test_permission_required(client, db):
    user = await make_user(db, "+9779811111111")
    response = await client.get("/students", headers=headers_for(user))
    assert response.status_code == 403
    assert "students:view" in response.json()["detail"]


async def test_change_password(client, db):
    user = await make_user(db, "+9779822222222", password="old-secret")
    headers = headers_for(user)

    wrong = await client.post(
        "/auth/change-password", json={"current_password": "bad", "new_password": "new-secret"}, headers=headers
    )
    assert wrong.status_code == 400

    response = await client.post(
        "/auth/change-password", json={"current_password": "old-secret", "new_password": "new-secret"}, headers=headers
    )
    assert response.status_code == 200

    login = await client.post("/auth/login", json={"phone_or_email": "+9779822222222", "password": "new-secret"})
    assert login.status_code == 200


async def test_short_password_rejected(client, db):
    user = await make_user(db, "+9779833333333", password="old-secret")
    response = await client.post(
        "/auth/change-password", json={"current_password": "old-secret", "new_password": "abc"}, headers=headers_for(user)
    )
    assert response.status_code == 422

    register = await client.post(
        "/auth/register", json={"phone": "+9779844444444", "full_name": "New User", "password": "abc"}
    )
    assert register.status_code == 422
