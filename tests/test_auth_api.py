from jose import jwt

from clinic.core.config import settings
from clinic.core.security import ALGORITHM, create_access_token

from conftest import bearer


async def test_login_returns_token_and_profile(client, professional):
    res = await client.post(
        "/api/auth/login", json={"national_id": "20111222", "password": "s3cret-pass"}
    )
    assert res.status_code == 200
    body = res.json()
    assert body["token_type"] == "bearer"
    assert body["expires_in"] == settings.ACCESS_EXPIRES_MIN * 60
    assert body["user"]["role"] == "PROFESSIONAL"

    claims = jwt.decode(body["access_token"], settings.JWT_SECRET, algorithms=[ALGORITHM])
    assert claims["sub"] == str(professional.id)


async def test_login_with_wrong_password_is_401(client, professional):
    res = await client.post(
        "/api/auth/login", json={"national_id": "20111222", "password": "wrong"}
    )
    assert res.status_code == 401
    assert res.json()["detail"] == "invalid_credentials"


async def test_form_token_endpoint(client, professional):
    res = await client.post(
        "/api/auth/token", data={"username": "20111222", "password": "s3cret-pass"}
    )
    assert res.status_code == 200
    assert res.json()["access_token"]


async def test_me_requires_a_valid_token(client, professional):
    assert (await client.get("/api/auth/me")).status_code == 401

    res = await client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
    assert res.status_code == 401

    res = await client.get("/api/auth/me", headers=bearer(professional))
    assert res.status_code == 200
    assert res.json()["national_id"] == "20111222"


async def test_token_for_missing_user_is_rejected(client):
    token = create_access_token(subject="7f1a2b9c-0000-4000-8000-000000000000")
    res = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401
    assert res.json()["detail"] == "user_not_found"


async def test_admin_cannot_use_professional_only_routes(client, admin):
    res = await client.get("/api/availability/schedules", headers=bearer(admin))
    assert res.status_code == 403
    assert res.json()["detail"] == "insufficient_role"
