import pyotp
import pytest
from sqlalchemy import select, update

from inventario.core.config import settings
from inventario.models import AuditLog, User


async def _login(client, username="admin", password=None):
    return await client.post(
        "/api/login",
        json={"username": username, "password": password or settings.ADMIN_PASSWORD},
    )


@pytest.mark.anyio
async def test_login_returns_profile_without_secrets(client):
    response = await _login(client)
    assert response.status_code == 200, response.text
    profile = response.json()
    assert profile["username"] == "admin"
    assert profile["role"] == "Admin"
    assert profile["lastLogin"] is not None
    assert "password" not in profile
    assert "twoFASecret" not in profile


@pytest.mark.anyio
async def test_login_failures_are_401(client, session):
    unknown = await _login(client, username="ghost")
    assert unknown.status_code == 401
    assert unknown.json() == {"message": "Usuário não encontrado"}

    wrong = await _login(client, password="wrong-password")
    assert wrong.status_code == 401
    assert wrong.json() == {"message": "Senha incorreta"}

    failed = (
        await session.scalars(select(AuditLog).where(AuditLog.action_type == "LOGIN_FAILED"))
    ).all()
    assert len(failed) == 1


@pytest.mark.anyio
async def test_sso_accounts_cannot_use_password_login(client, session):
    async with session.begin():
        await session.execute(
            update(User).where(User.username == "admin").values(sso_provider="google")
        )

    response = await _login(client)
    assert response.status_code == 401
    assert response.json() == {"message": "Por favor, use o login via SSO."}


@pytest.mark.anyio
async def test_new_user_gets_default_password(client, regular_user):
    response = await _login(client, username="joana", password=settings.DEFAULT_USER_PASSWORD)
    assert response.status_code == 200
    assert response.json()["realName"] == "Joana Lima"


@pytest.mark.anyio
async def test_update_user_changes_password_only_when_given(client, regular_user):
    url = f"/api/users/{regular_user['id']}"
    body = {"realName": "Joana L.", "email": "joana@example.com", "role": "User Manager"}

    response = await client.put(url, json={"user": body, "username": "admin"})
    assert response.status_code == 200
    assert response.json()["role"] == "User Manager"
    assert (await _login(client, "joana", settings.DEFAULT_USER_PASSWORD)).status_code == 200

    await client.put(url, json={"user": {**body, "password": "n0va-senha"}, "username": "admin"})
    assert (await _login(client, "joana", settings.DEFAULT_USER_PASSWORD)).status_code == 401
    assert (await _login(client, "joana", "n0va-senha")).status_code == 200


@pytest.mark.anyio
async def test_duplicate_username_is_500_with_engine_message(client, regular_user):
    response = await client.post(
        "/api/users",
        json={
            "user": {"username": "joana", "realName": "Outra", "email": "outra@example.com"},
            "username": "admin",
        },
    )
    assert response.status_code == 500
    assert "UNIQUE constraint failed" in response.json()["message"]


@pytest.mark.anyio
async def test_profile_update_and_delete_user(client, regular_user):
    url = f"/api/users/{regular_user['id']}"
    profile = await client.put(
        f"{url}/profile", json={"realName": "Joana Souza", "avatarUrl": "data:image/png;base64,AAA"}
    )
    assert profile.status_code == 200
    assert profile.json()["avatarUrl"] == "data:image/png;base64,AAA"

    assert (await client.request("DELETE", url, json={"username": "admin"})).status_code == 204
    usernames = [user["username"] for user in (await client.get("/api/users")).json()]
    assert usernames == ["admin"]


@pytest.mark.anyio
async def test_two_factor_enrolment_flow(client, regular_user):
    user_id = regular_user["id"]

    setup = await client.post("/api/generate-2fa", json={"userId": user_id})
    assert setup.status_code == 200
    secret = setup.json()["secret"]
    assert setup.json()["qrCodeUrl"].startswith("otpauth://totp/")

    bad = await client.post("/api/enable-2fa", json={"userId": user_id, "token": "not-a-code"})
    assert bad.status_code == 400
    assert bad.json() == {"message": "Token inválido"}

    token = pyotp.TOTP(secret).now()
    enabled = await client.post("/api/enable-2fa", json={"userId": user_id, "token": token})
    assert enabled.status_code == 200

    verified = await client.post("/api/verify-2fa", json={"userId": user_id, "token": token})
    assert verified.status_code == 200
    assert verified.json()["is2FAEnabled"] is True

    disabled = await client.post("/api/disable-user-2fa", json={"userId": user_id})
    assert disabled.status_code == 200
    after = await client.post("/api/verify-2fa", json={"userId": user_id, "token": token})
    assert after.status_code == 400
    assert after.json() == {"message": "Código inválido"}
