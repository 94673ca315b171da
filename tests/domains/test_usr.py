# tests/domains/test_usr.py

"""
'usr' 도메인 (인증 및 사용자 관리) API에 대한 통합 테스트입니다.

- `POST /usr/auth/token`, `GET /usr/auth/me`
- `POST/GET/PUT/DELETE /usr/users`
관리자/작업자/비인증 사용자별 권한 검사를 함께 검증합니다.
"""

import pytest
from httpx import AsyncClient

from app.domains.usr import models as usr_models


# --- 인증 테스트 ---

@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, test_user: usr_models.User):
    response = await client.post(
        "/api/v1/usr/auth/token", data={"username": "operator", "password": "operatorpass123"}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["access_token"]


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, test_user: usr_models.User):
    response = await client.post(
        "/api/v1/usr/auth/token", data={"username": "operator", "password": "wrongpassword"}
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Incorrect username or password"


@pytest.mark.asyncio
async def test_login_inactive_user(client: AsyncClient, user_factory):
    await user_factory("retired", "retiredpass123", role=usr_models.UserRole.OPERATOR, is_active=False)
    response = await client.post(
        "/api/v1/usr/auth/token", data={"username": "retired", "password": "retiredpass123"}
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Inactive user"


@pytest.mark.asyncio
async def test_read_me(authorized_client: AsyncClient):
    response = await authorized_client.get("/api/v1/usr/auth/me")
    assert response.status_code == 200
    assert response.json()["username"] == "operator"
    assert response.json()["role"] == usr_models.UserRole.OPERATOR.value
    assert "password_hash" not in response.json()


@pytest.mark.asyncio
async def test_invalid_token_rejected(client: AsyncClient):
    response = await client.get("/api/v1/usr/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Could not validate credentials"


# --- 사용자 관리 테스트 ---

@pytest.mark.asyncio
async def test_admin_creates_user(admin_client: AsyncClient):
    """
    관리자가 새 작업자 계정을 만들고, 중복 사용자명은 거부되는지 테스트합니다.
    """
    user_data = {"username": "cellarhand", "password": "cellarpass123", "email": "cellar@example.com"}
    response = await admin_client.post("/api/v1/usr/users", json=user_data)
    assert response.status_code == 201
    assert response.json()["role"] == usr_models.UserRole.OPERATOR.value

    response = await admin_client.post("/api/v1/usr/users", json={**user_data, "email": "other@example.com"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Username already registered"


@pytest.mark.asyncio
async def test_operator_cannot_create_user(authorized_client: AsyncClient):
    response = await authorized_client.post(
        "/api/v1/usr/users", json={"username": "sneaky", "password": "sneakypass123"}
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_operator_sees_only_self(authorized_client: AsyncClient, admin_client: AsyncClient,
                                       test_admin_user: usr_models.User):
    response = await authorized_client.get("/api/v1/usr/users")
    assert [u["username"] for u in response.json()] == ["operator"]

    response = await authorized_client.get(f"/api/v1/usr/users/{test_admin_user.id}")
    assert response.status_code == 403

    response = await admin_client.get("/api/v1/usr/users")
    assert {u["username"] for u in response.json()} == {"sysadm", "operator"}


@pytest.mark.asyncio
async def test_admin_account_protected(admin_client: AsyncClient, test_admin_user: usr_models.User):
    """관리자 계정은 비활성화/삭제할 수 없는지 테스트합니다."""
    response = await admin_client.put(f"/api/v1/usr/users/{test_admin_user.id}", json={"is_active": False})
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot deactivate an admin account."

    response = await admin_client.delete(f"/api/v1/usr/users/{test_admin_user.id}")
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot delete an admin account directly."


@pytest.mark.asyncio
async def test_admin_deletes_operator(admin_client: AsyncClient, user_factory):
    temp = await user_factory("temp", "temppass123", role=usr_models.UserRole.OPERATOR)
    response = await admin_client.delete(f"/api/v1/usr/users/{temp.id}")
    assert response.status_code == 204

    response = await admin_client.get(f"/api/v1/usr/users/{temp.id}")
    assert response.status_code == 404
