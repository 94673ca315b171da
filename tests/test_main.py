# tests/test_main.py

"""
FastAPI 애플리케이션의 메인 엔드포인트에 대한 통합 테스트를 정의하는 모듈입니다.

- 애플리케이션의 루트 경로 (`/`) 응답을 테스트합니다.
- 데이터베이스 연결 헬스 체크 엔드포인트 (`/health-check`)를 테스트합니다.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_read_root(client: AsyncClient):
    """
    루트 엔드포인트 (`GET /`)가 올바르게 응답하는지 테스트합니다.
    """
    print("\n--- Running test_read_root ---")
    response = await client.get("/")
    print(f"Response status code: {response.status_code}")
    print(f"Response JSON: {response.json()}")

    assert response.status_code == 200
    assert response.json() == {
        "message": "Welcome to Cidery Production API. Visit /docs for interactive API documentation."
    }
    print("test_read_root passed.")


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    """
    헬스 체크 엔드포인트 (`GET /health-check`)가 데이터베이스 연결 상태를 올바르게 반환하는지 테스트합니다.
    """
    print("\n--- Running test_health_check ---")
    response = await client.get("/health-check")
    print(f"Response status code: {response.status_code}")
    print(f"Response JSON: {response.json()}")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database_connection": "successful"}
    print("test_health_check passed.")


@pytest.mark.asyncio
async def test_protected_endpoint_requires_token(client: AsyncClient):
    response = await client.get("/api/v1/cel/vessels")
    assert response.status_code == 401
