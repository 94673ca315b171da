# tests/conftest.py

import os
from typing import AsyncGenerator, Callable, Awaitable
from contextlib import asynccontextmanager

# 앱 설정(Settings)이 임포트 시점에 로드되므로 앱 임포트 전에 테스트 환경 변수를 지정합니다.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_cidery.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-cidery-api")
os.environ.setdefault("APP_ENV", "testing")

import pytest                                                       # noqa: E402
import pytest_asyncio                                               # noqa: E402
from httpx import AsyncClient, ASGITransport                        # noqa: E402

from sqlalchemy import event                                        # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine              # noqa: E402
from sqlalchemy.pool import NullPool                                # noqa: E402
from sqlmodel import SQLModel                                       # noqa: E402
from sqlmodel.ext.asyncio.session import AsyncSession               # noqa: E402

from app.main import app as main_app                                # noqa: E402
from app.core import dependencies as deps                           # noqa: E402
from app.core.database import get_session, SCHEMA                   # noqa: E402
from app.core.security import get_password_hash                     # noqa: E402

from app.domains.usr import models as usr_models                    # noqa: E402
from app.domains.ven import models as ven_models                    # noqa: E402
from app.domains.cel import models as cel_models                    # noqa: E402


# --- 테스트용 데이터베이스 설정 ---
# 운영 DB와 분리된 sqlite 파일을 사용합니다. sqlite에는 스키마가 없으므로 모든 스키마를 기본으로 매핑합니다.
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test_cidery.db"
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    future=True,
    poolclass=NullPool,
    execution_options={"schema_translate_map": {name: None for name in SCHEMA}},
)


# pysqlite 계열 드라이버는 자체적으로 BEGIN을 생략하므로 SAVEPOINT가 동작하도록 직접 BEGIN을 발행합니다.
@event.listens_for(test_engine.sync_engine, "connect")
def _sqlite_on_connect(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None


@event.listens_for(test_engine.sync_engine, "begin")
def _sqlite_on_begin(conn):
    conn.exec_driver_sql("BEGIN")


# --- 데이터베이스 픽스처 ---
@pytest_asyncio.fixture(scope="session", autouse=True)
async def setup_database():
    """
    테스트 세션 시작 시 모든 테이블을 삭제하고 재생성합니다.
    테스트 종료 시 다시 테이블을 삭제합니다.
    """
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)

    yield  # 테스트 실행

    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await test_engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    각 테스트 함수마다 외부 트랜잭션을 시작하고, 테스트 완료 후 롤백하여
    테스트 간의 격리를 보장하는 비동기 데이터베이스 세션을 제공합니다.
    CRUD 내부의 commit()은 SAVEPOINT 해제로 처리됩니다.
    """
    connection = await test_engine.connect()
    transaction = await connection.begin()
    session = AsyncSession(
        bind=connection,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )

    try:
        yield session
    finally:
        await session.close()
        await transaction.rollback()
        await connection.close()


# --- 사용자 픽스처 ---
@pytest_asyncio.fixture(scope="function")
def user_factory(db_session: AsyncSession) -> Callable[..., Awaitable[usr_models.User]]:
    """
    역할과 속성을 지정하여 테스트 사용자를 생성하는 팩토리 함수를 반환합니다.
    """
    async def _create_user(
        username: str,
        password: str,
        role: usr_models.UserRole,
        is_active: bool = True,
        **kwargs,
    ) -> usr_models.User:
        user = usr_models.User(
            username=username,
            password_hash=get_password_hash(password),
            email=f"{username}@example.com",
            role=role,
            is_active=is_active,
            **kwargs,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user
    return _create_user


@pytest_asyncio.fixture(scope="function")
async def test_admin_user(user_factory: Callable) -> usr_models.User:
    """관리자(ADMIN) 사용자를 생성합니다."""
    return await user_factory("sysadm", "sysadmpass123", role=usr_models.UserRole.ADMIN, full_name="Admin Test User")


@pytest_asyncio.fixture(scope="function")
async def test_user(user_factory: Callable) -> usr_models.User:
    """셀러 작업자(OPERATOR)를 생성합니다."""
    return await user_factory("operator", "operatorpass123", role=usr_models.UserRole.OPERATOR, full_name="Operator Test User")


# --- 인증 클라이언트 픽스처 ---
@pytest_asyncio.fixture(scope="function")
def authorized_client_factory(db_session: AsyncSession):
    """
    특정 사용자로 로그인된 AsyncClient를 생성하는 비동기 컨텍스트 매니저 팩토리를 반환합니다.
    """
    @asynccontextmanager
    async def _create_client_context(user: usr_models.User, password: str) -> AsyncGenerator[AsyncClient, None]:
        def override_get_session():
            yield db_session

        original_overrides = main_app.dependency_overrides.copy()

        try:
            # 인증 의존성은 오버라이드하지 않고 실제 JWT 검증 경로를 사용합니다.
            main_app.dependency_overrides.update({
                get_session: override_get_session,
                deps.get_db_session: override_get_session,
            })

            transport = ASGITransport(app=main_app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                login_data = {"username": user.username, "password": password}
                res = await client.post("/api/v1/usr/auth/token", data=login_data)
                if res.status_code != 200:
                    pytest.fail(f"Login failed for {user.username}: {res.text}")

                token = res.json()["access_token"]
                client.headers["Authorization"] = f"Bearer {token}"
                yield client
        finally:
            main_app.dependency_overrides.clear()
            main_app.dependency_overrides.update(original_overrides)

    return _create_client_context


@pytest_asyncio.fixture(scope="function")
async def admin_client(authorized_client_factory, test_admin_user: usr_models.User) -> AsyncGenerator[AsyncClient, None]:
    """관리자로 인증된 클라이언트를 반환합니다."""
    async with authorized_client_factory(test_admin_user, "sysadmpass123") as client:
        yield client


@pytest_asyncio.fixture(scope="function")
async def authorized_client(authorized_client_factory, test_user: usr_models.User) -> AsyncGenerator[AsyncClient, None]:
    """작업자로 인증된 클라이언트를 반환합니다."""
    async with authorized_client_factory(test_user, "operatorpass123") as client:
        yield client


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    인증되지 않은 사용자를 위한 AsyncClient 인스턴스를 생성하고,
    테스트용 비동기 DB 세션을 주입합니다.
    """
    def override_get_session_and_dependency():
        yield db_session

    original_overrides = main_app.dependency_overrides.copy()
    try:
        main_app.dependency_overrides[get_session] = override_get_session_and_dependency
        main_app.dependency_overrides[deps.get_db_session] = override_get_session_and_dependency

        async with AsyncClient(transport=ASGITransport(app=main_app), base_url="http://test") as async_client:
            yield async_client
    finally:
        main_app.dependency_overrides.clear()
        main_app.dependency_overrides.update(original_overrides)


# --- 도메인별 공통 픽스처 ---
@pytest_asyncio.fixture(name="test_vendor")
async def test_vendor_fixture(db_session: AsyncSession) -> ven_models.Vendor:
    """테스트용 사과 공급업체를 생성하고 반환합니다."""
    vendor = ven_models.Vendor(name="Hillside Orchard")
    db_session.add(vendor)
    await db_session.commit()
    await db_session.refresh(vendor)
    return vendor


@pytest_asyncio.fixture(name="test_vessel")
async def test_vessel_fixture(db_session: AsyncSession) -> cel_models.Vessel:
    """사용 가능한 1000L 탱크를 생성하고 반환합니다."""
    vessel = cel_models.Vessel(name="TK01", capacity_l=1000.0)
    db_session.add(vessel)
    await db_session.commit()
    await db_session.refresh(vessel)
    return vessel
