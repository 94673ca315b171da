# app/core/database.py

"""
애플리케이션의 데이터베이스 연결 및 세션 관리를 담당하는 모듈입니다.

- SQLModel의 비동기 엔진을 설정합니다.
- 비동기 세션 생성을 위한 유틸리티 함수를 제공합니다.
- 애플리케이션 시작 시 데이터베이스 스키마/테이블을 생성하는 함수를 포함합니다 (개발용).
"""

from typing import AsyncGenerator, Any, Dict
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine
from sqlalchemy.orm import configure_mappers, sessionmaker
from sqlalchemy import text

from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings

# =============================================================================
# 모든 도메인 모델 임포트
# =============================================================================
# 모든 SQLModel 클래스가 SQLModel.metadata에 등록되어야
# configure_mappers()와 create_all()이 전체 관계를 인식할 수 있습니다.
from app.domains.shared import models   # noqa
from app.domains.usr import models      # noqa
from app.domains.ven import models      # noqa
from app.domains.pur import models      # noqa
from app.domains.prs import models      # noqa
from app.domains.cel import models      # noqa
from app.domains.carb import models     # noqa
from app.domains.pkg import models      # noqa
from app.domains.inv import models      # noqa
from app.domains.rpt import models      # noqa

# 도메인별 PostgreSQL 스키마 (생성 순서 유지)
SCHEMA = ['shared', 'usr', 'ven', 'pur', 'prs', 'cel', 'carb', 'pkg', 'inv', 'rpt']

_database_url = settings.DATABASE_URL.get_secret_value()

# sqlite(개발/테스트)는 커넥션 풀 크기 옵션을 지원하지 않습니다.
_engine_kwargs: Dict[str, Any] = {}
if not _database_url.startswith("sqlite"):
    _engine_kwargs.update(
        pool_recycle=3600,  # 1시간마다 연결 재활용
        pool_size=10,
        max_overflow=20,
    )
else:
    # sqlite에는 스키마가 없으므로 모든 스키마를 기본 스키마로 매핑합니다.
    _engine_kwargs["execution_options"] = {"schema_translate_map": {name: None for name in SCHEMA}}

engine: AsyncEngine = create_async_engine(
    _database_url,
    echo=settings.DEBUG_MODE,  # 디버그 모드일 때만 SQL 쿼리 출력
    future=True,
    **_engine_kwargs,
)

# 비동기 세션을 생성하는 '세션 공장'을 정의합니다.
AsyncSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

metadata = SQLModel.metadata

# 매퍼 구성 완료 플래그 (중복 호출 방지)
_mappers_configured = False


# =============================================================================
# 데이터베이스 초기화 및 테이블 생성 함수
# =============================================================================
async def create_db_and_tables() -> None:
    """
    데이터베이스 스키마 및 테이블을 생성합니다.
    개발 환경에서만 사용하며, 기존 테이블을 삭제하지는 않습니다. (운영은 Alembic 사용)
    """
    global _mappers_configured
    print("DEBUG: 데이터베이스 초기화 함수 시작.")

    async with engine.begin() as conn:
        if engine.dialect.name == "postgresql":
            for schema_name in SCHEMA:
                await conn.execute(text(f"CREATE SCHEMA IF NOT EXISTS {schema_name}"))
                print(f"  DEBUG: 스키마 '{schema_name}' 생성 완료 또는 이미 존재.")

        if not _mappers_configured:
            configure_mappers()
            _mappers_configured = True
            print("DEBUG: SQLAlchemy 매퍼 초기화 완료.")

        await conn.run_sync(SQLModel.metadata.create_all)
    print("DEBUG: 데이터베이스 테이블 생성이 완료되었습니다 (또는 이미 존재).")


# =============================================================================
# 비동기 데이터베이스 세션 의존성 주입
# =============================================================================
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI 의존성 주입을 위한 비동기 데이터베이스 세션 제너레이터입니다.
    요청마다 새로운 세션을 생성하고, 요청 처리 후 세션을 자동으로 닫습니다.
    """
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def get_async_session_context() -> AsyncGenerator[AsyncSession, None]:
    """
    ARQ Task 등 비동기 컨텍스트에서 사용할 수 있는
    독립적인 비동기 DB 세션을 제공하는 컨텍스트 관리자입니다.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
