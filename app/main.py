# app/main.py

import logging
from typing import AsyncGenerator
from contextlib import asynccontextmanager

from arq.connections import create_pool, RedisSettings
from arq.cron import cron
from redis.exceptions import RedisError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from fastapi import FastAPI, Depends, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.database import engine, get_session
from app import API_PREFIX

# 태스크 모듈 임포트
from app.core import tasks as core_tasks
from app.domains.shared import tasks as shared_tasks
from app.domains.inv import tasks as inv_tasks
from app.domains.rpt import tasks as rpt_tasks

# 도메인 라우터 임포트
from app.domains.shared.routers import router as shared_router
from app.domains.usr.routers import router as usr_router
from app.domains.ven.routers import router as ven_router
from app.domains.pur.routers import router as pur_router
from app.domains.prs.routers import router as prs_router
from app.domains.cel.routers import router as cel_router
from app.domains.carb.routers import router as carb_router
from app.domains.pkg.routers import router as pkg_router
from app.domains.inv.routers import router as inv_router
from app.domains.rpt.routers import router as rpt_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# ARQ 워커가 실행할 태스크 함수 목록
worker_functions = [
    core_tasks.health_check_database_task,
    shared_tasks.cleanup_audit_logs_task,
    inv_tasks.scan_low_stock_task,
    rpt_tasks.recalculate_batch_cost_task,
]


# ARQ 워커 설정 클래스
class ArqWorkerSettings:
    redis_settings = RedisSettings(host=settings.REDIS_HOST, port=settings.REDIS_PORT)
    functions = worker_functions
    cron_jobs = [
        cron(core_tasks.health_check_database_task, hour={0}, minute={0}, timeout=300, keep_result=600),
        cron(shared_tasks.cleanup_audit_logs_task, hour={1}, minute={0}, timeout=1800, keep_result=3600),
        cron(inv_tasks.scan_low_stock_task, hour={6}, minute={0}, timeout=300, keep_result=3600),
    ]


# -- 애플리케이션 수명 주기 이벤트 핸들러 --
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI 애플리케이션의 수명 주기 이벤트(데이터베이스, ARQ Redis)를 함께 처리합니다.
    Redis에 연결할 수 없으면 app.state.redis는 None이며, 태스크는 요청 안에서 즉시 실행됩니다.
    """
    logger.info(f"{settings.APP_NAME} 시작 중... (env={settings.APP_ENV})")
    app.state.redis = None
    try:
        app.state.redis = await create_pool(ArqWorkerSettings.redis_settings)
        logger.info("ARQ Redis 커넥션 풀 생성 완료.")
    except (OSError, RedisError) as e:
        logger.warning(f"ARQ Redis 연결 실패, 태스크는 동기 실행됩니다: {e}")

    yield  # 애플리케이션 실행

    logger.info(f"{settings.APP_NAME} 종료 중...")
    if app.state.redis is not None:
        await app.state.redis.close()
        logger.info("ARQ Redis 연결 풀 종료 완료.")
    await engine.dispose()
    logger.info("데이터베이스 연결 풀 종료 완료.")


# -- FastAPI 애플리케이션 인스턴스 생성 --
app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -- 도메인 라우터 포함 --
app.include_router(shared_router, prefix=f"{API_PREFIX}/shared")
app.include_router(usr_router, prefix=f"{API_PREFIX}/usr")
app.include_router(ven_router, prefix=f"{API_PREFIX}/ven")
app.include_router(pur_router, prefix=f"{API_PREFIX}/pur")
app.include_router(prs_router, prefix=f"{API_PREFIX}/prs")
app.include_router(cel_router, prefix=f"{API_PREFIX}/cel")
app.include_router(carb_router, prefix=f"{API_PREFIX}/carb")
app.include_router(pkg_router, prefix=f"{API_PREFIX}/pkg")
app.include_router(inv_router, prefix=f"{API_PREFIX}/inv")
app.include_router(rpt_router, prefix=f"{API_PREFIX}/rpt")


# -- 루트 엔드포인트 --
@app.get("/", summary="API Root", response_description="Welcome message and documentation link.")
async def read_root():
    """
    API의 시작점을 알리고 문서 링크를 제공합니다.
    """
    return {"message": "Welcome to Cidery Production API. Visit /docs for interactive API documentation."}


# -- 헬스 체크 엔드포인트 --
@app.get("/health-check", summary="Health Check", response_description="Status of the application and database connection.")
async def health_check(session: AsyncSession = Depends(get_session)):
    """
    데이터베이스 연결을 테스트하여 서비스의 정상 작동 여부를 확인합니다.
    """
    try:
        result = await session.execute(select(1))
        if result.scalar_one_or_none() == 1:
            return {"status": "ok", "database_connection": "successful"}
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database health check failed: No result from test query"
        )
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Database connection error during health check: {e}"
        )
