# app/domains/shared/tasks.py

import logging
from typing import Any, Dict

from app.core.config import settings
from app.core.database import get_async_session_context

from . import crud as shared_crud

logger = logging.getLogger(__name__)


async def cleanup_audit_logs_task(ctx: Dict[str, Any]) -> Dict[str, Any]:
    """
    ARQ 워커(cron)가 매일 실행하는 감사 로그 보존기간 정리 태스크.
    ctx에 'db' 세션이 있으면 그 세션을 사용합니다.
    """
    logger.info("--- ARQ 태스크: 감사 로그 정리 작업 시작 ---")
    db = ctx.get("db") if ctx else None
    if db is not None:
        result = await shared_crud.audit_log.cleanup(db, older_than_days=settings.AUDIT_RETENTION_DAYS)
    else:
        async with get_async_session_context() as session:
            result = await shared_crud.audit_log.cleanup(session, older_than_days=settings.AUDIT_RETENTION_DAYS)

    return {"status": "success", "deleted_count": result.deleted_count}
