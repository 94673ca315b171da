# app/domains/rpt/tasks.py

import logging
from typing import Any, Dict

from app.core.database import get_async_session_context

from . import crud as rpt_crud

logger = logging.getLogger(__name__)


async def recalculate_batch_cost_task(ctx: Dict[str, Any], batch_id: int) -> Dict[str, Any]:
    """
    패키징 완료 후 큐에 들어오는 배치 원가 재계산 태스크.
    ctx에 'db' 세션이 있으면 그 세션을 사용합니다.
    """
    logger.info(f"--- ARQ 태스크: 배치 {batch_id} 원가 재계산 시작 ---")
    db = ctx.get("db") if ctx else None
    if db is not None:
        db_cost = await rpt_crud.calculate_batch_cost(db, batch_id=batch_id)
    else:
        async with get_async_session_context() as session:
            db_cost = await rpt_crud.calculate_batch_cost(session, batch_id=batch_id)
    return {"status": "success", "batch_id": batch_id, "total_cost": db_cost.total_cost}
