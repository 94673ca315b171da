# app/domains/inv/tasks.py

import logging
from typing import Any, Dict

from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.database import get_async_session_context

from . import crud as inv_crud

logger = logging.getLogger(__name__)


async def _scan(db: AsyncSession, threshold: int) -> Dict[str, Any]:
    items = await inv_crud.inventory_item.get_low_stock(db, threshold=threshold)
    for item in items:
        logger.warning(
            f"Low stock: {item.lot_code} available="
            f"{item.current_quantity - item.reserved_quantity} (threshold {threshold})"
        )
    return {"status": "ok", "low_stock_count": len(items), "lot_codes": [item.lot_code for item in items]}


async def scan_low_stock_task(ctx: Dict[str, Any]) -> Dict[str, Any]:
    """
    가용 재고가 LOW_STOCK_THRESHOLD 이하인 품목을 찾아 경고 로그를 남기는 cron 태스크.
    ctx에 'db' 세션이 있으면 그 세션을 사용합니다.
    """
    logger.info("--- ARQ 태스크: 재고 부족 점검 시작 ---")
    threshold = settings.LOW_STOCK_THRESHOLD
    db = ctx.get("db") if ctx else None
    if db is not None:
        return await _scan(db, threshold)
    async with get_async_session_context() as session:
        return await _scan(session, threshold)
