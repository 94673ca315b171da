# app/domains/rpt/crud.py

"""
'rpt' 도메인의 원가 계산과 판매/생산 보고서 조회 함수 모음입니다.

- 배치 원가: 원료(구성 원가 합), 인건비(착즙 작업 인건비 x 주스 비율), 간접비(L당), 포장비(단위당)
- 판매 요약: 동일 길이의 직전 기간과 비교한 증감률(%)
"""

import logging
from typing import Any, Dict, List, Optional, Sequence
from datetime import date, timedelta

from fastapi import HTTPException, status
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import delete, func

from app.core.config import settings
from app.domains.carb import models as carb_models
from app.domains.cel import models as cel_models
from app.domains.inv import models as inv_models
from app.domains.pkg import models as pkg_models
from app.domains.prs import models as prs_models
from app.domains.ven import models as ven_models
from app.utils import costing
from app.utils.dates import day_bounds, ensure_utc, utc_now
from . import models

logger = logging.getLogger(__name__)


def _pct_change(current: float, previous: float) -> float:
    """직전 값이 0이면 현재 값이 있을 때 100%, 없으면 0%"""
    if previous > 0:
        return round((current - previous) / previous * 100, 2)
    return 100.0 if current > 0 else 0.0


def _range_bounds(start_date: date, end_date: date):
    if end_date < start_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end_date must not be before start_date")
    return day_bounds(start_date)[0], day_bounds(end_date)[1]


# =============================================================================
# 1. 배치 원가 (rpt.batch_costs / rpt.cogs_items)
# =============================================================================
async def calculate_batch_cost(db: AsyncSession, *, batch_id: int) -> models.BatchCost:
    """
    배치 원가를 다시 계산하여 저장합니다.
    기존 구성요소(cogs_items)는 모두 교체됩니다.
    """
    db_batch = await db.get(cel_models.Batch, batch_id)
    if not db_batch or db_batch.deleted_at is not None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Batch not found")

    comp = cel_models.BatchComposition
    comp_row = (
        await db.execute(
            select(
                func.coalesce(func.sum(comp.material_cost), 0.0),
                func.coalesce(func.sum(comp.input_weight_kg), 0.0),
            ).where(comp.batch_id == batch_id)
        )
    ).one()
    apple_cost, apple_weight = float(comp_row[0]), float(comp_row[1])

    labor_cost = 0.0
    labor_hours = 0.0
    if db_batch.origin_press_run_id is not None:
        db_run = await db.get(prs_models.PressRun, db_batch.origin_press_run_id)
        if db_run and db_run.total_juice_volume_l:
            share = min(1.0, db_batch.initial_volume_l / db_run.total_juice_volume_l)
            labor_cost = round((db_run.total_labor_cost or 0.0) * share, 2)
            labor_hours = round((db_run.labor_hours or 0.0) * share, 2)

    run = pkg_models.PackagingRun
    units = (
        await db.execute(
            select(func.coalesce(func.sum(run.units_produced), 0)).where(
                run.batch_id == batch_id,
                run.status == pkg_models.PackagingStatus.COMPLETED,
                run.deleted_at.is_(None),
            )
        )
    ).scalar_one()
    units = int(units)

    volume_l = db_batch.initial_volume_l or 0.0
    components = [
        {
            "item_type": costing.CogsItemType.APPLE_COST,
            "amount": round(apple_cost, 2),
            "description": f"Fruit cost for {apple_weight:g}kg",
            "unit_cost": round(apple_cost / apple_weight, 4) if apple_weight else None,
            "quantity": apple_weight,
        },
        {
            "item_type": costing.CogsItemType.LABOR,
            "amount": labor_cost,
            "description": f"Labor share for {labor_hours:g} hours",
            "unit_cost": round(labor_cost / labor_hours, 4) if labor_hours else None,
            "quantity": labor_hours,
        },
        {
            "item_type": costing.CogsItemType.OVERHEAD,
            "amount": round(volume_l * settings.OVERHEAD_RATE_PER_L, 2),
            "description": f"Overhead allocation for {volume_l:g}L production",
            "unit_cost": settings.OVERHEAD_RATE_PER_L,
            "quantity": volume_l,
        },
        {
            "item_type": costing.CogsItemType.PACKAGING,
            "amount": round(units * settings.PACKAGING_COST_PER_UNIT, 2),
            "description": f"Packaging cost for {units} units",
            "unit_cost": settings.PACKAGING_COST_PER_UNIT,
            "quantity": units,
        },
    ]
    total = costing.total_cogs(components)
    amounts = {c["item_type"]: c["amount"] for c in components}

    await db.execute(delete(models.CogsItem).where(models.CogsItem.batch_id == batch_id))
    for component in components:
        db.add(models.CogsItem(batch_id=batch_id, **component))

    db_cost = (
        await db.execute(select(models.BatchCost).where(models.BatchCost.batch_id == batch_id))
    ).scalars().first()
    if db_cost is None:
        db_cost = models.BatchCost(batch_id=batch_id)
    db_cost.apple_cost = amounts[costing.CogsItemType.APPLE_COST]
    db_cost.labor_cost = amounts[costing.CogsItemType.LABOR]
    db_cost.overhead_cost = amounts[costing.CogsItemType.OVERHEAD]
    db_cost.packaging_cost = amounts[costing.CogsItemType.PACKAGING]
    db_cost.total_cost = total
    db_cost.volume_l = volume_l
    db_cost.units_produced = units
    db_cost.cost_per_liter = costing.cost_per_liter(total, volume_l) if volume_l > 0 else None
    db_cost.cost_per_unit = costing.cost_per_unit(total, units) if units > 0 else None
    db_cost.calculated_at = utc_now()
    db.add(db_cost)

    await db.commit()
    await db.refresh(db_cost)
    logger.info(f"Batch cost recalculated for {db_batch.batch_number}: total {total}")
    return db_cost


async def _cost_detail(db: AsyncSession, db_cost: models.BatchCost) -> Dict[str, Any]:
    db_batch = await db.get(cel_models.Batch, db_cost.batch_id)
    items = (
        await db.execute(
            select(models.CogsItem).where(models.CogsItem.batch_id == db_cost.batch_id).order_by(models.CogsItem.id)
        )
    ).scalars().all()
    return {
        **db_cost.model_dump(),
        "batch_name": db_batch.name if db_batch else None,
        "batch_number": db_batch.batch_number if db_batch else None,
        "items": [item.model_dump() for item in items],
    }


async def get_batch_cost(db: AsyncSession, *, batch_id: int) -> Dict[str, Any]:
    db_cost = (
        await db.execute(select(models.BatchCost).where(models.BatchCost.batch_id == batch_id))
    ).scalars().first()
    if not db_cost:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Batch cost not found")
    return await _cost_detail(db, db_cost)


async def get_cogs_summary(
    db: AsyncSession,
    *,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    batch_ids: Optional[Sequence[int]] = None,
) -> Dict[str, Any]:
    """계산된 배치 원가들을 합산합니다. (기간은 calculated_at 기준)"""
    statement = select(models.BatchCost)
    if start_date is not None:
        statement = statement.where(models.BatchCost.calculated_at >= day_bounds(start_date)[0])
    if end_date is not None:
        statement = statement.where(models.BatchCost.calculated_at < day_bounds(end_date)[1])
    if batch_ids:
        statement = statement.where(models.BatchCost.batch_id.in_(batch_ids))
    costs = (await db.execute(statement.order_by(models.BatchCost.batch_id))).scalars().all()

    total = round(sum(c.total_cost for c in costs), 2)
    volume = round(sum(c.volume_l for c in costs), 3)
    units = sum(c.units_produced for c in costs)
    by_component = {
        costing.CogsItemType.APPLE_COST.value: round(sum(c.apple_cost for c in costs), 2),
        costing.CogsItemType.LABOR.value: round(sum(c.labor_cost for c in costs), 2),
        costing.CogsItemType.OVERHEAD.value: round(sum(c.overhead_cost for c in costs), 2),
        costing.CogsItemType.PACKAGING.value: round(sum(c.packaging_cost for c in costs), 2),
    }
    return {
        "batch_count": len(costs),
        "total_cost": total,
        "by_component": by_component,
        "total_volume_l": volume,
        "total_units": units,
        "avg_cost_per_liter": costing.cost_per_liter(total, volume) if volume > 0 else None,
        "avg_cost_per_unit": costing.cost_per_unit(total, units) if units > 0 else None,
        "batches": [await _cost_detail(db, c) for c in costs],
    }


# =============================================================================
# 2. 판매 보고서
# =============================================================================
async def _distribution_rows(
    db: AsyncSession, *, start_date: date, end_date: date, channel_ids: Optional[Sequence[int]] = None
) -> List[Any]:
    start, end = _range_bounds(start_date, end_date)
    dist = inv_models.InventoryDistribution
    statement = (
        select(dist, inv_models.InventoryItem)
        .join(inv_models.InventoryItem, inv_models.InventoryItem.id == dist.inventory_item_id)
        .where(dist.distributed_at >= start, dist.distributed_at < end)
    )
    if channel_ids:
        statement = statement.where(dist.sales_channel_id.in_(channel_ids))
    return (await db.execute(statement)).all()


async def _keg_distributions(db: AsyncSession, *, start_date: date, end_date: date) -> Dict[str, float]:
    start, end = _range_bounds(start_date, end_date)
    fill = pkg_models.KegFill
    row = (
        await db.execute(
            select(func.count(fill.id), func.coalesce(func.sum(fill.volume_l), 0.0)).where(
                fill.distributed_at.is_not(None),
                fill.distributed_at >= start,
                fill.distributed_at < end,
                fill.status.in_((pkg_models.KegFillStatus.DISTRIBUTED, pkg_models.KegFillStatus.RETURNED)),
            )
        )
    ).one()
    return {"count": int(row[0]), "volume_l": float(row[1])}


def _totals(rows: Sequence[Any]) -> Dict[str, Any]:
    revenue = round(sum(d.total_revenue for d, _ in rows), 2)
    units = sum(d.quantity for d, _ in rows)
    volume = round(sum(d.quantity * item.package_size_ml / 1000 for d, item in rows), 3)
    return {"revenue": revenue, "units": units, "volume_l": volume, "count": len(rows)}


async def get_sales_summary(
    db: AsyncSession, *, start_date: date, end_date: date, channel_ids: Optional[Sequence[int]] = None
) -> Dict[str, Any]:
    """
    기간 판매 요약과 직전 동일 길이 기간 대비 증감률을 계산합니다.
    케그 출고 부피는 채널 필터가 없을 때만 포함합니다.
    """
    period_days = (end_date - start_date).days + 1
    prev_end = start_date - timedelta(days=1)
    prev_start = prev_end - timedelta(days=period_days - 1)

    current = _totals(await _distribution_rows(db, start_date=start_date, end_date=end_date, channel_ids=channel_ids))
    previous = _totals(await _distribution_rows(db, start_date=prev_start, end_date=prev_end, channel_ids=channel_ids))

    keg_now = {"count": 0, "volume_l": 0.0}
    keg_prev = {"count": 0, "volume_l": 0.0}
    if not channel_ids:
        keg_now = await _keg_distributions(db, start_date=start_date, end_date=end_date)
        keg_prev = await _keg_distributions(db, start_date=prev_start, end_date=prev_end)

    volume_now = round(current["volume_l"] + keg_now["volume_l"], 3)
    volume_prev = round(previous["volume_l"] + keg_prev["volume_l"], 3)
    return {
        "start_date": start_date,
        "end_date": end_date,
        "total_revenue": current["revenue"],
        "total_units": current["units"],
        "total_volume_l": volume_now,
        "avg_order_value": round(current["revenue"] / current["count"], 2) if current["count"] else 0.0,
        "transaction_count": current["count"],
        "keg_count": keg_now["count"],
        "changes": {
            "revenue": _pct_change(current["revenue"], previous["revenue"]),
            "units": _pct_change(current["units"], previous["units"]),
            "volume": _pct_change(volume_now, volume_prev),
        },
        "previous_period": {
            "start_date": prev_start,
            "end_date": prev_end,
            "revenue": previous["revenue"],
            "units": previous["units"],
            "volume_l": volume_prev,
        },
    }


async def get_sales_by_channel(db: AsyncSession, *, start_date: date, end_date: date) -> Dict[str, Any]:
    """활성 채널별 매출과 전체 대비 비율. 채널 없는 출고는 'uncategorized'로 묶습니다."""
    rows = await _distribution_rows(db, start_date=start_date, end_date=end_date)
    channels = (
        await db.execute(
            select(inv_models.SalesChannel)
            .where(inv_models.SalesChannel.is_active.is_(True))
            .order_by(inv_models.SalesChannel.sort_order, inv_models.SalesChannel.name)
        )
    ).scalars().all()

    grouped: Dict[Optional[int], List[Any]] = {}
    for dist, item in rows:
        grouped.setdefault(dist.sales_channel_id, []).append((dist, item))
    grand_revenue = round(sum(d.total_revenue for d, _ in rows), 2)

    def _entry(channel_id, code, name):
        totals = _totals(grouped.get(channel_id, []))
        return {
            "channel_id": channel_id,
            "channel_code": code,
            "channel_name": name,
            "revenue": totals["revenue"],
            "units": totals["units"],
            "volume_l": totals["volume_l"],
            "percent_of_total": round(totals["revenue"] / grand_revenue * 100, 2) if grand_revenue > 0 else 0.0,
        }

    result = [_entry(c.id, c.code, c.name) for c in channels]
    if None in grouped:
        result.append(_entry(None, "uncategorized", "Uncategorized"))

    return {
        "channels": result,
        "total_revenue": grand_revenue,
        "total_units": sum(c["units"] for c in result),
        "total_volume_l": round(sum(c["volume_l"] for c in result), 3),
    }


async def get_top_products(
    db: AsyncSession, *, start_date: date, end_date: date, limit: int = 10
) -> List[Dict[str, Any]]:
    rows = await _distribution_rows(db, start_date=start_date, end_date=end_date)
    products: Dict[int, Dict[str, Any]] = {}
    for dist, item in rows:
        entry = products.setdefault(item.id, {"item": item, "revenue": 0.0, "units": 0, "prices": []})
        entry["revenue"] += dist.total_revenue
        entry["units"] += dist.quantity
        entry["prices"].append(dist.price_per_unit)

    ranked = sorted(products.values(), key=lambda e: e["revenue"], reverse=True)[:limit]
    batch_ids = {e["item"].batch_id for e in ranked}
    batch_names: Dict[int, str] = {}
    if batch_ids:
        batch_rows = await db.execute(
            select(cel_models.Batch.id, cel_models.Batch.name).where(cel_models.Batch.id.in_(batch_ids))
        )
        batch_names = {batch_id: name for batch_id, name in batch_rows.all()}

    return [
        {
            "inventory_item_id": e["item"].id,
            "product_name": e["item"].lot_code,
            "lot_code": e["item"].lot_code,
            "package_type": e["item"].package_type,
            "package_size_ml": e["item"].package_size_ml,
            "batch_name": batch_names.get(e["item"].batch_id),
            "revenue": round(e["revenue"], 2),
            "units": e["units"],
            "avg_price": round(sum(e["prices"]) / len(e["prices"]), 2),
        }
        for e in ranked
    ]


async def get_sales_trends(
    db: AsyncSession, *, start_date: date, end_date: date, group_by: str = "day"
) -> List[Dict[str, Any]]:
    """일/주/월 단위 매출 추이. 주는 월요일, 월은 1일 기준입니다."""
    rows = await _distribution_rows(db, start_date=start_date, end_date=end_date)
    buckets: Dict[date, Dict[str, Any]] = {}
    for dist, _ in rows:
        day = ensure_utc(dist.distributed_at).date()
        if group_by == "week":
            day = day - timedelta(days=day.weekday())
        elif group_by == "month":
            day = day.replace(day=1)
        bucket = buckets.setdefault(day, {"period": day, "revenue": 0.0, "units": 0})
        bucket["revenue"] = round(bucket["revenue"] + dist.total_revenue, 2)
        bucket["units"] += dist.quantity
    return [buckets[key] for key in sorted(buckets)]


# =============================================================================
# 3. 생산 보고서 / 대시보드
# =============================================================================
async def get_production_summary(db: AsyncSession, *, start_date: date, end_date: date) -> Dict[str, Any]:
    start, end = _range_bounds(start_date, end_date)

    press = prs_models.PressRun
    press_runs = (
        await db.execute(
            select(press).where(
                press.status == prs_models.PressRunStatus.COMPLETED,
                press.deleted_at.is_(None),
                press.end_time >= start,
                press.end_time < end,
            )
        )
    ).scalars().all()
    apples = round(sum(r.total_apple_weight_kg or 0.0 for r in press_runs), 3)
    juice = round(sum(r.total_juice_volume_l or 0.0 for r in press_runs), 3)

    batch = cel_models.Batch
    batches = (
        await db.execute(
            select(batch).where(batch.deleted_at.is_(None), batch.start_date >= start, batch.start_date < end)
        )
    ).scalars().all()
    by_status: Dict[str, int] = {}
    for b in batches:
        by_status[b.status.value] = by_status.get(b.status.value, 0) + 1

    run = pkg_models.PackagingRun
    pkg_runs = (
        await db.execute(
            select(run).where(
                run.status == pkg_models.PackagingStatus.COMPLETED,
                run.deleted_at.is_(None),
                run.packaged_at >= start,
                run.packaged_at < end,
            )
        )
    ).scalars().all()

    fill = pkg_models.KegFill
    keg_row = (
        await db.execute(
            select(func.count(fill.id), func.coalesce(func.sum(fill.volume_l), 0.0)).where(
                fill.status != pkg_models.KegFillStatus.VOIDED,
                fill.filled_at >= start,
                fill.filled_at < end,
            )
        )
    ).one()

    return {
        "start_date": start_date,
        "end_date": end_date,
        "press_runs": len(press_runs),
        "apples_pressed_kg": apples,
        "juice_produced_l": juice,
        "avg_extraction_rate": round(juice / apples, 4) if apples > 0 else None,
        "batches_started": len(batches),
        "batches_by_status": by_status,
        "packaging_runs": len(pkg_runs),
        "units_packaged": sum(r.units_produced for r in pkg_runs),
        "volume_packaged_l": round(sum(r.units_produced * r.package_size_ml / 1000 for r in pkg_runs), 3),
        "packaging_loss_l": round(sum(r.loss_l for r in pkg_runs), 3),
        "avg_loss_percentage": round(sum(r.loss_percentage for r in pkg_runs) / len(pkg_runs), 2) if pkg_runs else None,
        "kegs_filled": int(keg_row[0]),
        "keg_volume_l": round(float(keg_row[1]), 3),
    }


async def _count_by(db: AsyncSession, column, *conditions) -> Dict[str, int]:
    rows = (await db.execute(select(column, func.count()).where(*conditions).group_by(column))).all()
    return {(key.value if hasattr(key, "value") else str(key)): count for key, count in rows}


async def get_dashboard_stats(db: AsyncSession) -> Dict[str, Any]:
    batch = cel_models.Batch
    batch_counts = await _count_by(db, batch.status, batch.deleted_at.is_(None))

    item = inv_models.InventoryItem
    units_in_stock = (
        await db.execute(
            select(func.coalesce(func.sum(item.current_quantity), 0)).where(item.deleted_at.is_(None))
        )
    ).scalar_one()
    low_stock = (
        await db.execute(
            select(func.count(item.id)).where(
                item.deleted_at.is_(None),
                (item.current_quantity - item.reserved_quantity) <= settings.LOW_STOCK_THRESHOLD,
            )
        )
    ).scalar_one()

    vendor = ven_models.Vendor
    active_vendors = (
        await db.execute(
            select(func.count(vendor.id)).where(vendor.is_active.is_(True), vendor.deleted_at.is_(None))
        )
    ).scalar_one()

    carb = carb_models.CarbonationOperation
    active_carbonations = (
        await db.execute(
            select(func.count(carb.id)).where(carb.completed_at.is_(None), carb.deleted_at.is_(None))
        )
    ).scalar_one()

    return {
        "active_batches": sum(batch_counts.get(s.value, 0) for s in cel_models.CURRENT_BATCH_STATUSES),
        "total_batches": sum(batch_counts.values()),
        "packaged_batches": batch_counts.get(cel_models.BatchStatus.PACKAGED.value, 0),
        "units_in_stock": int(units_in_stock),
        "low_stock_items": int(low_stock),
        "active_vendors": int(active_vendors),
        "vessels_by_status": await _count_by(
            db, cel_models.Vessel.status, cel_models.Vessel.deleted_at.is_(None)
        ),
        "active_carbonations": int(active_carbonations),
        "kegs_by_status": await _count_by(db, pkg_models.Keg.status, pkg_models.Keg.deleted_at.is_(None)),
    }
