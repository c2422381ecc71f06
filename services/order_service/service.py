"""
Production tracking for the admin panel.

Status writes go through the database's guarantees: single-order updates are
one conditional UPDATE keyed on the version column, bulk updates run inside
one transaction over row-locked orders.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

import structlog
from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import settings
from shared.observability import (
    butcher_bulk_status_orders_total,
    butcher_status_updates_total,
)

from .catalog import HEADLINE_MEAT_TYPES
from .filters import ProductionFilters, apply_filters
from .models import STATUS_DONE, Order
from .repository import OrderRepository
from .schemas import BulkDone, BulkStatusUpdate, StatusUpdate, ToggleFinish

logger = structlog.get_logger(__name__)

VERSION_CONFLICT = "version_conflict"
DASHBOARD_DAYS = 7


class BulkStatusConflict(Exception):
    """Some requested orders are missing or belong to another meat type."""

    def __init__(self, conflicts: list[str]):
        super().__init__(f"{len(conflicts)} conflicting orders")
        self.conflicts = conflicts


def _cents_to_euro(cents: int) -> float:
    return round(cents / 100, 2)


class OrderService:

    @staticmethod
    async def get_order(db: AsyncSession, order_id: str) -> Order:
        order = await OrderRepository.get_order(db, order_id)
        if not order:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
        return order

    @staticmethod
    async def cut_weight_stats(db: AsyncSession, meat_type: str) -> list[dict]:
        rows = await OrderRepository.cut_weight_stats(db, meat_type)
        return [{"cut": cut, "weight": weight, "count": count} for cut, weight, count in rows]

    @staticmethod
    async def list_orders(
        db: AsyncSession, meat_type: str, filters: Optional[ProductionFilters] = None
    ) -> list[Order]:
        stmt = OrderRepository.orders_for_meat(meat_type)
        if filters is not None:
            stmt = apply_filters(stmt, filters)
        return list(await OrderRepository.list_orders(db, stmt))

    @staticmethod
    async def production_snapshot(
        db: AsyncSession, meat_type: str, filters: ProductionFilters
    ) -> dict:
        return {
            "stats": await OrderService.cut_weight_stats(db, meat_type),
            "orders": await OrderService.list_orders(db, meat_type, filters),
        }

    @staticmethod
    async def update_status(db: AsyncSession, order_id: str, data: StatusUpdate) -> Order:
        landed = await OrderRepository.set_finished_if_version(
            db, order_id, data.status == STATUS_DONE, data.version
        )
        if not landed:
            current = await OrderRepository.get_order(db, order_id)
            if current is None:
                butcher_status_updates_total.labels(outcome="not_found").inc()
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")

            butcher_status_updates_total.labels(outcome=VERSION_CONFLICT).inc()
            logger.info(
                "order_version_conflict",
                order_id=order_id,
                expected_version=data.version,
                stored_version=current.version,
            )
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=VERSION_CONFLICT)

        butcher_status_updates_total.labels(outcome="updated").inc()
        order = await OrderRepository.get_order(db, order_id)
        # The UPDATE bypassed the identity map
        await db.refresh(order)
        logger.info("order_status_updated", order_id=order_id, status=data.status, version=order.version)
        return order

    @staticmethod
    async def bulk_update_status(db: AsyncSession, data: BulkStatusUpdate) -> dict:
        """All-or-nothing: either every listed order is processed or none is."""
        target_finished = data.status == STATUS_DONE
        requested = list(dict.fromkeys(data.order_ids))

        try:
            locked = {o.id: o for o in await OrderRepository.lock_orders(db, requested)}
            conflicts = [
                order_id for order_id in requested
                if order_id not in locked or locked[order_id].meat_type != data.meat_type
            ]
            if conflicts:
                raise BulkStatusConflict(conflicts)

            to_flip = [oid for oid in requested if locked[oid].is_finished != target_finished]
            skipped = len(requested) - len(to_flip)
            updated = await OrderRepository.mark_finished(db, to_flip, target_finished)
            await db.commit()
        except BulkStatusConflict as exc:
            await db.rollback()
            butcher_bulk_status_orders_total.labels(result="conflict").inc(len(exc.conflicts))
            logger.warning(
                "bulk_status_rejected", meat_type=data.meat_type, conflicts=exc.conflicts
            )
            return {
                "orders": await OrderService._refreshed(db, data.meat_type),
                "updated": 0,
                "skipped": 0,
                "conflicts": exc.conflicts,
            }
        except Exception:
            await db.rollback()
            raise

        butcher_bulk_status_orders_total.labels(result="updated").inc(updated)
        butcher_bulk_status_orders_total.labels(result="skipped").inc(skipped)
        logger.info(
            "bulk_status_updated",
            meat_type=data.meat_type,
            status=data.status,
            updated=updated,
            skipped=skipped,
        )
        return {
            "orders": await OrderService._refreshed(db, data.meat_type),
            "updated": updated,
            "skipped": skipped,
            "conflicts": [],
        }

    @staticmethod
    async def bulk_mark_done(db: AsyncSession, data: BulkDone) -> int:
        """Marks the `count` oldest pending orders of a meat (and optional cut) done."""
        try:
            ids = await OrderRepository.oldest_pending_ids(db, data.meat_type, data.cut, data.count)
            updated = await OrderRepository.mark_finished(db, ids, True)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        butcher_bulk_status_orders_total.labels(result="updated").inc(updated)
        logger.info("bulk_done", meat_type=data.meat_type, cut=data.cut, count=updated)
        return updated

    @staticmethod
    async def toggle_finish(db: AsyncSession, data: ToggleFinish) -> Order:
        order = await OrderService.get_order(db, data.id)
        await OrderRepository.mark_finished(db, [order.id], data.is_finished)
        await db.commit()
        await db.refresh(order)
        return order

    @staticmethod
    async def _refreshed(db: AsyncSession, meat_type: str) -> list[Order]:
        # Bulk UPDATEs skip the session; drop cached rows before re-reading
        db.expire_all()
        return await OrderService.list_orders(db, meat_type)

    @staticmethod
    async def pending_summary(db: AsyncSession) -> dict:
        summary = {meat_type: 0 for meat_type in HEADLINE_MEAT_TYPES}
        for meat_type, count in await OrderRepository.pending_counts_by_meat(db):
            summary[meat_type] = count
        summary["total"] = sum(summary.values())
        return summary

    @staticmethod
    async def dashboard_stats(db: AsyncSession, now: Optional[datetime] = None) -> dict:
        now = now or datetime.now(timezone.utc)
        local_now = now.astimezone(ZoneInfo(settings.SHOP_TIMEZONE))
        start_of_day = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
        start_of_month = start_of_day.replace(day=1)

        today_count, today_cents = await OrderRepository.count_and_sum_since(
            db, start_of_day.astimezone(timezone.utc)
        )
        month_count, month_cents = await OrderRepository.count_and_sum_since(
            db, start_of_month.astimezone(timezone.utc)
        )
        total_count, _ = await OrderRepository.count_and_sum_since(db, None)

        # Daily buckets are UTC calendar days, as grouped by the database
        first_day = now.astimezone(timezone.utc).date() - timedelta(days=DASHBOARD_DAYS - 1)
        since = datetime.combine(first_day, datetime.min.time(), tzinfo=timezone.utc)
        totals = {
            str(day): (count, int(cents or 0))
            for day, count, cents in await OrderRepository.daily_totals_since(db, since)
        }
        daily = []
        for offset in range(DASHBOARD_DAYS):
            day = (first_day + timedelta(days=offset)).isoformat()
            count, cents = totals.get(day, (0, 0))
            daily.append({"date": day, "orders": count, "deposits": _cents_to_euro(cents)})

        return {
            "today": {"count": today_count, "deposits": _cents_to_euro(today_cents)},
            "monthly": {"count": month_count, "deposits": _cents_to_euro(month_cents)},
            "total_customers": total_count,
            "daily": daily,
        }
