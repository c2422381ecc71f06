from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Order


class OrderRepository:

    @staticmethod
    async def create_order(db: AsyncSession, order: Order) -> Order:
        db.add(order)
        await db.commit()
        await db.refresh(order)
        return order

    @staticmethod
    async def get_order(db: AsyncSession, order_id: str) -> Optional[Order]:
        result = await db.execute(select(Order).where(Order.id == order_id))
        return result.scalars().first()

    @staticmethod
    async def get_by_payment_intent(db: AsyncSession, intent_id: str) -> Optional[Order]:
        result = await db.execute(
            select(Order).where(Order.stripe_payment_intent_id == intent_id)
        )
        return result.scalars().first()

    @staticmethod
    def orders_for_meat(meat_type: str) -> Select:
        return (
            select(Order)
            .where(Order.meat_type == meat_type)
            .order_by(Order.pickup_date.asc(), Order.created_at.asc())
        )

    @staticmethod
    async def list_orders(db: AsyncSession, stmt: Select) -> Sequence[Order]:
        result = await db.execute(stmt)
        return result.scalars().all()

    @staticmethod
    async def cut_weight_stats(db: AsyncSession, meat_type: str):
        """Pending orders of one meat grouped by (cut, weight)."""
        result = await db.execute(
            select(Order.cut, Order.weight, func.count(Order.id).label("count"))
            .where(Order.meat_type == meat_type, Order.is_finished.is_(False))
            .group_by(Order.cut, Order.weight)
            .order_by(Order.cut.asc(), Order.weight.asc())
        )
        return result.all()

    @staticmethod
    async def set_finished_if_version(
        db: AsyncSession, order_id: str, is_finished: bool, expected_version: int
    ) -> bool:
        """Conditional write: only lands when the stored version still matches."""
        result = await db.execute(
            update(Order)
            .where(Order.id == order_id, Order.version == expected_version)
            .values(is_finished=is_finished, version=Order.version + 1)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        return result.rowcount == 1

    @staticmethod
    async def lock_orders(db: AsyncSession, order_ids: Sequence[str]) -> Sequence[Order]:
        result = await db.execute(
            select(Order).where(Order.id.in_(order_ids)).with_for_update()
        )
        return result.scalars().all()

    @staticmethod
    async def oldest_pending_ids(
        db: AsyncSession, meat_type: str, cut: Optional[str], limit: int
    ) -> list[str]:
        stmt = select(Order.id).where(
            Order.meat_type == meat_type, Order.is_finished.is_(False)
        )
        if cut:
            stmt = stmt.where(Order.cut == cut)
        stmt = stmt.order_by(Order.created_at.asc()).limit(limit).with_for_update()
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def mark_finished(db: AsyncSession, order_ids: Sequence[str], is_finished: bool) -> int:
        if not order_ids:
            return 0
        result = await db.execute(
            update(Order)
            .where(Order.id.in_(order_ids))
            .values(is_finished=is_finished, version=Order.version + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    @staticmethod
    async def pending_counts_by_meat(db: AsyncSession):
        result = await db.execute(
            select(Order.meat_type, func.count(Order.id))
            .where(Order.is_finished.is_(False))
            .group_by(Order.meat_type)
        )
        return result.all()

    @staticmethod
    async def count_and_sum_since(db: AsyncSession, since: Optional[datetime]):
        """(order count, sum of amount_paid in cents) for orders created since the given instant."""
        stmt = select(func.count(Order.id), func.coalesce(func.sum(Order.amount_paid), 0))
        if since is not None:
            stmt = stmt.where(Order.created_at >= since)
        result = await db.execute(stmt)
        count, cents = result.one()
        return count, int(cents or 0)

    @staticmethod
    def utc_day(dialect_name: str):
        """Calendar day of created_at in UTC, whatever the session TimeZone is."""
        if dialect_name == "postgresql":
            return func.date(func.timezone("UTC", Order.created_at))
        # SQLite keeps the UTC wall time as written
        return func.date(Order.created_at)

    @staticmethod
    async def daily_totals_since(db: AsyncSession, since: datetime):
        day = OrderRepository.utc_day(db.bind.dialect.name)
        result = await db.execute(
            select(day.label("day"), func.count(Order.id), func.coalesce(func.sum(Order.amount_paid), 0))
            .where(Order.created_at >= since)
            .group_by(day)
            .order_by(day)
        )
        return result.all()
