from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from services.order_service.models import Order
from services.order_service.repository import OrderRepository


class PaymentRepository:
    @staticmethod
    async def insert_order_once(db: AsyncSession, order: Order) -> tuple[Order, bool]:
        """Inserts an order keyed by its payment intent. Returns (order, created)."""
        existing = await OrderRepository.get_by_payment_intent(db, order.stripe_payment_intent_id)
        if existing:
            return existing, False

        try:
            return await OrderRepository.create_order(db, order), True
        except IntegrityError:
            # A concurrent delivery of the same event won the unique constraint
            await db.rollback()
            existing = await OrderRepository.get_by_payment_intent(db, order.stripe_payment_intent_id)
            if existing is None:
                raise
            return existing, False
