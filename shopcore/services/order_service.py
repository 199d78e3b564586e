# shopcore/services/order_service.py
import time
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Sequence

from sqlalchemy.orm import Session

from shopcore.data.models.order import OrderModel
from shopcore.data.models.order_item import OrderItemModel
from shopcore.domain.errors import InvalidCheckout, InvalidStatusTransition, NotFound, OrderConflict
from shopcore.domain.order_status import OrderStatus
from shopcore.repos.order_repo import OrderRepo
from shopcore.services.cart_cleanup import CartCleanupService
from shopcore.services.runtime_controls import RuntimeControls
from shopcore.utils.logging import get_logger

logger = get_logger(__name__)

TWOPLACES = Decimal("0.01")


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


class OrderService:
    """
    Serwis zamowien i orkiestrator checkoutu.
    Checkout to saga z dwoch niezaleznych commitow: zapis zamowienia
    (granica trwalosci) i pozniejsze czyszczenie koszyka w tle.
    """

    def __init__(
        self,
        db: Session,
        cleanup: CartCleanupService | None = None,
        controls: RuntimeControls | None = None,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.cleanup = cleanup or CartCleanupService()
        self.controls = controls or RuntimeControls()

    def _to_dict(self, order: OrderModel) -> Dict[str, Any]:
        return {
            "id": order.id,
            "user_id": order.user_id,
            "status": order.status,
            "total_amount": order.total_amount,
            "items": [
                {
                    "product_id": i.product_id,
                    "product_name": i.product_name,
                    "price": i.price,
                    "quantity": i.quantity,
                }
                for i in order.items
            ],
            "created_at": order.created_at,
            "updated_at": order.updated_at,
        }

    def checkout(self, user_id: str, items: Sequence[Any]) -> Dict[str, Any]:
        """
        Use Case: checkout ze snapshotu koszyka przyslanego przez klienta.

        1. Walidacja - pusta lista to InvalidCheckout, nic nie jest zapisywane
        2. Total z cen z requestu (bez ponownego pytania katalogu)
        3. Zapis zamowienia CONFIRMED - od tego momentu zamowienie jest ostateczne
        4. Czyszczenie koszyka w tle (best-effort, nie blokuje odpowiedzi)
        """
        item_count = len(items or [])
        logger.info(f"FUNNEL_TRACKING: Checkout started - userId={user_id}, items={item_count}")

        if not items:
            logger.warning(f"FUNNEL_DROP_OFF: Checkout validation failed - empty cart - userId={user_id}")
            raise InvalidCheckout("Cannot checkout with empty cart")

        total = _money(sum((Decimal(str(i.price)) * i.quantity for i in items), Decimal("0")))
        logger.info(f"FUNNEL_METRICS: Order total calculated - userId={user_id}, totalValue=${total}")

        order = OrderModel(
            user_id=user_id,
            status=OrderStatus.CONFIRMED,
            total_amount=total,
            items=[
                OrderItemModel(
                    product_id=i.product_id,
                    product_name=i.product_name,
                    price=_money(i.price),
                    quantity=i.quantity,
                )
                for i in items
            ],
        )
        created = self.repo.create_order(order)
        logger.info(f"FUNNEL_STAGE: Order created - orderId={created.id}, userId={user_id}")

        #krok 2 sagi - porazka nie cofa zamowienia
        self.cleanup.request_cart_clear(user_id, created.id)

        logger.info(
            f"FUNNEL_TRACKING: Checkout completed successfully - orderId={created.id}, "
            f"userId={user_id}, totalValue=${total}"
        )

        result = self._to_dict(created)
        result["item_count"] = item_count
        return result

    def get_order(self, order_id: int) -> Dict[str, Any]:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFound(f"Order {order_id} not found")
        return self._to_dict(order)

    def list_user_orders(self, user_id: str) -> List[Dict[str, Any]]:
        return [self._to_dict(o) for o in self.repo.list_orders_by_user(user_id)]

    def list_orders(self) -> List[Dict[str, Any]]:
        slow_mode = self.controls.get_slow_mode()
        if slow_mode.enabled:
            logger.warning(f"SLOW MODE: Delaying response by {slow_mode.delay_ms}ms")
            time.sleep(slow_mode.delay_ms / 1000)
        return [self._to_dict(o) for o in self.repo.list_orders()]

    def update_status(self, order_id: int, status: OrderStatus) -> Dict[str, Any]:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFound(f"Order {order_id} not found")

        current = order.status
        if not current.can_transition_to(status):
            raise InvalidStatusTransition(current, status)

        if self.repo.update_order_status(order_id, current, status) == 0:
            raise OrderConflict(f"Order {order_id} status was changed by another request")

        logger.info(f"Order {order_id} status {current.value} -> {status.value}")
        return self._to_dict(self.repo.get_order(order_id))

    def revenue_metrics(self) -> Dict[str, Any]:
        total_revenue, total_orders = self.repo.revenue_totals()
        total_revenue = _money(total_revenue)
        average = _money(total_revenue / total_orders) if total_orders else Decimal("0.00")

        logger.info(
            f"REVENUE_METRICS: totalRevenue=${total_revenue}, totalOrders={total_orders}, "
            f"avgOrderValue=${average}"
        )
        return {
            "total_revenue": total_revenue,
            "total_orders": total_orders,
            "average_order_value": average,
            "timestamp": datetime.now(timezone.utc),
        }
