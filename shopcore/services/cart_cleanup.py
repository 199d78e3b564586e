# shopcore/services/cart_cleanup.py
from kombu.exceptions import OperationalError
from requests import RequestException

from shopcore.celery_worker import celery_app
from shopcore.domain.errors import CartClearConflict
from shopcore.services.cart_client import CartClient
from shopcore.utils.logging import get_logger

logger = get_logger(__name__)


class CartCleanupService:
    """
    Drugi krok sagi checkoutu: czyszczenie koszyka po zapisaniu zamowienia.
    Best-effort - zaden blad stad nie cofa ani nie psuje zamowienia.
    """

    @staticmethod
    def request_cart_clear(user_id: str, order_id: int) -> bool:
        """Wrzuca task do kolejki; False jesli broker niedostepny."""
        try:
            clear_cart_after_checkout_task.delay(user_id, order_id)
            return True
        except OperationalError as e:
            logger.error(
                f"FUNNEL_ERROR: Could not enqueue cart clear - userId={user_id}, orderId={order_id}, error={e}"
            )
            return False


@celery_app.task(name="shopcore.services.cart_cleanup.clear_cart_after_checkout_task")
def clear_cart_after_checkout_task(user_id: str, order_id: int):
    logger.info(f"FUNNEL_STAGE: Clearing cart after successful checkout - userId={user_id}, orderId={order_id}")

    try:
        cleared = CartClient().clear_cart(user_id)
    except (CartClearConflict, RequestException) as e:
        logger.error(
            f"FUNNEL_ERROR: Failed to clear cart after checkout - userId={user_id}, "
            f"orderId={order_id}, error={e}"
        )
        return {"user_id": user_id, "order_id": order_id, "status": "failed"}

    status = "cleared" if cleared else "missing"
    logger.info(f"FUNNEL_STAGE: Cart clear finished - userId={user_id}, orderId={order_id}, status={status}")
    return {"user_id": user_id, "order_id": order_id, "status": status}
