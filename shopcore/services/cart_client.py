# shopcore/services/cart_client.py
import requests

from shopcore.domain.errors import CartClearConflict
from shopcore.utils.retry import cart_clear_retry
from shopcore.utils.settings import CART_SERVICE_URL, CART_CLIENT_TIMEOUT
from shopcore.utils.logging import get_logger

logger = get_logger(__name__)


class CartClient:
    """Klient HTTP serwisu koszyka, uzywany przez saga checkoutu."""

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self.base_url = (base_url or CART_SERVICE_URL).rstrip("/")
        self.timeout = CART_CLIENT_TIMEOUT if timeout is None else timeout

    @cart_clear_retry()
    def clear_cart(self, user_id: str) -> bool:
        """
        DELETE /carts/{user_id}
        True - wyczyszczony, False - koszyk nie istnieje (nic do czyszczenia).
        409 (konflikt wersji), timeout i blad polaczenia sa ponawiane.
        """
        url = f"{self.base_url}/carts/{user_id}"
        logger.info(f"CartClient DELETE {url}")

        resp = requests.delete(url, timeout=self.timeout)
        if resp.status_code == 404:
            return False
        if resp.status_code == 409:
            raise CartClearConflict(f"Cart for user {user_id} was modified concurrently")
        resp.raise_for_status()
        return True
