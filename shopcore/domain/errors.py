# shopcore/domain/errors.py
from typing import Any, Dict


class ShopError(Exception):
    """Bazowy blad domeny - routery mapuja go na kody HTTP."""

    error = "Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> Dict[str, Any]:
        return {"error": self.error, "message": self.message}


class NotFound(ShopError):
    error = "Not Found"


class InvalidCheckout(ShopError):
    error = "Invalid Checkout"


class InvalidQuantity(ShopError):
    error = "Invalid Quantity"


class BusinessRuleViolation(ShopError):
    error = "Business Rule Violation"

    def __init__(self, product_name: str, current: int, attempted: int, limit: int):
        super().__init__(
            f"Maximum {limit} {product_name} per customer. You currently have "
            f"{current} in cart. Cannot add {attempted} more."
        )
        self.product_name = product_name
        self.current = current
        self.attempted = attempted
        self.limit = limit

    def to_detail(self) -> Dict[str, Any]:
        detail = super().to_detail()
        detail.update(
            product_name=self.product_name,
            current=self.current,
            attempted=self.attempted,
            limit=self.limit,
        )
        return detail


class VersionConflict(ShopError):
    """Wersja koszyka zmienila sie miedzy odczytem a zapisem (do retry)."""

    error = "Version Conflict"

    def __init__(self, cart_id: int, expected_version: int):
        super().__init__(f"Cart {cart_id} is no longer at version {expected_version}")
        self.cart_id = cart_id
        self.expected_version = expected_version


class CartConflict(ShopError):
    error = "Concurrency Issue"

    def __init__(self, user_id: str):
        super().__init__("Cart was updated by another process. Please try again.")
        self.user_id = user_id


class ConcurrencyExhausted(ShopError):
    error = "Concurrency Error"

    def __init__(self, attempts: int):
        super().__init__(
            f"Cart update failed after {attempts} attempts due to concurrent modifications. "
            "Please try again."
        )
        self.attempts = attempts

    def to_detail(self) -> Dict[str, Any]:
        detail = super().to_detail()
        detail["attempts"] = self.attempts
        return detail


class OrderConflict(ShopError):
    error = "Concurrency Issue"


class InvalidStatusTransition(ShopError):
    error = "Invalid Status Transition"

    def __init__(self, current, target):
        super().__init__(f"Cannot move order from {current.value} to {target.value}")
        self.current = current
        self.target = target

    def to_detail(self) -> Dict[str, Any]:
        detail = super().to_detail()
        detail.update(current=self.current.value, target=self.target.value)
        return detail


class InjectedFault(ShopError):
    error = "Injected Fault"


class CartClearConflict(ShopError):
    """Serwis koszyka odpowiedzial 409 na czyszczenie (optimistic locking)."""

    error = "Cart Clear Conflict"
