# shopcore/domain/order_status.py
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)

    def can_transition_to(self, target: "OrderStatus") -> bool:
        """
        Statusy ida tylko do przodu (mozna przeskoczyc etap),
        CANCELLED z kazdego nieterminalnego stanu.
        """
        if self.is_terminal:
            return False
        if target is OrderStatus.CANCELLED:
            return True
        return _FORWARD.index(target) > _FORWARD.index(self)


_FORWARD = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]
