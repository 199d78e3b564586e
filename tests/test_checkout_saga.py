from decimal import Decimal

import pytest
import requests
from kombu.exceptions import OperationalError
from sqlalchemy import func, select

from shopcore.data.models.order import OrderModel
from shopcore.domain.errors import InvalidCheckout
from shopcore.domain.order_status import OrderStatus
from shopcore.domain.schemas import CheckoutItemIn
from shopcore.services import cart_cleanup
from shopcore.services.cart_cleanup import CartCleanupService
from shopcore.services.cart_service import CartService
from shopcore.services.order_service import OrderService


def _items():
    return [
        CheckoutItemIn(product_id=1, product_name="Mouse", price=Decimal("10.00"), quantity=2),
        CheckoutItemIn(product_id=2, product_name="Cable", price=Decimal("5.00"), quantity=1),
    ]


def _broken_delay(*args, **kwargs):
    raise OperationalError("broker unreachable")


def _fill_cart(db, user_id="user-1"):
    svc = CartService(db)
    for item in _items():
        svc.add_item(user_id, item.product_id, item.product_name, item.price, item.quantity)


class TestCheckout:
    def test_creates_confirmed_order_with_frozen_total(self, db):
        order = OrderService(db).checkout("user-1", _items())

        assert order["status"] is OrderStatus.CONFIRMED
        assert order["total_amount"] == Decimal("25.00")
        assert order["item_count"] == 2
        assert [(i["product_id"], i["quantity"], i["price"]) for i in order["items"]] == [
            (1, 2, Decimal("10.00")),
            (2, 1, Decimal("5.00")),
        ]

    def test_empty_items_rejected_and_nothing_written(self, db, cart_http):
        with pytest.raises(InvalidCheckout):
            OrderService(db).checkout("user-1", [])

        assert db.execute(select(func.count(OrderModel.id))).scalar_one() == 0
        assert cart_http.calls == []

    def test_prices_come_from_request(self, db):
        _fill_cart(db)
        items = [CheckoutItemIn(product_id=1, product_name="Mouse", price=Decimal("1.50"), quantity=3)]

        order = OrderService(db).checkout("user-1", items)

        assert order["total_amount"] == Decimal("4.50")

    def test_order_is_independent_of_later_cart_changes(self, db):
        _fill_cart(db)
        order = OrderService(db).checkout("user-1", _items())

        CartService(db).add_item("user-1", 9, "Laptop", Decimal("999.99"), 1)

        stored = OrderService(db).get_order(order["id"])
        assert stored["total_amount"] == Decimal("25.00")
        assert len(stored["items"]) == 2


class TestCartClearStep:
    def test_cart_cleared_after_checkout(self, db, cart_http):
        _fill_cart(db)

        OrderService(db).checkout("user-1", _items())

        assert len(cart_http.calls) == 1
        assert cart_http.calls[0]["url"].endswith("/carts/user-1")
        assert cart_http.calls[0]["timeout"] > 0
        assert CartService(db).view("user-1")["items"] == []

    def test_clear_failing_every_attempt_keeps_order(self, db, cart_http):
        _fill_cart(db)
        cart_http.scripted = [requests.ConnectionError("cart service down")]

        order = OrderService(db).checkout("user-1", _items())

        assert len(cart_http.calls) == 3
        stored = OrderService(db).get_order(order["id"])
        assert stored["total_amount"] == Decimal("25.00")
        assert stored["status"] is OrderStatus.CONFIRMED
        assert len(stored["items"]) == 2
        #koszyk zostaje nieaktualny - swiadomy kompromis
        assert len(CartService(db).view("user-1")["items"]) == 2

    def test_timeout_counts_as_attempt(self, db, cart_http):
        cart_http.scripted = [requests.Timeout("slow"), 200]

        OrderService(db).checkout("user-1", _items())

        assert len(cart_http.calls) == 2

    def test_conflict_is_retried_until_success(self, db, cart_http):
        cart_http.scripted = [409, 409, 200]

        OrderService(db).checkout("user-1", _items())

        assert len(cart_http.calls) == 3

    def test_missing_cart_is_not_retried(self, db, cart_http):
        order = OrderService(db).checkout("user-without-cart", _items())

        assert len(cart_http.calls) == 1
        assert order["id"] is not None

    def test_server_error_is_not_retried(self, db, cart_http):
        cart_http.scripted = [500]

        order = OrderService(db).checkout("user-1", _items())

        assert len(cart_http.calls) == 1
        assert OrderService(db).get_order(order["id"])["id"] == order["id"]

    def test_broker_failure_does_not_fail_checkout(self, db, cart_http, monkeypatch):
        monkeypatch.setattr(cart_cleanup.clear_cart_after_checkout_task, "delay", _broken_delay)

        order = OrderService(db).checkout("user-1", _items())

        assert order["total_amount"] == Decimal("25.00")
        assert cart_http.calls == []

    def test_request_cart_clear_reports_enqueue_failure(self, monkeypatch):
        monkeypatch.setattr(cart_cleanup.clear_cart_after_checkout_task, "delay", _broken_delay)

        assert CartCleanupService.request_cart_clear("user-1", 1) is False

    def test_task_result_reports_outcome(self, db, cart_http):
        cart_http.scripted = [requests.ConnectionError("down")]

        result = cart_cleanup.clear_cart_after_checkout_task("user-1", 7)

        assert result == {"user_id": "user-1", "order_id": 7, "status": "failed"}
