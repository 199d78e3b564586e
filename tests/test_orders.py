from decimal import Decimal

import pytest

from shopcore.domain.errors import InvalidStatusTransition, NotFound, OrderConflict
from shopcore.domain.order_status import OrderStatus
from shopcore.domain.schemas import CheckoutItemIn
from shopcore.services.order_service import OrderService
from shopcore.services.runtime_controls import RuntimeControls


def _checkout(db, user_id="user-1", price="10.00", quantity=1):
    item = CheckoutItemIn(product_id=1, product_name="Mouse", price=Decimal(price), quantity=quantity)
    return OrderService(db).checkout(user_id, [item])


class TestOrderStatusMachine:
    @pytest.mark.parametrize(
        "current, target",
        [
            (OrderStatus.PENDING, OrderStatus.CONFIRMED),
            (OrderStatus.CONFIRMED, OrderStatus.PROCESSING),
            (OrderStatus.PROCESSING, OrderStatus.SHIPPED),
            (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
            (OrderStatus.CONFIRMED, OrderStatus.SHIPPED),
            (OrderStatus.PENDING, OrderStatus.CANCELLED),
            (OrderStatus.SHIPPED, OrderStatus.CANCELLED),
        ],
    )
    def test_allowed(self, current, target):
        assert current.can_transition_to(target)

    @pytest.mark.parametrize(
        "current, target",
        [
            (OrderStatus.PROCESSING, OrderStatus.CONFIRMED),
            (OrderStatus.CONFIRMED, OrderStatus.CONFIRMED),
            (OrderStatus.DELIVERED, OrderStatus.CANCELLED),
            (OrderStatus.CANCELLED, OrderStatus.PROCESSING),
            (OrderStatus.DELIVERED, OrderStatus.SHIPPED),
        ],
    )
    def test_rejected(self, current, target):
        assert not current.can_transition_to(target)


class TestUpdateStatus:
    def test_moves_order_forward(self, db):
        order = _checkout(db)

        updated = OrderService(db).update_status(order["id"], OrderStatus.PROCESSING)

        assert updated["status"] is OrderStatus.PROCESSING
        assert updated["total_amount"] == order["total_amount"]

    def test_illegal_transition(self, db):
        order = _checkout(db)
        svc = OrderService(db)
        svc.update_status(order["id"], OrderStatus.CANCELLED)

        with pytest.raises(InvalidStatusTransition) as exc:
            svc.update_status(order["id"], OrderStatus.SHIPPED)

        assert exc.value.current is OrderStatus.CANCELLED

    def test_unknown_order(self, db):
        with pytest.raises(NotFound):
            OrderService(db).update_status(404, OrderStatus.SHIPPED)

    def test_concurrent_status_write_is_detected(self, db, other_db, monkeypatch):
        order = _checkout(db)
        svc = OrderService(db)
        real_get = svc.repo.get_order

        def read_then_competing_update(order_id):
            found = real_get(order_id)
            OrderService(other_db).update_status(order_id, OrderStatus.CANCELLED)
            return found

        monkeypatch.setattr(svc.repo, "get_order", read_then_competing_update)

        with pytest.raises(OrderConflict):
            svc.update_status(order["id"], OrderStatus.PROCESSING)

        assert OrderService(other_db).get_order(order["id"])["status"] is OrderStatus.CANCELLED


class TestQueries:
    def test_get_order_not_found(self, db):
        with pytest.raises(NotFound):
            OrderService(db).get_order(1)

    def test_user_orders_newest_first(self, db):
        first = _checkout(db, user_id="a")
        _checkout(db, user_id="b")
        second = _checkout(db, user_id="a")

        orders = OrderService(db).list_user_orders("a")

        assert [o["id"] for o in orders] == [second["id"], first["id"]]

    def test_list_orders_honours_slow_mode(self, db, monkeypatch):
        slept = []
        monkeypatch.setattr("shopcore.services.order_service.time.sleep", slept.append)
        controls = RuntimeControls()
        controls.set_slow_mode(True, 1500)
        _checkout(db)

        orders = OrderService(db, controls=controls).list_orders()

        assert len(orders) == 1
        assert slept == [1.5]

    def test_list_orders_without_slow_mode(self, db, monkeypatch):
        slept = []
        monkeypatch.setattr("shopcore.services.order_service.time.sleep", slept.append)

        assert OrderService(db).list_orders() == []
        assert slept == []

    def test_revenue_metrics(self, db):
        _checkout(db, price="10.00", quantity=2)
        _checkout(db, price="5.00", quantity=1)

        metrics = OrderService(db).revenue_metrics()

        assert metrics["total_orders"] == 2
        assert metrics["total_revenue"] == Decimal("25.00")
        assert metrics["average_order_value"] == Decimal("12.50")

    def test_revenue_metrics_empty(self, db):
        metrics = OrderService(db).revenue_metrics()

        assert metrics["total_orders"] == 0
        assert metrics["total_revenue"] == Decimal("0.00")
        assert metrics["average_order_value"] == Decimal("0.00")


class TestRuntimeControls:
    def test_defaults_to_disabled(self):
        mode = RuntimeControls(delay_ms=250).get_slow_mode()
        assert mode.enabled is False
        assert mode.delay_ms == 250

    def test_set_and_get(self):
        controls = RuntimeControls()
        controls.set_slow_mode(True, 100)
        assert controls.get_slow_mode().enabled is True
        assert controls.get_slow_mode().delay_ms == 100

    def test_negative_delay_rejected(self):
        with pytest.raises(ValueError):
            RuntimeControls().set_slow_mode(True, -1)
