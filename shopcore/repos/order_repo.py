# shopcore/repos/order_repo.py
from datetime import datetime, timezone
from typing import List

from sqlalchemy import select, update, func
from sqlalchemy.orm import Session, selectinload

from shopcore.data.models.order import OrderModel
from shopcore.domain.order_status import OrderStatus


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id, options=[selectinload(OrderModel.items)])

    def list_orders(self) -> List[OrderModel]:
        stmt = select(OrderModel).options(selectinload(OrderModel.items)).order_by(OrderModel.id)
        return list(self.db.execute(stmt).scalars().all())

    def list_orders_by_user(self, user_id: str) -> List[OrderModel]:
        stmt = (
            select(OrderModel)
            .where(OrderModel.user_id == user_id)
            .options(selectinload(OrderModel.items))
            .order_by(OrderModel.id.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def revenue_totals(self):
        #(suma, liczba zamowien) liczone w bazie
        stmt = select(
            func.coalesce(func.sum(OrderModel.total_amount), 0),
            func.count(OrderModel.id),
        )
        return self.db.execute(stmt).one()

    def update_order_status(self, order_id: int, expected: OrderStatus, status: OrderStatus) -> int:
        #warunkowy update - drugi rownolegly zapis statusu nie nadpisze pierwszego
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.status == expected)
            .values(status=status, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            self.db.commit()
        else:
            self.db.rollback()
        return result.rowcount
