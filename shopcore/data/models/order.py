from sqlalchemy import Column, Integer, String, DateTime, Numeric, Enum
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from shopcore.data.database import Base
from shopcore.domain.order_status import OrderStatus


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    #bez FK do koszyka - zamowienie trzyma kopie pozycji
    user_id = Column(String(64), nullable=False, index=True)

    status = Column(Enum(OrderStatus, native_enum=False, length=20), nullable=False, default=OrderStatus.PENDING)
    total_amount = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
    )
