# shopcore/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List
from decimal import Decimal
from datetime import datetime

from shopcore.domain.order_status import OrderStatus

class ItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: int = Field(..., gt=0, description="ID produktu (musi byc > 0)")
    product_name: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    quantity: int = Field(..., gt=0, description="Ilosc produktu (musi byc > 0)")

class CartItemOut(BaseModel):
    id: int
    product_id: int
    product_name: str
    price: Decimal
    quantity: int

    model_config = ConfigDict(from_attributes=True)

class CartOut(BaseModel):
    """Schema dla koszyka (response)."""

    id: int
    user_id: str
    version: int
    items: List[CartItemOut]
    total: Decimal
    updated_at: datetime | None = None

class CheckoutInitiatedOut(BaseModel):
    status: str
    items: int
    total_value: Decimal

class CheckoutItemIn(BaseModel):
    product_id: int = Field(..., gt=0)
    product_name: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    quantity: int = Field(..., gt=0)

class CheckoutIn(BaseModel):
    """
    Snapshot koszyka wysylany przez klienta.
    Pusta lista przechodzi walidacje schematu - odrzuca ja serwis (InvalidCheckout).
    """

    user_id: str = Field(..., min_length=1, max_length=64)
    items: List[CheckoutItemIn] = Field(default_factory=list)

class OrderItemOut(BaseModel):
    product_id: int
    product_name: str
    price: Decimal
    quantity: int

    model_config = ConfigDict(from_attributes=True)

class OrderOut(BaseModel):
    """Schema dla zamowienia (response)."""

    id: int
    user_id: str
    status: OrderStatus
    total_amount: Decimal
    items: List[OrderItemOut]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class RevenueMetricsOut(BaseModel):
    total_revenue: Decimal
    total_orders: int
    average_order_value: Decimal
    timestamp: datetime

class SlowModeOut(BaseModel):
    enabled: bool
    delay_ms: int
