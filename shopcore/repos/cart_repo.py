# shopcore/repos/cart_repo.py
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from shopcore.data.models.cart import CartModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart_by_user(self, user_id: str) -> CartModel | None:
        #populate_existing - zawsze swiezy odczyt z bazy, nawet jesli obiekt
        #siedzi juz w identity map sesji (retry nie moze pracowac na starym stanie)
        stmt = (
            select(CartModel)
            .where(CartModel.user_id == user_id)
            .options(selectinload(CartModel.items))
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def create_cart(self, cart: CartModel) -> CartModel:
        #IntegrityError (unique user_id) leci wyzej, obsluguje go serwis
        self.db.add(cart)
        self.db.commit()
        self.db.refresh(cart)
        return cart

    def update_cart_version(self, cart_id: int, old_version: int, new_data: Dict[str, Any] | None = None) -> int:
        """
        UPDATE carts SET version = old + 1 WHERE id = :id AND version = :old
        Zwraca rowcount - 0 oznacza ze ktos inny zapisal pierwszy.
        """
        values = {
            "version": old_version + 1,
            "updated_at": datetime.now(timezone.utc),
        }
        values.update(new_data or {})

        result = self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id, CartModel.version == old_version)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
