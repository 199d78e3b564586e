from decimal import Decimal
from typing import Dict, Any, Iterable, Mapping

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shopcore.data.models.cart import CartModel
from shopcore.data.models.cart_item import CartItemModel
from shopcore.domain.errors import (
    BusinessRuleViolation,
    CartConflict,
    InjectedFault,
    InvalidCheckout,
    InvalidQuantity,
    NotFound,
    VersionConflict,
)
from shopcore.repos.cart_repo import CartRepo
from shopcore.utils.retry import optimistic_retry
from shopcore.utils.settings import QUANTITY_CAPS, FAULT_PRODUCTS
from shopcore.utils.logging import get_logger

logger = get_logger(__name__)


def _cart_total(items) -> Decimal:
    return sum((Decimal(i.price) * i.quantity for i in items), Decimal("0.00"))


class CartService:
    """
    Koszyk per user pod optimistic lockingiem (kolumna version).

    Kazda komenda: odczyt -> wyliczenie nowego stanu -> UPDATE ... WHERE version = odczytana.
    add_item i clear powtarzaja caly cykl przy konflikcie (optimistic_retry),
    remove_item zwraca konflikt od razu.
    """

    def __init__(
        self,
        db: Session,
        quantity_caps: Mapping[str, int] | None = None,
        fault_products: Iterable[str] | None = None,
    ):
        self.repo = CartRepo(db)
        caps = QUANTITY_CAPS if quantity_caps is None else quantity_caps
        self.quantity_caps = {name.lower(): limit for name, limit in caps.items()}
        self.fault_products = frozenset(
            n.lower() for n in (FAULT_PRODUCTS if fault_products is None else fault_products)
        )

    def _to_dict(self, cart: CartModel) -> Dict[str, Any]:
        items = list(cart.items)
        return {
            "id": cart.id,
            "user_id": cart.user_id,
            "version": cart.version,
            "items": [
                {
                    "id": i.id,
                    "product_id": i.product_id,
                    "product_name": i.product_name,
                    "price": i.price,
                    "quantity": i.quantity,
                }
                for i in items
            ],
            "total": _cart_total(items),
            "updated_at": cart.updated_at,
        }

    def _load_or_create(self, user_id: str) -> CartModel:
        cart = self.repo.get_cart_by_user(user_id)
        if cart:
            return cart

        try:
            created = self.repo.create_cart(CartModel(user_id=user_id, version=1))
            logger.info(f"Created cart {created.id} for user {user_id}")
            return created
        except IntegrityError:
            #ktos inny utworzyl koszyk miedzy select a insert - czytamy jeszcze raz
            self.repo.rollback()
            logger.debug(f"Race condition detected creating cart for user {user_id}, retrying lookup")
            cart = self.repo.get_cart_by_user(user_id)
            if cart is None:
                raise RuntimeError(f"Failed to get or create cart for user {user_id}")
            return cart

    def _commit_version(self, cart: CartModel) -> None:
        cart_id, version = cart.id, cart.version
        rowcount = self.repo.update_cart_version(cart_id, version)
        if rowcount == 0:
            #rollback wygasza obiekty sesji - nastepna proba czyta od nowa
            self.repo.rollback()
            raise VersionConflict(cart_id, version)

    #query
    def get_or_create(self, user_id: str) -> Dict[str, Any]:
        return self._to_dict(self._load_or_create(user_id))

    def view(self, user_id: str) -> Dict[str, Any]:
        #brak koszyka to nie blad - tworzymy pusty
        return self.get_or_create(user_id)

    def track_view(self, user_id: str, session_id: str | None = None, journey_id: str | None = None) -> Dict[str, Any]:
        logger.info(f"FUNNEL_TRACKING: Cart viewed - userId={user_id}, sessionId={session_id}, journeyId={journey_id}")
        cart = self.view(user_id)
        logger.info(
            f"FUNNEL_METRICS: Cart viewed - items={len(cart['items'])}, "
            f"totalValue=${cart['total']:.2f}, userId={user_id}"
        )
        return cart

    def checkout_initiated(self, user_id: str, session_id: str | None = None, journey_id: str | None = None) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)
        if cart is None or not cart.items:
            logger.warning(f"FUNNEL_DROP_OFF: Checkout initiated with empty cart - userId={user_id}, sessionId={session_id}")
            raise InvalidCheckout("Cannot checkout with empty cart")

        total = _cart_total(cart.items)
        logger.info(
            f"FUNNEL_TRACKING: Checkout initiated - userId={user_id}, sessionId={session_id}, "
            f"journeyId={journey_id}, items={len(cart.items)}, totalValue=${total:.2f}"
        )
        return {"status": "checkout_initiated", "items": len(cart.items), "total_value": total}

    #commands
    def _check_quantity_cap(self, cart: CartModel, product_name: str, quantity: int) -> None:
        limit = self.quantity_caps.get(product_name.lower())
        if limit is None:
            return

        current = sum(i.quantity for i in cart.items if i.product_name.lower() == product_name.lower())
        if current + quantity > limit:
            logger.warning(
                f"Business rule violation for user {cart.user_id}: {product_name} "
                f"current={current} attempted={quantity} limit={limit}"
            )
            raise BusinessRuleViolation(product_name, current, quantity, limit)

    def _check_fault_hook(self, product_name: str) -> None:
        #celowy blad do cwiczenia obslugi awarii, wlaczany przez FAULT_PRODUCTS
        if product_name.lower() in self.fault_products:
            logger.error(f"Injected fault triggered for product {product_name}")
            raise InjectedFault(f"Injected fault for product {product_name}")

    @optimistic_retry()
    def add_item(
        self,
        user_id: str,
        product_id: int,
        product_name: str,
        price: Decimal,
        quantity: int,
    ) -> Dict[str, Any]:
        if quantity <= 0:
            raise InvalidQuantity("Quantity must be greater than 0")

        cart = self._load_or_create(user_id)

        self._check_quantity_cap(cart, product_name, quantity)
        self._check_fault_hook(product_name)

        #najpierw warunkowy bump wersji, dopiero potem zmiany pozycji w tej samej transakcji
        self._commit_version(cart)

        existing_item = next((i for i in cart.items if i.product_id == product_id), None)
        if existing_item:
            logger.info(
                f"Product {product_id} already in cart {cart.id}, quantity "
                f"{existing_item.quantity} -> {existing_item.quantity + quantity}"
            )
            existing_item.quantity += quantity
        else:
            logger.info(f"Adding product {product_id} to cart {cart.id}")
            cart.items.append(
                CartItemModel(
                    product_id=product_id,
                    product_name=product_name,
                    price=price,
                    quantity=quantity,
                )
            )

        self.repo.commit()
        logger.info(f"Cart {cart.id} for user {user_id} saved, new version: {cart.version}")

        return self._to_dict(cart)

    def remove_item(self, user_id: str, line_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)
        if cart is None:
            raise NotFound(f"Cart for user {user_id} not found")

        line = next((i for i in cart.items if i.id == line_id), None)
        if line is None:
            #brak pozycji - nic do zapisania
            return self._to_dict(cart)

        try:
            self._commit_version(cart)
        except VersionConflict:
            logger.warning(f"Optimistic locking failure when removing from cart for user {user_id}")
            raise CartConflict(user_id)

        cart.items.remove(line)
        self.repo.commit()
        logger.info(f"Line {line_id} removed from cart {cart.id}, new version: {cart.version}")

        return self._to_dict(cart)

    @optimistic_retry()
    def clear(self, user_id: str) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)
        if cart is None:
            raise NotFound(f"Cart for user {user_id} not found")

        self._commit_version(cart)
        cart.items.clear()
        self.repo.commit()
        logger.info(f"Cart cleared for user {user_id}, new version: {cart.version}")

        return self._to_dict(cart)
