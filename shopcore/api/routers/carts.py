#shopcore/api/routers/carts.py
from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.orm import Session

from shopcore.data.database import get_db
from shopcore.domain.errors import (
    BusinessRuleViolation,
    CartConflict,
    ConcurrencyExhausted,
    InjectedFault,
    InvalidCheckout,
    InvalidQuantity,
    NotFound,
)
from shopcore.domain.schemas import CartOut, CheckoutInitiatedOut, ItemIn
from shopcore.services.cart_service import CartService

router = APIRouter(prefix="/carts", tags=["carts"])


def get_service(db: Session):
    return CartService(db=db)


@router.get("/{user_id}", response_model=CartOut)
def get_cart(user_id: str, db: Session = Depends(get_db)):
    svc = get_service(db)
    return svc.view(user_id)


@router.post("/{user_id}/items", response_model=CartOut)
def add_item(user_id: str, payload: ItemIn, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.add_item(
            user_id=user_id,
            product_id=payload.product_id,
            product_name=payload.product_name,
            price=payload.price,
            quantity=payload.quantity,
        )
    except (BusinessRuleViolation, InvalidQuantity) as e:
        raise HTTPException(status_code=400, detail=e.to_detail())
    except ConcurrencyExhausted as e:
        raise HTTPException(status_code=409, detail=e.to_detail())
    except InjectedFault as e:
        raise HTTPException(status_code=500, detail=e.to_detail())


@router.delete("/{user_id}/items/{line_id}", response_model=CartOut)
def remove_item(user_id: str, line_id: int, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.remove_item(user_id, line_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=e.to_detail())
    except CartConflict as e:
        raise HTTPException(status_code=409, detail=e.to_detail())


@router.delete("/{user_id}", response_model=CartOut)
def clear_cart(user_id: str, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.clear(user_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=e.to_detail())
    except ConcurrencyExhausted as e:
        raise HTTPException(status_code=409, detail=e.to_detail())


@router.post("/{user_id}/view-event", response_model=CartOut)
def track_cart_view(
    user_id: str,
    x_session_id: str | None = Header(default=None),
    x_journey_id: str | None = Header(default=None),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return svc.track_view(user_id, x_session_id, x_journey_id)


@router.post("/{user_id}/checkout-initiated", response_model=CheckoutInitiatedOut)
def track_checkout_initiated(
    user_id: str,
    x_session_id: str | None = Header(default=None),
    x_journey_id: str | None = Header(default=None),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.checkout_initiated(user_id, x_session_id, x_journey_id)
    except InvalidCheckout as e:
        raise HTTPException(status_code=400, detail=e.to_detail())
