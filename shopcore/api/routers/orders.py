# shopcore/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session

from shopcore.data.database import get_db
from shopcore.domain.errors import InvalidCheckout, InvalidStatusTransition, NotFound, OrderConflict
from shopcore.domain.order_status import OrderStatus
from shopcore.domain.schemas import CheckoutIn, OrderOut, RevenueMetricsOut, SlowModeOut
from shopcore.services.order_service import OrderService
from shopcore.services.runtime_controls import RuntimeControls

router = APIRouter(prefix="/orders", tags=["orders"])


def get_controls(request: Request) -> RuntimeControls:
    return request.app.state.controls


def get_service(db: Session, controls: RuntimeControls):
    return OrderService(db, controls=controls)


@router.post("/checkout", response_model=OrderOut, status_code=201)
def checkout(
    payload: CheckoutIn,
    response: Response,
    db: Session = Depends(get_db),
    controls: RuntimeControls = Depends(get_controls),
):
    """
    Tworzy zamowienie ze snapshotu koszyka.
    Czyszczenie koszyka leci w tle i nie wplywa na odpowiedz.
    """
    svc = get_service(db, controls)
    try:
        order = svc.checkout(payload.user_id, payload.items)
    except InvalidCheckout as e:
        raise HTTPException(status_code=400, detail=e.to_detail())

    #metadane dla obserwatorow (APM)
    response.headers["X-Order-Id"] = str(order["id"])
    response.headers["X-Order-Value"] = f"{order['total_amount']:.2f}"
    response.headers["X-Item-Count"] = str(order["item_count"])
    return order


@router.get("/metrics/revenue", response_model=RevenueMetricsOut)
def revenue_metrics(db: Session = Depends(get_db), controls: RuntimeControls = Depends(get_controls)):
    return get_service(db, controls).revenue_metrics()


@router.get("/control/slow-mode", response_model=SlowModeOut)
def get_slow_mode(controls: RuntimeControls = Depends(get_controls)):
    mode = controls.get_slow_mode()
    return {"enabled": mode.enabled, "delay_ms": mode.delay_ms}


@router.post("/control/slow-mode", response_model=SlowModeOut)
def set_slow_mode(
    enabled: bool = Query(True),
    delay_ms: int = Query(5000, ge=0, le=60000),
    controls: RuntimeControls = Depends(get_controls),
):
    mode = controls.set_slow_mode(enabled, delay_ms)
    return {"enabled": mode.enabled, "delay_ms": mode.delay_ms}


@router.get("/user/{user_id}", response_model=List[OrderOut])
def get_user_orders(user_id: str, db: Session = Depends(get_db), controls: RuntimeControls = Depends(get_controls)):
    return get_service(db, controls).list_user_orders(user_id)


@router.get("", response_model=List[OrderOut])
def get_all_orders(db: Session = Depends(get_db), controls: RuntimeControls = Depends(get_controls)):
    return get_service(db, controls).list_orders()


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: int, db: Session = Depends(get_db), controls: RuntimeControls = Depends(get_controls)):
    svc = get_service(db, controls)
    try:
        return svc.get_order(order_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=e.to_detail())


@router.put("/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: int,
    status: OrderStatus = Query(...),
    db: Session = Depends(get_db),
    controls: RuntimeControls = Depends(get_controls),
):
    svc = get_service(db, controls)
    try:
        return svc.update_status(order_id, status)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=e.to_detail())
    except (InvalidStatusTransition, OrderConflict) as e:
        raise HTTPException(status_code=409, detail=e.to_detail())
