# eatery/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from eatery.api.deps import get_current_user, get_db, get_notifier, require_admin
from eatery.domain.actor import Actor
from eatery.domain.errors import OrderingError
from eatery.domain.schemas import OrderCreate, OrderOut, OrderStatusUpdate
from eatery.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session = Depends(get_db), notifier=Depends(get_notifier)) -> OrderService:
    return OrderService(db, notification_service=notifier)


@router.get("/", response_model=List[OrderOut])
def list_orders(
    actor: Actor = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    """Admin - wszystkie zamowienia, user - tylko swoje (najnowsze pierwsze)."""
    return svc.list_orders(actor)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    actor: Actor = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.get_order(order_id, actor)
    except OrderingError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("/", response_model=OrderOut, status_code=201)
def create_order(
    payload: OrderCreate,
    actor: Actor = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    """
    Tworzy zamowienie z koszyka, ceny liczone po stronie serwera.
    Wysyla powiadomienie asynchronicznie.
    """
    try:
        return svc.create_order(actor, payload)
    except OrderingError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.put("/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    admin: Actor = Depends(require_admin),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.update_status(order_id, payload.status, admin)
    except OrderingError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("/{order_id}/cancel", response_model=OrderOut)
def cancel_order(
    order_id: int,
    actor: Actor = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.cancel_order(order_id, actor)
    except OrderingError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
