# eatery/api/routers/payments.py
from fastapi import APIRouter, Depends, Header, HTTPException, Request
from starlette.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from eatery.api.deps import get_current_user, get_db, get_event_guard, get_notifier
from eatery.domain.actor import Actor
from eatery.domain.errors import OrderingError
from eatery.domain.schemas import (
    CheckoutSessionCreate,
    CheckoutSessionOut,
    PaymentIntentCreate,
    PaymentIntentOut,
    WebhookAck,
)
from eatery.services.payment_service import PaymentService

router = APIRouter(prefix="/payments", tags=["payments"])


def get_service(
    db: Session = Depends(get_db),
    notifier=Depends(get_notifier),
    event_guard=Depends(get_event_guard),
) -> PaymentService:
    return PaymentService(db, event_guard=event_guard, notification_service=notifier)


@router.post("/create-checkout-session", response_model=CheckoutSessionOut)
def create_checkout_session(
    payload: CheckoutSessionCreate,
    actor: Actor = Depends(get_current_user),
    svc: PaymentService = Depends(get_service),
):
    """Hostowana strona Stripe Checkout, po platnosci przychodzi checkout.session.completed."""
    try:
        return svc.create_checkout_session(actor, payload.amount)
    except OrderingError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("/create-payment-intent", response_model=PaymentIntentOut)
def create_payment_intent(
    payload: PaymentIntentCreate,
    actor: Actor = Depends(get_current_user),
    svc: PaymentService = Depends(get_service),
):
    try:
        return svc.create_payment_intent(actor, payload.amount)
    except OrderingError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("/webhook", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(None),
    svc: PaymentService = Depends(get_service),
):
    """
    Webhook Stripe. Podpis sprawdzany na surowym body (request.body()),
    dopiero potem parsowanie. Po autentykacji zawsze 200 - inaczej procesor ponawia.
    """
    payload = await request.body()
    try:
        outcome = await run_in_threadpool(svc.handle_webhook, payload, stripe_signature)
    except OrderingError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return WebhookAck(received=True, action=outcome.action)
