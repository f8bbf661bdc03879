# eatery/services/payment_service.py
import json
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Tuple

import stripe
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from eatery.domain.actor import Actor
from eatery.domain.errors import (
    InvalidPaymentAmount,
    InvalidSignature,
    PaymentProviderError,
    TransactionFailure,
    UnresolvableEvent,
    WebhookNotConfigured,
)
from eatery.domain.lifecycle import PAYMENT_FAILED, PAYMENT_PAID
from eatery.repos.order_repo import OrderRepo
from eatery.services.notification_service import ORDER_PAID, NotificationService
from eatery.utils.logging import get_logger
from eatery.utils.retry import stripe_retry
from eatery.utils.settings import (
    CLIENT_URL,
    PAYMENT_CURRENCY,
    PAYMENT_FAILED_MARKS_ORDER,
    STRIPE_SECRET_KEY,
    STRIPE_WEBHOOK_SECRET,
    STRIPE_WEBHOOK_TOLERANCE,
)

logger = get_logger(__name__)

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
PAYMENT_INTENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_INTENT_FAILED = "payment_intent.payment_failed"

# event -> docelowy paymentStatus
EVENT_TARGET_STATUS = {
    CHECKOUT_SESSION_COMPLETED: PAYMENT_PAID,
    PAYMENT_INTENT_SUCCEEDED: PAYMENT_PAID,
    PAYMENT_INTENT_FAILED: PAYMENT_FAILED,
}

MIN_PAYMENT_AMOUNT = Decimal("0.50")
MIN_CHECKOUT_AMOUNT = Decimal("1.00")

# co zrobil webhook z eventem
ACTION_PAID = "paid"
ACTION_FAILED = "failed"
ACTION_LOGGED = "logged"
ACTION_IGNORED = "ignored"
ACTION_UNRESOLVED = "unresolved"
ACTION_DUPLICATE = "duplicate"


@dataclass(frozen=True)
class WebhookOutcome:
    action: str
    event_id: str | None = None
    event_type: str | None = None
    order_ids: Tuple[int, ...] = field(default_factory=tuple)


def _to_cents(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _failure_message(obj: dict) -> str | None:
    error = obj.get("last_payment_error")
    if isinstance(error, dict):
        return error.get("message")
    return None


class PaymentService:
    """
    Uzgadnianie platnosci z procesorem (Stripe).

    Eventy przychodza at-least-once, w dowolnej kolejnosci, czasem dla
    nieznanych zamowien. Kazdy event:
    -weryfikacja podpisu na surowych bajtach, przed parsowaniem
    -korelacja (userId z metadata + payment intent id)
    -jeden warunkowy UPDATE ... WHERE payment_status = 'pending'
    Powtorka albo rownolegly event trafia w 0 wierszy i jest no-op.
    """

    def __init__(
        self,
        db: Session,
        webhook_secret: str | None = None,
        tolerance: int = STRIPE_WEBHOOK_TOLERANCE,
        mark_failed: bool = PAYMENT_FAILED_MARKS_ORDER,
        event_guard=None,
        notification_service=None,
        api_key: str | None = None,
        currency: str = PAYMENT_CURRENCY,
        client_url: str = CLIENT_URL,
    ):
        self.repo = OrderRepo(db)
        self.webhook_secret = STRIPE_WEBHOOK_SECRET if webhook_secret is None else webhook_secret
        self.tolerance = tolerance
        self.mark_failed = mark_failed
        self.event_guard = event_guard
        self.notification_service = notification_service or NotificationService()
        self.api_key = STRIPE_SECRET_KEY if api_key is None else api_key
        self.currency = currency
        self.client_url = client_url.rstrip("/")

    # =====================================================
    # WEBHOOK
    # =====================================================
    def verify_signature(self, payload: bytes, signature: str | None) -> None:
        """Autentykacja eventu - HMAC po dokladnie tych bajtach, ktore przyszly."""
        if not self.webhook_secret:
            logger.error("Stripe webhook secret not set")
            raise WebhookNotConfigured()

        if not signature:
            logger.warning("Webhook rejected: missing Stripe-Signature header")
            raise InvalidSignature("Webhook Error: missing signature header")

        try:
            stripe.WebhookSignature.verify_header(
                payload.decode("utf-8"),
                signature,
                self.webhook_secret,
                self.tolerance,
            )
        except (stripe.SignatureVerificationError, UnicodeDecodeError) as e:
            logger.warning(f"Webhook signature verification failed: {e}")
            raise InvalidSignature(f"Webhook Error: {e}") from e

    def handle_webhook(self, payload: bytes, signature: str | None) -> WebhookOutcome:
        """
        Use Case: Webhook procesora platnosci.

        Rzuca InvalidSignature / WebhookNotConfigured (brak ack) albo
        TransactionFailure (baza niedostepna - procesor ponowi event).
        Wszystko inne konczy sie WebhookOutcome i ackiem.
        """
        self.verify_signature(payload, signature)

        try:
            event = json.loads(payload)
        except ValueError as e:
            logger.warning(f"Authenticated webhook payload is not valid JSON, ignoring: {e}")
            return WebhookOutcome(action=ACTION_IGNORED)

        if not isinstance(event, dict):
            logger.warning("Authenticated webhook payload is not an event object, ignoring")
            return WebhookOutcome(action=ACTION_IGNORED)

        event_id = event.get("id")
        event_type = event.get("type")
        if not isinstance(event_id, str):
            event_id = None

        if not isinstance(event_type, str):
            logger.warning(f"Webhook event {event_id} has no event type, ignoring")
            return WebhookOutcome(action=ACTION_IGNORED, event_id=event_id)

        if event_id and self.event_guard and self.event_guard.already_processed(event_id):
            logger.info(f"Webhook event {event_id} ({event_type}) already processed, skipping")
            return WebhookOutcome(action=ACTION_DUPLICATE, event_id=event_id, event_type=event_type)

        target = EVENT_TARGET_STATUS.get(event_type)
        data = event.get("data")
        obj = data.get("object") if isinstance(data, dict) else None

        if target is not None and not isinstance(obj, dict):
            logger.warning(f"Webhook event {event_id} ({event_type}) has no data.object, ignoring")
            return WebhookOutcome(action=ACTION_IGNORED, event_id=event_id, event_type=event_type)

        if target is None:
            logger.info(f"Unhandled event type {event_type}")
            outcome = WebhookOutcome(action=ACTION_IGNORED, event_id=event_id, event_type=event_type)
        elif target == PAYMENT_FAILED and not self.mark_failed:
            logger.warning(f"PaymentIntent failed: {obj.get('id')} {_failure_message(obj) or ''}".rstrip())
            outcome = WebhookOutcome(action=ACTION_LOGGED, event_id=event_id, event_type=event_type)
        else:
            try:
                outcome = self._settle(event_id, event_type, obj, target)
            except UnresolvableEvent as e:
                logger.warning(f"Webhook event {event_id} ({event_type}) unresolvable: {e}")
                outcome = WebhookOutcome(action=ACTION_UNRESOLVED, event_id=event_id, event_type=event_type)

        if event_id and self.event_guard:
            self.event_guard.remember(event_id)

        return outcome

    def _settle(self, event_id, event_type: str, obj: dict, target: str) -> WebhookOutcome:
        user_id, payment_ref = self._correlation_key(event_type, obj)

        try:
            order_ids = self.repo.settle_payment(user_id, payment_ref, target)
            self.repo.commit()
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.error(f"DB error while applying {event_type} for payment {payment_ref}: {e}")
            raise TransactionFailure("Payment update failed, event will be redelivered") from e

        if not order_ids:
            raise UnresolvableEvent(
                f"No matching pending order found for user {user_id} and payment {payment_ref}"
            )

        if target == PAYMENT_FAILED:
            error = _failure_message(obj)
            for order_id in order_ids:
                logger.warning(f"Order {order_id} payment failed ({payment_ref}): {error}")
            action = ACTION_FAILED
        else:
            for order_id in order_ids:
                logger.info(f"Order {order_id} marked as paid via {event_type} ({payment_ref})")
                self._notify_paid(user_id, order_id)
            action = ACTION_PAID

        return WebhookOutcome(
            action=action,
            event_id=event_id,
            event_type=event_type,
            order_ids=tuple(order_ids),
        )

    @staticmethod
    def _correlation_key(event_type: str, obj: dict) -> Tuple[str, str]:
        metadata = obj.get("metadata")
        if not isinstance(metadata, dict):
            metadata = {}
        user_id = metadata.get("userId") or metadata.get("user_id")

        if event_type == CHECKOUT_SESSION_COMPLETED:
            payment_ref = obj.get("payment_intent")
            # payment_intent moze przyjsc rozwiniety jako obiekt
            if isinstance(payment_ref, dict):
                payment_ref = payment_ref.get("id")
        else:
            payment_ref = obj.get("id")

        if not user_id or not isinstance(payment_ref, str) or not payment_ref:
            raise UnresolvableEvent(
                f"Missing correlation metadata (user={user_id!r}, payment={payment_ref!r})"
            )
        return str(user_id), str(payment_ref)

    def _notify_paid(self, user_id: str, order_id: int) -> None:
        # platnosc juz zapisana, blad brokera tylko logujemy
        try:
            self.notification_service.send_order_notification(user_id, order_id, ORDER_PAID)
        except Exception as e:
            logger.error(f"Could not enqueue {ORDER_PAID} notification for order {order_id}: {e}")

    # =====================================================
    # PAYMENT INTENT
    # =====================================================
    def create_payment_intent(self, actor: Actor, amount: Decimal) -> dict:
        """
        Use Case: PaymentIntent dla platnosci karta.
        ``metadata.userId`` wraca potem w webhooku jako czesc klucza korelacji.
        """
        if amount < MIN_PAYMENT_AMOUNT:
            raise InvalidPaymentAmount(f"Invalid amount for payment intent, minimum is {MIN_PAYMENT_AMOUNT}")

        if not self.api_key:
            logger.error("Stripe secret key not set")
            raise PaymentProviderError("Payment provider is not configured")

        cents = _to_cents(amount)

        try:
            intent = self._create_intent(
                amount=cents,
                currency=self.currency,
                automatic_payment_methods={"enabled": True},
                metadata={"userId": actor.user_id},
                api_key=self.api_key,
            )
        except stripe.StripeError as e:
            logger.error(f"Error creating payment intent for user {actor.user_id}: {e}")
            raise PaymentProviderError("Failed to create payment intent") from e

        logger.info(f"PaymentIntent {intent['id']} created for user {actor.user_id} ({cents} {self.currency})")

        return {
            "client_secret": intent["client_secret"],
            "payment_intent_id": intent["id"],
        }

    @stripe_retry()
    def _create_intent(self, **params):
        return stripe.PaymentIntent.create(**params)

    # =====================================================
    # CHECKOUT SESSION
    # =====================================================
    def create_checkout_session(self, actor: Actor, amount: Decimal) -> dict:
        """
        Use Case: Platnosc przez hostowana strone Stripe Checkout.

        Jedna pozycja na cala kwote zamowienia. ``metadata.userId`` trafia do
        sesji i do jej PaymentIntent, wiec zarowno ``checkout.session.completed``
        jak i ``payment_intent.succeeded`` da sie skorelowac z zamowieniem.
        """
        if amount < MIN_CHECKOUT_AMOUNT:
            raise InvalidPaymentAmount(f"Invalid amount for checkout, minimum is {MIN_CHECKOUT_AMOUNT}")

        if not self.api_key:
            logger.error("Stripe secret key not set")
            raise PaymentProviderError("Payment provider is not configured")

        cents = _to_cents(amount)
        metadata = {"userId": actor.user_id}

        try:
            session = self._create_session(
                payment_method_types=["card"],
                line_items=[
                    {
                        "price_data": {
                            "currency": self.currency,
                            "product_data": {"name": "Your Food Order"},
                            "unit_amount": cents,
                        },
                        "quantity": 1,
                    }
                ],
                mode="payment",
                success_url=f"{self.client_url}/checkout?success=true&session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=f"{self.client_url}/checkout?canceled=true",
                metadata=metadata,
                payment_intent_data={"metadata": metadata},
                api_key=self.api_key,
            )
        except stripe.StripeError as e:
            logger.error(f"Error creating checkout session for user {actor.user_id}: {e}")
            raise PaymentProviderError("Error creating payment session") from e

        logger.info(f"Checkout session {session['id']} created for user {actor.user_id} ({cents} {self.currency})")

        return {
            "url": session["url"],
            "session_id": session["id"],
        }

    @stripe_retry()
    def _create_session(self, **params):
        return stripe.checkout.Session.create(**params)
