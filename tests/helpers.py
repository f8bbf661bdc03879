import hashlib
import hmac
import json
import time
import uuid
from decimal import Decimal

import jwt

from eatery.data.models.order import OrderLineModel, OrderModel
from eatery.utils.settings import JWT_ALGORITHM, JWT_SECRET

WEBHOOK_SECRET = "whsec_test_secret"


class FakeNotifier:
    def __init__(self):
        self.sent = []

    def send_order_notification(self, user_id, order_id, event):
        self.sent.append((user_id, order_id, event))


class FakeEventGuard:
    def __init__(self):
        self.seen = set()

    def already_processed(self, event_id):
        return event_id in self.seen

    def remember(self, event_id):
        if event_id in self.seen:
            return False
        self.seen.add(event_id)
        return True


def make_token(user_id, role="user", expires_in=3600):
    claims = {"id": user_id, "role": role, "exp": int(time.time()) + expires_in}
    return jwt.encode(claims, JWT_SECRET, algorithm=JWT_ALGORITHM)


def auth(user_id, role="user"):
    return {"Authorization": f"Bearer {make_token(user_id, role)}"}


def sign(payload: bytes, secret=WEBHOOK_SECRET, timestamp=None):
    """Naglowek Stripe-Signature w formacie t=...,v1=..."""
    ts = int(time.time()) if timestamp is None else timestamp
    signed = f"{ts}.{payload.decode('utf-8')}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={signature}"


def stripe_event(event_type, obj, event_id=None) -> bytes:
    event = {
        "id": event_id or f"evt_{uuid.uuid4().hex}",
        "object": "event",
        "type": event_type,
        "data": {"object": obj},
    }
    return json.dumps(event).encode("utf-8")


def payment_intent(pi_id, user_id, **extra):
    obj = {"id": pi_id, "object": "payment_intent", "metadata": {"userId": user_id}}
    obj.update(extra)
    return obj


def make_order(session, user_id="user-1", external_payment_ref="pi_123", payment_status="pending", status="pending"):
    order = OrderModel(
        user_id=user_id,
        status=status,
        payment_status=payment_status,
        payment_method="card",
        order_type="pickup",
        contact_phone="555-0100",
        subtotal=Decimal("20.00"),
        tax=Decimal("1.65"),
        delivery_fee=Decimal("0.00"),
        total_amount=Decimal("21.65"),
        external_payment_ref=external_payment_ref,
        lines=[
            OrderLineModel(
                position=0,
                menu_item_id="burger",
                name="Classic Burger",
                quantity=2,
                unit_price=Decimal("10.00"),
            )
        ],
    )
    session.add(order)
    session.commit()
    return order


class BrokenNotifier:
    """Broker niedostepny - kazde enqueue konczy sie bledem."""

    def __init__(self):
        self.attempts = 0

    def send_order_notification(self, user_id, order_id, event):
        self.attempts += 1
        raise ConnectionError("Error 111 connecting to redis:6379. Connection refused.")
