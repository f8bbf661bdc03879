# eatery/domain/lifecycle.py
"""
Maszyna stanow realizacji zamowienia.

    pending -> preparing -> ready -> delivered
    pending -> cancelled
    preparing -> cancelled

Przejscia do przodu tylko admin, anulowanie admin albo wlasciciel.
Status platnosci (pending/paid/failed) to osobna os, nie jest tu obslugiwany.
"""
from eatery.domain.actor import Actor
from eatery.domain.errors import IllegalTransition, TransitionNotPermitted

PENDING = "pending"
PREPARING = "preparing"
READY = "ready"
DELIVERED = "delivered"
CANCELLED = "cancelled"

ORDER_STATUSES = (PENDING, PREPARING, READY, DELIVERED, CANCELLED)

FORWARD_TRANSITIONS = {
    PENDING: PREPARING,
    PREPARING: READY,
    READY: DELIVERED,
}
CANCELLABLE_STATUSES = frozenset({PENDING, PREPARING})
TERMINAL_STATUSES = frozenset({DELIVERED, CANCELLED})

PAYMENT_PENDING = "pending"
PAYMENT_PAID = "paid"
PAYMENT_FAILED = "failed"

PAYMENT_STATUSES = (PAYMENT_PENDING, PAYMENT_PAID, PAYMENT_FAILED)


def can_cancel(actor: Actor, owner_id: str) -> bool:
    return actor.is_admin or actor.user_id == owner_id


def check_transition(current: str, requested: str, actor: Actor, owner_id: str) -> None:
    """
    Waliduje przejscie ``current -> requested`` dla ``actor``.
    Nic nie zmienia, przy niedozwolonym przejsciu rzuca IllegalTransition
    (albo TransitionNotPermitted gdy brakuje uprawnien).
    """
    if requested not in ORDER_STATUSES:
        raise IllegalTransition(current, requested, f'Unknown order status "{requested}"')

    if requested == CANCELLED:
        if not can_cancel(actor, owner_id):
            raise TransitionNotPermitted(current, requested, actor.user_id)
        if current not in CANCELLABLE_STATUSES:
            raise IllegalTransition(
                current, requested, f'Cannot cancel an order with status "{current}"'
            )
        return

    if not actor.is_admin:
        raise TransitionNotPermitted(current, requested, actor.user_id)

    if FORWARD_TRANSITIONS.get(current) != requested:
        raise IllegalTransition(current, requested)
