from decimal import Decimal

import pytest
from sqlalchemy import func, select

from eatery.data.models.order import OrderLineModel, OrderModel
from eatery.domain.actor import Actor
from eatery.domain.errors import (
    DuplicatePaymentReference,
    IllegalTransition,
    InvalidQuantity,
    ItemNotFound,
    OrderAccessDenied,
    OrderNotFound,
    TransitionNotPermitted,
)
from eatery.domain.schemas import OrderCreate
from eatery.repos.order_repo import OrderRepo
from eatery.services.notification_service import ORDER_PLACED, ORDER_STATUS_CHANGED
from eatery.services.order_service import OrderService

from helpers import BrokenNotifier

ADMIN = Actor(user_id="admin-1", role="admin")
USER = Actor(user_id="user-1")
OTHER = Actor(user_id="user-2")


def order_payload(items, **overrides):
    data = {
        "items": items,
        "order_type": "pickup",
        "payment_method": "card",
        "contact_phone": "555-0100",
    }
    data.update(overrides)
    return OrderCreate(**data)


def count_rows(session, model):
    return session.execute(select(func.count()).select_from(model)).scalar_one()


@pytest.fixture
def svc(session, menu, notifier):
    return OrderService(session, notification_service=notifier)


def test_create_order_persists_lines_and_totals(svc, session, notifier):
    order = svc.create_order(
        USER,
        order_payload([{"item_ref": "burger", "quantity": 2}], external_payment_ref="pi_1"),
    )

    stored = session.get(OrderModel, order.id)
    assert stored.user_id == "user-1"
    assert stored.status == "pending"
    assert stored.payment_status == "pending"
    assert stored.total_amount == Decimal("21.65")
    assert stored.tax == Decimal("1.65")
    assert stored.delivery_fee == Decimal("0.00")
    assert stored.external_payment_ref == "pi_1"
    assert [(l.menu_item_id, l.quantity, l.unit_price) for l in stored.lines] == [
        ("burger", 2, Decimal("10.00"))
    ]
    assert notifier.sent == [("user-1", order.id, ORDER_PLACED)]


def test_client_supplied_price_is_ignored(svc):
    order = svc.create_order(
        USER,
        order_payload([{"item_ref": "burger", "quantity": 1, "price": "0.01"}]),
    )

    assert order.lines[0].unit_price == Decimal("10.00")
    assert order.subtotal == Decimal("10.00")


def test_delivery_order_keeps_address(svc):
    address = {"street": "1 Main St", "city": "Austin", "state": "TX", "postal_code": "73301"}
    order = svc.create_order(
        USER,
        order_payload([{"item_ref": "burger", "quantity": 2}], order_type="delivery", delivery_address=address),
    )

    assert order.total_amount == Decimal("25.64")
    assert order.delivery_address["city"] == "Austin"


def test_missing_item_leaves_nothing_behind(svc, session, notifier):
    with pytest.raises(ItemNotFound):
        svc.create_order(
            USER,
            order_payload([{"item_ref": "burger", "quantity": 1}, {"item_ref": "deleted-item", "quantity": 1}]),
        )

    assert count_rows(session, OrderModel) == 0
    assert count_rows(session, OrderLineModel) == 0
    assert notifier.sent == []


def test_invalid_quantity_leaves_nothing_behind(svc, session):
    with pytest.raises(InvalidQuantity):
        svc.create_order(
            USER,
            order_payload([{"item_ref": "burger", "quantity": 1}, {"item_ref": "fries", "quantity": 0}]),
        )

    assert count_rows(session, OrderModel) == 0
    assert count_rows(session, OrderLineModel) == 0


def test_unavailable_item_rejected(svc, session):
    with pytest.raises(ItemNotFound) as exc:
        svc.create_order(USER, order_payload([{"item_ref": "retired", "quantity": 1}]))

    assert exc.value.reason == "unavailable"
    assert count_rows(session, OrderModel) == 0


def test_deleted_menu_item_fails_order(svc, session, menu):
    session.delete(menu["lassi"])
    session.commit()

    with pytest.raises(ItemNotFound):
        svc.create_order(USER, order_payload([{"item_ref": "lassi", "quantity": 1}]))

    assert count_rows(session, OrderModel) == 0


def test_duplicate_payment_reference_rejected(svc, session):
    svc.create_order(USER, order_payload([{"item_ref": "burger", "quantity": 1}], external_payment_ref="pi_dup"))

    with pytest.raises(DuplicatePaymentReference):
        svc.create_order(USER, order_payload([{"item_ref": "fries", "quantity": 1}], external_payment_ref="pi_dup"))

    assert count_rows(session, OrderModel) == 1


def test_price_change_does_not_touch_existing_order(svc, session, menu):
    order = svc.create_order(USER, order_payload([{"item_ref": "burger", "quantity": 1}]))

    menu["burger"].price = Decimal("15.00")
    session.commit()

    session.expire_all()
    stored = session.get(OrderModel, order.id)
    assert stored.lines[0].unit_price == Decimal("10.00")
    assert stored.total_amount == Decimal("10.83")


def test_admin_walks_order_to_delivered_then_cancel_fails(svc, notifier):
    order = svc.create_order(USER, order_payload([{"item_ref": "burger", "quantity": 1}]))

    for status in ("preparing", "ready", "delivered"):
        order = svc.update_status(order.id, status, ADMIN)
        assert order.status == status

    with pytest.raises(IllegalTransition):
        svc.cancel_order(order.id, ADMIN)

    assert svc.get_order(order.id, ADMIN).status == "delivered"
    assert [e for (_, _, e) in notifier.sent].count(ORDER_STATUS_CHANGED) == 3


def test_owner_can_cancel_pending_order(svc):
    order = svc.create_order(USER, order_payload([{"item_ref": "burger", "quantity": 1}]))

    cancelled = svc.cancel_order(order.id, USER)

    assert cancelled.status == "cancelled"


def test_stranger_cannot_cancel_or_advance(svc, session):
    order = svc.create_order(USER, order_payload([{"item_ref": "burger", "quantity": 1}]))

    with pytest.raises(TransitionNotPermitted):
        svc.cancel_order(order.id, OTHER)
    with pytest.raises(TransitionNotPermitted):
        svc.update_status(order.id, "preparing", OTHER)

    session.expire_all()
    assert session.get(OrderModel, order.id).status == "pending"


def test_update_status_unknown_order(svc):
    with pytest.raises(OrderNotFound):
        svc.update_status(999, "preparing", ADMIN)


def test_conditional_status_update_detects_concurrent_change(svc, session):
    order = svc.create_order(USER, order_payload([{"item_ref": "burger", "quantity": 1}]))
    repo = OrderRepo(session)

    assert repo.update_status(order.id, "pending", "preparing") == 1
    # drugi "rownolegly" request wciaz mysli, ze status to pending
    assert repo.update_status(order.id, "pending", "cancelled") == 0
    session.commit()

    session.expire_all()
    assert session.get(OrderModel, order.id).status == "preparing"


def test_get_order_access_rules(svc):
    order = svc.create_order(USER, order_payload([{"item_ref": "burger", "quantity": 1}]))

    assert svc.get_order(order.id, USER).id == order.id
    assert svc.get_order(order.id, ADMIN).id == order.id
    with pytest.raises(OrderAccessDenied):
        svc.get_order(order.id, OTHER)
    with pytest.raises(OrderNotFound):
        svc.get_order(12345, ADMIN)


def test_list_orders_scoped_to_user(svc):
    mine = svc.create_order(USER, order_payload([{"item_ref": "burger", "quantity": 1}]))
    theirs = svc.create_order(OTHER, order_payload([{"item_ref": "fries", "quantity": 1}]))

    assert [o.id for o in svc.list_orders(USER)] == [mine.id]
    assert {o.id for o in svc.list_orders(ADMIN)} == {mine.id, theirs.id}


def test_broker_outage_does_not_fail_committed_order(session, menu):
    notifier = BrokenNotifier()
    svc = OrderService(session, notification_service=notifier)

    order = svc.create_order(USER, order_payload([{"item_ref": "burger", "quantity": 1}]))
    updated = svc.update_status(order.id, "preparing", ADMIN)

    assert notifier.attempts == 2
    assert updated.status == "preparing"
    assert count_rows(session, OrderModel) == 1


def test_concurrent_duplicate_payment_reference_maps_to_conflict(svc, session, monkeypatch):
    svc.create_order(USER, order_payload([{"item_ref": "burger", "quantity": 1}], external_payment_ref="pi_race"))
    # drugi request przeszedl sprawdzenie zanim pierwszy zrobil insert
    monkeypatch.setattr(svc.repo, "payment_ref_exists", lambda ref: False)

    with pytest.raises(DuplicatePaymentReference):
        svc.create_order(OTHER, order_payload([{"item_ref": "fries", "quantity": 1}], external_payment_ref="pi_race"))

    assert count_rows(session, OrderModel) == 1
    assert count_rows(session, OrderLineModel) == 1
