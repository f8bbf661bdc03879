# eatery/services/order_service.py
from typing import List

from sqlalchemy.orm import Session

from eatery.data.database import transaction
from eatery.data.models.order import OrderLineModel, OrderModel
from eatery.domain.actor import Actor
from eatery.domain.errors import DuplicatePaymentReference, IllegalTransition, OrderAccessDenied, OrderNotFound
from eatery.domain.lifecycle import CANCELLED, PAYMENT_PENDING, PENDING, check_transition
from eatery.domain.pricing import CartLine, PricingEngine
from eatery.domain.schemas import OrderCreate
from eatery.repos.menu_repo import MenuRepo
from eatery.repos.order_repo import OrderRepo
from eatery.services.notification_service import ORDER_PLACED, ORDER_STATUS_CHANGED, NotificationService
from eatery.utils.logging import get_logger

logger = get_logger(__name__)


class OrderService:
    """
    Serwis odpowiedzialny za domene zamowien:
    tworzenie (wycena + atomowy zapis), odczyt, zmiany statusu realizacji.
    """

    def __init__(self, db: Session, notification_service=None, pricing: PricingEngine | None = None):
        self.db = db
        self.repo = OrderRepo(db)
        self.menu_repo = MenuRepo(db)
        self.pricing = pricing or PricingEngine()
        self.notification_service = notification_service or NotificationService()

    # =====================================================
    # COMMANDS
    # =====================================================
    def create_order(self, actor: Actor, payload: OrderCreate) -> OrderModel:
        """
        Use Case: Tworzenie zamowienia.

        1. Wycena po stronie serwera (ceny z katalogu, nie od klienta)
        2. Zapis zamowienia z liniami i sumami w jednej transakcji
        3. Powiadomienie (async)

        Blad walidacji albo zapisu = rollback calosci, zadne zamowienie nie jest widoczne.
        """
        cart = [
            CartLine(
                item_ref=item.item_ref,
                quantity=item.quantity,
                special_instructions=item.special_instructions,
            )
            for item in payload.items
        ]

        with transaction(self.db):
            # odczyt katalogu i zapis w tej samej transakcji
            priced = self.pricing.price(cart, payload.order_type, self.menu_repo)

            if payload.external_payment_ref and self.repo.payment_ref_exists(payload.external_payment_ref):
                raise DuplicatePaymentReference(payload.external_payment_ref)

            order = OrderModel(
                user_id=actor.user_id,
                status=PENDING,
                payment_status=PAYMENT_PENDING,
                payment_method=payload.payment_method,
                order_type=payload.order_type,
                delivery_address=(
                    payload.delivery_address.model_dump() if payload.delivery_address else None
                ),
                contact_phone=payload.contact_phone,
                special_instructions=payload.special_instructions,
                subtotal=priced.subtotal,
                tax=priced.tax,
                delivery_fee=priced.delivery_fee,
                total_amount=priced.total,
                external_payment_ref=payload.external_payment_ref,
                lines=[
                    OrderLineModel(
                        position=position,
                        menu_item_id=line.item_ref,
                        name=line.name,
                        quantity=line.quantity,
                        unit_price=line.unit_price,
                        special_instructions=line.special_instructions,
                    )
                    for position, line in enumerate(priced.lines)
                ],
            )
            self.repo.add_order(order)

        logger.info(
            f"Order {order.id} created for user {actor.user_id}: "
            f"{len(order.lines)} lines, total {order.total_amount}"
        )

        self._notify(actor.user_id, order.id, ORDER_PLACED)

        return order

    def update_status(self, order_id: int, new_status: str, actor: Actor) -> OrderModel:
        """
        Use Case: Zmiana statusu realizacji.
        Walidacja przejscia + warunkowy update (WHERE status = biezacy).
        """
        with transaction(self.db):
            order = self.repo.get_order(order_id)
            if not order:
                raise OrderNotFound(order_id)

            current = order.status
            check_transition(current, new_status, actor, order.user_id)

            rowcount = self.repo.update_status(order_id, current, new_status)

            # 0 wierszy - rownolegle zadanie zmienilo status pierwsze
            if rowcount == 0:
                raise IllegalTransition(
                    current,
                    new_status,
                    f'Order {order_id} is no longer "{current}", status was changed concurrently',
                )

        order = self.repo.refresh(order)

        logger.info(f"Order {order_id} status {current} -> {new_status} by {actor.user_id}")

        self._notify(order.user_id, order.id, ORDER_STATUS_CHANGED)

        return order

    def cancel_order(self, order_id: int, actor: Actor) -> OrderModel:
        return self.update_status(order_id, CANCELLED, actor)

    def _notify(self, user_id: str, order_id: int, event: str) -> None:
        # zamowienie juz zapisane, blad brokera tylko logujemy
        try:
            self.notification_service.send_order_notification(user_id, order_id, event)
        except Exception as e:
            logger.error(f"Could not enqueue {event} notification for order {order_id}: {e}")

    # =====================================================
    # QUERY
    # =====================================================
    def get_order(self, order_id: int, actor: Actor) -> OrderModel:
        order = self.repo.get_order(order_id)

        if not order:
            raise OrderNotFound(order_id)

        if not actor.is_admin and order.user_id != actor.user_id:
            raise OrderAccessDenied(order_id)

        return order

    def list_orders(self, actor: Actor) -> List[OrderModel]:
        #admin widzi wszystko, user tylko swoje
        if actor.is_admin:
            return self.repo.list_orders()
        return self.repo.list_orders(user_id=actor.user_id)
