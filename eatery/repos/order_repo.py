# eatery/repos/order_repo.py
from datetime import datetime, timezone
from typing import List

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from eatery.data.models.order import OrderModel
from eatery.domain.errors import DuplicatePaymentReference
from eatery.domain.lifecycle import PAYMENT_PENDING


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        # bez commit - commit robi transaction() w serwisie
        self.db.add(order)
        try:
            self.db.flush()
        except IntegrityError as e:
            # jedyny unikalny klucz poza PK - rownolegly insert z tym samym payment ref
            if order.external_payment_ref:
                raise DuplicatePaymentReference(order.external_payment_ref) from e
            raise
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def refresh(self, order: OrderModel) -> OrderModel:
        self.db.refresh(order)
        return order

    def payment_ref_exists(self, external_payment_ref: str) -> bool:
        existing = self.db.execute(
            select(OrderModel.id).where(OrderModel.external_payment_ref == external_payment_ref)
        ).first()
        return existing is not None

    def list_orders(self, user_id: str | None = None) -> List[OrderModel]:
        query = select(OrderModel).order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        if user_id is not None:
            query = query.where(OrderModel.user_id == user_id)
        return list(self.db.execute(query).scalars().all())

    def update_status(self, order_id: int, old_status: str, new_status: str) -> int:
        """
        Warunkowy update statusu, odpowiednik optimistic locking:
        UPDATE orders SET status=:new WHERE id=:id AND status=:old
        0 wierszy = ktos zmienil status w miedzyczasie.
        """
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.status == old_status)
            .values(status=new_status, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def settle_payment(self, user_id: str, external_payment_ref: str, new_status: str) -> List[int]:
        """
        Jedna atomowa operacja match-and-set dla webhooka platnosci.
        Filtr payment_status == pending to straznik idempotencji - drugi
        (powtorzony albo rownolegly) event nie znajdzie juz zadnego wiersza.
        Zwraca id zaktualizowanych zamowien.
        """
        result = self.db.execute(
            update(OrderModel)
            .where(
                OrderModel.user_id == user_id,
                OrderModel.external_payment_ref == external_payment_ref,
                OrderModel.payment_status == PAYMENT_PENDING,
            )
            .values(payment_status=new_status, updated_at=datetime.now(timezone.utc))
            .returning(OrderModel.id)
            .execution_options(synchronize_session=False)
        )
        return list(result.scalars().all())

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
