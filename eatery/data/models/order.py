from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from eatery.data.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)

    status = Column(String(20), nullable=False, default="pending")  # pending, preparing, ready, delivered, cancelled
    payment_status = Column(String(20), nullable=False, default="pending")  # pending, paid, failed
    payment_method = Column(String(10), nullable=False)  # card, cash

    order_type = Column(String(10), nullable=False)  # delivery, pickup
    delivery_address = Column(JSON, nullable=True)
    contact_phone = Column(String(40), nullable=False)
    special_instructions = Column(Text, nullable=True)

    # liczone raz przy tworzeniu, potem tylko odczyt
    subtotal = Column(Numeric(10, 2), nullable=False)
    tax = Column(Numeric(10, 2), nullable=False)
    delivery_fee = Column(Numeric(10, 2), nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)

    # klucz korelacji z procesorem platnosci (payment intent id)
    external_payment_ref = Column(String(255), nullable=True, unique=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    lines = relationship(
        "OrderLineModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLineModel.position",
        lazy="selectin",
    )


class OrderLineModel(Base):
    __tablename__ = "order_lines"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)

    # bez FK do menu_items - snapshot ma przetrwac usuniecie pozycji z menu
    menu_item_id = Column(String(64), nullable=False)
    name = Column(String(200), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    special_instructions = Column(Text, nullable=True)

    order = relationship("OrderModel", back_populates="lines")
