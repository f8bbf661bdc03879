import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, Text

from eatery.data.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class MenuItemModel(Base):
    __tablename__ = "menu_items"

    id = Column(String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Numeric(10, 2), nullable=False)
    image = Column(String(500), nullable=False, default="")
    category = Column(String(20), nullable=False)  # main, appetizer, dessert, beverage, side

    vegetarian = Column(Boolean, nullable=False, default=False)
    spicy_level = Column(Integer, nullable=False, default=1)
    popular = Column(Boolean, nullable=False, default=False)
    available = Column(Boolean, nullable=False, default=True)
    preparation_time = Column(Integer, nullable=True)  # minuty

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
