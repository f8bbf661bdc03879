# eatery/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

OrderType = Literal["delivery", "pickup"]
PaymentMethod = Literal["card", "cash"]
MenuCategory = Literal["main", "appetizer", "dessert", "beverage", "side"]
OrderStatus = Literal["pending", "preparing", "ready", "delivered", "cancelled"]


class DeliveryAddress(BaseModel):
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None


class CartItemIn(BaseModel):
    """
    Pozycja koszyka w jednym kanonicznym ksztalcie.

    Klient moze przyslac id jako ``item_ref``, ``menu_item_id``/``menuItemId``
    albo ``menu_item`` (string lub obiekt z ``id``/``_id``) - tu to skladamy,
    silnik wyceny widzi juz tylko ``item_ref``. Pole ``price`` od klienta
    jest ignorowane.
    """

    item_ref: str = Field(..., min_length=1)
    quantity: Union[int, float] = Field(..., description="Ilosc, dodatnia liczba calkowita")
    special_instructions: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_shape(cls, data):
        if not isinstance(data, dict):
            return data

        normalized = dict(data)
        ref = data.get("item_ref")
        if ref is None:
            ref = data.get("menu_item_id", data.get("menuItemId"))
        if ref is None:
            embedded = data.get("menu_item", data.get("menuItem"))
            if isinstance(embedded, dict):
                ref = embedded.get("id", embedded.get("_id"))
            else:
                ref = embedded
        if ref is not None:
            normalized["item_ref"] = str(ref)

        if "special_instructions" not in data and "specialInstructions" in data:
            normalized["special_instructions"] = data["specialInstructions"]
        return normalized


class OrderCreate(BaseModel):
    items: List[CartItemIn] = Field(..., min_length=1)
    order_type: OrderType
    delivery_address: Optional[DeliveryAddress] = None
    payment_method: PaymentMethod
    contact_phone: str = Field(..., min_length=3, max_length=40)
    special_instructions: Optional[str] = None
    external_payment_ref: Optional[str] = Field(None, min_length=1, max_length=255)

    @model_validator(mode="after")
    def _check_delivery_address(self):
        if self.order_type == "delivery" and self.delivery_address is None:
            raise ValueError("delivery_address is required for delivery orders")
        if self.order_type == "pickup":
            self.delivery_address = None
        return self


class OrderLineOut(BaseModel):
    menu_item_id: str
    name: str
    quantity: int
    unit_price: Decimal
    special_instructions: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: int
    user_id: str
    lines: List[OrderLineOut]
    status: str
    payment_status: str
    payment_method: str
    order_type: str
    delivery_address: Optional[DeliveryAddress] = None
    contact_phone: str
    special_instructions: Optional[str] = None
    subtotal: Decimal
    tax: Decimal
    delivery_fee: Decimal
    total_amount: Decimal
    external_payment_ref: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class MenuItemIn(BaseModel):
    id: Optional[str] = Field(None, min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    image: str = ""
    category: MenuCategory
    vegetarian: bool = False
    spicy_level: int = Field(1, ge=1, le=5)
    popular: bool = False
    available: bool = True
    preparation_time: Optional[int] = Field(None, ge=0)


class MenuItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    image: Optional[str] = None
    category: Optional[MenuCategory] = None
    vegetarian: Optional[bool] = None
    spicy_level: Optional[int] = Field(None, ge=1, le=5)
    popular: Optional[bool] = None
    available: Optional[bool] = None
    preparation_time: Optional[int] = Field(None, ge=0)


class MenuItemOut(BaseModel):
    id: str
    name: str
    description: str
    price: Decimal
    image: str
    category: str
    vegetarian: bool
    spicy_level: int
    popular: bool
    available: bool
    preparation_time: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class PaymentIntentCreate(BaseModel):
    amount: Decimal = Field(..., gt=0, description="Kwota w glownej jednostce waluty")


class PaymentIntentOut(BaseModel):
    client_secret: str
    payment_intent_id: str


class WebhookAck(BaseModel):
    received: bool = True
    action: str


class CheckoutSessionCreate(BaseModel):
    amount: Decimal = Field(..., gt=0, description="Kwota w glownej jednostce waluty")


class CheckoutSessionOut(BaseModel):
    url: str
    session_id: str
