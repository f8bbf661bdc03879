# eatery/domain/pricing.py
"""
Wycena zamowienia po stronie serwera.

Ceny zawsze z katalogu (snapshot w chwili tworzenia zamowienia), nigdy od klienta.
Silnik nie robi I/O poza jednym odczytem katalogu przez ``CatalogLookup``.
"""
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Mapping, Optional, Protocol, Sequence

from eatery.domain.errors import InvalidQuantity, ItemNotFound
from eatery.utils.settings import DELIVERY_FEE, TAX_RATE

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")

ORDER_TYPE_DELIVERY = "delivery"
ORDER_TYPE_PICKUP = "pickup"


def to_money(value) -> Decimal:
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CartLine:
    item_ref: str
    quantity: object
    special_instructions: Optional[str] = None


@dataclass(frozen=True)
class CatalogEntry:
    id: str
    name: str
    price: Decimal
    available: bool = True


@dataclass(frozen=True)
class CatalogSnapshot:
    """Wynik odczytu katalogu: znalezione rekordy + id ktorych nie ma."""

    found: Mapping[str, CatalogEntry]
    missing: frozenset = field(default_factory=frozenset)

    def resolve(self, item_ref: str) -> CatalogEntry:
        entry = self.found.get(item_ref)
        if entry is None:
            raise ItemNotFound(item_ref, "not_found")
        if not entry.available:
            raise ItemNotFound(item_ref, "unavailable")
        return entry


class CatalogLookup(Protocol):
    def fetch(self, item_refs: Iterable[str]) -> CatalogSnapshot:
        ...


@dataclass(frozen=True)
class PricedLine:
    item_ref: str
    name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    special_instructions: Optional[str] = None


@dataclass(frozen=True)
class PricedOrder:
    lines: List[PricedLine]
    subtotal: Decimal
    tax: Decimal
    delivery_fee: Decimal
    total: Decimal


def validate_quantity(item_ref: str, quantity) -> int:
    # bool to podklasa int, odrzucamy jawnie
    if isinstance(quantity, bool):
        raise InvalidQuantity(item_ref, quantity)
    if isinstance(quantity, int):
        value = quantity
    elif isinstance(quantity, float) and quantity.is_integer():
        value = int(quantity)
    elif isinstance(quantity, Decimal) and quantity.is_finite() and quantity == quantity.to_integral_value():
        value = int(quantity)
    else:
        raise InvalidQuantity(item_ref, quantity)

    if value < 1:
        raise InvalidQuantity(item_ref, quantity)
    return value


class PricingEngine:
    def __init__(self, tax_rate: Decimal | None = None, delivery_fee: Decimal | None = None):
        self.tax_rate = Decimal(TAX_RATE if tax_rate is None else tax_rate)
        self.delivery_fee = to_money(DELIVERY_FEE if delivery_fee is None else delivery_fee)

    def price(self, cart: Sequence[CartLine], order_type: str, catalog: CatalogLookup) -> PricedOrder:
        # 1. unikalne id, jeden odczyt katalogu
        refs = list(dict.fromkeys(line.item_ref for line in cart))
        snapshot = catalog.fetch(refs)

        # 2-4. kazda linia musi sie rozwiazac, inaczej cale zamowienie odpada
        lines: List[PricedLine] = []
        for line in cart:
            entry = snapshot.resolve(line.item_ref)
            quantity = validate_quantity(line.item_ref, line.quantity)
            unit_price = to_money(entry.price)
            lines.append(
                PricedLine(
                    item_ref=entry.id,
                    name=entry.name,
                    quantity=quantity,
                    unit_price=unit_price,
                    line_total=unit_price * quantity,
                    special_instructions=line.special_instructions,
                )
            )

        subtotal = sum((l.line_total for l in lines), ZERO)

        # 5-7. podatek zaokraglony raz, total liczony z zaokraglonego podatku
        tax = to_money(subtotal * self.tax_rate)
        delivery_fee = self.delivery_fee if order_type == ORDER_TYPE_DELIVERY else ZERO
        total = subtotal + tax + delivery_fee

        return PricedOrder(
            lines=lines,
            subtotal=subtotal,
            tax=tax,
            delivery_fee=delivery_fee,
            total=total,
        )
