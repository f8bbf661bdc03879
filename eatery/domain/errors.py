# eatery/domain/errors.py
"""
Bledy domenowe zamowien i platnosci.

Kazdy blad niesie ``status_code`` - routery zamieniaja go na HTTPException,
wiec warstwa HTTP nigdy nie widzi wyjatkow bazy danych.
"""


class OrderingError(Exception):
    status_code = 400


class ItemNotFound(OrderingError):
    status_code = 404

    def __init__(self, item_ref: str, reason: str = "not_found"):
        self.item_ref = item_ref
        self.reason = reason
        if reason == "unavailable":
            message = f"Menu item with id {item_ref} is not available"
        else:
            message = f"Menu item with id {item_ref} not found"
        super().__init__(message)


class InvalidQuantity(OrderingError):
    status_code = 400

    def __init__(self, item_ref: str, quantity):
        self.item_ref = item_ref
        self.quantity = quantity
        super().__init__(
            f"Invalid quantity {quantity!r} for menu item {item_ref}: must be a positive integer"
        )


class TransactionFailure(OrderingError):
    status_code = 503

    def __init__(self, message: str = "Order could not be saved, please retry"):
        super().__init__(message)


class DuplicatePaymentReference(OrderingError):
    status_code = 409

    def __init__(self, external_payment_ref: str):
        self.external_payment_ref = external_payment_ref
        super().__init__(f"An order for payment {external_payment_ref} already exists")


class OrderNotFound(OrderingError):
    status_code = 404

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class OrderAccessDenied(OrderingError):
    status_code = 403

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Unauthorized to access order {order_id}")


class IllegalTransition(OrderingError):
    status_code = 409

    def __init__(self, current: str, requested: str, message: str | None = None):
        self.current = current
        self.requested = requested
        super().__init__(
            message or f'Cannot change order status from "{current}" to "{requested}"'
        )


class TransitionNotPermitted(IllegalTransition):
    """Stan pozwala na zmiane, ale aktor nie ma uprawnien."""

    status_code = 403

    def __init__(self, current: str, requested: str, actor_id: str):
        self.actor_id = actor_id
        super().__init__(
            current,
            requested,
            f'User {actor_id} is not allowed to change order status from "{current}" to "{requested}"',
        )


class MenuItemNotFound(OrderingError):
    status_code = 404

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Menu item {item_id} not found")


class InvalidSignature(OrderingError):
    status_code = 400


class WebhookNotConfigured(OrderingError):
    status_code = 500

    def __init__(self):
        super().__init__("Webhook configuration error")


class PaymentProviderError(OrderingError):
    status_code = 502


class UnresolvableEvent(OrderingError):
    """Zdarzenie bez klucza korelacji albo bez pasujacego zamowienia - tylko log, ack."""

    status_code = 200


class InvalidPaymentAmount(OrderingError):
    status_code = 400


class DuplicateMenuItem(OrderingError):
    status_code = 409

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Menu item with id {item_id} already exists")
