# eatery/services/notification_service.py
from eatery.celery_worker import celery_app
from eatery.utils.logging import get_logger

logger = get_logger(__name__)

ORDER_PLACED = "order_placed"
ORDER_PAID = "order_paid"
ORDER_STATUS_CHANGED = "order_status_changed"


class NotificationService:
    """
    Serwis do wysylania powiadomien o zamowieniach.
    Uzywa Celery do asynchronicznego przetwarzania.
    """

    @staticmethod
    def send_order_notification(user_id: str, order_id: int, event: str):
        send_order_notification_task.delay(user_id, order_id, event)


@celery_app.task(name="eatery.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: str, order_id: int, event: str):
    """
    Celery task - w prawdziwym systemie email/SMS/push.
    Teraz tylko loguje.
    """
    logger.info(f"[NOTIFICATION] User {user_id}: order {order_id} -> {event}")
    return {"user_id": user_id, "order_id": order_id, "event": event, "status": "sent"}
