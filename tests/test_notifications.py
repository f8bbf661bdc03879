from eatery.services import notification_service
from eatery.services.notification_service import (
    ORDER_PAID,
    NotificationService,
    send_order_notification_task,
)


def test_task_logs_and_reports_sent():
    result = send_order_notification_task.run("user-1", 7, ORDER_PAID)

    assert result == {"user_id": "user-1", "order_id": 7, "event": ORDER_PAID, "status": "sent"}


def test_service_enqueues_task(monkeypatch):
    queued = []
    monkeypatch.setattr(
        notification_service.send_order_notification_task,
        "delay",
        lambda *args: queued.append(args),
    )

    NotificationService().send_order_notification("user-1", 7, ORDER_PAID)

    assert queued == [("user-1", 7, ORDER_PAID)]
