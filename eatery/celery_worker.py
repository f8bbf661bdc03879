# eatery/celery_worker.py
from celery import Celery

from eatery.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "eatery",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# explicite import taskow, zeby Celery je zarejestrowal
celery_app.conf.imports = (
    "eatery.services.notification_service",
)

celery_app.conf.timezone = "UTC"
