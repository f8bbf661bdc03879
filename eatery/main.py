# eatery/main.py
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from eatery.api.routers import health, menu_items, orders, payments
from eatery.data.database import Database
from eatery.services.event_guard import EventGuard
from eatery.services.notification_service import NotificationService
from eatery.utils.logging import get_logger
from eatery.utils.settings import DATABASE_URL

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # uchwyt bazy otwierany przy starcie, zamykany przy shutdown
    database = app.state.database
    if database is None:
        database = Database(DATABASE_URL, pool_pre_ping=True)
        app.state.database = database
    logger.info("Initializing database...")
    database.create_all()
    try:
        yield
    finally:
        database.dispose()


def create_app(database: Database | None = None, notifier=None, event_guard=None) -> FastAPI:
    app = FastAPI(
        title="Eatery Ordering Service",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.database = database
    app.state.notifier = notifier or NotificationService()
    app.state.event_guard = event_guard if event_guard is not None else EventGuard()

    # Include routers
    app.include_router(health.router)
    app.include_router(menu_items.router)
    app.include_router(orders.router)
    app.include_router(payments.router)

    return app


if __name__ == "__main__":
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
