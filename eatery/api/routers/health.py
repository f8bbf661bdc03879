# eatery/api/routers/health.py
from fastapi import APIRouter, Request
from sqlalchemy.exc import SQLAlchemyError

from eatery.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
def health(request: Request):
    try:
        request.app.state.database.ping()
        database = "ok"
    except SQLAlchemyError as e:
        logger.warning(f"Health check database ping failed: {e}")
        database = "unavailable"
    return {"status": "ok", "service": "eatery", "database": database}
