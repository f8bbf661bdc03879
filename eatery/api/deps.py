# eatery/api/deps.py
from typing import Iterator

import jwt
from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from eatery.domain.actor import Actor
from eatery.utils.logging import get_logger
from eatery.utils.settings import JWT_ALGORITHM, JWT_SECRET

logger = get_logger(__name__)


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()


def get_notifier(request: Request):
    return request.app.state.notifier


def get_event_guard(request: Request):
    return request.app.state.event_guard


def get_current_user(authorization: str | None = Header(None)) -> Actor:
    """Bearer JWT -> Actor. Wydawanie tokenow (OAuth) jest poza tym serwisem."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Authentication required. No token provided.")

    token = authorization.split(" ", 1)[1]
    try:
        claims = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired. Please log in again.")
    except jwt.InvalidTokenError as e:
        logger.warning(f"JWT verification error: {e}")
        raise HTTPException(status_code=403, detail="Invalid token.")

    user_id = claims.get("id") or claims.get("sub")
    if not user_id:
        raise HTTPException(status_code=403, detail="Invalid token.")

    return Actor(user_id=str(user_id), role=claims.get("role") or "user")


def require_admin(actor: Actor = Depends(get_current_user)) -> Actor:
    if not actor.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required.")
    return actor
