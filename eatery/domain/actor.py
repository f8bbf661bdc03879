# eatery/domain/actor.py
from dataclasses import dataclass

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class Actor:
    """Zweryfikowana tozsamosc z tokena JWT, core ufa jej bez dalszych sprawdzen."""

    user_id: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE
