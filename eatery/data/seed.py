# eatery/data/seed.py
from decimal import Decimal

from eatery.data.database import Database, transaction
from eatery.data.models.menu_item import MenuItemModel
from eatery.repos.menu_repo import MenuRepo
from eatery.utils.logging import get_logger
from eatery.utils.settings import DATABASE_URL

logger = get_logger(__name__)

DEMO_MENU = [
    {"id": "burger", "name": "Classic Burger", "price": Decimal("10.00"), "category": "main", "popular": True},
    {"id": "veggie-wrap", "name": "Veggie Wrap", "price": Decimal("8.50"), "category": "main", "vegetarian": True},
    {"id": "samosa", "name": "Samosa (2 pcs)", "price": Decimal("4.25"), "category": "appetizer", "vegetarian": True, "spicy_level": 2},
    {"id": "fries", "name": "Masala Fries", "price": Decimal("3.75"), "category": "side", "vegetarian": True, "spicy_level": 3},
    {"id": "gulab-jamun", "name": "Gulab Jamun", "price": Decimal("5.00"), "category": "dessert", "vegetarian": True},
    {"id": "mango-lassi", "name": "Mango Lassi", "price": Decimal("4.50"), "category": "beverage", "vegetarian": True},
]


def seed(database: Database) -> int:
    session = database.session()
    try:
        # not forcing: only seed if empty
        if MenuRepo(session).list_items(available_only=False):
            logger.info("Menu already seeded, no action taken")
            return 0
        with transaction(session):
            session.add_all(MenuItemModel(**item) for item in DEMO_MENU)
        logger.info(f"Seeded {len(DEMO_MENU)} menu items")
        return len(DEMO_MENU)
    finally:
        session.close()


if __name__ == "__main__":
    db = Database(DATABASE_URL)
    db.create_all()
    try:
        seed(db)
    finally:
        db.dispose()
