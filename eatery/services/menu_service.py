# eatery/services/menu_service.py
from typing import List

from sqlalchemy.orm import Session

from eatery.data.database import transaction
from eatery.data.models.menu_item import MenuItemModel
from eatery.domain.errors import DuplicateMenuItem, MenuItemNotFound
from eatery.domain.schemas import MenuItemIn, MenuItemUpdate
from eatery.repos.menu_repo import MenuRepo
from eatery.utils.logging import get_logger

logger = get_logger(__name__)


class MenuService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = MenuRepo(db)

    def list_items(self) -> List[MenuItemModel]:
        return self.repo.list_items(available_only=True)

    def get_item(self, item_id: str) -> MenuItemModel:
        item = self.repo.get_item(item_id)
        if not item:
            raise MenuItemNotFound(item_id)
        return item

    def create_item(self, payload: MenuItemIn) -> MenuItemModel:
        data = payload.model_dump(exclude_none=True)

        with transaction(self.db):
            if payload.id and self.repo.get_item(payload.id):
                raise DuplicateMenuItem(payload.id)
            created = self.repo.add_item(MenuItemModel(**data))

        logger.info(f"Menu item {created.id} ({created.name}) created")
        return created

    def update_item(self, item_id: str, payload: MenuItemUpdate) -> MenuItemModel:
        with transaction(self.db):
            item = self.get_item(item_id)
            for key, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
                setattr(item, key, value)
            # zmiana ceny nie dotyka istniejacych zamowien - tam jest snapshot
            updated = self.repo.save(item)

        logger.info(f"Menu item {item_id} updated")
        return updated

    def delete_item(self, item_id: str) -> None:
        with transaction(self.db):
            item = self.get_item(item_id)
            self.repo.delete_item(item)

        logger.info(f"Menu item {item_id} deleted")
