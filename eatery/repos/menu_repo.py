# eatery/repos/menu_repo.py
from typing import Iterable, List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from eatery.data.models.menu_item import MenuItemModel
from eatery.domain.errors import DuplicateMenuItem
from eatery.domain.pricing import CatalogEntry, CatalogSnapshot


class MenuRepo:
    def __init__(self, db: Session):
        self.db = db

    def fetch(self, item_refs: Iterable[str]) -> CatalogSnapshot:
        """Odczyt katalogu dla silnika wyceny - jeden SELECT ... WHERE id IN (...)."""
        refs = set(item_refs)
        if not refs:
            return CatalogSnapshot(found={})

        rows = self.db.execute(
            select(MenuItemModel).where(MenuItemModel.id.in_(refs))
        ).scalars().all()

        found = {
            row.id: CatalogEntry(
                id=row.id,
                name=row.name,
                price=row.price,
                available=row.available,
            )
            for row in rows
        }
        return CatalogSnapshot(found=found, missing=frozenset(refs - found.keys()))

    def get_item(self, item_id: str) -> MenuItemModel | None:
        return self.db.get(MenuItemModel, item_id)

    def list_items(self, available_only: bool = True) -> List[MenuItemModel]:
        query = select(MenuItemModel).order_by(MenuItemModel.category, MenuItemModel.name)
        if available_only:
            query = query.where(MenuItemModel.available.is_(True))
        return list(self.db.execute(query).scalars().all())

    # zapisy bez commit - zakres transakcji daje serwis (transaction())
    def add_item(self, item: MenuItemModel) -> MenuItemModel:
        self.db.add(item)
        try:
            self.db.flush()
        except IntegrityError as e:
            raise DuplicateMenuItem(item.id) from e
        return item

    def save(self, item: MenuItemModel) -> MenuItemModel:
        self.db.flush()
        return item

    def delete_item(self, item: MenuItemModel) -> None:
        self.db.delete(item)
        self.db.flush()
