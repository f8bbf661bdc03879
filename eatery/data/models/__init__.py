#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from eatery.data.models.menu_item import MenuItemModel
from eatery.data.models.order import OrderModel, OrderLineModel

__all__ = ["MenuItemModel", "OrderModel", "OrderLineModel"]
