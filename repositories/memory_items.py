import threading
from typing import Dict, List, Optional
from uuid import UUID

from models.item import ItemType
from schemas.item_schemas import ItemResponse, ShelfPlacementInfo
from .filters import ListOptions, apply_limit, matches, sort_items


class InMemoryItemRepository:
    """Items kept in a dict; every record is copied on the way in and out"""

    def __init__(self):
        self._lock = threading.RLock()
        self._items: Dict[UUID, ItemResponse] = {}

    def create(self, item: ItemResponse) -> ItemResponse:
        with self._lock:
            self._items[item.id] = item.model_copy(deep=True)
            return item.model_copy(deep=True)

    def get(self, owner_id: UUID, item_id: UUID) -> Optional[ItemResponse]:
        with self._lock:
            item = self._items.get(item_id)
            if item is None or item.owner_id != owner_id:
                return None
            return item.model_copy(deep=True)

    def update(self, item: ItemResponse) -> Optional[ItemResponse]:
        with self._lock:
            current = self._items.get(item.id)
            if current is None or current.owner_id != item.owner_id:
                return None
            stored = item.model_copy(deep=True)
            # placement is owned by the shelf service
            stored.shelf_placement = current.shelf_placement
            self._items[item.id] = stored
            return stored.model_copy(deep=True)

    def delete(self, owner_id: UUID, item_id: UUID) -> bool:
        with self._lock:
            item = self._items.get(item_id)
            if item is None or item.owner_id != owner_id:
                return False
            del self._items[item_id]
            return True

    def list(self, owner_id: UUID, options: Optional[ListOptions] = None) -> List[ItemResponse]:
        options = options or ListOptions()
        with self._lock:
            selected = [
                item.model_copy(deep=True)
                for item in self._items.values()
                if item.owner_id == owner_id and matches(item, options)
            ]
        return apply_limit(sort_items(selected), options.limit)

    def find_by_isbn(self, owner_id: UUID, isbn: str) -> Optional[ItemResponse]:
        for item in self.list(owner_id):
            if item.isbn13 == isbn or item.isbn10 == isbn:
                return item
        return None

    def list_series_books(self, owner_id: UUID) -> List[ItemResponse]:
        """Books with a series name, oldest first"""
        books = [item for item in self.list(owner_id, ListOptions(item_type=ItemType.BOOK)) if item.series_name.strip()]
        books.reverse()
        return books

    def update_shelf_placement(self, owner_id: UUID, item_id: UUID,
                               placement: Optional[ShelfPlacementInfo]) -> None:
        with self._lock:
            item = self._items.get(item_id)
            if item is None or item.owner_id != owner_id:
                return
            item.shelf_placement = placement.model_copy() if placement else None
