import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import UUID

from schemas.shelf_schemas import PlacementResponse, ShelfLayout, ShelfRowResponse, ShelfSlotResponse
from services.exceptions import ValidationError


class InMemoryShelfRepository:
    """Shelves, their layout and placements, held in memory"""

    def __init__(self):
        self._lock = threading.RLock()
        self._shelves: Dict[UUID, ShelfLayout] = {}

    def create_shelf(self, layout: ShelfLayout) -> ShelfLayout:
        with self._lock:
            for existing in self._shelves.values():
                if existing.shelf.owner_id == layout.shelf.owner_id and existing.shelf.name == layout.shelf.name:
                    raise ValidationError("a shelf with this name already exists")
            self._shelves[layout.shelf.id] = layout.model_copy(deep=True)
            return layout.model_copy(deep=True)

    def list_shelves(self, owner_id: UUID) -> List[ShelfLayout]:
        with self._lock:
            shelves = [
                layout.model_copy(deep=True)
                for layout in self._shelves.values()
                if layout.shelf.owner_id == owner_id
            ]
        shelves.sort(key=lambda layout: layout.shelf.created_at, reverse=True)
        return shelves

    def get_shelf(self, owner_id: UUID, shelf_id: UUID) -> Optional[ShelfLayout]:
        with self._lock:
            layout = self._owned(owner_id, shelf_id)
            return layout.model_copy(deep=True) if layout else None

    def replace_layout(self, owner_id: UUID, shelf_id: UUID, rows: List[ShelfRowResponse],
                       slots: List[ShelfSlotResponse]) -> List[PlacementResponse]:
        """Swaps in a new layout; placements in removed slots become unplaced and are returned"""
        with self._lock:
            layout = self._owned(owner_id, shelf_id)
            if layout is None:
                return []

            now = _now()
            kept = {slot.id for slot in slots}
            displaced = []
            for placement in layout.placements:
                if placement.shelf_slot_id is not None and placement.shelf_slot_id not in kept:
                    placement.shelf_slot_id = None
                    placement.created_at = now
                    displaced.append(placement.model_copy())

            layout.rows = [row.model_copy(deep=True) for row in rows]
            layout.slots = [slot.model_copy() for slot in slots]
            layout.shelf.updated_at = now
            return displaced

    def assign_item(self, owner_id: UUID, shelf_id: UUID, slot_id: UUID, item_id: UUID) -> Optional[PlacementResponse]:
        with self._lock:
            layout = self._owned(owner_id, shelf_id)
            if layout is None:
                return None

            # an item lives in one place only
            for other in self._shelves.values():
                other.placements = [p for p in other.placements if p.item_id != item_id]

            placement = PlacementResponse(
                id=uuid.uuid4(),
                item_id=item_id,
                shelf_id=shelf_id,
                shelf_slot_id=slot_id,
                created_at=_now(),
            )
            layout.placements.append(placement)
            return placement.model_copy()

    def remove_item(self, owner_id: UUID, shelf_id: UUID, slot_id: UUID, item_id: UUID) -> bool:
        """Unplaces the item; False unless it sits in exactly that slot"""
        with self._lock:
            layout = self._owned(owner_id, shelf_id)
            if layout is None:
                return False
            for placement in layout.placements:
                if placement.item_id == item_id and placement.shelf_slot_id == slot_id:
                    placement.shelf_slot_id = None
                    placement.created_at = _now()
                    return True
            return False

    def forget_item(self, owner_id: UUID, item_id: UUID) -> None:
        with self._lock:
            for layout in self._shelves.values():
                if layout.shelf.owner_id == owner_id:
                    layout.placements = [p for p in layout.placements if p.item_id != item_id]

    def _owned(self, owner_id: UUID, shelf_id: UUID) -> Optional[ShelfLayout]:
        layout = self._shelves.get(shelf_id)
        if layout is None or layout.shelf.owner_id != owner_id:
            return None
        return layout


def _now() -> datetime:
    return datetime.now(timezone.utc)
