"""
Shelf layout editing and item placement
"""
import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from models.item import ItemType
from schemas.item_schemas import ItemCreate, ShelfPlacementInfo
from schemas.shelf_schemas import (
    LayoutSlotInput,
    LayoutUpdateResponse,
    PlacementWithItem,
    ScanAndAssignResponse,
    ScanStatus,
    ShelfColumnResponse,
    ShelfCreate,
    ShelfLayout,
    ShelfResponse,
    ShelfRowResponse,
    ShelfSlotResponse,
    ShelfSummaryResponse,
    ShelfWithLayoutResponse,
)
from services.exceptions import (
    ItemNotFoundError,
    ShelfNotFoundError,
    SlotNotFoundError,
    ValidationError,
)
from services.images import sanitize_photo_url

logger = logging.getLogger(__name__)


class ShelfService:
    """
    Owns shelf layouts (rows, columns, slots) and item placements.

    Slots are identified by (row_index, col_index): a layout update keeps the
    IDs of rows, columns and slots whose key survives, and items sitting in
    removed slots stay on the shelf as unplaced.
    """

    def __init__(self, repository, item_repository, item_service, catalog):
        self.repository = repository
        self.item_repository = item_repository
        self.item_service = item_service
        self.catalog = catalog

    def create_shelf(self, owner_id: UUID, payload: ShelfCreate) -> ShelfWithLayoutResponse:
        name = (payload.name or "").strip()
        if not name:
            raise ValidationError("name is required")
        photo_url = sanitize_photo_url(payload.photo_url)
        if not photo_url:
            raise ValidationError("photoUrl is required")

        now = datetime.now(timezone.utc)
        shelf = ShelfResponse(
            id=uuid.uuid4(),
            owner_id=owner_id,
            name=name,
            description=(payload.description or "").strip(),
            photo_url=photo_url,
            created_at=now,
            updated_at=now,
        )
        # one full-bleed slot to start with
        rows, slots = build_layout(shelf.id, [
            LayoutSlotInput(row_index=0, col_index=0, x_start_norm=0.0, x_end_norm=1.0,
                            y_start_norm=0.0, y_end_norm=1.0),
        ], ShelfLayout(shelf=shelf))

        created = self.repository.create_shelf(ShelfLayout(shelf=shelf, rows=rows, slots=slots))
        logger.info(f"Shelf {shelf.id} created for owner {owner_id}")
        return self._hydrate(owner_id, created)

    def list_shelves(self, owner_id: UUID) -> List[ShelfSummaryResponse]:
        summaries = []
        for layout in self.repository.list_shelves(owner_id):
            summaries.append(ShelfSummaryResponse(
                shelf=layout.shelf,
                item_count=len(layout.placements),
                placed_count=sum(1 for p in layout.placements if p.shelf_slot_id is not None),
                slot_count=len(layout.slots),
            ))
        return summaries

    def get_shelf(self, owner_id: UUID, shelf_id: UUID) -> ShelfWithLayoutResponse:
        return self._hydrate(owner_id, self._layout(owner_id, shelf_id))

    def update_layout(self, owner_id: UUID, shelf_id: UUID,
                      slots: List[LayoutSlotInput]) -> LayoutUpdateResponse:
        if not slots:
            raise ValidationError("at least one slot is required")
        existing = self._layout(owner_id, shelf_id)

        rows, new_slots = build_layout(shelf_id, slots, existing)
        displaced = self.repository.replace_layout(owner_id, shelf_id, rows, new_slots)
        logger.info(f"Shelf {shelf_id} layout replaced: {len(new_slots)} slots, {len(displaced)} items displaced")

        hydrated = self._hydrate(owner_id, self._layout(owner_id, shelf_id))
        self._refresh_cache(owner_id, hydrated, _item_ids(hydrated))

        displaced_ids = {placement.item_id for placement in displaced}
        return LayoutUpdateResponse(
            shelf=hydrated,
            displaced=[entry for entry in hydrated.unplaced if entry.placement.item_id in displaced_ids],
        )

    def assign_item(self, owner_id: UUID, shelf_id: UUID, slot_id: UUID, item_id: UUID) -> ShelfWithLayoutResponse:
        if self.item_repository.get(owner_id, item_id) is None:
            raise ItemNotFoundError()
        layout = self._layout(owner_id, shelf_id)
        if not any(slot.id == slot_id for slot in layout.slots):
            raise SlotNotFoundError()

        self.repository.assign_item(owner_id, shelf_id, slot_id, item_id)
        hydrated = self._hydrate(owner_id, self._layout(owner_id, shelf_id))
        self._refresh_cache(owner_id, hydrated, [item_id])
        return hydrated

    def remove_item(self, owner_id: UUID, shelf_id: UUID, slot_id: UUID, item_id: UUID) -> ShelfWithLayoutResponse:
        self._layout(owner_id, shelf_id)
        if not self.repository.remove_item(owner_id, shelf_id, slot_id, item_id):
            raise SlotNotFoundError()

        hydrated = self._hydrate(owner_id, self._layout(owner_id, shelf_id))
        self._refresh_cache(owner_id, hydrated, [item_id])
        return hydrated

    def scan_and_assign(self, owner_id: UUID, shelf_id: UUID, slot_id: UUID, isbn: str) -> ScanAndAssignResponse:
        """
        Places the book with this ISBN in the slot, creating it from the
        catalog when it is not in the library yet. Scanning a book that is
        already in that slot changes nothing.
        """
        isbn = (isbn or "").strip()
        if not isbn:
            raise ValidationError("isbn is required")

        layout = self._layout(owner_id, shelf_id)
        if not any(slot.id == slot_id for slot in layout.slots):
            raise SlotNotFoundError()

        existing = self.item_repository.find_by_isbn(owner_id, isbn)
        if existing is not None:
            placement = existing.shelf_placement
            if placement is not None and placement.shelf_id == shelf_id and placement.slot_id == slot_id:
                return ScanAndAssignResponse(item=existing, status=ScanStatus.PRESENT)
            item_id, status = existing.id, ScanStatus.MOVED
        else:
            results = self.catalog.lookup(isbn, ItemType.BOOK.value)
            metadata = results[0]
            created = self.item_service.create(owner_id, ItemCreate(
                title=metadata.title,
                creator=metadata.creator,
                item_type=ItemType.BOOK.value,
                release_year=metadata.release_year,
                page_count=metadata.page_count,
                isbn13=metadata.isbn13,
                isbn10=metadata.isbn10,
                description=metadata.description,
                cover_image=metadata.cover_image,
                genre=metadata.genre,
                retail_price_usd=metadata.retail_price_usd,
                google_volume_id=metadata.google_volume_id,
            ))
            item_id, status = created.id, ScanStatus.CREATED

        self.repository.assign_item(owner_id, shelf_id, slot_id, item_id)
        hydrated = self._hydrate(owner_id, self._layout(owner_id, shelf_id))
        self._refresh_cache(owner_id, hydrated, [item_id])

        item = self.item_repository.get(owner_id, item_id)
        if item is None:
            raise ItemNotFoundError()
        return ScanAndAssignResponse(item=item, status=status)

    def forget_item(self, owner_id: UUID, item_id: UUID) -> None:
        """Drops the placements of a deleted item"""
        self.repository.forget_item(owner_id, item_id)

    def _layout(self, owner_id: UUID, shelf_id: UUID) -> ShelfLayout:
        layout = self.repository.get_shelf(owner_id, shelf_id)
        if layout is None:
            raise ShelfNotFoundError()
        return layout

    def _hydrate(self, owner_id: UUID, layout: ShelfLayout) -> ShelfWithLayoutResponse:
        items = {item.id: item for item in self.item_repository.list(owner_id)}
        placed, unplaced = [], []
        for placement in layout.placements:
            item = items.get(placement.item_id)
            if item is None:
                continue
            entry = PlacementWithItem(item=item, placement=placement)
            if placement.shelf_slot_id is None:
                unplaced.append(entry)
            else:
                placed.append(entry)
        return ShelfWithLayoutResponse(
            shelf=layout.shelf,
            rows=layout.rows,
            slots=layout.slots,
            placements=placed,
            unplaced=unplaced,
        )

    def _refresh_cache(self, owner_id: UUID, layout: ShelfWithLayoutResponse, item_ids: Iterable[UUID]) -> None:
        slots = {slot.id: slot for slot in layout.slots}
        by_item: Dict[UUID, ShelfPlacementInfo] = {}
        for entry in layout.placements:
            slot = slots.get(entry.placement.shelf_slot_id)
            if slot is None:
                continue
            by_item[entry.placement.item_id] = ShelfPlacementInfo(
                shelf_id=layout.shelf.id,
                shelf_name=layout.shelf.name,
                slot_id=slot.id,
                row_index=slot.row_index,
                col_index=slot.col_index,
            )
        for item_id in item_ids:
            self.item_repository.update_shelf_placement(owner_id, item_id, by_item.get(item_id))


def build_layout(shelf_id: UUID, slots: List[LayoutSlotInput],
                 existing: ShelfLayout) -> Tuple[List[ShelfRowResponse], List[ShelfSlotResponse]]:
    """
    Validates a slot submission and turns it into rows (with columns) and
    slots. Raises ValidationError before anything is built when any slot
    is invalid.
    """
    if not slots:
        raise ValidationError("at least one slot is required")

    existing_slot_ids = {slot.id for slot in existing.slots}
    seen_keys = set()
    claimed_ids = set()
    groups: Dict[int, List[LayoutSlotInput]] = {}
    for slot in slots:
        if slot.row_index < 0 or slot.col_index < 0:
            raise ValidationError("row and column indexes must be non-negative")
        if not all(math.isfinite(value) for value in (slot.x_start_norm, slot.x_end_norm)):
            raise ValidationError(f"slot {slot.row_index}/{slot.col_index} has invalid x boundaries")
        if not all(math.isfinite(value) for value in (slot.y_start_norm, slot.y_end_norm)):
            raise ValidationError(f"slot {slot.row_index}/{slot.col_index} has invalid y boundaries")
        if slot.x_start_norm < 0 or slot.x_end_norm > 1 or slot.x_end_norm <= slot.x_start_norm:
            raise ValidationError(f"slot {slot.row_index}/{slot.col_index} has invalid x boundaries")
        if slot.y_start_norm < 0 or slot.y_end_norm > 1 or slot.y_end_norm <= slot.y_start_norm:
            raise ValidationError(f"slot {slot.row_index}/{slot.col_index} has invalid y boundaries")
        key = (slot.row_index, slot.col_index)
        if key in seen_keys:
            raise ValidationError(f"duplicate definition for row {slot.row_index} column {slot.col_index}")
        seen_keys.add(key)
        if slot.slot_id is not None:
            if slot.slot_id not in existing_slot_ids:
                raise ValidationError(f"slot {slot.slot_id} does not belong to this shelf")
            if slot.slot_id in claimed_ids:
                raise ValidationError(f"slot {slot.slot_id} is used more than once")
            claimed_ids.add(slot.slot_id)
        groups.setdefault(slot.row_index, []).append(slot)

    row_ids = {row.row_index: row.id for row in existing.rows}
    column_ids = {
        (row.row_index, column.col_index): column.id
        for row in existing.rows
        for column in row.columns
    }
    slot_ids = {(slot.row_index, slot.col_index): slot.id for slot in existing.slots}

    rows: List[ShelfRowResponse] = []
    built: List[ShelfSlotResponse] = []
    for row_index in sorted(groups):
        row_slots = sorted(groups[row_index], key=lambda s: s.col_index)
        row_id = row_ids.get(row_index) or uuid.uuid4()

        columns = []
        for slot in row_slots:
            key = (row_index, slot.col_index)
            column_id = column_ids.get(key) or uuid.uuid4()
            columns.append(ShelfColumnResponse(
                id=column_id,
                shelf_row_id=row_id,
                col_index=slot.col_index,
                x_start_norm=slot.x_start_norm,
                x_end_norm=slot.x_end_norm,
            ))
            built.append(ShelfSlotResponse(
                id=_slot_id(slot, slot_ids.get(key), claimed_ids),
                shelf_id=shelf_id,
                shelf_row_id=row_id,
                shelf_column_id=column_id,
                row_index=row_index,
                col_index=slot.col_index,
                x_start_norm=slot.x_start_norm,
                x_end_norm=slot.x_end_norm,
                y_start_norm=slot.y_start_norm,
                y_end_norm=slot.y_end_norm,
            ))

        rows.append(ShelfRowResponse(
            id=row_id,
            shelf_id=shelf_id,
            row_index=row_index,
            y_start_norm=min(slot.y_start_norm for slot in row_slots),
            y_end_norm=max(slot.y_end_norm for slot in row_slots),
            columns=columns,
        ))
    return rows, built


def _slot_id(slot: LayoutSlotInput, existing_id: Optional[UUID], claimed: set) -> UUID:
    if slot.slot_id is not None:
        return slot.slot_id
    # an explicit slotId elsewhere in the submission may have taken this key's id
    if existing_id is not None and existing_id not in claimed:
        claimed.add(existing_id)
        return existing_id
    return uuid.uuid4()


def _item_ids(layout: ShelfWithLayoutResponse) -> List[UUID]:
    ids = []
    for entry in list(layout.placements) + list(layout.unplaced):
        if entry.placement.item_id not in ids:
            ids.append(entry.placement.item_id)
    return ids
