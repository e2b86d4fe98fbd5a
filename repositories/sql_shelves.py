from datetime import datetime, timezone
from typing import List, Optional
import uuid
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from models.database import session_scope
from models.shelf import ItemPlacement, Shelf, ShelfColumn, ShelfRow, ShelfSlot
from schemas.shelf_schemas import (
    PlacementResponse,
    ShelfColumnResponse,
    ShelfLayout,
    ShelfResponse,
    ShelfRowResponse,
    ShelfSlotResponse,
)
from services.exceptions import ValidationError


class SqlShelfRepository:
    """Shelves, layout and placements stored through SQLAlchemy"""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def create_shelf(self, layout: ShelfLayout) -> ShelfLayout:
        shelf = layout.shelf
        try:
            with session_scope(self._session_factory) as db:
                db.add(Shelf(
                    id=shelf.id,
                    owner_id=shelf.owner_id,
                    name=shelf.name,
                    description=shelf.description,
                    photo_url=shelf.photo_url,
                    created_at=shelf.created_at,
                    updated_at=shelf.updated_at,
                ))
                db.flush()
                for row in layout.rows:
                    _add_row(db, shelf.id, row)
                db.flush()
                for slot in layout.slots:
                    db.add(ShelfSlot(**slot.model_dump()))
        except IntegrityError:
            raise ValidationError("a shelf with this name already exists")
        return layout.model_copy(deep=True)

    def list_shelves(self, owner_id: UUID) -> List[ShelfLayout]:
        with session_scope(self._session_factory) as db:
            shelves = (
                db.query(Shelf)
                .filter(Shelf.owner_id == owner_id)
                .order_by(Shelf.created_at.desc())
                .all()
            )
            return [_to_layout(shelf) for shelf in shelves]

    def get_shelf(self, owner_id: UUID, shelf_id: UUID) -> Optional[ShelfLayout]:
        with session_scope(self._session_factory) as db:
            shelf = _owned(db, owner_id, shelf_id)
            return _to_layout(shelf) if shelf else None

    def replace_layout(self, owner_id: UUID, shelf_id: UUID, rows: List[ShelfRowResponse],
                       slots: List[ShelfSlotResponse]) -> List[PlacementResponse]:
        """
        Writes a new layout in one transaction. Placements in removed slots
        are unplaced first, kept slots are repointed to their new rows and
        columns, and only then are stale rows and columns deleted.
        """
        with session_scope(self._session_factory) as db:
            shelf = _owned(db, owner_id, shelf_id)
            if shelf is None:
                return []

            now = datetime.now(timezone.utc)
            kept_slots = {slot.id for slot in slots}
            displaced = []
            for placement in shelf.placements:
                if placement.shelf_slot_id is not None and placement.shelf_slot_id not in kept_slots:
                    placement.shelf_slot_id = None
                    placement.created_at = now
                    displaced.append(PlacementResponse.model_validate(placement))
            db.flush()

            for slot in list(shelf.slots):
                if slot.id not in kept_slots:
                    shelf.slots.remove(slot)
            db.flush()

            existing_rows = {row.id: row for row in shelf.rows}
            for row in rows:
                orm_row = existing_rows.get(row.id)
                if orm_row is None:
                    _add_row(db, shelf.id, row)
                    continue
                orm_row.row_index = row.row_index
                orm_row.y_start_norm = row.y_start_norm
                orm_row.y_end_norm = row.y_end_norm
                existing_columns = {column.id: column for column in orm_row.columns}
                for column in row.columns:
                    orm_column = existing_columns.get(column.id)
                    if orm_column is None:
                        db.add(ShelfColumn(**column.model_dump()))
                    else:
                        orm_column.col_index = column.col_index
                        orm_column.x_start_norm = column.x_start_norm
                        orm_column.x_end_norm = column.x_end_norm
            db.flush()

            existing_slots = {slot.id: slot for slot in shelf.slots}
            for slot in slots:
                orm_slot = existing_slots.get(slot.id)
                if orm_slot is None:
                    db.add(ShelfSlot(**slot.model_dump()))
                else:
                    for key, value in slot.model_dump().items():
                        setattr(orm_slot, key, value)
            db.flush()

            kept_rows = {row.id for row in rows}
            kept_columns = {column.id for row in rows for column in row.columns}
            for orm_row in list(shelf.rows):
                if orm_row.id not in kept_rows:
                    shelf.rows.remove(orm_row)
                    continue
                for orm_column in list(orm_row.columns):
                    if orm_column.id not in kept_columns:
                        orm_row.columns.remove(orm_column)

            shelf.updated_at = now
            return displaced

    def assign_item(self, owner_id: UUID, shelf_id: UUID, slot_id: UUID, item_id: UUID) -> Optional[PlacementResponse]:
        with session_scope(self._session_factory) as db:
            if _owned(db, owner_id, shelf_id) is None:
                return None
            db.query(ItemPlacement).filter(ItemPlacement.item_id == item_id).delete()
            db.flush()
            placement = ItemPlacement(
                id=uuid.uuid4(),
                item_id=item_id,
                shelf_id=shelf_id,
                shelf_slot_id=slot_id,
                created_at=datetime.now(timezone.utc),
            )
            db.add(placement)
            db.flush()
            return PlacementResponse.model_validate(placement)

    def remove_item(self, owner_id: UUID, shelf_id: UUID, slot_id: UUID, item_id: UUID) -> bool:
        with session_scope(self._session_factory) as db:
            if _owned(db, owner_id, shelf_id) is None:
                return False
            placement = (
                db.query(ItemPlacement)
                .filter(
                    ItemPlacement.shelf_id == shelf_id,
                    ItemPlacement.item_id == item_id,
                    ItemPlacement.shelf_slot_id == slot_id,
                )
                .first()
            )
            if placement is None:
                return False
            placement.shelf_slot_id = None
            placement.created_at = datetime.now(timezone.utc)
            return True

    def forget_item(self, owner_id: UUID, item_id: UUID) -> None:
        with session_scope(self._session_factory) as db:
            owned = db.query(Shelf.id).filter(Shelf.owner_id == owner_id)
            (
                db.query(ItemPlacement)
                .filter(ItemPlacement.item_id == item_id, ItemPlacement.shelf_id.in_(owned))
                .delete(synchronize_session=False)
            )


def _owned(db: Session, owner_id: UUID, shelf_id: UUID) -> Optional[Shelf]:
    return db.query(Shelf).filter(Shelf.id == shelf_id, Shelf.owner_id == owner_id).first()


def _add_row(db: Session, shelf_id: UUID, row: ShelfRowResponse) -> None:
    db.add(ShelfRow(
        id=row.id,
        shelf_id=shelf_id,
        row_index=row.row_index,
        y_start_norm=row.y_start_norm,
        y_end_norm=row.y_end_norm,
    ))
    for column in row.columns:
        db.add(ShelfColumn(**column.model_dump()))


def _to_layout(shelf: Shelf) -> ShelfLayout:
    rows = []
    for row in sorted(shelf.rows, key=lambda r: r.row_index):
        columns = [
            ShelfColumnResponse.model_validate(column)
            for column in sorted(row.columns, key=lambda c: c.col_index)
        ]
        rows.append(ShelfRowResponse(
            id=row.id,
            shelf_id=row.shelf_id,
            row_index=row.row_index,
            y_start_norm=row.y_start_norm,
            y_end_norm=row.y_end_norm,
            columns=columns,
        ))
    slots = [
        ShelfSlotResponse.model_validate(slot)
        for slot in sorted(shelf.slots, key=lambda s: (s.row_index, s.col_index))
    ]
    placements = [
        PlacementResponse.model_validate(placement)
        for placement in sorted(shelf.placements, key=lambda p: p.created_at)
    ]
    return ShelfLayout(
        shelf=ShelfResponse.model_validate(shelf),
        rows=rows,
        slots=slots,
        placements=placements,
    )
