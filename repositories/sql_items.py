from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import and_, exists, func, or_
from sqlalchemy.orm import Session, sessionmaker

from models.database import session_scope
from models.item import BookStatus, Item, ItemType, ShelfStatus
from models.shelf import ItemPlacement, Shelf, ShelfSlot
from schemas.item_schemas import ItemResponse, ShelfPlacementInfo
from .filters import ListOptions, apply_limit, matches_initial


class SqlItemRepository:
    """Items stored through SQLAlchemy; the shelf placement is read from the placement tables"""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def create(self, item: ItemResponse) -> ItemResponse:
        with session_scope(self._session_factory) as db:
            db.add(Item(**_to_columns(item)))
        created = item.model_copy(deep=True)
        created.shelf_placement = None
        return created

    def get(self, owner_id: UUID, item_id: UUID) -> Optional[ItemResponse]:
        with session_scope(self._session_factory) as db:
            row = db.query(Item).filter(Item.id == item_id, Item.owner_id == owner_id).first()
            if row is None:
                return None
            return self._hydrate(db, [row])[0]

    def update(self, item: ItemResponse) -> Optional[ItemResponse]:
        with session_scope(self._session_factory) as db:
            row = db.query(Item).filter(Item.id == item.id, Item.owner_id == item.owner_id).first()
            if row is None:
                return None
            for key, value in _to_columns(item).items():
                setattr(row, key, value)
            db.flush()
            return self._hydrate(db, [row])[0]

    def delete(self, owner_id: UUID, item_id: UUID) -> bool:
        with session_scope(self._session_factory) as db:
            # placements go with the item (ON DELETE CASCADE)
            deleted = db.query(Item).filter(Item.id == item_id, Item.owner_id == owner_id).delete()
            return deleted > 0

    def list(self, owner_id: UUID, options: Optional[ListOptions] = None) -> List[ItemResponse]:
        options = options or ListOptions()
        with session_scope(self._session_factory) as db:
            query = db.query(Item).filter(Item.owner_id == owner_id)

            if options.item_type is not None:
                query = query.filter(Item.item_type == options.item_type.value)

            status = options.reading_status
            if status is not None:
                if options.item_type is not None:
                    query = query.filter(Item.reading_status == status.value)
                elif status == BookStatus.NONE:
                    query = query.filter(or_(
                        Item.item_type != ItemType.BOOK.value,
                        Item.reading_status == BookStatus.NONE.value,
                    ))
                else:
                    query = query.filter(
                        Item.item_type == ItemType.BOOK.value,
                        Item.reading_status == status.value,
                    )

            search = (options.query or "").strip().lower()
            if search:
                query = query.filter(func.lower(Item.title).contains(search, autoescape=True))

            placed = exists().where(and_(
                ItemPlacement.item_id == Item.id,
                ItemPlacement.shelf_slot_id.isnot(None),
            ))
            if options.shelf_status == ShelfStatus.ON:
                query = query.filter(placed)
            elif options.shelf_status == ShelfStatus.OFF:
                query = query.filter(~placed)

            rows = query.order_by(Item.created_at.desc(), Item.title.asc()).all()
            items = [item for item in self._hydrate(db, rows) if matches_initial(item, options.initial)]
        return apply_limit(items, options.limit)

    def find_by_isbn(self, owner_id: UUID, isbn: str) -> Optional[ItemResponse]:
        with session_scope(self._session_factory) as db:
            row = (
                db.query(Item)
                .filter(Item.owner_id == owner_id, or_(Item.isbn13 == isbn, Item.isbn10 == isbn))
                .order_by(Item.created_at.desc())
                .first()
            )
            if row is None:
                return None
            return self._hydrate(db, [row])[0]

    def list_series_books(self, owner_id: UUID) -> List[ItemResponse]:
        with session_scope(self._session_factory) as db:
            rows = (
                db.query(Item)
                .filter(
                    Item.owner_id == owner_id,
                    Item.item_type == ItemType.BOOK.value,
                    func.trim(Item.series_name) != "",
                )
                .order_by(Item.created_at.asc(), Item.title.asc())
                .all()
            )
            return self._hydrate(db, rows)

    def update_shelf_placement(self, owner_id: UUID, item_id: UUID,
                               placement: Optional[ShelfPlacementInfo]) -> None:
        """Nothing to store: placement is derived from item_shelf_locations"""

    def _hydrate(self, db: Session, rows: Iterable[Item]) -> List[ItemResponse]:
        rows = list(rows)
        placements = _placements_for(db, [row.id for row in rows])
        items = []
        for row in rows:
            item = ItemResponse.model_validate(row)
            item.shelf_placement = placements.get(row.id)
            items.append(item)
        return items


def _placements_for(db: Session, item_ids: List[UUID]) -> Dict[UUID, ShelfPlacementInfo]:
    if not item_ids:
        return {}
    rows = (
        db.query(ItemPlacement.item_id, Shelf.id, Shelf.name, ShelfSlot.id, ShelfSlot.row_index, ShelfSlot.col_index)
        .join(Shelf, Shelf.id == ItemPlacement.shelf_id)
        .join(ShelfSlot, ShelfSlot.id == ItemPlacement.shelf_slot_id)
        .filter(ItemPlacement.item_id.in_(item_ids))
        .all()
    )
    return {
        item_id: ShelfPlacementInfo(
            shelf_id=shelf_id,
            shelf_name=shelf_name,
            slot_id=slot_id,
            row_index=row_index,
            col_index=col_index,
        )
        for item_id, shelf_id, shelf_name, slot_id, row_index, col_index in rows
    }


def _to_columns(item: ItemResponse) -> dict:
    data = item.model_dump(exclude={"shelf_placement"})
    data["owner_id"] = item.owner_id
    data["item_type"] = item.item_type.value
    data["reading_status"] = item.reading_status.value
    return data
