import uuid
from datetime import timedelta

import pytest

from models.item import BookStatus, ItemType, ShelfStatus
from repositories import ListOptions, SqlAuthRepository, SqlItemRepository, SqlShelfRepository
from schemas.item_schemas import ItemCreate, ItemUpdate
from schemas.shelf_schemas import LayoutSlotInput, ShelfCreate
from services.auth_service import AuthService
from services.exceptions import ValidationError
from services.item_service import ItemService
from services.shelf_service import ShelfService


@pytest.fixture
def sql_items(session_factory, catalog):
    return ItemService(SqlItemRepository(session_factory), catalog)


@pytest.fixture
def sql_shelves(session_factory, sql_items, catalog):
    return ShelfService(SqlShelfRepository(session_factory), sql_items.repository, sql_items, catalog)


def book(title, **fields):
    return ItemCreate(title=title, item_type="book", **fields)


def slot(row, col, x_start, x_end, slot_id=None):
    return LayoutSlotInput(slot_id=slot_id, row_index=row, col_index=col,
                           x_start_norm=x_start, x_end_norm=x_end, y_start_norm=0.0, y_end_norm=1.0)


def test_item_round_trip(sql_items, owner_id):
    created = sql_items.create(owner_id, book("Dune", isbn13="9780441013593", reading_status="reading",
                                              page_count=412, current_page=10))

    fetched = sql_items.get(owner_id, created.id)
    assert fetched.title == "Dune"
    assert fetched.reading_status == BookStatus.READING
    assert fetched.current_page == 10
    assert fetched.created_at.tzinfo is not None

    updated = sql_items.update(owner_id, created.id, ItemUpdate(notes="Reread"))
    assert updated.notes == "Reread"
    assert updated.current_page == 10

    assert sql_items.repository.find_by_isbn(owner_id, "9780441013593").id == created.id
    assert sql_items.repository.get(uuid.uuid4(), created.id) is None

    sql_items.delete(owner_id, created.id)
    assert sql_items.repository.get(owner_id, created.id) is None


def test_item_list_filters(sql_items, owner_id):
    sql_items.create(owner_id, book("Dune", reading_status="want_to_read"))
    sql_items.create(owner_id, book("Emma"))
    sql_items.create(owner_id, ItemCreate(title="Doom", item_type="game"))
    sql_items.create(uuid.uuid4(), book("Dracula"))

    def titles(**options):
        return sorted(item.title for item in sql_items.list(owner_id, ListOptions(**options)))

    assert titles() == ["Doom", "Dune", "Emma"]
    assert titles(item_type=ItemType.GAME) == ["Doom"]
    assert titles(reading_status=BookStatus.WANT_TO_READ) == ["Dune"]
    assert titles(reading_status=BookStatus.NONE) == ["Doom", "Emma"]
    assert titles(initial="D") == ["Doom", "Dune"]
    assert titles(query="MM") == ["Emma"]
    assert len(sql_items.list(owner_id, ListOptions(limit=2))) == 2


def test_series_books(sql_items, owner_id):
    sql_items.create(owner_id, book("The Two Towers", series_name="The Lord of the Rings",
                                    volume_number=2, total_volumes=3))
    sql_items.create(owner_id, book("Standalone"))

    series = sql_items.list_series(owner_id)
    assert [entry.series_name for entry in series] == ["The Lord of the Rings"]
    assert series[0].missing_volumes == [1, 3]


def test_shelf_layout_and_placement(sql_items, sql_shelves, owner_id):
    shelf = sql_shelves.create_shelf(owner_id, ShelfCreate(name="Hall", photo_url="https://example.com/hall.jpg"))
    shelf_id = shelf.shelf.id
    first_slot = shelf.slots[0].id
    item = sql_items.create(owner_id, book("Dune"))

    placed = sql_shelves.assign_item(owner_id, shelf_id, first_slot, item.id)
    assert [entry.item.id for entry in placed.placements] == [item.id]

    on_shelf = sql_items.list(owner_id, ListOptions(shelf_status=ShelfStatus.ON))
    assert [entry.id for entry in on_shelf] == [item.id]
    assert on_shelf[0].shelf_placement.shelf_name == "Hall"

    result = sql_shelves.update_layout(owner_id, shelf_id, [
        slot(0, 0, 0.0, 0.5, first_slot),
        slot(0, 1, 0.5, 1.0),
    ])
    assert len(result.shelf.slots) == 2
    assert result.displaced == []
    assert result.shelf.placements[0].placement.shelf_slot_id == first_slot

    result = sql_shelves.update_layout(owner_id, shelf_id, [slot(0, 1, 0.0, 1.0)])
    assert [entry.item.id for entry in result.displaced] == [item.id]
    assert result.shelf.unplaced[0].placement.shelf_slot_id is None
    assert sql_items.list(owner_id, ListOptions(shelf_status=ShelfStatus.OFF))[0].id == item.id


def test_remove_and_forget(sql_items, sql_shelves, owner_id):
    shelf = sql_shelves.create_shelf(owner_id, ShelfCreate(name="Hall", photo_url="https://example.com/hall.jpg"))
    slot_id = shelf.slots[0].id
    item = sql_items.create(owner_id, book("Dune"))
    sql_shelves.assign_item(owner_id, shelf.shelf.id, slot_id, item.id)

    removed = sql_shelves.remove_item(owner_id, shelf.shelf.id, slot_id, item.id)
    assert removed.placements == []
    assert [entry.item.id for entry in removed.unplaced] == [item.id]

    sql_items.delete(owner_id, item.id)
    sql_shelves.forget_item(owner_id, item.id)
    assert sql_shelves.get_shelf(owner_id, shelf.shelf.id).unplaced == []


def test_duplicate_shelf_name(sql_shelves, owner_id):
    payload = ShelfCreate(name="Hall", photo_url="https://example.com/hall.jpg")
    sql_shelves.create_shelf(owner_id, payload)

    with pytest.raises(ValidationError):
        sql_shelves.create_shelf(owner_id, payload)
    assert len(sql_shelves.list_shelves(owner_id)) == 1


def test_auth_sessions(session_factory):
    service = AuthService(SqlAuthRepository(session_factory))
    claims = {"sub": "google-1", "email": "reader@example.com", "name": "Reader", "picture": ""}

    user = service.create_or_update_user(claims)
    assert service.create_or_update_user(dict(claims, name="Renamed")).id == user.id

    token, _ = service.create_session(user.id, "pytest", "127.0.0.1")
    found = service.validate_session(token)
    assert found.id == user.id
    assert found.name == "Renamed"

    service.delete_session(token)
    assert service.validate_session(token) is None


def test_expired_sql_session(session_factory):
    repository = SqlAuthRepository(session_factory)
    service = AuthService(repository, session_ttl=timedelta(seconds=-5))
    user = service.create_or_update_user({"sub": "google-2", "email": "late@example.com"})

    token, session = service.create_session(user.id)

    assert service.validate_session(token) is None
    assert repository.get_session(session.token_hash) is None


def test_layout_swap_and_row_drop(sql_items, sql_shelves, owner_id):
    shelf = sql_shelves.create_shelf(owner_id, ShelfCreate(name="Hall", photo_url="https://example.com/hall.jpg"))
    shelf_id = shelf.shelf.id
    first = sql_shelves.update_layout(owner_id, shelf_id, [
        slot(0, 0, 0.0, 0.5, shelf.slots[0].id),
        slot(0, 1, 0.5, 1.0),
        LayoutSlotInput(row_index=1, col_index=0, x_start_norm=0.0, x_end_norm=1.0,
                        y_start_norm=0.0, y_end_norm=1.0),
    ]).shelf
    by_key = {(s.row_index, s.col_index): s.id for s in first.slots}
    a, b, c = by_key[(0, 0)], by_key[(0, 1)], by_key[(1, 0)]
    item = sql_items.create(owner_id, book("Dune"))
    sql_shelves.assign_item(owner_id, shelf_id, c, item.id)

    result = sql_shelves.update_layout(owner_id, shelf_id, [
        slot(0, 0, 0.0, 0.3, b),
        slot(0, 1, 0.3, 0.6, a),
        slot(0, 2, 0.6, 1.0, c),
    ])

    stored = sql_shelves.get_shelf(owner_id, shelf_id)
    assert result.displaced == []
    assert len(stored.rows) == 1
    assert [column.col_index for column in stored.rows[0].columns] == [0, 1, 2]
    assert [s.id for s in stored.slots] == [b, a, c]
    assert {s.shelf_row_id for s in stored.slots} == {stored.rows[0].id}
    assert stored.placements[0].placement.shelf_slot_id == c

    placement = sql_items.get(owner_id, item.id).shelf_placement
    assert (placement.row_index, placement.col_index) == (0, 2)
