import uuid
from datetime import datetime, timedelta, timezone

import pytest

from models.item import BookStatus, ItemType, ShelfStatus
from repositories.filters import ListOptions
from schemas.item_schemas import ItemCreate, ItemUpdate, ShelfPlacementInfo
from schemas.series_schemas import SeriesStatus
from services.exceptions import ItemNotFoundError, SeriesNotFoundError, ValidationError

READ_AT = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make(item_service, owner_id, created_at=None, **fields):
    fields.setdefault("item_type", "book")
    return item_service.create(owner_id, ItemCreate(**fields), created_at, created_at)


def test_create_trims_and_normalizes(item_service, owner_id):
    item = make(item_service, owner_id, title="  Dune ", creator=" Frank Herbert ",
                release_year=-3, page_count=0, format="paperback", genre="mystery", rating=11,
                retail_price_usd=-1.0)

    assert item.title == "Dune"
    assert item.creator == "Frank Herbert"
    assert item.release_year is None
    assert item.page_count is None
    assert item.format == "PAPERBACK"
    assert item.genre == ""
    assert item.rating is None
    assert item.retail_price_usd is None
    assert item.reading_status == BookStatus.NONE


def test_unknown_format_becomes_unknown(item_service, owner_id):
    assert make(item_service, owner_id, title="Dune", format="scroll").format == "UNKNOWN"


@pytest.mark.parametrize("fields, message", [
    ({"title": " "}, "title is required"),
    ({"title": "Dune", "item_type": ""}, "itemType is required"),
    ({"title": "Dune", "item_type": "comic"}, "itemType must be one of book, game, movie, or music"),
    ({"title": "Dune", "current_page": -1}, "currentPage must be zero or greater"),
    ({"title": "Dune", "reading_status": "read"}, "readAt is required when readingStatus is read"),
    ({"title": "Dune", "reading_status": "reading", "page_count": 10, "current_page": 11},
     "currentPage cannot exceed pageCount"),
    ({"title": "Dune", "reading_status": "paused"},
     "readingStatus must be one of none, read, reading, or want_to_read"),
])
def test_create_validation(item_service, owner_id, fields, message):
    with pytest.raises(ValidationError) as excinfo:
        make(item_service, owner_id, **fields)
    assert excinfo.value.message == message


def test_reading_state_machine(item_service, owner_id):
    reading = make(item_service, owner_id, title="A", reading_status="reading",
                   page_count=100, current_page=40, read_at=READ_AT)
    assert reading.current_page == 40
    assert reading.read_at is None

    read = make(item_service, owner_id, title="B", reading_status="read", read_at=READ_AT, current_page=5)
    assert read.read_at == READ_AT
    assert read.current_page is None

    wanted = make(item_service, owner_id, title="C", reading_status="want_to_read", read_at=READ_AT, current_page=3)
    assert wanted.read_at is None
    assert wanted.current_page is None


def test_non_books_drop_book_and_game_fields(item_service, owner_id):
    movie = make(item_service, owner_id, title="Arrival", item_type="movie", reading_status="read",
                 read_at=READ_AT, format="HARDCOVER", rating=8, platform="PC", series_name="Saga",
                 volume_number=1)
    assert movie.item_type == ItemType.MOVIE
    assert movie.reading_status == BookStatus.NONE
    assert movie.read_at is None
    assert (movie.format, movie.rating, movie.platform, movie.series_name) == ("", None, "", "")
    assert movie.volume_number is None

    game = make(item_service, owner_id, title="Hades", item_type="game", platform=" PC ", player_count="1")
    assert game.platform == "PC"
    assert game.player_count == "1"


def test_update_applies_only_present_fields(item_service, owner_id):
    item = make(item_service, owner_id, title="Dune", creator="Frank Herbert", notes="signed",
                genre="FICTION", rating=7)

    patch = ItemUpdate.model_validate({"notes": "first edition", "genre": None, "rating": None, "creator": None})
    updated = item_service.update(owner_id, item.id, patch)

    assert updated.title == "Dune"
    assert updated.creator == "Frank Herbert"
    assert updated.notes == "first edition"
    assert updated.genre == ""
    assert updated.rating is None
    assert updated.updated_at >= item.updated_at


def test_update_reruns_state_machine(item_service, owner_id):
    item = make(item_service, owner_id, title="Dune", reading_status="read", read_at=READ_AT)

    updated = item_service.update(owner_id, item.id, ItemUpdate(reading_status="want_to_read"))
    assert updated.reading_status == BookStatus.WANT_TO_READ
    assert updated.read_at is None

    with pytest.raises(ValidationError, match="itemType is required"):
        item_service.update(owner_id, item.id, ItemUpdate.model_validate({"itemType": None}))


def test_update_keeps_shelf_placement(item_service, item_repository, owner_id):
    item = make(item_service, owner_id, title="Dune")
    placement = ShelfPlacementInfo(shelf_id=uuid.uuid4(), shelf_name="Den", slot_id=uuid.uuid4(),
                                   row_index=0, col_index=1)
    item_repository.update_shelf_placement(owner_id, item.id, placement)

    updated = item_service.update(owner_id, item.id, ItemUpdate(notes="moved"))

    assert updated.shelf_placement == placement


def test_owner_isolation(item_service, owner_id):
    item = make(item_service, owner_id, title="Dune")
    stranger = uuid.uuid4()

    with pytest.raises(ItemNotFoundError):
        item_service.get(stranger, item.id)
    with pytest.raises(ItemNotFoundError):
        item_service.delete(stranger, item.id)
    assert item_service.list(stranger) == []

    item_service.delete(owner_id, item.id)
    with pytest.raises(ItemNotFoundError):
        item_service.get(owner_id, item.id)


@pytest.fixture
def library(item_service, owner_id):
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    rows = [
        {"title": "Dune", "reading_status": "read", "read_at": READ_AT},
        {"title": "Emma", "reading_status": "reading"},
        {"title": "anathem"},
        {"title": "1984", "reading_status": "want_to_read"},
        {"title": "Hades", "item_type": "game"},
        {"title": "Arrival", "item_type": "movie"},
    ]
    return [
        make(item_service, owner_id, start + timedelta(minutes=offset), **fields)
        for offset, fields in enumerate(rows)
    ]


def titles(items):
    return [item.title for item in items]


def test_list_orders_newest_first(item_service, owner_id, library):
    assert titles(item_service.list(owner_id)) == ["Arrival", "Hades", "1984", "anathem", "Emma", "Dune"]
    assert titles(item_service.list(owner_id, ListOptions(limit=2))) == ["Arrival", "Hades"]


def test_status_filter_without_type(item_service, owner_id, library):
    none = item_service.list(owner_id, ListOptions(reading_status=BookStatus.NONE))
    assert titles(none) == ["Arrival", "Hades", "anathem"]

    read = item_service.list(owner_id, ListOptions(reading_status=BookStatus.READ))
    assert titles(read) == ["Dune"]


def test_status_filter_with_type(item_service, owner_id, library):
    options = ListOptions(item_type=ItemType.GAME, reading_status=BookStatus.NONE)
    assert titles(item_service.list(owner_id, options)) == ["Hades"]


def test_letter_and_query_filters(item_service, owner_id, library):
    assert titles(item_service.list(owner_id, ListOptions(initial="A"))) == ["Arrival", "anathem"]
    assert titles(item_service.list(owner_id, ListOptions(initial="#"))) == ["1984"]
    assert titles(item_service.list(owner_id, ListOptions(query="MM"))) == ["Emma"]


def test_shelf_status_filter(item_service, item_repository, owner_id, library):
    dune = library[0]
    item_repository.update_shelf_placement(owner_id, dune.id, ShelfPlacementInfo(
        shelf_id=uuid.uuid4(), shelf_name="Den", slot_id=uuid.uuid4(), row_index=0, col_index=0,
    ))

    assert titles(item_service.list(owner_id, ListOptions(shelf_status=ShelfStatus.ON))) == ["Dune"]
    assert "Dune" not in titles(item_service.list(owner_id, ListOptions(shelf_status=ShelfStatus.OFF)))


def test_histogram(item_service, owner_id, library):
    result = item_service.histogram(owner_id)
    assert result.total == 6
    assert result.histogram == {"A": 2, "D": 1, "E": 1, "H": 1, "#": 1}

    books = item_service.histogram(owner_id, ItemType.BOOK, BookStatus.READING)
    assert books.histogram == {"E": 1}
    assert books.total == 1


def test_find_duplicates(item_service, owner_id):
    dune = make(item_service, owner_id, title="Dune", isbn13="978-0441013593")
    make(item_service, owner_id, title="Emma", isbn10="0141439580")

    by_title = item_service.find_duplicates(owner_id, title="  dune ")
    assert [match.id for match in by_title] == [dune.id]
    assert by_title[0].identifier_type == "ISBN-13"
    assert by_title[0].primary_identifier == "978-0441013593"

    by_isbn = item_service.find_duplicates(owner_id, isbn13="9780441013593")
    assert [match.title for match in by_isbn] == ["Dune"]
    assert item_service.find_duplicates(owner_id, isbn10="0-14-143958-0")[0].identifier_type == "ISBN-10"
    assert item_service.find_duplicates(owner_id) == []


def test_find_duplicates_caps_results(item_service, owner_id):
    for _ in range(7):
        make(item_service, owner_id, title="Dune")
    assert len(item_service.find_duplicates(owner_id, title="Dune")) == 5


def test_resync_refreshes_catalog_fields(item_service, owner_id):
    item = make(item_service, owner_id, title="Dune", isbn13="9780441013593", description="mine")

    refreshed = item_service.resync_metadata(owner_id, item.id)

    assert refreshed.google_volume_id == "B1hSG45JCX4C"
    assert refreshed.genre == "FICTION"
    assert refreshed.retail_price_usd == 9.99
    assert refreshed.cover_image == "https://books.google.com/dune.jpg"
    assert refreshed.description == "mine"


def test_resync_errors(item_service, owner_id):
    movie = make(item_service, owner_id, title="Arrival", item_type="movie")
    with pytest.raises(ValidationError, match="only available for books"):
        item_service.resync_metadata(owner_id, movie.id)

    bare = make(item_service, owner_id, title="Untitled")
    with pytest.raises(ValidationError, match="no googleVolumeId or ISBN"):
        item_service.resync_metadata(owner_id, bare.id)

    unknown = make(item_service, owner_id, title="Obscure", isbn13="9780000000002")
    with pytest.raises(ValidationError, match="no metadata found"):
        item_service.resync_metadata(owner_id, unknown.id)


def test_series_summaries(item_service, owner_id):
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    make(item_service, owner_id, start, title="The Two Towers", series_name="LOTR", volume_number=2, total_volumes=3)
    make(item_service, owner_id, start + timedelta(minutes=1), title="Fellowship", series_name="LOTR",
         volume_number=1, total_volumes=3)
    make(item_service, owner_id, start + timedelta(minutes=2), title="Mistborn", series_name="Mistborn",
         volume_number=1)
    make(item_service, owner_id, start + timedelta(minutes=3), title="Standalone")

    summaries = item_service.list_series(owner_id)
    assert [s.series_name for s in summaries] == ["LOTR", "Mistborn"]

    lotr = summaries[0]
    assert lotr.total_volumes == 3
    assert lotr.owned_count == 2
    assert lotr.missing_volumes == [3]
    assert lotr.missing_count == 1
    assert lotr.status == SeriesStatus.INCOMPLETE
    assert lotr.items is None
    assert summaries[1].status == SeriesStatus.UNKNOWN

    unknown_only = item_service.list_series(owner_id, status=SeriesStatus.UNKNOWN)
    assert [s.series_name for s in unknown_only] == ["Mistborn"]

    detail = item_service.get_series(owner_id, " LOTR ")
    assert [item.title for item in detail.items] == ["Fellowship", "The Two Towers"]


def test_get_series_errors(item_service, owner_id):
    with pytest.raises(ValidationError, match="series name is required"):
        item_service.get_series(owner_id, "  ")
    with pytest.raises(SeriesNotFoundError):
        item_service.get_series(owner_id, "Nope")
