"""
Demo library: a handful of books, games, movies and music plus one shelf
with a five-slot layout and three placed books.

In memory mode main.py seeds it at startup. For a database run:

    python -m seed [--force]
"""
import logging
import sys
from datetime import datetime, timedelta, timezone
from typing import List
from uuid import UUID

from config import load_settings
from dependencies import LOCAL_OWNER_ID
from logging_config import configure_logging
from models.database import Base, build_engine, build_session_factory, init_db
from repositories import SqlItemRepository, SqlShelfRepository
from schemas.item_schemas import ItemCreate, ItemResponse
from schemas.shelf_schemas import LayoutSlotInput, ShelfCreate
from services.item_service import ItemService
from services.shelf_service import ShelfService

logger = logging.getLogger(__name__)

DEMO_SHELF_NAME = "Living Room - Feature Shelf"
DEMO_SHELF_PHOTO = (
    "https://images.unsplash.com/photo-1521587760476-6c12a4b040da"
    "?auto=format&fit=crop&w=1200&q=80"
)

DEMO_ITEMS = [
    ItemCreate(
        title="The Night Circus", creator="Erin Morgenstern", item_type="book",
        release_year=2011, page_count=464, isbn13="9780385534796", isbn10="0385534795",
        reading_status="want_to_read", format="HARDCOVER", genre="FICTION",
        description="A phantasmagorical circus romance that rewards slow reading.",
        notes="Dreamlike storytelling that anchors the curated fantasy shelf.",
    ),
    ItemCreate(
        title="Code Complete", creator="Steve McConnell", item_type="book",
        release_year=2004, page_count=960, isbn13="9780735619678",
        reading_status="read", read_at=datetime(2023, 3, 14, tzinfo=timezone.utc),
        format="PAPERBACK", genre="SCIENCE_TECH", rating=9,
        description="A comprehensive guide to software construction.",
    ),
    ItemCreate(
        title="How Linux Works", creator="Brian Ward", item_type="book",
        release_year=2021, page_count=464, isbn13="9781718500402",
        reading_status="reading", current_page=120, genre="SCIENCE_TECH",
        description="What every superuser should know.",
    ),
    ItemCreate(
        title="The Pragmatic Programmer", creator="David Thomas & Andrew Hunt", item_type="book",
        release_year=2019, page_count=352, isbn13="9780135957059",
        reading_status="read", read_at=datetime(2022, 11, 2, tzinfo=timezone.utc),
        description="Your journey to mastery, 20th anniversary edition.",
    ),
    ItemCreate(
        title="The Fellowship of the Ring", creator="J. R. R. Tolkien", item_type="book",
        release_year=1954, page_count=432, isbn13="9780547928210",
        genre="FICTION", series_name="The Lord of the Rings", volume_number=1, total_volumes=3,
    ),
    ItemCreate(
        title="The Return of the King", creator="J. R. R. Tolkien", item_type="book",
        release_year=1955, page_count=416, isbn13="9780547928197",
        genre="FICTION", series_name="The Lord of the Rings", volume_number=3, total_volumes=3,
    ),
    ItemCreate(
        title="Stardew Valley", creator="ConcernedApe", item_type="game",
        release_year=2016, platform="Nintendo Switch", age_group="Everyone", player_count="1-4",
        notes="Cozy management vibes drawn from community-favourite collections.",
    ),
    ItemCreate(
        title="Hades", creator="Supergiant Games", item_type="game",
        release_year=2020, platform="PC", age_group="Teen", player_count="1",
        notes="Rogue-like with incredible narrative integration.",
    ),
    ItemCreate(
        title="Spirited Away", creator="Hayao Miyazaki", item_type="movie",
        release_year=2001, notes="Studio Ghibli classic for family movie nights.",
    ),
    ItemCreate(
        title="Arrival", creator="Denis Villeneuve", item_type="movie",
        release_year=2016,
    ),
    ItemCreate(
        title="Random Access Memories", creator="Daft Punk", item_type="music",
        release_year=2013, notes="Vinyl pressing with gatefold sleeve.",
    ),
    ItemCreate(
        title="Kind of Blue", creator="Miles Davis", item_type="music",
        release_year=1959,
    ),
]

# (row, col, x_start, x_end, y_start, y_end)
DEMO_LAYOUT = [
    (0, 0, 0.0, 0.33, 0.0, 0.48),
    (0, 1, 0.33, 0.66, 0.0, 0.48),
    (0, 2, 0.66, 1.0, 0.0, 0.48),
    (1, 0, 0.0, 0.5, 0.52, 1.0),
    (1, 1, 0.5, 1.0, 0.52, 1.0),
]

# demo item title -> (row, col) of its slot
DEMO_PLACEMENTS = {
    "The Night Circus": (0, 0),
    "Code Complete": (0, 2),
    "The Pragmatic Programmer": (1, 1),
}


def seed_library(item_service: ItemService, shelf_service: ShelfService, owner_id: UUID) -> List[ItemResponse]:
    """Creates the demo items and shelf for owner_id through the services"""
    start = datetime.now(timezone.utc)
    created = []
    for offset, payload in enumerate(DEMO_ITEMS):
        timestamp = start + timedelta(minutes=offset)
        created.append(item_service.create(owner_id, payload, timestamp, timestamp))

    shelf = shelf_service.create_shelf(owner_id, ShelfCreate(
        name=DEMO_SHELF_NAME,
        description="Sample shelf seeded for local demos",
        photo_url=DEMO_SHELF_PHOTO,
    ))
    layout = shelf_service.update_layout(owner_id, shelf.shelf.id, [
        LayoutSlotInput(row_index=row, col_index=col, x_start_norm=x0, x_end_norm=x1,
                        y_start_norm=y0, y_end_norm=y1)
        for row, col, x0, x1, y0, y1 in DEMO_LAYOUT
    ]).shelf

    slots = {(slot.row_index, slot.col_index): slot.id for slot in layout.slots}
    by_title = {item.title: item for item in created}
    for title, key in DEMO_PLACEMENTS.items():
        shelf_service.assign_item(owner_id, layout.shelf.id, slots[key], by_title[title].id)

    logger.info(f"Seeded {len(created)} demo items and shelf {DEMO_SHELF_NAME!r}")
    return created


def seed_database(force: bool = False) -> None:
    """Seeds the configured database for the local owner"""
    settings = load_settings()
    configure_logging(settings.log_level)
    engine = build_engine(settings.database_url)
    if force:
        init_db(engine)
        Base.metadata.drop_all(bind=engine)
        logger.warning("Database dropped and recreated")
    init_db(engine)

    session_factory = build_session_factory(engine)
    item_repository = SqlItemRepository(session_factory)
    item_service = ItemService(item_repository)
    shelf_service = ShelfService(SqlShelfRepository(session_factory), item_repository, item_service, None)

    if item_service.list(LOCAL_OWNER_ID):
        logger.info("Database already has items. Use --force to recreate it.")
        return
    seed_library(item_service, shelf_service, LOCAL_OWNER_ID)


if __name__ == "__main__":
    seed_database(force="--force" in sys.argv)
