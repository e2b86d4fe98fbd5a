"""Shared fixtures: in-memory services, a stub catalog and an API client."""
import uuid
from typing import Dict, List

import pytest
from fastapi.testclient import TestClient

from config import Settings
from models.database import build_engine, build_session_factory, init_db
from repositories import InMemoryItemRepository, InMemoryShelfRepository
from schemas.catalog_schemas import CatalogMetadata
from services.exceptions import CatalogNotFoundError, InvalidQueryError
from services.item_service import ItemService
from services.shelf_service import ShelfService


class StubCatalog:
    """Catalog double keyed by ISBN or volume id"""

    def __init__(self, books: List[CatalogMetadata] = None):
        self.books: Dict[str, CatalogMetadata] = {}
        self.calls: List[str] = []
        for book in books or []:
            self.add(book)

    def add(self, book: CatalogMetadata) -> None:
        for key in (book.isbn13, book.isbn10, book.google_volume_id):
            if key:
                self.books[key] = book

    def lookup(self, query, category):
        self.calls.append(query)
        if len(query.strip()) < 3:
            raise InvalidQueryError()
        book = self.books.get(query.strip())
        if book is None:
            raise CatalogNotFoundError()
        return [book.model_copy()]

    def lookup_by_volume_id(self, volume_id):
        book = self.books.get(volume_id)
        if book is None:
            raise CatalogNotFoundError()
        return book.model_copy()


DUNE = CatalogMetadata(
    title="Dune",
    creator="Frank Herbert",
    release_year=1965,
    page_count=412,
    isbn13="9780441013593",
    isbn10="0441013597",
    description="Desert planet epic.",
    cover_image="https://books.google.com/dune.jpg",
    genre="FICTION",
    retail_price_usd=9.99,
    google_volume_id="B1hSG45JCX4C",
)


@pytest.fixture
def owner_id():
    return uuid.uuid4()


@pytest.fixture
def catalog():
    return StubCatalog([DUNE])


@pytest.fixture
def item_repository():
    return InMemoryItemRepository()


@pytest.fixture
def item_service(item_repository, catalog):
    return ItemService(item_repository, catalog)


@pytest.fixture
def shelf_repository():
    return InMemoryShelfRepository()


@pytest.fixture
def shelf_service(shelf_repository, item_repository, item_service, catalog):
    return ShelfService(shelf_repository, item_repository, item_service, catalog)


@pytest.fixture
def session_factory(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'anthology.db'}")
    init_db(engine)
    yield build_session_factory(engine)
    engine.dispose()


def make_client(catalog=None, **overrides) -> TestClient:
    from main import create_app

    settings = Settings(**overrides)
    app = create_app(settings, catalog_service=catalog or StubCatalog([DUNE]), seed_demo_data=False)
    return TestClient(app)


@pytest.fixture
def client():
    return make_client()
