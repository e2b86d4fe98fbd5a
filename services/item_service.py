"""
Validation and persistence rules for catalogue items, including series
"""
import enum
import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import UUID

from models.item import BookStatus, Format, Genre, ItemType
from repositories.filters import ListOptions, first_letter, normalize_identifier, normalize_title
from schemas.item_schemas import DuplicateMatch, HistogramResponse, ItemCreate, ItemResponse, ItemUpdate
from schemas.series_schemas import SeriesStatus, SeriesSummary
from services.exceptions import (
    CatalogNotFoundError,
    ItemNotFoundError,
    SeriesNotFoundError,
    ValidationError,
)
from services.images import sanitize_cover_image

logger = logging.getLogger(__name__)

MAX_DUPLICATES = 5

# string fields where an explicit null in an update means "leave as is"
_KEEP_ON_NULL = {
    "title", "creator", "isbn13", "isbn10", "description", "cover_image", "google_volume_id",
    "platform", "age_group", "player_count", "notes", "series_name",
}
# enum-like fields where an explicit null resets to the empty value
_RESET_ON_NULL = {"format", "genre", "reading_status"}


class ItemService:
    """Creates, updates and queries items for one owner at a time"""

    def __init__(self, repository, catalog=None):
        self.repository = repository
        self.catalog = catalog

    def create(self, owner_id: UUID, payload: ItemCreate,
               created_at: Optional[datetime] = None,
               updated_at: Optional[datetime] = None) -> ItemResponse:
        values = normalize_item_fields(payload.model_dump())
        now = _now()
        created = _as_utc(created_at) or now
        item = ItemResponse(
            id=uuid.uuid4(),
            owner_id=owner_id,
            created_at=created,
            updated_at=_as_utc(updated_at) or created,
            **values,
        )
        return self.repository.create(item)

    def get(self, owner_id: UUID, item_id: UUID) -> ItemResponse:
        item = self.repository.get(owner_id, item_id)
        if item is None:
            raise ItemNotFoundError()
        return item

    def update(self, owner_id: UUID, item_id: UUID, patch: ItemUpdate) -> ItemResponse:
        existing = self.get(owner_id, item_id)
        values = existing.model_dump(exclude={"id", "created_at", "updated_at", "shelf_placement"})

        for field in patch.model_fields_set:
            value = getattr(patch, field)
            if value is None:
                if field == "item_type":
                    raise ValidationError("itemType is required")
                if field in _KEEP_ON_NULL:
                    continue
                if field in _RESET_ON_NULL:
                    value = ""
            values[field] = value

        normalized = normalize_item_fields(values)
        updated = existing.model_copy(update={**normalized, "updated_at": _now()})
        saved = self.repository.update(updated)
        if saved is None:
            raise ItemNotFoundError()
        return saved

    def delete(self, owner_id: UUID, item_id: UUID) -> None:
        if not self.repository.delete(owner_id, item_id):
            raise ItemNotFoundError()

    def list(self, owner_id: UUID, options: Optional[ListOptions] = None) -> List[ItemResponse]:
        return self.repository.list(owner_id, options or ListOptions())

    def histogram(self, owner_id: UUID, item_type: Optional[ItemType] = None,
                  reading_status: Optional[BookStatus] = None) -> HistogramResponse:
        items = self.repository.list(owner_id, ListOptions(item_type=item_type, reading_status=reading_status))
        histogram: Dict[str, int] = {}
        for item in items:
            letter = first_letter(item.title)
            histogram[letter] = histogram.get(letter, 0) + 1
        return HistogramResponse(histogram=histogram, total=len(items))

    def find_duplicates(self, owner_id: UUID, title: str = "", isbn13: str = "",
                        isbn10: str = "") -> List[DuplicateMatch]:
        """Items whose trimmed title (case-insensitive) or digit-only ISBN matches"""
        wanted_title = normalize_title(title)
        wanted_isbn13 = normalize_identifier(isbn13)
        wanted_isbn10 = normalize_identifier(isbn10)
        if not (wanted_title or wanted_isbn13 or wanted_isbn10):
            return []

        matches = []
        for item in self.repository.list(owner_id):
            matched = (
                (wanted_title and normalize_title(item.title) == wanted_title)
                or (wanted_isbn13 and normalize_identifier(item.isbn13) == wanted_isbn13)
                or (wanted_isbn10 and normalize_identifier(item.isbn10) == wanted_isbn10)
            )
            if matched:
                matches.append(_duplicate_match(item))
            if len(matches) >= MAX_DUPLICATES:
                break
        return matches

    def resync_metadata(self, owner_id: UUID, item_id: UUID) -> ItemResponse:
        """Refreshes Google-provided fields of a book; user-entered fields are kept"""
        existing = self.get(owner_id, item_id)
        if existing.item_type != ItemType.BOOK:
            raise ValidationError("re-sync is only available for books")

        metadata = None
        if existing.google_volume_id:
            try:
                metadata = self.catalog.lookup_by_volume_id(existing.google_volume_id)
            except CatalogNotFoundError:
                metadata = None

        if metadata is None:
            query = existing.isbn13 or existing.isbn10
            if not query:
                raise ValidationError("no googleVolumeId or ISBN available for re-sync")
            try:
                results = self.catalog.lookup(query, ItemType.BOOK.value)
            except CatalogNotFoundError:
                raise ValidationError("no metadata found for this item")
            if not results:
                raise ValidationError("no metadata found for this item")
            metadata = results[0]

        changes = {"updated_at": _now()}
        if metadata.google_volume_id:
            changes["google_volume_id"] = metadata.google_volume_id
        if metadata.genre:
            changes["genre"] = normalize_genre(metadata.genre)
        if metadata.retail_price_usd is not None:
            changes["retail_price_usd"] = metadata.retail_price_usd
        if not existing.cover_image and metadata.cover_image:
            changes["cover_image"] = metadata.cover_image
        if not existing.description and metadata.description:
            changes["description"] = metadata.description

        saved = self.repository.update(existing.model_copy(update=changes))
        if saved is None:
            raise ItemNotFoundError()
        logger.info(f"Re-synced metadata for item {item_id}")
        return saved

    def list_series(self, owner_id: UUID, include_items: bool = False,
                    status: Optional[SeriesStatus] = None) -> List[SeriesSummary]:
        grouped: Dict[str, List[ItemResponse]] = {}
        for book in self.repository.list_series_books(owner_id):
            grouped.setdefault(book.series_name, []).append(book)

        summaries = [summarize_series(name, books, include_items) for name, books in grouped.items()]
        if status is not None:
            summaries = [summary for summary in summaries if summary.status == status]
        return summaries

    def get_series(self, owner_id: UUID, name: str) -> SeriesSummary:
        name = (name or "").strip()
        if not name:
            raise ValidationError("series name is required")
        books = [book for book in self.repository.list_series_books(owner_id) if book.series_name == name]
        if not books:
            raise SeriesNotFoundError()
        return summarize_series(name, books, include_items=True)


def summarize_series(name: str, books: List[ItemResponse], include_items: bool) -> SeriesSummary:
    ordered = sorted(books, key=lambda b: (b.volume_number is None, b.volume_number or 0, b.title))
    totals = [book.total_volumes for book in ordered if book.total_volumes]
    total = max(totals) if totals else None

    missing: List[int] = []
    missing_count = None
    if total is None:
        status = SeriesStatus.UNKNOWN
    else:
        owned = {book.volume_number for book in ordered if book.volume_number}
        missing = [number for number in range(1, total + 1) if number not in owned]
        missing_count = len(missing)
        status = SeriesStatus.INCOMPLETE if missing else SeriesStatus.COMPLETE

    return SeriesSummary(
        series_name=name,
        total_volumes=total,
        owned_count=len(ordered),
        missing_count=missing_count,
        missing_volumes=missing,
        status=status,
        items=ordered if include_items else None,
    )


def normalize_item_fields(values: dict) -> dict:
    """
    Applies every item rule to raw field values and returns the cleaned
    fields. Raises ValidationError with the client-facing message.
    """
    title = _text(values.get("title"))
    if not title:
        raise ValidationError("title is required")
    item_type = parse_item_type(values.get("item_type"))

    page_count = _positive(values.get("page_count"))
    current_page = values.get("current_page")
    if current_page is not None and current_page < 0:
        raise ValidationError("currentPage must be zero or greater")

    reading_status, read_at, current_page = normalize_reading_state(
        item_type, values.get("reading_status"), values.get("read_at"), page_count, current_page
    )
    cover_image = sanitize_cover_image(values.get("cover_image") or "")

    is_book = item_type == ItemType.BOOK
    is_game = item_type == ItemType.GAME
    return {
        "title": title,
        "creator": _text(values.get("creator")),
        "item_type": item_type,
        "release_year": _year(values.get("release_year")),
        "page_count": page_count,
        "current_page": current_page,
        "isbn13": _text(values.get("isbn13")),
        "isbn10": _text(values.get("isbn10")),
        "description": _text(values.get("description")),
        "cover_image": cover_image,
        "format": normalize_format(values.get("format")) if is_book else "",
        "genre": normalize_genre(values.get("genre")) if is_book else "",
        "rating": _rating(values.get("rating")) if is_book else None,
        "retail_price_usd": _price(values.get("retail_price_usd")) if is_book else None,
        "google_volume_id": _text(values.get("google_volume_id")) if is_book else "",
        "platform": _text(values.get("platform")) if is_game else "",
        "age_group": _text(values.get("age_group")) if is_game else "",
        "player_count": _text(values.get("player_count")) if is_game else "",
        "reading_status": reading_status,
        "read_at": read_at,
        "notes": _text(values.get("notes")),
        "series_name": _text(values.get("series_name")) if is_book else "",
        "volume_number": _positive(values.get("volume_number")) if is_book else None,
        "total_volumes": _positive(values.get("total_volumes")) if is_book else None,
    }


def parse_item_type(value) -> ItemType:
    raw = _enum_value(value).strip().lower()
    if not raw:
        raise ValidationError("itemType is required")
    try:
        return ItemType(raw)
    except ValueError:
        raise ValidationError("itemType must be one of book, game, movie, or music")


def normalize_reading_state(item_type: ItemType, status, read_at: Optional[datetime],
                            page_count: Optional[int], current_page: Optional[int]):
    """Reading status machine; returns (status, read_at, current_page)"""
    if item_type != ItemType.BOOK:
        return BookStatus.NONE, None, None

    raw = _enum_value(status).strip().lower() or BookStatus.NONE.value
    if raw in (BookStatus.NONE.value, BookStatus.WANT_TO_READ.value):
        return BookStatus(raw), None, None
    if raw == BookStatus.READ.value:
        if read_at is None:
            raise ValidationError("readAt is required when readingStatus is read")
        return BookStatus.READ, _as_utc(read_at), None
    if raw == BookStatus.READING.value:
        if current_page is not None and page_count is not None and current_page > page_count:
            raise ValidationError("currentPage cannot exceed pageCount")
        return BookStatus.READING, None, current_page
    raise ValidationError("readingStatus must be one of none, read, reading, or want_to_read")


def normalize_format(value) -> str:
    raw = _enum_value(value).strip().upper()
    if raw in Format.__members__ and raw != Format.UNKNOWN.value:
        return raw
    return Format.UNKNOWN.value


def normalize_genre(value) -> str:
    raw = _enum_value(value).strip().upper()
    return raw if raw in Genre.__members__ else ""


def _duplicate_match(item: ItemResponse) -> DuplicateMatch:
    identifier, identifier_type = "", ""
    if item.isbn13:
        identifier, identifier_type = item.isbn13, "ISBN-13"
    elif item.isbn10:
        identifier, identifier_type = item.isbn10, "ISBN-10"
    return DuplicateMatch(
        id=item.id,
        title=item.title,
        primary_identifier=identifier,
        identifier_type=identifier_type,
        cover_url=item.cover_image,
        location=item.shelf_placement.shelf_name if item.shelf_placement else "",
        updated_at=item.updated_at,
    )


def _enum_value(value) -> str:
    if isinstance(value, enum.Enum):
        return value.value
    return value or ""


def _text(value) -> str:
    return (value or "").strip()


def _year(value: Optional[int]) -> Optional[int]:
    if value is None or value < 0:
        return None
    return value


def _positive(value: Optional[int]) -> Optional[int]:
    if value is None or value <= 0:
        return None
    return value


def _rating(value: Optional[int]) -> Optional[int]:
    if value is None or value < 1 or value > 10:
        return None
    return value


def _price(value: Optional[float]) -> Optional[float]:
    if value is None or value < 0:
        return None
    return value


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _now() -> datetime:
    return datetime.now(timezone.utc)
