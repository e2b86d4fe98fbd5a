"""
Bulk item import from CSV uploads
"""
import csv
import io
import logging
import math
from datetime import datetime
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from models.item import ItemType
from repositories.filters import normalize_identifier, normalize_title
from schemas.catalog_schemas import CatalogMetadata
from schemas.import_schemas import FailedRecord, ImportSummary, SkippedRecord
from schemas.item_schemas import ItemCreate
from services.exceptions import (
    AnthologyError,
    CatalogNotFoundError,
    InvalidCSVError,
    InvalidQueryError,
    ValidationError,
)

logger = logging.getLogger(__name__)

MAX_IMPORT_ROWS = 1000
MAX_RECORDED = 100

REQUIRED_COLUMNS = [
    "title",
    "creator",
    "itemtype",
    "releaseyear",
    "pagecount",
    "isbn13",
    "isbn10",
    "description",
    "coverimage",
    "notes",
]


class RowError(Exception):
    """A row that cannot be imported; the message goes into the summary"""


class CSVImporter:
    """Parses an upload, skips duplicates and creates the remaining items"""

    def __init__(self, item_service, catalog=None):
        self.item_service = item_service
        self.catalog = catalog

    def import_csv(self, owner_id: UUID, content: bytes) -> ImportSummary:
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise _invalid("file must be UTF-8 encoded")

        reader = csv.reader(io.StringIO(text), skipinitialspace=True)
        try:
            header = next(reader)
        except StopIteration:
            raise _invalid("file is empty")
        except csv.Error:
            raise _invalid("failed to read header")
        columns = normalize_header(header)

        rows: List[Tuple[int, Dict[str, str]]] = []
        row_number = 1
        try:
            for record in reader:
                row_number += 1
                values = map_record(columns, record)
                if not any(values.values()):
                    continue
                if len(rows) >= MAX_IMPORT_ROWS:
                    raise _invalid(f"CSV exceeds maximum of {MAX_IMPORT_ROWS} rows")
                rows.append((row_number, values))
        except csv.Error:
            raise _invalid(f"failed to read row {row_number + 1}")

        existing = self.item_service.list(owner_id)
        tracker = DuplicateTracker()
        for item in existing:
            tracker.add(item.title, item.isbn13, item.isbn10)

        summary = ImportSummary(total_rows=len(rows))
        for number, values in rows:
            try:
                payload, timestamps = self._build_payload(values)
            except (RowError, AnthologyError) as exc:
                _record_failure(summary, number, values.get("title", ""),
                                values.get("isbn13") or values.get("isbn10", ""), _message(exc))
                continue

            identifier = payload.isbn13 or payload.isbn10
            reason = tracker.check(payload.title, payload.isbn13, payload.isbn10)
            if reason:
                if len(summary.skipped_duplicates) < MAX_RECORDED:
                    summary.skipped_duplicates.append(SkippedRecord(
                        row=number, title=payload.title, identifier=identifier, reason=reason,
                    ))
                else:
                    summary.truncated_records = True
                continue

            try:
                self.item_service.create(owner_id, payload, *timestamps)
            except ValidationError as exc:
                _record_failure(summary, number, payload.title, identifier, exc.message)
                continue

            tracker.add(payload.title, payload.isbn13, payload.isbn10)
            summary.imported += 1

        logger.info(f"CSV import for {owner_id}: {summary.imported}/{summary.total_rows} imported")
        return summary

    def _build_payload(self, values: Dict[str, str]) -> Tuple[ItemCreate, Tuple[Optional[datetime], Optional[datetime]]]:
        raw_type = values.get("itemtype", "").strip().lower()
        if raw_type not in {member.value for member in ItemType}:
            raise RowError("itemType must be one of book, game, movie, or music")

        title = values.get("title", "")
        fields = {
            "creator": values.get("creator", ""),
            "isbn13": values.get("isbn13", ""),
            "isbn10": values.get("isbn10", ""),
            "release_year": parse_positive_int(values.get("releaseyear"), "releaseYear"),
            "page_count": parse_positive_int(values.get("pagecount"), "pageCount"),
            "current_page": parse_non_negative_int(values.get("currentpage"), "currentPage"),
            "format": values.get("format", ""),
            "genre": values.get("genre", ""),
            "rating": parse_int(values.get("rating"), "rating"),
            "retail_price_usd": parse_float(values.get("retailpriceusd"), "retailPriceUsd"),
            "google_volume_id": values.get("googlevolumeid", ""),
            "reading_status": values.get("readingstatus", "").lower(),
            "read_at": parse_timestamp(values.get("readat"), "readAt"),
            "description": values.get("description", ""),
            "cover_image": values.get("coverimage", ""),
            "notes": values.get("notes", ""),
            "platform": values.get("platform", ""),
            "age_group": values.get("agegroup", ""),
            "player_count": values.get("playercount", ""),
            "series_name": values.get("seriesname", ""),
            "volume_number": parse_positive_int(values.get("volumenumber"), "volumeNumber"),
            "total_volumes": parse_positive_int(values.get("totalvolumes"), "totalVolumes"),
        }
        created_at = parse_timestamp(values.get("createdat"), "createdAt")
        updated_at = parse_timestamp(values.get("updatedat"), "updatedAt")

        if raw_type == ItemType.BOOK.value and not title:
            identifier = fields["isbn13"] or fields["isbn10"]
            if not identifier:
                raise RowError("provide a title or ISBN/UPC for books")
            title = self._backfill(fields, self._lookup_book(identifier))

        if not title:
            raise RowError(f"title is required for {raw_type} rows")

        payload = ItemCreate(title=title, item_type=raw_type, **fields)
        return payload, (created_at, updated_at)

    def _lookup_book(self, query: str) -> CatalogMetadata:
        if self.catalog is None:
            raise _invalid("metadata lookup is unavailable")
        try:
            results = self.catalog.lookup(query, ItemType.BOOK.value)
        except CatalogNotFoundError:
            raise RowError(f"no metadata found for {query}")
        except InvalidQueryError:
            raise RowError(f"ISBN/UPC {query} is not valid")
        if not results:
            raise RowError(f"no metadata found for {query}")
        return results[0]

    @staticmethod
    def _backfill(fields: dict, metadata: CatalogMetadata) -> str:
        """Fills blank fields from catalog metadata and returns the title"""
        for key in ("creator", "isbn13", "isbn10", "description"):
            if not fields[key]:
                fields[key] = getattr(metadata, key)
        if not fields["cover_image"]:
            fields["cover_image"] = metadata.cover_image
        if fields["release_year"] is None:
            fields["release_year"] = metadata.release_year
        if fields["page_count"] is None:
            fields["page_count"] = metadata.page_count
        fields["genre"] = metadata.genre
        fields["retail_price_usd"] = metadata.retail_price_usd
        fields["google_volume_id"] = metadata.google_volume_id
        return metadata.title


class DuplicateTracker:
    """Known titles and identifiers of the library plus rows imported so far"""

    def __init__(self):
        self.known: Dict[str, str] = {}

    def add(self, title: str, isbn13: str, isbn10: str) -> None:
        self._store("title", normalize_title(title))
        self._store("isbn13", normalize_identifier(isbn13))
        self._store("isbn10", normalize_identifier(isbn10))

    def check(self, title: str, isbn13: str, isbn10: str) -> str:
        """Returns 'duplicate <field>' for the first match, else ''"""
        for field, value in (
            ("title", normalize_title(title)),
            ("isbn13", normalize_identifier(isbn13)),
            ("isbn10", normalize_identifier(isbn10)),
        ):
            if value and f"{field}:{value}" in self.known:
                return f"duplicate {self.known[field + ':' + value]}"
        return ""

    def _store(self, field: str, value: str) -> None:
        if value:
            self.known[f"{field}:{value}"] = field


def normalize_header(header: List[str]) -> Dict[int, str]:
    columns = {}
    for index, raw in enumerate(header):
        cleaned = raw.replace("\ufeff", "").strip().lower()
        if cleaned:
            columns[index] = cleaned

    present = set(columns.values())
    missing = [column for column in REQUIRED_COLUMNS if column not in present]
    if missing:
        raise _invalid(f"missing required columns: {', '.join(missing)}")
    return columns


def map_record(columns: Dict[int, str], record: List[str]) -> Dict[str, str]:
    return {
        name: record[index].strip() if index < len(record) else ""
        for index, name in columns.items()
    }


def parse_int(value: Optional[str], field: str) -> Optional[int]:
    cleaned = (value or "").strip()
    if not cleaned:
        return None
    try:
        return int(cleaned)
    except ValueError:
        raise RowError(f"{field} must be a number")


def parse_positive_int(value: Optional[str], field: str) -> Optional[int]:
    parsed = parse_int(value, field)
    if parsed is not None and parsed <= 0:
        raise RowError(f"{field} must be positive")
    return parsed


def parse_non_negative_int(value: Optional[str], field: str) -> Optional[int]:
    parsed = parse_int(value, field)
    if parsed is not None and parsed < 0:
        raise RowError(f"{field} must be zero or greater")
    return parsed


def parse_float(value: Optional[str], field: str) -> Optional[float]:
    cleaned = (value or "").strip()
    if not cleaned:
        return None
    try:
        parsed = float(cleaned)
    except ValueError:
        raise RowError(f"{field} must be a number")
    if not math.isfinite(parsed):
        raise RowError(f"{field} must be a number")
    return parsed


def parse_timestamp(value: Optional[str], field: str) -> Optional[datetime]:
    """RFC 3339 timestamps; the offset is mandatory"""
    cleaned = (value or "").strip()
    if not cleaned:
        return None
    if cleaned.endswith(("Z", "z")):
        cleaned = cleaned[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(cleaned)
    except ValueError:
        raise RowError(f"{field} must be an RFC3339 timestamp")
    if parsed.tzinfo is None:
        raise RowError(f"{field} must be an RFC3339 timestamp")
    return parsed


def _record_failure(summary: ImportSummary, row: int, title: str, identifier: str, error: str) -> None:
    if len(summary.failed) < MAX_RECORDED:
        summary.failed.append(FailedRecord(row=row, title=title, identifier=identifier, error=error))
    else:
        summary.truncated_records = True


def _message(exc: Exception) -> str:
    return getattr(exc, "message", None) or str(exc)


def _invalid(detail: str) -> InvalidCSVError:
    return InvalidCSVError(f"invalid csv upload: {detail}")
