"""
CSV export of items, readable again by the importer
"""
import csv
import io
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from schemas.item_schemas import ItemResponse

SCHEMA_VERSION = "1"

CSV_COLUMNS = [
    "schemaVersion",
    "title",
    "creator",
    "itemType",
    "releaseYear",
    "pageCount",
    "currentPage",
    "isbn13",
    "isbn10",
    "description",
    "coverImage",
    "format",
    "genre",
    "rating",
    "retailPriceUsd",
    "googleVolumeId",
    "platform",
    "ageGroup",
    "playerCount",
    "readingStatus",
    "readAt",
    "notes",
    "seriesName",
    "volumeNumber",
    "totalVolumes",
    "createdAt",
    "updatedAt",
]


def export_csv(items: Iterable[ItemResponse]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for item in items:
        writer.writerow(item_to_row(item))
    return buffer.getvalue()


def export_filename(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"anthology-export-{now.strftime('%Y%m%d-%H%M%S')}.csv"


def item_to_row(item: ItemResponse) -> List[str]:
    return [
        SCHEMA_VERSION,
        item.title,
        item.creator,
        item.item_type.value,
        # the importer rejects non-positive years and page counts
        _positive(item.release_year),
        _positive(item.page_count),
        _optional(item.current_page),
        item.isbn13,
        item.isbn10,
        item.description,
        item.cover_image,
        item.format,
        item.genre,
        _optional(item.rating),
        f"{item.retail_price_usd:.2f}" if item.retail_price_usd is not None else "",
        item.google_volume_id,
        item.platform,
        item.age_group,
        item.player_count,
        item.reading_status.value,
        _timestamp(item.read_at),
        item.notes,
        item.series_name,
        _optional(item.volume_number),
        _optional(item.total_volumes),
        _timestamp(item.created_at),
        _timestamp(item.updated_at),
    ]


def _optional(value: Optional[int]) -> str:
    return "" if value is None else str(value)


def _positive(value: Optional[int]) -> str:
    return "" if value is None or value <= 0 else str(value)


def _timestamp(value: Optional[datetime]) -> str:
    """RFC 3339 in UTC with a Z suffix"""
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
