"""
Item list filters shared by the in-memory and SQL repositories
"""
import string
from dataclasses import dataclass
from typing import Iterable, List, Optional

from models.item import BookStatus, ItemType, ShelfStatus
from schemas.item_schemas import ItemResponse

OTHER_LETTER = "#"


@dataclass
class ListOptions:
    item_type: Optional[ItemType] = None
    reading_status: Optional[BookStatus] = None
    shelf_status: Optional[ShelfStatus] = None
    initial: Optional[str] = None
    query: Optional[str] = None
    limit: Optional[int] = None


def first_letter(title: str) -> str:
    """Histogram bucket of a title: A-Z, anything else is '#'"""
    trimmed = (title or "").strip()
    if not trimmed:
        return OTHER_LETTER
    letter = trimmed[0].upper()
    if letter in string.ascii_uppercase:
        return letter
    return OTHER_LETTER


def normalize_title(value: str) -> str:
    return (value or "").strip().lower()


def normalize_identifier(value: str) -> str:
    """Keeps only the digits of an ISBN/UPC"""
    return "".join(ch for ch in (value or "") if ch.isdigit())


def matches_status(item: ItemResponse, options: ListOptions) -> bool:
    """
    Without a type filter, 'none' means non-books plus books with no status,
    and any other status only matches books. With a type filter it is plain
    equality.
    """
    status = options.reading_status
    if status is None:
        return True
    if options.item_type is not None:
        return item.reading_status == status
    if status == BookStatus.NONE:
        return item.item_type != ItemType.BOOK or item.reading_status == BookStatus.NONE
    return item.item_type == ItemType.BOOK and item.reading_status == status


def matches_initial(item: ItemResponse, initial: Optional[str]) -> bool:
    if not initial:
        return True
    return first_letter(item.title) == initial.strip().upper()


def matches(item: ItemResponse, options: ListOptions) -> bool:
    if options.item_type is not None and item.item_type != options.item_type:
        return False
    if not matches_status(item, options):
        return False
    if not matches_initial(item, options.initial):
        return False

    query = normalize_title(options.query or "")
    if query and query not in normalize_title(item.title):
        return False

    if options.shelf_status == ShelfStatus.ON and item.shelf_placement is None:
        return False
    if options.shelf_status == ShelfStatus.OFF and item.shelf_placement is not None:
        return False
    return True


def sort_items(items: Iterable[ItemResponse]) -> List[ItemResponse]:
    """Newest first, ties broken by title"""
    ordered = sorted(items, key=lambda item: item.title)
    ordered.sort(key=lambda item: item.created_at, reverse=True)
    return ordered


def apply_limit(items: List[ItemResponse], limit: Optional[int]) -> List[ItemResponse]:
    if limit is not None and limit > 0:
        return items[:limit]
    return items
