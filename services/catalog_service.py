"""
Metadata lookups against the Google Books API
"""
import logging
import re
from typing import List, Optional, Tuple
from urllib.parse import quote

import httpx

from schemas.catalog_schemas import CatalogMetadata
from services.exceptions import (
    CatalogLookupError,
    CatalogNotFoundError,
    InvalidQueryError,
    UnsupportedCategoryError,
)
from services.genre_mapper import map_categories_to_genre

logger = logging.getLogger(__name__)

GOOGLE_BOOKS_URL = "https://www.googleapis.com/books/v1"
CATEGORY_BOOK = "book"
PUBLISH_YEAR = re.compile(r"(1[0-9]{3}|20[0-9]{2})")


class CatalogService:
    """Google Books client; only the book category is supported"""

    def __init__(self, api_key: str = "", base_url: str = GOOGLE_BOOKS_URL,
                 timeout: float = 10.0, transport: Optional[httpx.BaseTransport] = None):
        self.api_key = (api_key or "").strip()
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(timeout=timeout, transport=transport)

    def close(self) -> None:
        self.client.close()

    def lookup(self, query: str, category: str) -> List[CatalogMetadata]:
        cleaned = (query or "").strip()
        if len(cleaned) < 3:
            raise InvalidQueryError()
        if category != CATEGORY_BOOK:
            raise UnsupportedCategoryError()

        isbn = normalize_isbn(cleaned)
        if isbn:
            try:
                return [self._lookup_by_isbn(isbn)]
            except CatalogNotFoundError:
                pass

        if is_invalid_barcode(cleaned):
            raise CatalogNotFoundError()

        results = []
        for volume in self._search(cleaned, 5):
            metadata = metadata_from_volume(volume)
            if metadata is not None:
                results.append(metadata)
        if not results:
            raise CatalogNotFoundError()
        return results

    def lookup_by_volume_id(self, volume_id: str) -> CatalogMetadata:
        volume_id = (volume_id or "").strip()
        if not volume_id:
            raise InvalidQueryError()

        params = {"key": self.api_key} if self.api_key else None
        payload = self._get(f"/volumes/{quote(volume_id, safe='')}", params, not_found_ok=True)
        if payload is None:
            raise CatalogNotFoundError()

        metadata = metadata_from_volume(payload)
        if metadata is None:
            raise CatalogNotFoundError()
        return metadata

    def _lookup_by_isbn(self, isbn: str) -> CatalogMetadata:
        volumes = self._search(f"isbn:{isbn}", 1)
        if not volumes:
            raise CatalogNotFoundError()

        metadata = metadata_from_volume(volumes[0])
        if metadata is None:
            raise CatalogNotFoundError()
        if not metadata.isbn13 and len(isbn) == 13:
            metadata.isbn13 = isbn
        if not metadata.isbn10 and len(isbn) == 10:
            metadata.isbn10 = isbn
        return metadata

    def _search(self, q: str, max_results: int) -> list:
        params = {
            "q": q,
            "maxResults": str(max_results),
            "printType": "books",
            "orderBy": "relevance",
        }
        if self.api_key:
            params["key"] = self.api_key
        payload = self._get("/volumes", params)
        return payload.get("items") or []

    def _get(self, path: str, params: Optional[dict], not_found_ok: bool = False) -> Optional[dict]:
        try:
            response = self.client.get(self.base_url + path, params=params)
        except httpx.HTTPError as exc:
            logger.error(f"Google Books request failed: {exc}")
            raise CatalogLookupError()

        if response.status_code == 404 and not_found_ok:
            return None
        if response.status_code != 200:
            logger.error(f"Google Books returned status {response.status_code}")
            raise CatalogLookupError()

        try:
            return response.json()
        except ValueError as exc:
            logger.error(f"Google Books response could not be decoded: {exc}")
            raise CatalogLookupError()


def metadata_from_volume(volume: dict) -> Optional[CatalogMetadata]:
    """Maps a Google Books volume; None when it has neither title nor authors"""
    info = volume.get("volumeInfo") or {}
    title = (info.get("title") or "").strip()
    creator = ", ".join(info.get("authors") or []).strip()
    if not title and not creator:
        return None

    identifiers = [
        (entry.get("identifier") or "").strip()
        for entry in info.get("industryIdentifiers") or []
    ]
    isbn13, isbn10 = select_isbns([value for value in identifiers if value])

    description = (info.get("description") or "").strip() or (info.get("subtitle") or "").strip()
    page_count = info.get("pageCount") or 0

    price = None
    retail = (volume.get("saleInfo") or {}).get("retailPrice")
    if retail and retail.get("currencyCode") == "USD":
        price = retail.get("amount")

    return CatalogMetadata(
        title=title,
        creator=creator,
        item_type=CATEGORY_BOOK,
        release_year=parse_publish_year(info.get("publishedDate") or ""),
        page_count=page_count if page_count > 0 else None,
        isbn13=isbn13,
        isbn10=isbn10,
        description=description,
        cover_image=normalize_cover_url(info.get("imageLinks") or {}),
        genre=map_categories_to_genre(info.get("categories") or []),
        retail_price_usd=price,
        google_volume_id=volume.get("id") or "",
    )


def select_isbns(values: List[str]) -> Tuple[str, str]:
    isbn13 = next((value for value in values if len(value) == 13), "")
    isbn10 = next((value for value in values if len(value) == 10), "")
    return isbn13, isbn10


def normalize_cover_url(links: dict) -> str:
    for key in ("thumbnail", "smallThumbnail"):
        value = (links.get(key) or "").strip()
        if not value:
            continue
        if value.startswith("http://"):
            value = "https://" + value[len("http://"):]
        return value
    return ""


def parse_publish_year(raw: str) -> Optional[int]:
    match = PUBLISH_YEAR.search(raw)
    return int(match.group(0)) if match else None


def normalize_isbn(value: str) -> str:
    """ISBN-10 (with optional X check digit) or ISBN-13 with separators removed, else ''"""
    cleaned = "".join("X" if ch in "xX" else ch for ch in value if ch.isdigit() or ch in "xX")
    if len(cleaned) == 10 and cleaned[:9].isdigit() and (cleaned[9].isdigit() or cleaned[9] == "X"):
        return cleaned
    if len(cleaned) == 13 and cleaned.isdigit():
        return cleaned
    return ""


def is_invalid_barcode(query: str) -> bool:
    """Digits-only queries (UPCs and the like) whose length cannot be an ISBN"""
    count = 0
    for ch in query:
        if ch.isdigit() or ch in "xX":
            count += 1
        elif not ch.isspace() and ch != "-":
            return False
    return count > 0 and count not in (10, 13)
