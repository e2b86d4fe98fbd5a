from typing import List, Optional

from .base import CamelModel


class CatalogMetadata(CamelModel):
    """Prefill data for a new item, mapped from a Google Books volume"""
    title: str
    creator: str = ""
    item_type: str = "book"
    release_year: Optional[int] = None
    page_count: Optional[int] = None
    isbn13: str = ""
    isbn10: str = ""
    description: str = ""
    cover_image: str = ""
    genre: str = ""
    retail_price_usd: Optional[float] = None
    google_volume_id: str = ""


class CatalogLookupResponse(CamelModel):
    items: List[CatalogMetadata]
