from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import Field

from models.item import BookStatus, ItemType
from .base import CamelModel, RequestModel


class ShelfPlacementInfo(CamelModel):
    """Where an item currently sits (cached on the item)"""
    shelf_id: UUID
    shelf_name: str
    slot_id: UUID
    row_index: int
    col_index: int


class ItemResponse(CamelModel):
    """Catalogue item as stored and returned by the API"""
    id: UUID
    owner_id: Optional[UUID] = Field(default=None, exclude=True)
    title: str
    creator: str = ""
    item_type: ItemType
    release_year: Optional[int] = None
    page_count: Optional[int] = None
    current_page: Optional[int] = None
    isbn13: str = ""
    isbn10: str = ""
    description: str = ""
    cover_image: str = ""
    format: str = ""
    genre: str = ""
    rating: Optional[int] = None
    retail_price_usd: Optional[float] = None
    google_volume_id: str = ""
    platform: str = ""
    age_group: str = ""
    player_count: str = ""
    reading_status: BookStatus = BookStatus.NONE
    read_at: Optional[datetime] = None
    notes: str = ""
    series_name: str = ""
    volume_number: Optional[int] = None
    total_volumes: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    shelf_placement: Optional[ShelfPlacementInfo] = None


class ItemCreate(RequestModel):
    """New item; enum values are validated by the service"""
    title: str = ""
    creator: str = ""
    item_type: str = ""
    release_year: Optional[int] = None
    page_count: Optional[int] = None
    current_page: Optional[int] = None
    isbn13: str = ""
    isbn10: str = ""
    description: str = ""
    cover_image: str = ""
    format: str = ""
    genre: str = ""
    rating: Optional[int] = None
    retail_price_usd: Optional[float] = None
    google_volume_id: str = ""
    platform: str = ""
    age_group: str = ""
    player_count: str = ""
    reading_status: str = ""
    read_at: Optional[datetime] = None
    notes: str = ""
    series_name: str = ""
    volume_number: Optional[int] = None
    total_volumes: Optional[int] = None


class ItemUpdate(RequestModel):
    """
    Partial update. Only keys present in the body are applied
    (see model_fields_set); an explicit null clears nullable fields.
    """
    title: Optional[str] = None
    creator: Optional[str] = None
    item_type: Optional[str] = None
    release_year: Optional[int] = None
    page_count: Optional[int] = None
    current_page: Optional[int] = None
    isbn13: Optional[str] = None
    isbn10: Optional[str] = None
    description: Optional[str] = None
    cover_image: Optional[str] = None
    format: Optional[str] = None
    genre: Optional[str] = None
    rating: Optional[int] = None
    retail_price_usd: Optional[float] = None
    google_volume_id: Optional[str] = None
    platform: Optional[str] = None
    age_group: Optional[str] = None
    player_count: Optional[str] = None
    reading_status: Optional[str] = None
    read_at: Optional[datetime] = None
    notes: Optional[str] = None
    series_name: Optional[str] = None
    volume_number: Optional[int] = None
    total_volumes: Optional[int] = None


class ItemListResponse(CamelModel):
    items: List[ItemResponse]


class HistogramResponse(CamelModel):
    histogram: Dict[str, int]
    total: int


class DuplicateMatch(CamelModel):
    """Existing item that looks like the one being added"""
    id: UUID
    title: str
    primary_identifier: str = ""
    identifier_type: str = ""
    cover_url: str = ""
    location: str = ""
    updated_at: datetime


class DuplicatesResponse(CamelModel):
    duplicates: List[DuplicateMatch]
