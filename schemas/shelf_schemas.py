import enum
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from .base import CamelModel, RequestModel
from .item_schemas import ItemResponse


class ScanStatus(str, enum.Enum):
    CREATED = "created"
    MOVED = "moved"
    PRESENT = "present"


class ShelfResponse(CamelModel):
    id: UUID
    owner_id: Optional[UUID] = Field(default=None, exclude=True)
    name: str
    description: str = ""
    photo_url: str
    created_at: datetime
    updated_at: datetime


class ShelfColumnResponse(CamelModel):
    id: UUID
    shelf_row_id: UUID
    col_index: int
    x_start_norm: float
    x_end_norm: float


class ShelfRowResponse(CamelModel):
    id: UUID
    shelf_id: UUID
    row_index: int
    y_start_norm: float
    y_end_norm: float
    columns: List[ShelfColumnResponse] = []


class ShelfSlotResponse(CamelModel):
    id: UUID
    shelf_id: UUID
    shelf_row_id: UUID
    shelf_column_id: UUID
    row_index: int
    col_index: int
    x_start_norm: float
    x_end_norm: float
    y_start_norm: float
    y_end_norm: float


class PlacementResponse(CamelModel):
    """Item on a shelf; shelf_slot_id None means unplaced"""
    id: UUID
    item_id: UUID
    shelf_id: UUID
    shelf_slot_id: Optional[UUID] = None
    created_at: datetime


class ShelfLayout(CamelModel):
    """Shelf as stored: layout plus bare placements"""
    shelf: ShelfResponse
    rows: List[ShelfRowResponse] = []
    slots: List[ShelfSlotResponse] = []
    placements: List[PlacementResponse] = []


class PlacementWithItem(CamelModel):
    item: ItemResponse
    placement: PlacementResponse


class ShelfWithLayoutResponse(CamelModel):
    """Shelf with its layout and placements hydrated with items"""
    shelf: ShelfResponse
    rows: List[ShelfRowResponse] = []
    slots: List[ShelfSlotResponse] = []
    placements: List[PlacementWithItem] = []
    unplaced: List[PlacementWithItem] = []


class ShelfSummaryResponse(CamelModel):
    shelf: ShelfResponse
    item_count: int
    placed_count: int
    slot_count: int


class ShelfListResponse(CamelModel):
    shelves: List[ShelfSummaryResponse]


class ShelfCreate(RequestModel):
    name: str = ""
    description: str = ""
    photo_url: str = ""


class LayoutSlotInput(RequestModel):
    slot_id: Optional[UUID] = None
    row_index: int
    col_index: int
    x_start_norm: float
    x_end_norm: float
    y_start_norm: float
    y_end_norm: float


class LayoutUpdateRequest(RequestModel):
    slots: List[LayoutSlotInput] = []


class LayoutUpdateResponse(CamelModel):
    shelf: ShelfWithLayoutResponse
    displaced: List[PlacementWithItem] = []


class AssignItemRequest(RequestModel):
    item_id: str = ""


class ScanRequest(RequestModel):
    isbn: str = ""


class ScanAndAssignResponse(CamelModel):
    item: ItemResponse
    status: ScanStatus
