from .base import CamelModel, RequestModel
from .catalog_schemas import CatalogLookupResponse, CatalogMetadata
from .import_schemas import FailedRecord, ImportSummary, SkippedRecord
from .item_schemas import (
    DuplicateMatch,
    DuplicatesResponse,
    HistogramResponse,
    ItemCreate,
    ItemListResponse,
    ItemResponse,
    ItemUpdate,
    ShelfPlacementInfo,
)
from .series_schemas import SeriesListResponse, SeriesStatus, SeriesSummary
from .session_schemas import SessionLoginRequest, SessionResponse, UserResponse
from .shelf_schemas import (
    AssignItemRequest,
    LayoutSlotInput,
    LayoutUpdateRequest,
    LayoutUpdateResponse,
    PlacementResponse,
    PlacementWithItem,
    ScanAndAssignResponse,
    ScanRequest,
    ScanStatus,
    ShelfColumnResponse,
    ShelfCreate,
    ShelfLayout,
    ShelfListResponse,
    ShelfResponse,
    ShelfRowResponse,
    ShelfSlotResponse,
    ShelfSummaryResponse,
    ShelfWithLayoutResponse,
)

__all__ = [
    "CamelModel",
    "RequestModel",
    "CatalogLookupResponse",
    "CatalogMetadata",
    "FailedRecord",
    "ImportSummary",
    "SkippedRecord",
    "DuplicateMatch",
    "DuplicatesResponse",
    "HistogramResponse",
    "ItemCreate",
    "ItemListResponse",
    "ItemResponse",
    "ItemUpdate",
    "ShelfPlacementInfo",
    "SeriesListResponse",
    "SeriesStatus",
    "SeriesSummary",
    "SessionLoginRequest",
    "SessionResponse",
    "UserResponse",
    "AssignItemRequest",
    "LayoutSlotInput",
    "LayoutUpdateRequest",
    "LayoutUpdateResponse",
    "PlacementResponse",
    "PlacementWithItem",
    "ScanAndAssignResponse",
    "ScanRequest",
    "ScanStatus",
    "ShelfColumnResponse",
    "ShelfCreate",
    "ShelfLayout",
    "ShelfListResponse",
    "ShelfResponse",
    "ShelfRowResponse",
    "ShelfSlotResponse",
    "ShelfSummaryResponse",
    "ShelfWithLayoutResponse",
]
