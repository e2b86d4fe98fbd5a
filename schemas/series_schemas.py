import enum
from typing import List, Optional

from .base import CamelModel
from .item_schemas import ItemResponse


class SeriesStatus(str, enum.Enum):
    COMPLETE = "complete"
    INCOMPLETE = "incomplete"
    UNKNOWN = "unknown"


class SeriesSummary(CamelModel):
    """Books sharing a series name, with the volumes still missing"""
    series_name: str
    total_volumes: Optional[int] = None
    owned_count: int
    missing_count: Optional[int] = None
    missing_volumes: List[int] = []
    status: SeriesStatus
    items: Optional[List[ItemResponse]] = None


class SeriesListResponse(CamelModel):
    series: List[SeriesSummary]
