"""
Series routes: books grouped by seriesName with missing volumes
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from dependencies import get_current_owner, get_item_service
from schemas.series_schemas import SeriesListResponse, SeriesStatus, SeriesSummary

router = APIRouter(prefix="/api/series", tags=["series"])


@router.get("", response_model=SeriesListResponse)
def list_series(
    include_items: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    owner_id: UUID = Depends(get_current_owner),
    item_service=Depends(get_item_service),
):
    # unknown status values are ignored rather than rejected
    status_filter = None
    raw_status = (status or "").strip()
    if raw_status in {member.value for member in SeriesStatus}:
        status_filter = SeriesStatus(raw_status)

    series = item_service.list_series(owner_id, include_items == "true", status_filter)
    return SeriesListResponse(series=series)


@router.get("/detail", response_model=SeriesSummary)
def get_series(
    name: str = Query(""),
    owner_id: UUID = Depends(get_current_owner),
    item_service=Depends(get_item_service),
):
    return item_service.get_series(owner_id, name)
