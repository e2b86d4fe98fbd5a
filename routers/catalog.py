from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from dependencies import get_catalog_service, get_current_owner
from schemas.catalog_schemas import CatalogLookupResponse
from services.exceptions import ValidationError

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


@router.get("/lookup", response_model=CatalogLookupResponse)
def lookup(
    query: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    owner_id: UUID = Depends(get_current_owner),
    catalog=Depends(get_catalog_service),
):
    """
    Looks up book metadata on Google Books by ISBN or keywords
    """
    query = (query or "").strip()
    if not query:
        raise ValidationError("query is required")
    category = (category or "").strip().lower()
    if not category:
        raise ValidationError("category is required")
    return CatalogLookupResponse(items=catalog.lookup(query, category))
