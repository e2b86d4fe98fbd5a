"""
Shelf routes: layout editing, placement and scan-to-shelf
"""
from uuid import UUID

from fastapi import APIRouter, Depends

from dependencies import get_current_owner, get_shelf_service, parse_uuid
from schemas.shelf_schemas import (
    AssignItemRequest,
    LayoutUpdateRequest,
    LayoutUpdateResponse,
    ScanAndAssignResponse,
    ScanRequest,
    ShelfCreate,
    ShelfListResponse,
    ShelfWithLayoutResponse,
)
from services.exceptions import ValidationError

router = APIRouter(prefix="/api/shelves", tags=["shelves"])


@router.get("", response_model=ShelfListResponse)
def list_shelves(
    owner_id: UUID = Depends(get_current_owner),
    shelf_service=Depends(get_shelf_service),
):
    return ShelfListResponse(shelves=shelf_service.list_shelves(owner_id))


@router.post("", response_model=ShelfWithLayoutResponse, status_code=201)
def create_shelf(
    payload: ShelfCreate,
    owner_id: UUID = Depends(get_current_owner),
    shelf_service=Depends(get_shelf_service),
):
    return shelf_service.create_shelf(owner_id, payload)


@router.get("/{shelf_id}", response_model=ShelfWithLayoutResponse)
def get_shelf(
    shelf_id: str,
    owner_id: UUID = Depends(get_current_owner),
    shelf_service=Depends(get_shelf_service),
):
    return shelf_service.get_shelf(owner_id, parse_uuid(shelf_id, "invalid shelf id"))


@router.put("/{shelf_id}/layout", response_model=LayoutUpdateResponse)
def update_layout(
    shelf_id: str,
    payload: LayoutUpdateRequest,
    owner_id: UUID = Depends(get_current_owner),
    shelf_service=Depends(get_shelf_service),
):
    """
    Replaces the slot grid. Items in removed slots come back as displaced
    and stay on the shelf unplaced.
    """
    return shelf_service.update_layout(owner_id, parse_uuid(shelf_id, "invalid shelf id"), payload.slots)


@router.post("/{shelf_id}/slots/{slot_id}/items", response_model=ShelfWithLayoutResponse)
def assign_item(
    shelf_id: str,
    slot_id: str,
    payload: AssignItemRequest,
    owner_id: UUID = Depends(get_current_owner),
    shelf_service=Depends(get_shelf_service),
):
    parsed_shelf = parse_uuid(shelf_id, "invalid shelf id")
    parsed_slot = parse_uuid(slot_id, "invalid slot id")
    if not (payload.item_id or "").strip():
        raise ValidationError("itemId is required")
    item_id = parse_uuid(payload.item_id.strip(), "invalid item id")
    return shelf_service.assign_item(owner_id, parsed_shelf, parsed_slot, item_id)


@router.delete("/{shelf_id}/slots/{slot_id}/items/{item_id}", response_model=ShelfWithLayoutResponse)
def remove_item(
    shelf_id: str,
    slot_id: str,
    item_id: str,
    owner_id: UUID = Depends(get_current_owner),
    shelf_service=Depends(get_shelf_service),
):
    return shelf_service.remove_item(
        owner_id,
        parse_uuid(shelf_id, "invalid shelf id"),
        parse_uuid(slot_id, "invalid slot id"),
        parse_uuid(item_id, "invalid item id"),
    )


@router.post("/{shelf_id}/slots/{slot_id}/scan", response_model=ScanAndAssignResponse)
def scan_and_assign(
    shelf_id: str,
    slot_id: str,
    payload: ScanRequest,
    owner_id: UUID = Depends(get_current_owner),
    shelf_service=Depends(get_shelf_service),
):
    return shelf_service.scan_and_assign(
        owner_id,
        parse_uuid(shelf_id, "invalid shelf id"),
        parse_uuid(slot_id, "invalid slot id"),
        payload.isbn,
    )
