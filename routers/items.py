"""
Item routes: CRUD, list filters, histogram, duplicates, re-sync and CSV
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile

from dependencies import (
    get_csv_importer,
    get_current_owner,
    get_item_service,
    get_shelf_service,
    parse_uuid,
)
from models.item import BookStatus, ItemType, ShelfStatus
from repositories.filters import OTHER_LETTER, ListOptions
from schemas.import_schemas import ImportSummary
from schemas.item_schemas import (
    DuplicatesResponse,
    HistogramResponse,
    ItemCreate,
    ItemListResponse,
    ItemResponse,
    ItemUpdate,
)
from services.csv_exporter import export_csv, export_filename
from services.exceptions import ValidationError

router = APIRouter(prefix="/api/items", tags=["items"])

MAX_LIST_LIMIT = 50
MAX_SEARCH_QUERY_LENGTH = 500
MAX_CSV_UPLOAD_BYTES = 5 << 20


def parse_item_type_filter(raw: Optional[str]) -> Optional[ItemType]:
    value = (raw or "").strip()
    if not value:
        return None
    try:
        return ItemType(value)
    except ValueError:
        raise ValidationError("invalid type filter")


def parse_status_filter(raw: Optional[str]) -> Optional[BookStatus]:
    value = (raw or "").strip()
    if not value:
        return None
    try:
        return BookStatus(value)
    except ValueError:
        raise ValidationError("invalid status filter")


def parse_list_options(item_type: Optional[str], status: Optional[str], shelf_status: Optional[str],
                       letter: Optional[str], query: Optional[str], limit: Optional[int]) -> ListOptions:
    options = ListOptions(
        item_type=parse_item_type_filter(item_type),
        reading_status=parse_status_filter(status),
    )

    raw_shelf_status = (shelf_status or "").strip()
    if raw_shelf_status:
        try:
            parsed = ShelfStatus(raw_shelf_status)
        except ValueError:
            raise ValidationError("invalid shelf_status filter")
        # "all" is the same as no filter
        if parsed != ShelfStatus.ALL:
            options.shelf_status = parsed

    raw_letter = (letter or "").strip().upper()
    if raw_letter:
        if raw_letter != OTHER_LETTER and not (len(raw_letter) == 1 and "A" <= raw_letter <= "Z"):
            raise ValidationError("invalid letter filter")
        options.initial = raw_letter

    raw_query = (query or "").strip()
    if raw_query:
        if len(raw_query) > MAX_SEARCH_QUERY_LENGTH:
            raise ValidationError(f"query too long (max {MAX_SEARCH_QUERY_LENGTH} characters)")
        options.query = raw_query

    # bounds are checked by the Query declaration
    options.limit = limit

    return options


@router.get("", response_model=ItemListResponse)
def list_items(
    item_type: Optional[str] = Query(None, alias="type"),
    status: Optional[str] = Query(None),
    shelf_status: Optional[str] = Query(None),
    letter: Optional[str] = Query(None),
    query: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=MAX_LIST_LIMIT),
    owner_id: UUID = Depends(get_current_owner),
    item_service=Depends(get_item_service),
):
    options = parse_list_options(item_type, status, shelf_status, letter, query, limit)
    return ItemListResponse(items=item_service.list(owner_id, options))


@router.post("", response_model=ItemResponse, status_code=201)
def create_item(
    payload: ItemCreate,
    owner_id: UUID = Depends(get_current_owner),
    item_service=Depends(get_item_service),
):
    return item_service.create(owner_id, payload)


@router.get("/histogram", response_model=HistogramResponse)
def item_histogram(
    item_type: Optional[str] = Query(None, alias="type"),
    status: Optional[str] = Query(None),
    owner_id: UUID = Depends(get_current_owner),
    item_service=Depends(get_item_service),
):
    """Item counts per first title letter, for the alphabet rail"""
    return item_service.histogram(owner_id, parse_item_type_filter(item_type), parse_status_filter(status))


@router.get("/duplicates", response_model=DuplicatesResponse)
def item_duplicates(
    title: str = Query(""),
    isbn13: str = Query(""),
    isbn10: str = Query(""),
    owner_id: UUID = Depends(get_current_owner),
    item_service=Depends(get_item_service),
):
    matches = item_service.find_duplicates(owner_id, title.strip(), isbn13.strip(), isbn10.strip())
    return DuplicatesResponse(duplicates=matches)


@router.get("/export")
def export_items(
    item_type: Optional[str] = Query(None, alias="type"),
    status: Optional[str] = Query(None),
    shelf_status: Optional[str] = Query(None),
    letter: Optional[str] = Query(None),
    query: Optional[str] = Query(None),
    owner_id: UUID = Depends(get_current_owner),
    item_service=Depends(get_item_service),
):
    """Every item matching the list filters as a CSV attachment"""
    options = parse_list_options(item_type, status, shelf_status, letter, query, None)
    content = export_csv(item_service.list(owner_id, options))
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@router.post("/import", response_model=ImportSummary)
def import_items(
    file: Optional[UploadFile] = File(None),
    owner_id: UUID = Depends(get_current_owner),
    importer=Depends(get_csv_importer),
):
    if file is None:
        raise ValidationError("CSV file is required")
    content = file.file.read(MAX_CSV_UPLOAD_BYTES + 1)
    if len(content) > MAX_CSV_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail=f"CSV upload is too large (max {MAX_CSV_UPLOAD_BYTES} bytes)")
    return importer.import_csv(owner_id, content)


@router.get("/{item_id}", response_model=ItemResponse)
def get_item(
    item_id: str,
    owner_id: UUID = Depends(get_current_owner),
    item_service=Depends(get_item_service),
):
    return item_service.get(owner_id, parse_uuid(item_id))


@router.put("/{item_id}", response_model=ItemResponse)
def update_item(
    item_id: str,
    patch: ItemUpdate,
    owner_id: UUID = Depends(get_current_owner),
    item_service=Depends(get_item_service),
):
    return item_service.update(owner_id, parse_uuid(item_id), patch)


@router.delete("/{item_id}", status_code=204)
def delete_item(
    item_id: str,
    owner_id: UUID = Depends(get_current_owner),
    item_service=Depends(get_item_service),
    shelf_service=Depends(get_shelf_service),
):
    parsed = parse_uuid(item_id)
    item_service.delete(owner_id, parsed)
    shelf_service.forget_item(owner_id, parsed)
    return Response(status_code=204)


@router.post("/{item_id}/resync", response_model=ItemResponse)
def resync_item(
    item_id: str,
    owner_id: UUID = Depends(get_current_owner),
    item_service=Depends(get_item_service),
):
    """Refreshes catalog metadata of a book"""
    return item_service.resync_metadata(owner_id, parse_uuid(item_id))
