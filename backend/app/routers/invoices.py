from fastapi import APIRouter, Depends, Query, Response
from typing import List, Optional
import logging

from app.config import settings
from app.dependencies import get_current_user_id, get_invoice_service
from app.schemas.invoice import (
    CreateInvoiceResponse,
    InvoiceCreate,
    InvoiceItemCreate,
    InvoiceItemResponse,
    InvoiceItemUpdate,
    InvoiceListResponse,
    InvoiceResponse,
    InvoiceStatusUpdate,
    InvoiceTagIdsUpdate,
    InvoiceUpdate,
)
from app.services.invoice_service import InvoiceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


@router.get("", response_model=InvoiceListResponse)
def list_invoices(
    keyword: Optional[str] = Query(None, description="Search title and description"),
    category_id: Optional[int] = Query(None, description="Filter by category ID"),
    company_id: Optional[int] = Query(None, description="Filter by company ID"),
    receiver_id: Optional[int] = Query(None, description="Filter by receiver ID"),
    status: Optional[str] = Query(None, description="Filter by status"),
    sort_by: str = Query("created_at", description="created_at, amount, due_date or title"),
    sort_order: str = Query("desc", description="asc or desc"),
    limit: int = Query(settings.default_page_limit, ge=1, le=settings.max_page_limit),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user_id),
    service: InvoiceService = Depends(get_invoice_service)
):
    """List invoices with optional filters"""
    invoices, total, limit = service.list_invoices(
        user_id,
        keyword=keyword,
        category_id=category_id,
        company_id=company_id,
        receiver_id=receiver_id,
        status=status,
        sort_by=sort_by,
        sort_order=sort_order,
        limit=limit,
        offset=offset
    )
    return InvoiceListResponse(
        data=[InvoiceResponse.model_validate(invoice) for invoice in invoices],
        total=total,
        limit=limit,
        offset=offset
    )


@router.post("", response_model=CreateInvoiceResponse, status_code=201)
def create_invoice(
    payload: InvoiceCreate,
    response: Response,
    user_id: str = Depends(get_current_user_id),
    service: InvoiceService = Depends(get_invoice_service)
):
    """Create an invoice. A duplicate returns the existing invoice with 200."""
    result = service.create_invoice(user_id, payload)
    if result.is_duplicate:
        logger.info(f"Duplicate submission for user {user_id}, returning invoice {result.invoice.id}")
        response.status_code = 200

    return CreateInvoiceResponse(
        invoice=InvoiceResponse.model_validate(result.invoice),
        is_duplicate=result.is_duplicate,
        message=result.message
    )


@router.get("/search", response_model=List[InvoiceResponse])
def search_invoices(
    q: str = Query(..., min_length=1, description="Keyword matched against title and description"),
    limit: int = Query(settings.default_page_limit, ge=1, le=settings.max_page_limit),
    user_id: str = Depends(get_current_user_id),
    service: InvoiceService = Depends(get_invoice_service)
):
    return service.search_invoices(user_id, q, limit)


@router.get("/overdue", response_model=List[InvoiceResponse])
def get_overdue_invoices(
    user_id: str = Depends(get_current_user_id),
    service: InvoiceService = Depends(get_invoice_service)
):
    """Unpaid invoices past their due date"""
    return service.get_overdue_invoices(user_id)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(
    invoice_id: int,
    user_id: str = Depends(get_current_user_id),
    service: InvoiceService = Depends(get_invoice_service)
):
    return service.get_invoice(user_id, invoice_id)


@router.put("/{invoice_id}", response_model=InvoiceResponse)
def update_invoice(
    invoice_id: int,
    payload: InvoiceUpdate,
    user_id: str = Depends(get_current_user_id),
    service: InvoiceService = Depends(get_invoice_service)
):
    """Update invoice fields. Changing the currency converts every item again."""
    return service.update_invoice(user_id, invoice_id, payload)


@router.delete("/{invoice_id}", status_code=204)
def delete_invoice(
    invoice_id: int,
    user_id: str = Depends(get_current_user_id),
    service: InvoiceService = Depends(get_invoice_service)
):
    service.delete_invoice(user_id, invoice_id)
    return Response(status_code=204)


@router.patch("/{invoice_id}/status", response_model=InvoiceResponse)
def update_invoice_status(
    invoice_id: int,
    payload: InvoiceStatusUpdate,
    user_id: str = Depends(get_current_user_id),
    service: InvoiceService = Depends(get_invoice_service)
):
    return service.update_invoice_status(user_id, invoice_id, payload.status)


@router.put("/{invoice_id}/tags", response_model=InvoiceResponse)
def set_invoice_tags(
    invoice_id: int,
    payload: InvoiceTagIdsUpdate,
    user_id: str = Depends(get_current_user_id),
    service: InvoiceService = Depends(get_invoice_service)
):
    """Replace the invoice's tags with existing tags by ID"""
    return service.set_invoice_tags_by_id(user_id, invoice_id, payload.tag_ids)


@router.post("/{invoice_id}/items", response_model=InvoiceItemResponse, status_code=201)
def add_item(
    invoice_id: int,
    payload: InvoiceItemCreate,
    user_id: str = Depends(get_current_user_id),
    service: InvoiceService = Depends(get_invoice_service)
):
    return service.add_item(user_id, invoice_id, payload)


@router.get("/{invoice_id}/items/{item_id}", response_model=InvoiceItemResponse)
def get_item(
    invoice_id: int,
    item_id: int,
    user_id: str = Depends(get_current_user_id),
    service: InvoiceService = Depends(get_invoice_service)
):
    return service.get_item(user_id, invoice_id, item_id)


@router.put("/{invoice_id}/items/{item_id}", response_model=InvoiceItemResponse)
def update_item(
    invoice_id: int,
    item_id: int,
    payload: InvoiceItemUpdate,
    user_id: str = Depends(get_current_user_id),
    service: InvoiceService = Depends(get_invoice_service)
):
    """
    Update an item. A target_amount pins the reporting-currency value for this
    update; auto_calculate_target_currency converts from the current rate instead.
    """
    return service.update_item(
        user_id,
        invoice_id,
        item_id,
        description=payload.description,
        quantity=payload.quantity,
        unit_price=payload.unit_price,
        target_amount_override=payload.target_amount,
        force_recalculate=payload.auto_calculate_target_currency
    )


@router.delete("/{invoice_id}/items/{item_id}", status_code=204)
def delete_item(
    invoice_id: int,
    item_id: int,
    user_id: str = Depends(get_current_user_id),
    service: InvoiceService = Depends(get_invoice_service)
):
    service.delete_item(user_id, invoice_id, item_id)
    return Response(status_code=204)
