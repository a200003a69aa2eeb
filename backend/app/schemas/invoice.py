from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Literal
from datetime import datetime
from app.utils.periods import to_naive_utc


InvoiceStatusLiteral = Literal["paid", "unpaid", "overdue"]


def _normalize_currency(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip().upper()
    if len(value) != 3 or not value.isalpha():
        raise ValueError(f"Invalid currency code '{value}'")
    return value


class InvoiceItemCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=255)
    quantity: Optional[float] = Field(None, ge=0)  # Missing means 1
    unit_price: float = 0.0


class InvoiceItemUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1, max_length=255)
    quantity: Optional[float] = Field(None, ge=0)
    unit_price: Optional[float] = None
    # Manual override of the reporting-currency amount for this update only
    target_amount: Optional[float] = None
    # Re-fetch the rate and ignore any target_amount sent alongside
    auto_calculate_target_currency: bool = False


class InvoiceItemResponse(BaseModel):
    id: int
    invoice_id: int
    description: str
    quantity: float
    unit_price: float
    amount: float
    target_currency: str
    target_amount: float
    fx_rate_used: float
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CategoryReference(BaseModel):
    id: int
    name: str
    color: Optional[str] = None

    class Config:
        from_attributes = True


class CompanyReference(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class ReceiverReference(BaseModel):
    id: int
    name: str
    is_organization: bool = False

    class Config:
        from_attributes = True


class TagResponse(BaseModel):
    id: int
    name: str
    color: Optional[str] = None

    class Config:
        from_attributes = True


class InvoiceResponse(BaseModel):
    id: int
    user_id: str
    title: str
    description: Optional[str]
    invoice_started_at: Optional[datetime]
    invoice_ended_at: Optional[datetime]
    currency: str
    amount: float
    target_amount: float
    category_id: Optional[int]
    company_id: Optional[int]
    receiver_id: Optional[int]
    category: Optional[CategoryReference] = None
    company: Optional[CompanyReference] = None
    receiver: Optional[ReceiverReference] = None
    original_download_link: Optional[str]
    status: str
    due_date: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    items: List[InvoiceItemResponse] = []
    tags: List[TagResponse] = []

    class Config:
        from_attributes = True


class InvoiceListResponse(BaseModel):
    data: List[InvoiceResponse]
    total: int
    limit: int
    offset: int


class InvoiceCreate(BaseModel):
    """Payload for creating an invoice. Totals are always computed from items."""
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    currency: str = "USD"
    invoice_started_at: Optional[datetime] = None
    invoice_ended_at: Optional[datetime] = None
    due_date: Optional[datetime] = None
    category_id: Optional[int] = None
    company_id: Optional[int] = None
    receiver_id: Optional[int] = None
    original_download_link: Optional[str] = None
    status: InvoiceStatusLiteral = "unpaid"
    tags: List[str] = []
    items: List[InvoiceItemCreate] = []

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, value):
        return _normalize_currency(value)

    @field_validator("invoice_started_at", "invoice_ended_at", "due_date")
    @classmethod
    def normalize_datetime(cls, value):
        return to_naive_utc(value)


class InvoiceUpdate(BaseModel):
    """Partial update. Only fields present in the payload are applied."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    currency: Optional[str] = None
    invoice_started_at: Optional[datetime] = None
    invoice_ended_at: Optional[datetime] = None
    due_date: Optional[datetime] = None
    category_id: Optional[int] = None
    company_id: Optional[int] = None
    receiver_id: Optional[int] = None
    original_download_link: Optional[str] = None
    status: Optional[InvoiceStatusLiteral] = None
    tags: Optional[List[str]] = None

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, value):
        return _normalize_currency(value)

    @field_validator("invoice_started_at", "invoice_ended_at", "due_date")
    @classmethod
    def normalize_datetime(cls, value):
        return to_naive_utc(value)


class InvoiceStatusUpdate(BaseModel):
    status: InvoiceStatusLiteral


class InvoiceTagIdsUpdate(BaseModel):
    tag_ids: List[int] = []


class CreateInvoiceResponse(BaseModel):
    invoice: InvoiceResponse
    is_duplicate: bool
    message: Optional[str] = None
