from app.schemas.invoice import (
    InvoiceCreate,
    InvoiceUpdate,
    InvoiceStatusUpdate,
    InvoiceResponse,
    InvoiceListResponse,
    CreateInvoiceResponse,
    InvoiceItemCreate,
    InvoiceItemUpdate,
    InvoiceItemResponse,
)
from app.schemas.analytics import (
    StatisticsOptions,
    InvoiceStatistics,
    AnalyticsSummary,
    AnalyticsByGroup,
    GroupBy,
)
from app.schemas.fx import ExchangeRate, ExchangeRateResponse

__all__ = [
    "InvoiceCreate",
    "InvoiceUpdate",
    "InvoiceStatusUpdate",
    "InvoiceResponse",
    "InvoiceListResponse",
    "CreateInvoiceResponse",
    "InvoiceItemCreate",
    "InvoiceItemUpdate",
    "InvoiceItemResponse",
    "StatisticsOptions",
    "InvoiceStatistics",
    "AnalyticsSummary",
    "AnalyticsByGroup",
    "GroupBy",
    "ExchangeRate",
    "ExchangeRateResponse",
]
