from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum
from app.utils.periods import StatisticsPeriod


class GroupBy(str, Enum):
    """Grouping dimensions for the flexible statistics query"""
    NONE = "none"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    CATEGORY = "category"
    COMPANY = "company"
    RECEIVER = "receiver"


class InvoiceStatus(str, Enum):
    PAID = "paid"
    UNPAID = "unpaid"
    OVERDUE = "overdue"


class StatisticsOptions(BaseModel):
    """Parsed and validated inputs of a statistics query"""
    period: StatisticsPeriod = StatisticsPeriod.LAST_MONTH
    days: Optional[int] = None
    category_id: Optional[int] = None
    company_id: Optional[int] = None
    receiver_id: Optional[int] = None
    status: Optional[InvoiceStatus] = None
    keyword: Optional[str] = None
    group_by: GroupBy = GroupBy.NONE
    include_aggregations: bool = False


class StatisticsFilters(BaseModel):
    """Filters echoed back with the result"""
    category_id: Optional[int] = None
    company_id: Optional[int] = None
    receiver_id: Optional[int] = None
    status: Optional[str] = None
    keyword: Optional[str] = None


class StatusStats(BaseModel):
    count: int = 0
    amount: float = 0.0


class StatusBreakdown(BaseModel):
    paid: StatusStats = Field(default_factory=StatusStats)
    unpaid: StatusStats = Field(default_factory=StatusStats)
    overdue: StatusStats = Field(default_factory=StatusStats)


class BreakdownItem(BaseModel):
    """One bucket of a grouped result: time buckets carry date, entity buckets id/name"""
    date: Optional[str] = None
    id: Optional[int] = None
    name: Optional[str] = None
    amount: float = 0.0
    count: int = 0


class InvoiceReference(BaseModel):
    id: int
    title: str
    amount: float


class DayReference(BaseModel):
    date: str
    amount: float
    count: int


class GroupReference(BaseModel):
    id: Optional[int] = None
    name: str
    amount: float
    count: int


class Aggregations(BaseModel):
    max_amount: float = 0.0
    min_amount: float = 0.0
    avg_amount: float = 0.0
    max_invoice: Optional[InvoiceReference] = None
    max_day: Optional[DayReference] = None
    max_category: Optional[GroupReference] = None
    max_company: Optional[GroupReference] = None


class InvoiceStatistics(BaseModel):
    period: str
    start_date: datetime
    end_date: datetime
    currency: str
    filters: StatisticsFilters
    group_by: Optional[str] = None
    invoice_count: int = 0
    total_amount: float = 0.0
    by_status: Optional[StatusBreakdown] = None
    breakdown: Optional[List[BreakdownItem]] = None
    aggregations: Optional[Aggregations] = None


class AnalyticsSummary(BaseModel):
    period: str
    start_date: datetime
    end_date: datetime
    currency: str
    total_amount: float = 0.0
    paid_amount: float = 0.0
    unpaid_amount: float = 0.0
    overdue_amount: float = 0.0
    invoice_count: int = 0
    paid_count: int = 0
    unpaid_count: int = 0
    overdue_count: int = 0


class AnalyticsGroupItem(BaseModel):
    id: int
    name: str
    color: Optional[str] = None
    total_amount: float = 0.0
    paid_amount: float = 0.0
    unpaid_amount: float = 0.0  # unpaid + overdue
    overdue_amount: float = 0.0
    invoice_count: int = 0


class AnalyticsByGroup(BaseModel):
    period: str
    start_date: datetime
    end_date: datetime
    currency: str
    items: List[AnalyticsGroupItem] = []
    uncategorized: Optional[AnalyticsGroupItem] = None
