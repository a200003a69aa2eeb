from fastapi import APIRouter, Depends, Query
from typing import Optional

from app.dependencies import get_analytics_service, get_current_user_id
from app.schemas.analytics import AnalyticsByGroup, AnalyticsSummary, InvoiceStatistics
from app.services.analytics_service import (
    AnalyticsService,
    build_statistics_options,
    parse_analytics_period,
)

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.get("/summary", response_model=AnalyticsSummary)
def get_summary(
    period: Optional[str] = Query(None, description="7d, 1m or 1y"),
    user_id: str = Depends(get_current_user_id),
    service: AnalyticsService = Depends(get_analytics_service)
):
    """Totals and counts by status, in the reporting currency"""
    return service.get_summary(user_id, parse_analytics_period(period))


@router.get("/by-category", response_model=AnalyticsByGroup)
def get_by_category(
    period: Optional[str] = Query(None, description="7d, 1m or 1y"),
    user_id: str = Depends(get_current_user_id),
    service: AnalyticsService = Depends(get_analytics_service)
):
    return service.get_by_category(user_id, parse_analytics_period(period))


@router.get("/by-company", response_model=AnalyticsByGroup)
def get_by_company(
    period: Optional[str] = Query(None, description="7d, 1m or 1y"),
    user_id: str = Depends(get_current_user_id),
    service: AnalyticsService = Depends(get_analytics_service)
):
    return service.get_by_company(user_id, parse_analytics_period(period))


@router.get("/by-receiver", response_model=AnalyticsByGroup)
def get_by_receiver(
    period: Optional[str] = Query(None, description="7d, 1m or 1y"),
    user_id: str = Depends(get_current_user_id),
    service: AnalyticsService = Depends(get_analytics_service)
):
    return service.get_by_receiver(user_id, parse_analytics_period(period))


@router.get("/statistics", response_model=InvoiceStatistics, response_model_exclude_none=True)
def get_statistics(
    period: Optional[str] = Query(None, description="last_day, last_week, last_month, last_year or custom"),
    days: Optional[int] = Query(None, description="Window length for the custom period"),
    category_id: Optional[int] = Query(None),
    company_id: Optional[int] = Query(None),
    receiver_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None, description="paid, unpaid or overdue"),
    keyword: Optional[str] = Query(None, description="Matched against title and description"),
    group_by: Optional[str] = Query(None, description="day, week, month, category, company or receiver"),
    include_aggregations: bool = Query(False),
    user_id: str = Depends(get_current_user_id),
    service: AnalyticsService = Depends(get_analytics_service)
):
    """
    Flexible invoice statistics: filter by period and attributes, optionally
    group by time or entity and add max/min/avg aggregations.
    """
    options = build_statistics_options(
        period=period,
        days=days,
        category_id=category_id,
        company_id=company_id,
        receiver_id=receiver_id,
        status=status,
        keyword=keyword,
        group_by=group_by,
        include_aggregations=include_aggregations
    )
    return service.get_statistics(user_id, options)
