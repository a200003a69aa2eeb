"""
Analytics Service - spending statistics in the reporting currency.

Every amount here is summed from invoice_items.target_amount, grouped per
invoice, so mixed-currency invoices aggregate correctly. invoices.amount is in
the invoice's own currency and is never summed across invoices.
"""
import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import InvalidParameterError
from app.models.category import InvoiceCategory
from app.models.company import InvoiceCompany
from app.models.invoice import Invoice
from app.models.invoice_item import InvoiceItem
from app.models.receiver import InvoiceReceiver
from app.schemas.analytics import (
    Aggregations,
    AnalyticsByGroup,
    AnalyticsGroupItem,
    AnalyticsSummary,
    BreakdownItem,
    DayReference,
    GroupBy,
    GroupReference,
    InvoiceReference,
    InvoiceStatistics,
    InvoiceStatus,
    StatisticsFilters,
    StatisticsOptions,
    StatusBreakdown,
    StatusStats,
)
from app.services.invoice_service import keyword_condition
from app.utils.periods import (
    AnalyticsPeriod,
    StatisticsPeriod,
    days_in_window,
    month_key,
    resolve_analytics_period,
    resolve_statistics_period,
    week_start,
)

logger = logging.getLogger(__name__)

NO_CATEGORY = "Uncategorized"
NO_COMPANY = "No Company"
NO_RECEIVER = "No Receiver"


def _parse_enum(enum_cls, value: str, label: str):
    try:
        return enum_cls(value)
    except ValueError:
        valid = ", ".join(member.value for member in enum_cls)
        raise InvalidParameterError(f"Invalid {label} '{value}'. Valid values: {valid}")


def build_statistics_options(
    period: Optional[str] = None,
    days: Optional[int] = None,
    category_id: Optional[int] = None,
    company_id: Optional[int] = None,
    receiver_id: Optional[int] = None,
    status: Optional[str] = None,
    keyword: Optional[str] = None,
    group_by: Optional[str] = None,
    include_aggregations: bool = False
) -> StatisticsOptions:
    """
    Turn raw query values into StatisticsOptions.

    Missing values get defaults: the period becomes custom when only a positive
    day count is given and last_month otherwise, grouping becomes none.
    Unrecognised values raise InvalidParameterError.
    """
    if period:
        parsed_period = _parse_enum(StatisticsPeriod, period, "period")
    elif days and days > 0:
        parsed_period = StatisticsPeriod.CUSTOM
    else:
        parsed_period = StatisticsPeriod.LAST_MONTH

    parsed_group_by = _parse_enum(GroupBy, group_by, "group_by") if group_by else GroupBy.NONE
    parsed_status = _parse_enum(InvoiceStatus, status, "status") if status else None

    return StatisticsOptions(
        period=parsed_period,
        days=days,
        category_id=category_id,
        company_id=company_id,
        receiver_id=receiver_id,
        status=parsed_status,
        keyword=keyword.strip() if keyword and keyword.strip() else None,
        group_by=parsed_group_by,
        include_aggregations=include_aggregations
    )


def parse_analytics_period(period: Optional[str]) -> AnalyticsPeriod:
    if not period:
        return AnalyticsPeriod.ONE_MONTH
    return _parse_enum(AnalyticsPeriod, period, "period")


class AnalyticsService:
    """Read-only statistics over a user's invoices"""

    def __init__(self, db: Session, reporting_currency: Optional[str] = None):
        self.db = db
        self.currency = (reporting_currency or settings.reporting_currency).upper()
        self._strategies: Dict[GroupBy, Callable] = {
            GroupBy.DAY: self._group_by_day,
            GroupBy.WEEK: self._group_by_week,
            GroupBy.MONTH: self._group_by_month,
            GroupBy.CATEGORY: self._group_by_category,
            GroupBy.COMPANY: self._group_by_company,
            GroupBy.RECEIVER: self._group_by_receiver,
        }

    # Flexible statistics

    def get_statistics(self, user_id: str, options: StatisticsOptions, now: Optional[datetime] = None) -> InvoiceStatistics:
        """
        Compute totals for invoices created within the period, optionally
        grouped and with aggregations.

        Args:
            user_id: Owner whose invoices are counted
            options: Parsed options, see build_statistics_options
            now: End of the window, defaults to the current time

        Returns:
            InvoiceStatistics in the reporting currency
        """
        start, end = resolve_statistics_period(options.period, options.days, now)
        rows = self._filtered_rows(user_id, options, start, end)

        result = InvoiceStatistics(
            period=options.period.value,
            start_date=start,
            end_date=end,
            currency=self.currency,
            filters=StatisticsFilters(
                category_id=options.category_id,
                company_id=options.company_id,
                receiver_id=options.receiver_id,
                status=options.status.value if options.status else None,
                keyword=options.keyword
            ),
            group_by=options.group_by.value,
            invoice_count=len(rows),
            total_amount=sum(row.usd_amount for row in rows)
        )

        if options.group_by == GroupBy.NONE:
            result.by_status = self._group_by_status(rows)
        else:
            strategy = self._strategies[options.group_by]
            result.breakdown = strategy(user_id, rows, start, end)

        if options.include_aggregations:
            result.aggregations = self._aggregations(rows, options.group_by, result.breakdown)

        return result

    def _filtered_rows(self, user_id: str, options: StatisticsOptions, start: datetime, end: datetime):
        totals = self._item_totals_subquery()
        usd_amount = func.coalesce(totals.c.total, 0.0).label("usd_amount")

        query = self.db.query(
            Invoice.id,
            Invoice.title,
            Invoice.status,
            Invoice.created_at,
            Invoice.category_id,
            Invoice.company_id,
            Invoice.receiver_id,
            usd_amount
        ).outerjoin(totals, totals.c.invoice_id == Invoice.id).filter(
            Invoice.user_id == user_id,
            Invoice.created_at >= start,
            Invoice.created_at <= end
        )

        if options.category_id:
            query = query.filter(Invoice.category_id == options.category_id)
        if options.company_id:
            query = query.filter(Invoice.company_id == options.company_id)
        if options.receiver_id:
            query = query.filter(Invoice.receiver_id == options.receiver_id)
        if options.status:
            query = query.filter(Invoice.status == options.status.value)
        if options.keyword:
            query = query.filter(keyword_condition(options.keyword))

        return query.order_by(Invoice.id.asc()).all()

    def _group_by_status(self, rows) -> StatusBreakdown:
        breakdown = StatusBreakdown()
        for row in rows:
            stats = getattr(breakdown, row.status, None)
            if stats is None:
                continue
            stats.count += 1
            stats.amount += row.usd_amount
        return breakdown

    def _group_by_day(self, user_id: str, rows, start: datetime, end: datetime) -> List[BreakdownItem]:
        # Every day in the window is present, empty days included
        buckets = {day.isoformat(): BreakdownItem(date=day.isoformat()) for day in days_in_window(start, end)}
        for row in rows:
            bucket = buckets.get(row.created_at.date().isoformat())
            if bucket:
                bucket.amount += row.usd_amount
                bucket.count += 1
        return list(buckets.values())

    def _group_by_week(self, user_id: str, rows, start: datetime, end: datetime) -> List[BreakdownItem]:
        return self._sparse_time_buckets(rows, lambda created_at: week_start(created_at).isoformat())

    def _group_by_month(self, user_id: str, rows, start: datetime, end: datetime) -> List[BreakdownItem]:
        return self._sparse_time_buckets(rows, month_key)

    def _sparse_time_buckets(self, rows, key_func) -> List[BreakdownItem]:
        buckets: Dict[str, BreakdownItem] = {}
        for row in rows:
            key = key_func(row.created_at)
            bucket = buckets.setdefault(key, BreakdownItem(date=key))
            bucket.amount += row.usd_amount
            bucket.count += 1
        return [buckets[key] for key in sorted(buckets)]

    def _group_by_category(self, user_id: str, rows, start: datetime, end: datetime) -> List[BreakdownItem]:
        return self._entity_buckets(user_id, rows, "category_id", InvoiceCategory, NO_CATEGORY)

    def _group_by_company(self, user_id: str, rows, start: datetime, end: datetime) -> List[BreakdownItem]:
        return self._entity_buckets(user_id, rows, "company_id", InvoiceCompany, NO_COMPANY)

    def _group_by_receiver(self, user_id: str, rows, start: datetime, end: datetime) -> List[BreakdownItem]:
        return self._entity_buckets(user_id, rows, "receiver_id", InvoiceReceiver, NO_RECEIVER)

    def _entity_buckets(self, user_id: str, rows, attribute: str, model, null_name: str) -> List[BreakdownItem]:
        buckets: Dict[Optional[int], BreakdownItem] = {}
        for row in rows:
            entity_id = getattr(row, attribute)
            bucket = buckets.setdefault(entity_id, BreakdownItem(id=entity_id))
            bucket.amount += row.usd_amount
            bucket.count += 1

        names = self._entity_names(user_id, model, [key for key in buckets if key is not None])
        for entity_id, bucket in buckets.items():
            bucket.name = names.get(entity_id, null_name) if entity_id is not None else null_name

        return sorted(buckets.values(), key=lambda bucket: (-bucket.amount, bucket.name))

    def _aggregations(self, rows, group_by: GroupBy, breakdown: Optional[List[BreakdownItem]]) -> Aggregations:
        aggregations = Aggregations()
        if rows:
            amounts = [row.usd_amount for row in rows]
            aggregations.max_amount = max(amounts)
            aggregations.min_amount = min(amounts)
            aggregations.avg_amount = sum(amounts) / len(amounts)

            top = max(rows, key=lambda row: row.usd_amount)
            aggregations.max_invoice = InvoiceReference(id=top.id, title=top.title, amount=top.usd_amount)

        if group_by == GroupBy.DAY and breakdown:
            active_days = [bucket for bucket in breakdown if bucket.count > 0]
            if active_days:
                top_day = max(active_days, key=lambda bucket: bucket.amount)
                aggregations.max_day = DayReference(date=top_day.date, amount=top_day.amount, count=top_day.count)
        elif group_by in (GroupBy.CATEGORY, GroupBy.COMPANY) and breakdown:
            top_group = breakdown[0]
            reference = GroupReference(
                id=top_group.id,
                name=top_group.name,
                amount=top_group.amount,
                count=top_group.count
            )
            if group_by == GroupBy.CATEGORY:
                aggregations.max_category = reference
            else:
                aggregations.max_company = reference

        return aggregations

    # Period summaries

    def get_summary(self, user_id: str, period: AnalyticsPeriod, now: Optional[datetime] = None) -> AnalyticsSummary:
        start, end = resolve_analytics_period(period, now)
        totals = self._item_totals_subquery()
        usd_amount = func.coalesce(totals.c.total, 0.0)

        row = self.db.query(
            func.coalesce(func.sum(usd_amount), 0.0).label("total_amount"),
            func.coalesce(func.sum(case((Invoice.status == "paid", usd_amount), else_=0.0)), 0.0).label("paid_amount"),
            func.coalesce(func.sum(case((Invoice.status == "unpaid", usd_amount), else_=0.0)), 0.0).label("unpaid_amount"),
            func.coalesce(func.sum(case((Invoice.status == "overdue", usd_amount), else_=0.0)), 0.0).label("overdue_amount"),
            func.count(Invoice.id).label("invoice_count"),
            func.coalesce(func.sum(case((Invoice.status == "paid", 1), else_=0)), 0).label("paid_count"),
            func.coalesce(func.sum(case((Invoice.status == "unpaid", 1), else_=0)), 0).label("unpaid_count"),
            func.coalesce(func.sum(case((Invoice.status == "overdue", 1), else_=0)), 0).label("overdue_count")
        ).select_from(Invoice).outerjoin(totals, totals.c.invoice_id == Invoice.id).filter(
            Invoice.user_id == user_id,
            Invoice.created_at >= start,
            Invoice.created_at <= end
        ).one()

        return AnalyticsSummary(
            period=period.value,
            start_date=start,
            end_date=end,
            currency=self.currency,
            total_amount=float(row.total_amount),
            paid_amount=float(row.paid_amount),
            unpaid_amount=float(row.unpaid_amount),
            overdue_amount=float(row.overdue_amount),
            invoice_count=row.invoice_count,
            paid_count=int(row.paid_count),
            unpaid_count=int(row.unpaid_count),
            overdue_count=int(row.overdue_count)
        )

    def get_by_category(self, user_id: str, period: AnalyticsPeriod, now: Optional[datetime] = None) -> AnalyticsByGroup:
        return self._by_group(user_id, period, Invoice.category_id, InvoiceCategory, NO_CATEGORY, now)

    def get_by_company(self, user_id: str, period: AnalyticsPeriod, now: Optional[datetime] = None) -> AnalyticsByGroup:
        return self._by_group(user_id, period, Invoice.company_id, InvoiceCompany, NO_COMPANY, now)

    def get_by_receiver(self, user_id: str, period: AnalyticsPeriod, now: Optional[datetime] = None) -> AnalyticsByGroup:
        return self._by_group(user_id, period, Invoice.receiver_id, InvoiceReceiver, NO_RECEIVER, now)

    def _by_group(self, user_id: str, period: AnalyticsPeriod, group_column, model, null_name: str, now: Optional[datetime]) -> AnalyticsByGroup:
        start, end = resolve_analytics_period(period, now)
        totals = self._item_totals_subquery()
        usd_amount = func.coalesce(totals.c.total, 0.0)

        rows = self.db.query(
            group_column.label("group_id"),
            func.coalesce(func.sum(usd_amount), 0.0).label("total_amount"),
            func.coalesce(func.sum(case((Invoice.status == "paid", usd_amount), else_=0.0)), 0.0).label("paid_amount"),
            func.coalesce(func.sum(case((Invoice.status.in_(["unpaid", "overdue"]), usd_amount), else_=0.0)), 0.0).label("unpaid_amount"),
            func.coalesce(func.sum(case((Invoice.status == "overdue", usd_amount), else_=0.0)), 0.0).label("overdue_amount"),
            func.count(Invoice.id).label("invoice_count")
        ).select_from(Invoice).outerjoin(totals, totals.c.invoice_id == Invoice.id).filter(
            Invoice.user_id == user_id,
            Invoice.created_at >= start,
            Invoice.created_at <= end
        ).group_by(group_column).all()

        entities = {}
        entity_ids = [row.group_id for row in rows if row.group_id is not None]
        if entity_ids:
            entities = {
                entity.id: entity
                for entity in self.db.query(model).filter(model.id.in_(entity_ids), model.user_id == user_id).all()
            }

        items = []
        uncategorized = AnalyticsGroupItem(id=0, name=null_name)
        for row in rows:
            entity = entities.get(row.group_id)
            if not entity:
                # NULL reference, or one that doesn't resolve to an owned entity
                uncategorized.total_amount += float(row.total_amount)
                uncategorized.paid_amount += float(row.paid_amount)
                uncategorized.unpaid_amount += float(row.unpaid_amount)
                uncategorized.overdue_amount += float(row.overdue_amount)
                uncategorized.invoice_count += row.invoice_count
                continue
            items.append(AnalyticsGroupItem(
                id=row.group_id,
                name=entity.name,
                color=getattr(entity, "color", None),
                total_amount=float(row.total_amount),
                paid_amount=float(row.paid_amount),
                unpaid_amount=float(row.unpaid_amount),
                overdue_amount=float(row.overdue_amount),
                invoice_count=row.invoice_count
            ))

        items.sort(key=lambda item: item.total_amount, reverse=True)

        return AnalyticsByGroup(
            period=period.value,
            start_date=start,
            end_date=end,
            currency=self.currency,
            items=items,
            uncategorized=uncategorized if uncategorized.invoice_count > 0 else None
        )

    # Helpers

    def _item_totals_subquery(self):
        """Reporting-currency total per invoice, summed from its items."""
        return self.db.query(
            InvoiceItem.invoice_id.label("invoice_id"),
            func.sum(InvoiceItem.target_amount).label("total")
        ).group_by(InvoiceItem.invoice_id).subquery()

    def _entity_names(self, user_id: str, model, entity_ids: List[int]) -> Dict[int, str]:
        if not entity_ids:
            return {}
        return {
            entity.id: entity.name
            for entity in self.db.query(model.id, model.name).filter(
                model.id.in_(entity_ids),
                model.user_id == user_id
            ).all()
        }
