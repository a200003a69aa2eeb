"""
Financial Service - keeps item amounts, reporting-currency snapshots and
invoice totals consistent with each other.

Nothing here commits. Every method works inside the caller's transaction so an
item write and the totals recompute land together or not at all.
"""
import logging
from typing import Iterable, Optional, Tuple

from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import NotFoundError
from app.models.invoice import Invoice
from app.models.invoice_item import InvoiceItem
from app.services.fx_service import ExchangeRateProvider

logger = logging.getLogger(__name__)


class FinancialService:
    """Amount derivation, currency conversion and total recomputation"""

    def __init__(self, db: Session, fx_service: ExchangeRateProvider, reporting_currency: Optional[str] = None):
        self.db = db
        self.fx_service = fx_service
        self.reporting_currency = (reporting_currency or settings.reporting_currency).upper()

    def compute_item_amount(self, item: InvoiceItem) -> float:
        if item.quantity is None:
            item.quantity = 1.0
        item.amount = (item.quantity or 0.0) * (item.unit_price or 0.0)
        return item.amount

    def compute_item_target_amount(self, item: InvoiceItem, invoice_currency: str) -> float:
        """
        Convert the item amount into the reporting currency using the current rate.

        Args:
            item: Item whose amount is already computed
            invoice_currency: Currency the item amount is expressed in

        Returns:
            The new target amount
        """
        item.target_currency = self.reporting_currency

        if invoice_currency.upper() == self.reporting_currency:
            item.target_amount = item.amount
            item.fx_rate_used = 1.0
            return item.target_amount

        converted, rate = self.fx_service.convert_amount(item.amount, invoice_currency, self.reporting_currency)
        item.target_amount = converted
        item.fx_rate_used = rate
        return item.target_amount

    def apply_target_override(self, item: InvoiceItem, target_amount: float) -> float:
        """Pin the target amount verbatim and record the rate it implies."""
        item.target_currency = self.reporting_currency
        item.target_amount = target_amount
        item.fx_rate_used = target_amount / item.amount if item.amount else 1.0
        return item.target_amount

    def resolve_item_target(
        self,
        item: InvoiceItem,
        invoice_currency: str,
        override: Optional[float] = None,
        force_recalculate: bool = False
    ) -> float:
        """
        Decide the item's target amount for one write.

        A forced recalculation ignores any override sent alongside it. An override
        applies only to this write; with neither, the amount is converted again.
        """
        if force_recalculate or override is None:
            return self.compute_item_target_amount(item, invoice_currency)
        return self.apply_target_override(item, override)

    def compute_totals(self, items: Iterable[InvoiceItem]) -> Tuple[float, float]:
        """
        Sum amounts and target amounts in item order. Stored totals and the
        duplicate check candidate are both summed here.
        """
        amount = 0.0
        target_amount = 0.0
        for item in items:
            amount += item.amount or 0.0
            target_amount += item.target_amount or 0.0
        return amount, target_amount

    def recalculate_invoice_totals(self, invoice_id: int) -> Invoice:
        """
        Re-sum the invoice's persisted items and store both totals.

        Raises:
            NotFoundError: If the invoice does not exist
        """
        self.db.flush()

        invoice = self.db.query(Invoice).filter(Invoice.id == invoice_id).first()
        if not invoice:
            raise NotFoundError("Invoice not found")

        items = self.db.query(InvoiceItem).filter(
            InvoiceItem.invoice_id == invoice_id
        ).order_by(InvoiceItem.id).all()
        invoice.amount, invoice.target_amount = self.compute_totals(items)
        self.db.flush()

        logger.info(
            f"Recalculated totals for invoice {invoice_id}: "
            f"amount={invoice.amount} target_amount={invoice.target_amount}"
        )
        return invoice

    def on_currency_change(self, invoice_id: int, new_currency: str) -> Invoice:
        """
        Convert every item again from the new invoice currency. Manual overrides
        are discarded.
        """
        invoice = self.db.query(Invoice).filter(Invoice.id == invoice_id).first()
        if not invoice:
            raise NotFoundError("Invoice not found")

        new_currency = new_currency.upper()
        logger.info(f"Invoice {invoice_id} currency changed {invoice.currency} -> {new_currency}, recomputing items")

        invoice.currency = new_currency
        for item in invoice.items:
            self.compute_item_target_amount(item, new_currency)

        return self.recalculate_invoice_totals(invoice_id)
