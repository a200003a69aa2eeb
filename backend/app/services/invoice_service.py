"""
Invoice Service - owner-scoped invoice and line item operations.

Every mutation runs in a single transaction together with the totals
recompute it triggers, so invoice.amount and invoice.target_amount always
equal the sums over the invoice's items once a call returns.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.config import settings
from app.database import transaction
from app.exceptions import InvalidParameterError, NotFoundError
from app.models.category import InvoiceCategory
from app.models.company import InvoiceCompany
from app.models.invoice import Invoice
from app.models.invoice_item import InvoiceItem
from app.models.receiver import InvoiceReceiver
from app.models.tag import InvoiceTag
from app.schemas.invoice import InvoiceCreate, InvoiceItemCreate, InvoiceUpdate
from app.services.duplicate_detector import DUPLICATE_MESSAGE, find_duplicate_invoice
from app.services.financial_service import FinancialService
from app.services.fx_service import ExchangeRateProvider
from app.utils.periods import utcnow

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "created_at": Invoice.created_at,
    "amount": Invoice.amount,
    "due_date": Invoice.due_date,
    "title": Invoice.title,
}

VALID_STATUSES = ("paid", "unpaid", "overdue")

# Reference columns checked for ownership before they are written onto an invoice
REFERENCE_MODELS = {
    "category_id": (InvoiceCategory, "Category"),
    "company_id": (InvoiceCompany, "Company"),
    "receiver_id": (InvoiceReceiver, "Receiver"),
}


def keyword_condition(keyword: str):
    """Substring match on title or description."""
    pattern = f"%{keyword}%"
    return or_(Invoice.title.like(pattern), Invoice.description.like(pattern))


@dataclass
class CreateInvoiceResult:
    invoice: Invoice
    is_duplicate: bool
    message: Optional[str] = None


class InvoiceService:
    """Service for invoice CRUD, line items and tags"""

    def __init__(self, db: Session, fx_service: ExchangeRateProvider):
        self.db = db
        self.financial = FinancialService(db, fx_service)

    # Invoices

    def create_invoice(self, user_id: str, payload: InvoiceCreate) -> CreateInvoiceResult:
        """
        Create an invoice with its items, unless an identical one already exists.

        Item amounts and target amounts are computed first so the duplicate check
        compares against the real total. A duplicate writes nothing and returns
        the existing invoice.

        Args:
            user_id: Owner of the new invoice
            payload: Validated create payload

        Returns:
            CreateInvoiceResult with the new or the existing invoice
        """
        with transaction(self.db):
            self._check_references(user_id, payload.model_dump(include=set(REFERENCE_MODELS)))

            items = [self._build_item(item_data, payload.currency) for item_data in payload.items]
            amount, target_amount = self.financial.compute_totals(items)

            if settings.duplicate_detection_enabled:
                duplicate = find_duplicate_invoice(
                    self.db,
                    user_id=user_id,
                    amount=amount,
                    invoice_started_at=payload.invoice_started_at,
                    invoice_ended_at=payload.invoice_ended_at,
                    receiver_id=payload.receiver_id
                )
                if duplicate:
                    return CreateInvoiceResult(invoice=duplicate, is_duplicate=True, message=DUPLICATE_MESSAGE)

            invoice = Invoice(
                user_id=user_id,
                title=payload.title,
                description=payload.description,
                currency=payload.currency,
                invoice_started_at=payload.invoice_started_at,
                invoice_ended_at=payload.invoice_ended_at,
                due_date=payload.due_date,
                category_id=payload.category_id,
                company_id=payload.company_id,
                receiver_id=payload.receiver_id,
                original_download_link=payload.original_download_link,
                status=payload.status,
                amount=amount,
                target_amount=target_amount,
                items=items
            )
            self.db.add(invoice)
            self.db.flush()

            if payload.tags:
                self._apply_tags(invoice, user_id, payload.tags)

            self.financial.recalculate_invoice_totals(invoice.id)

        self.db.refresh(invoice)
        logger.info(f"Created invoice {invoice.id} for user {user_id} with {len(items)} items")

        return CreateInvoiceResult(invoice=invoice, is_duplicate=False)

    def get_invoice(self, user_id: str, invoice_id: int) -> Invoice:
        """Fetch an owned invoice. Missing and foreign invoices look the same."""
        invoice = self.db.query(Invoice).filter(
            Invoice.id == invoice_id,
            Invoice.user_id == user_id
        ).first()
        if not invoice:
            raise NotFoundError("Invoice not found")
        return invoice

    def update_invoice(self, user_id: str, invoice_id: int, payload: InvoiceUpdate) -> Invoice:
        """
        Apply the fields present in the payload. A currency change converts
        every item again from the new currency.
        """
        data = payload.model_dump(exclude_unset=True)
        tags = data.pop("tags", None)
        new_currency = data.pop("currency", None)

        with transaction(self.db):
            invoice = self.get_invoice(user_id, invoice_id)
            self._check_references(user_id, {k: v for k, v in data.items() if k in REFERENCE_MODELS})

            for field, value in data.items():
                # title and status are not nullable; an explicit null leaves them alone
                if value is None and field in ("title", "status"):
                    continue
                setattr(invoice, field, value)

            if new_currency and new_currency != invoice.currency:
                self.financial.on_currency_change(invoice.id, new_currency)

            if tags is not None:
                self._apply_tags(invoice, user_id, tags)

        self.db.refresh(invoice)
        return invoice

    def update_invoice_status(self, user_id: str, invoice_id: int, status: str) -> Invoice:
        if status not in VALID_STATUSES:
            raise InvalidParameterError(
                f"Invalid status '{status}'. Valid values: {', '.join(VALID_STATUSES)}"
            )

        with transaction(self.db):
            invoice = self.get_invoice(user_id, invoice_id)
            invoice.status = status

        self.db.refresh(invoice)
        logger.info(f"Invoice {invoice_id} status set to {status}")
        return invoice

    def delete_invoice(self, user_id: str, invoice_id: int) -> None:
        with transaction(self.db):
            invoice = self.get_invoice(user_id, invoice_id)
            self.db.delete(invoice)

        logger.info(f"Deleted invoice {invoice_id} for user {user_id}")

    def list_invoices(
        self,
        user_id: str,
        keyword: Optional[str] = None,
        category_id: Optional[int] = None,
        company_id: Optional[int] = None,
        receiver_id: Optional[int] = None,
        status: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        limit: Optional[int] = None,
        offset: int = 0
    ) -> Tuple[List[Invoice], int, int]:
        """
        List owned invoices with optional filters.

        Returns:
            Tuple of (invoices, total matching count, effective limit)
        """
        if sort_by not in SORT_COLUMNS:
            raise InvalidParameterError(
                f"Invalid sort_by '{sort_by}'. Valid values: {', '.join(SORT_COLUMNS)}"
            )
        if sort_order not in ("asc", "desc"):
            raise InvalidParameterError(f"Invalid sort_order '{sort_order}'. Valid values: asc, desc")
        if status and status not in VALID_STATUSES:
            raise InvalidParameterError(
                f"Invalid status '{status}'. Valid values: {', '.join(VALID_STATUSES)}"
            )

        query = self.db.query(Invoice).filter(Invoice.user_id == user_id)

        if keyword:
            query = query.filter(keyword_condition(keyword))
        if category_id:
            query = query.filter(Invoice.category_id == category_id)
        if company_id:
            query = query.filter(Invoice.company_id == company_id)
        if receiver_id:
            query = query.filter(Invoice.receiver_id == receiver_id)
        if status:
            query = query.filter(Invoice.status == status)

        total = query.count()

        column = SORT_COLUMNS[sort_by]
        ordering = column.asc() if sort_order == "asc" else column.desc()
        limit = self._clamp_limit(limit)

        invoices = query.order_by(ordering, Invoice.id.desc()).offset(max(offset, 0)).limit(limit).all()
        return invoices, total, limit

    def search_invoices(self, user_id: str, query: str, limit: Optional[int] = None) -> List[Invoice]:
        if not query or not query.strip():
            raise InvalidParameterError("Search query must not be empty")

        return self.db.query(Invoice).filter(
            Invoice.user_id == user_id,
            keyword_condition(query.strip())
        ).order_by(Invoice.created_at.desc()).limit(self._clamp_limit(limit)).all()

    def get_overdue_invoices(self, user_id: str) -> List[Invoice]:
        """Unpaid invoices whose due date has passed, oldest due first."""
        return self.db.query(Invoice).filter(
            Invoice.user_id == user_id,
            Invoice.status == "unpaid",
            Invoice.due_date.isnot(None),
            Invoice.due_date < utcnow()
        ).order_by(Invoice.due_date.asc()).all()

    def set_invoice_tags(self, user_id: str, invoice_id: int, tag_names: List[str]) -> Invoice:
        with transaction(self.db):
            invoice = self.get_invoice(user_id, invoice_id)
            self._apply_tags(invoice, user_id, tag_names)

        self.db.refresh(invoice)
        return invoice

    def set_invoice_tags_by_id(self, user_id: str, invoice_id: int, tag_ids: List[int]) -> Invoice:
        """
        Replace the invoice's tags with existing tags picked by id.

        Raises:
            NotFoundError: If the invoice is missing or not owned
            InvalidParameterError: If a tag id is unknown or belongs to someone else
        """
        wanted = list(dict.fromkeys(tag_ids))

        with transaction(self.db):
            invoice = self.get_invoice(user_id, invoice_id)
            tags = {}
            if wanted:
                tags = {
                    tag.id: tag
                    for tag in self.db.query(InvoiceTag).filter(
                        InvoiceTag.id.in_(wanted),
                        InvoiceTag.user_id == user_id
                    ).all()
                }
            missing = [tag_id for tag_id in wanted if tag_id not in tags]
            if missing:
                raise InvalidParameterError(f"Tag with ID {missing[0]} not found")
            invoice.tags = [tags[tag_id] for tag_id in wanted]

        self.db.refresh(invoice)
        logger.info(f"Invoice {invoice_id} tagged with ids {wanted}")
        return invoice

    # Items

    def get_item(self, user_id: str, invoice_id: int, item_id: int) -> InvoiceItem:
        invoice = self.get_invoice(user_id, invoice_id)
        item = self.db.query(InvoiceItem).filter(
            InvoiceItem.id == item_id,
            InvoiceItem.invoice_id == invoice.id
        ).first()
        if not item:
            raise NotFoundError("Invoice item not found")
        return item

    def add_item(self, user_id: str, invoice_id: int, payload: InvoiceItemCreate) -> InvoiceItem:
        with transaction(self.db):
            invoice = self.get_invoice(user_id, invoice_id)
            item = self._build_item(payload, invoice.currency)
            invoice.items.append(item)
            self.financial.recalculate_invoice_totals(invoice.id)

        self.db.refresh(item)
        logger.info(f"Added item {item.id} to invoice {invoice_id}")
        return item

    def update_item(
        self,
        user_id: str,
        invoice_id: int,
        item_id: int,
        description: Optional[str] = None,
        quantity: Optional[float] = None,
        unit_price: Optional[float] = None,
        target_amount_override: Optional[float] = None,
        force_recalculate: bool = False
    ) -> InvoiceItem:
        """
        Update an item and the invoice totals together.

        Args:
            target_amount_override: Reporting-currency amount to pin for this write
            force_recalculate: Convert from the current rate even if an override is given
        """
        with transaction(self.db):
            item = self.get_item(user_id, invoice_id, item_id)
            invoice = item.invoice

            if description is not None:
                item.description = description
            if quantity is not None:
                item.quantity = quantity
            if unit_price is not None:
                item.unit_price = unit_price

            self.financial.compute_item_amount(item)
            self.financial.resolve_item_target(
                item,
                invoice.currency,
                override=target_amount_override,
                force_recalculate=force_recalculate
            )
            self.financial.recalculate_invoice_totals(invoice.id)

        self.db.refresh(item)
        return item

    def delete_item(self, user_id: str, invoice_id: int, item_id: int) -> None:
        with transaction(self.db):
            item = self.get_item(user_id, invoice_id, item_id)
            invoice = item.invoice
            invoice.items.remove(item)
            self.financial.recalculate_invoice_totals(invoice.id)

        logger.info(f"Deleted item {item_id} from invoice {invoice_id}")

    # Helpers

    def _build_item(self, payload: InvoiceItemCreate, invoice_currency: str) -> InvoiceItem:
        item = InvoiceItem(
            description=payload.description,
            quantity=1.0 if payload.quantity is None else payload.quantity,
            unit_price=payload.unit_price
        )
        self.financial.compute_item_amount(item)
        self.financial.compute_item_target_amount(item, invoice_currency)
        return item

    def _check_references(self, user_id: str, references: dict) -> None:
        for field, value in references.items():
            if value is None:
                continue
            model, label = REFERENCE_MODELS[field]
            exists = self.db.query(model.id).filter(
                model.id == value,
                model.user_id == user_id
            ).first()
            if not exists:
                raise InvalidParameterError(f"{label} {value} not found")

    def _apply_tags(self, invoice: Invoice, user_id: str, tag_names: List[str]) -> None:
        """Replace the invoice's tags, creating missing ones by name."""
        names = []
        for name in tag_names:
            name = name.strip()
            if name and name not in names:
                names.append(name)

        existing = {}
        if names:
            existing = {
                tag.name: tag
                for tag in self.db.query(InvoiceTag).filter(
                    InvoiceTag.user_id == user_id,
                    InvoiceTag.name.in_(names)
                ).all()
            }

        tags = []
        for name in names:
            tag = existing.get(name)
            if not tag:
                tag = InvoiceTag(user_id=user_id, name=name, color=settings.default_tag_color)
                self.db.add(tag)
            tags.append(tag)

        invoice.tags = tags
        self.db.flush()

    def _clamp_limit(self, limit: Optional[int]) -> int:
        if not limit or limit <= 0:
            return settings.default_page_limit
        return min(limit, settings.max_page_limit)
