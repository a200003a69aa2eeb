"""
Duplicate invoice detection.

Two invoices are the same when the owner, computed total, billing dates and
receiver all match. Missing values only match missing values. Different
invoices that happen to share all of these (two identical monthly bills with
no dates, say) are treated as duplicates; that collision is accepted.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.models.invoice import Invoice

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "Duplicate invoice found with matching amount, dates, and receiver"


def _matches(column, value):
    if value is None:
        return column.is_(None)
    return column == value


def find_duplicate_invoice(
    db: Session,
    user_id: str,
    amount: float,
    invoice_started_at: Optional[datetime],
    invoice_ended_at: Optional[datetime],
    receiver_id: Optional[int]
) -> Optional[Invoice]:
    """
    Find an existing invoice with the same match key.

    Returns:
        The oldest matching invoice, or None
    """
    duplicate = db.query(Invoice).filter(
        Invoice.user_id == user_id,
        Invoice.amount == amount,
        _matches(Invoice.invoice_started_at, invoice_started_at),
        _matches(Invoice.invoice_ended_at, invoice_ended_at),
        _matches(Invoice.receiver_id, receiver_id)
    ).order_by(Invoice.id.asc()).first()

    if duplicate:
        logger.info(f"Duplicate of invoice {duplicate.id} detected for user {user_id} (amount={amount})")

    return duplicate
