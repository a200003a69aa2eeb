from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.periods import utcnow


class InvoiceItem(Base):
    __tablename__ = "invoice_items"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(String(255), nullable=False)
    quantity = Column(Float, nullable=False, default=1.0)
    unit_price = Column(Float, nullable=False, default=0.0)
    amount = Column(Float, nullable=False, default=0.0)  # quantity * unit_price, invoice currency

    # Reporting-currency snapshot: auto-converted or pinned by a manual override
    target_currency = Column(String(3), nullable=False, default="USD")
    target_amount = Column(Float, nullable=False, default=0.0)
    fx_rate_used = Column(Float, nullable=False, default=1.0)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    invoice = relationship("Invoice", back_populates="items")
