from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Text, Table
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.periods import utcnow


# Many-to-many join between invoices and tags
invoice_tag_mappings = Table(
    "invoice_tag_mappings",
    Base.metadata,
    Column("invoice_id", Integer, ForeignKey("invoices.id", ondelete="CASCADE"), primary_key=True),
    Column("invoice_tag_id", Integer, ForeignKey("invoice_tags.id", ondelete="CASCADE"), primary_key=True),
)


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False, index=True)  # Owner, every query is scoped to it
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # Billing cycle dates
    invoice_started_at = Column(DateTime, nullable=True)
    invoice_ended_at = Column(DateTime, nullable=True)

    # Financial details. amount/target_amount are derived from items, never set by callers
    currency = Column(String(3), nullable=False, default="USD")
    amount = Column(Float, nullable=False, default=0.0)  # Sum of item amounts, invoice currency
    target_amount = Column(Float, nullable=False, default=0.0)  # Sum of item target amounts, reporting currency

    category_id = Column(Integer, ForeignKey("invoice_categories.id"), nullable=True, index=True)
    company_id = Column(Integer, ForeignKey("invoice_companies.id"), nullable=True, index=True)
    receiver_id = Column(Integer, ForeignKey("invoice_receivers.id"), nullable=True, index=True)

    original_download_link = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="unpaid", index=True)  # paid, unpaid, overdue
    due_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.id",
    )
    category = relationship("InvoiceCategory")
    company = relationship("InvoiceCompany")
    receiver = relationship("InvoiceReceiver")
    tags = relationship("InvoiceTag", secondary=invoice_tag_mappings, order_by="InvoiceTag.name")
