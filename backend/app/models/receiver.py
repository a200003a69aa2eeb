from sqlalchemy import Column, Integer, String, Boolean, DateTime
from app.database import Base
from app.utils.periods import utcnow


class InvoiceReceiver(Base):
    __tablename__ = "invoice_receivers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=False, index=True)
    is_organization = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
