from sqlalchemy import Column, Integer, String, DateTime
from app.database import Base
from app.utils.periods import utcnow


class InvoiceTag(Base):
    __tablename__ = "invoice_tags"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    color = Column(String(7), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
