from sqlalchemy import Column, Integer, String, Text, DateTime
from app.database import Base
from app.utils.periods import utcnow


class InvoiceCompany(Base):
    __tablename__ = "invoice_companies"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=False, index=True)
    address = Column(Text, nullable=True)
    email = Column(String(255), nullable=True)
    tax_id = Column(String(100), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
