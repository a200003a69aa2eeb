from sqlalchemy import Column, Integer, String, Text, DateTime
from app.database import Base
from app.utils.periods import utcnow


class InvoiceCategory(Base):
    __tablename__ = "invoice_categories"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String(7), nullable=True)  # Hex color for charts, e.g. #FF5733
    created_at = Column(DateTime, nullable=False, default=utcnow)
