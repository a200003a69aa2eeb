from pydantic import BaseModel
from datetime import datetime


class ExchangeRate(BaseModel):
    """A spot rate between two currencies, as fetched or cached"""
    from_currency: str
    to_currency: str
    rate: float
    date: str  # As-of date reported by the rate source
    cached_at: datetime
    is_fallback: bool = False  # True when the source failed and 1.0 was substituted


class ExchangeRateResponse(BaseModel):
    success: bool = True
    data: ExchangeRate
