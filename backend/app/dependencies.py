"""FastAPI dependency providers shared by the routers."""
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.services.analytics_service import AnalyticsService
from app.services.fx_service import ExchangeRateProvider
from app.services.invoice_service import InvoiceService


def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """Owner id forwarded by the authentication layer in front of this API."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id.strip()


def get_fx_service(request: Request) -> ExchangeRateProvider:
    return request.app.state.fx_service


def get_display_fx_service(request: Request) -> ExchangeRateProvider:
    return request.app.state.display_fx_service


def get_invoice_service(
    db: Session = Depends(get_db),
    fx_service: ExchangeRateProvider = Depends(get_fx_service)
) -> InvoiceService:
    return InvoiceService(db, fx_service)


def get_analytics_service(db: Session = Depends(get_db)) -> AnalyticsService:
    return AnalyticsService(db)
