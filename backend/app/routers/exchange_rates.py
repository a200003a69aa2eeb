from fastapi import APIRouter, Depends, HTTPException, Query

from app.dependencies import get_display_fx_service
from app.schemas.fx import ExchangeRateResponse
from app.services.fx_service import ExchangeRateProvider

router = APIRouter(prefix="/api/exchange-rate", tags=["exchange-rate"])


@router.get("", response_model=ExchangeRateResponse)
def get_exchange_rate(
    from_currency: str = Query(..., alias="from", description="Source currency code"),
    to_currency: str = Query(..., alias="to", description="Target currency code"),
    fx_service: ExchangeRateProvider = Depends(get_display_fx_service)
):
    """Rate lookup for display purposes, cached for an hour"""
    from_currency = from_currency.strip().upper()
    to_currency = to_currency.strip().upper()
    for code in (from_currency, to_currency):
        if len(code) != 3 or not code.isalpha():
            raise HTTPException(status_code=400, detail=f"Invalid currency code '{code}'")

    return ExchangeRateResponse(data=fx_service.get_exchange_rate(from_currency, to_currency))
