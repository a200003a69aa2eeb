"""
Exchange Rate Service - resolves spot rates between currencies.

Rates come from a Frankfurter-compatible "latest" endpoint and are kept in a
short-lived in-process cache. Lookups never raise: when the source is down,
slow, or returns something unusable the service falls back to a 1.0 rate and
logs the degradation, because invoice writes depend on it.
"""
import logging
import threading
import time
from typing import Callable, Dict, Optional, Tuple

import httpx

from app.config import settings
from app.schemas.fx import ExchangeRate
from app.utils.periods import utcnow

logger = logging.getLogger(__name__)


class ExchangeRateProvider:
    """Common interface for real and mock rate providers"""

    def get_exchange_rate(self, from_currency: str, to_currency: str) -> ExchangeRate:
        raise NotImplementedError

    def convert_amount(self, amount: float, from_currency: str, to_currency: str) -> Tuple[float, float]:
        """
        Convert an amount between currencies.

        Returns:
            Tuple of (converted_amount, rate_used)
        """
        rate = self.get_exchange_rate(from_currency, to_currency)
        return amount * rate.rate, rate.rate

    def _identity_rate(self, from_currency: str, to_currency: str, is_fallback: bool = False) -> ExchangeRate:
        now = utcnow()
        return ExchangeRate(
            from_currency=from_currency,
            to_currency=to_currency,
            rate=1.0,
            date=now.date().isoformat(),
            cached_at=now,
            is_fallback=is_fallback
        )


class FXService(ExchangeRateProvider):
    """Rate provider backed by an HTTP rate source with a TTL cache"""

    def __init__(
        self,
        http_client: Optional[httpx.Client] = None,
        base_url: Optional[str] = None,
        cache_ttl_seconds: Optional[float] = None,
        timeout_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.base_url = (base_url or settings.fx_api_base_url).rstrip("/")
        self.cache_ttl_seconds = (
            settings.fx_cache_ttl_seconds if cache_ttl_seconds is None else cache_ttl_seconds
        )
        timeout = settings.fx_timeout_seconds if timeout_seconds is None else timeout_seconds
        self.http_client = http_client or httpx.Client(timeout=timeout)
        self._clock = clock
        self._cache: Dict[Tuple[str, str], Tuple[ExchangeRate, float]] = {}
        self._lock = threading.Lock()

    def get_exchange_rate(self, from_currency: str, to_currency: str) -> ExchangeRate:
        from_currency = from_currency.upper()
        to_currency = to_currency.upper()

        if from_currency == to_currency:
            return self._identity_rate(from_currency, to_currency)

        cached = self._get_cached(from_currency, to_currency)
        if cached:
            return cached

        try:
            rate = self._fetch_from_api(from_currency, to_currency)
        except Exception as e:
            logger.warning(
                f"Failed to fetch exchange rate {from_currency}->{to_currency}, "
                f"falling back to 1.0: {str(e)}"
            )
            return self._identity_rate(from_currency, to_currency, is_fallback=True)

        self._store(rate)
        return rate

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    def close(self) -> None:
        self.http_client.close()

    def _get_cached(self, from_currency: str, to_currency: str) -> Optional[ExchangeRate]:
        with self._lock:
            entry = self._cache.get((from_currency, to_currency))
            if not entry:
                return None
            rate, expires_at = entry
            if self._clock() >= expires_at:
                del self._cache[(from_currency, to_currency)]
                return None
            return rate

    def _store(self, rate: ExchangeRate) -> None:
        # Concurrent writers for the same pair converge on the same value; last write wins
        with self._lock:
            self._cache[(rate.from_currency, rate.to_currency)] = (
                rate, self._clock() + self.cache_ttl_seconds
            )

    def _fetch_from_api(self, from_currency: str, to_currency: str) -> ExchangeRate:
        response = self.http_client.get(
            f"{self.base_url}/latest",
            params={"base": from_currency, "symbols": to_currency}
        )
        response.raise_for_status()

        payload = response.json()
        rates = payload.get("rates") or {}
        if to_currency not in rates:
            raise ValueError(f"Rate for {to_currency} not found in response")

        rate = float(rates[to_currency])
        logger.info(f"Fetched exchange rate 1 {from_currency} = {rate} {to_currency}")

        return ExchangeRate(
            from_currency=from_currency,
            to_currency=to_currency,
            rate=rate,
            date=payload.get("date") or utcnow().date().isoformat(),
            cached_at=utcnow()
        )


class MockFXService(ExchangeRateProvider):
    """Deterministic provider for tests and seeding; unknown pairs resolve to 1.0"""

    def __init__(self, rates: Optional[Dict[Tuple[str, str], float]] = None):
        self.rates: Dict[Tuple[str, str], float] = {}
        for (from_currency, to_currency), rate in (rates or {}).items():
            self.set_rate(from_currency, to_currency, rate)

    def set_rate(self, from_currency: str, to_currency: str, rate: float) -> None:
        self.rates[(from_currency.upper(), to_currency.upper())] = rate

    def get_exchange_rate(self, from_currency: str, to_currency: str) -> ExchangeRate:
        from_currency = from_currency.upper()
        to_currency = to_currency.upper()

        if from_currency == to_currency:
            return self._identity_rate(from_currency, to_currency)

        rate = self.rates.get((from_currency, to_currency))
        if rate is None:
            return self._identity_rate(from_currency, to_currency)

        now = utcnow()
        return ExchangeRate(
            from_currency=from_currency,
            to_currency=to_currency,
            rate=rate,
            date=now.date().isoformat(),
            cached_at=now
        )
