import httpx
import pytest

from app.services.fx_service import FXService, MockFXService

BASE_URL = "https://fx.test/v1"


def frankfurter_response(base: str, rates: dict, date: str = "2026-10-16") -> httpx.Response:
    return httpx.Response(200, json={"amount": 1.0, "base": base, "date": date, "rates": rates})


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def make_service(handler, clock=None, ttl: float = 60) -> FXService:
    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    return FXService(
        http_client=http_client,
        base_url=BASE_URL,
        cache_ttl_seconds=ttl,
        clock=clock or FakeClock()
    )


def test_fetches_latest_rate_from_source():
    requests = []

    def handler(request):
        requests.append(request)
        return frankfurter_response("HKD", {"USD": 0.128})

    service = make_service(handler)
    rate = service.get_exchange_rate("hkd", "usd")

    assert rate.from_currency == "HKD"
    assert rate.to_currency == "USD"
    assert rate.rate == 0.128
    assert rate.date == "2026-10-16"
    assert rate.is_fallback is False

    assert len(requests) == 1
    assert requests[0].url.path == "/v1/latest"
    assert requests[0].url.params["base"] == "HKD"
    assert requests[0].url.params["symbols"] == "USD"


def test_same_currency_skips_network():
    def handler(request):
        raise AssertionError("no request expected")

    service = make_service(handler)
    rate = service.get_exchange_rate("USD", "usd")

    assert rate.rate == 1.0
    assert rate.is_fallback is False


def test_cached_rate_is_reused_until_ttl_expires():
    calls = []
    clock = FakeClock()

    def handler(request):
        calls.append(request)
        return frankfurter_response("EUR", {"USD": 1.1 + 0.01 * len(calls)})

    service = make_service(handler, clock=clock, ttl=60)

    first = service.get_exchange_rate("EUR", "USD")
    clock.now = 59
    second = service.get_exchange_rate("EUR", "USD")
    assert len(calls) == 1
    assert second.rate == first.rate

    clock.now = 61
    third = service.get_exchange_rate("EUR", "USD")
    assert len(calls) == 2
    assert third.rate != first.rate


def test_cache_is_keyed_by_direction():
    calls = []

    def handler(request):
        calls.append(request)
        base = request.url.params["base"]
        return frankfurter_response(base, {"USD": 0.128} if base == "HKD" else {"HKD": 7.8})

    service = make_service(handler)
    assert service.get_exchange_rate("HKD", "USD").rate == 0.128
    assert service.get_exchange_rate("USD", "HKD").rate == 7.8
    assert len(calls) == 2


@pytest.mark.parametrize(
    "handler",
    [
        lambda request: httpx.Response(500, json={"message": "boom"}),
        lambda request: httpx.Response(200, content=b"not json"),
        lambda request: frankfurter_response("HKD", {}),
    ],
    ids=["server-error", "undecodable-body", "missing-symbol"],
)
def test_bad_responses_fall_back_to_one(handler):
    service = make_service(handler)
    rate = service.get_exchange_rate("HKD", "USD")

    assert rate.rate == 1.0
    assert rate.is_fallback is True


def test_transport_error_falls_back_and_is_not_cached():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    service = make_service(handler)

    assert service.get_exchange_rate("HKD", "USD").is_fallback is True
    assert service.get_exchange_rate("HKD", "USD").is_fallback is True
    assert len(calls) == 2


def test_recovers_after_fallback():
    responses = [
        httpx.Response(503),
        frankfurter_response("HKD", {"USD": 0.128}),
    ]

    def handler(request):
        return responses.pop(0)

    service = make_service(handler)

    assert service.get_exchange_rate("HKD", "USD").rate == 1.0
    recovered = service.get_exchange_rate("HKD", "USD")
    assert recovered.rate == 0.128
    assert recovered.is_fallback is False


def test_clear_cache_forces_refetch():
    calls = []

    def handler(request):
        calls.append(request)
        return frankfurter_response("HKD", {"USD": 0.128})

    service = make_service(handler)
    service.get_exchange_rate("HKD", "USD")
    service.clear_cache()
    service.get_exchange_rate("HKD", "USD")

    assert len(calls) == 2


def test_convert_amount_returns_converted_value_and_rate():
    service = make_service(lambda request: frankfurter_response("HKD", {"USD": 0.125}))

    converted, rate = service.convert_amount(80.0, "HKD", "USD")

    assert converted == pytest.approx(10.0)
    assert rate == 0.125


def test_mock_service_defaults_unknown_pairs_to_one():
    fx = MockFXService()
    fx.set_rate("hkd", "usd", 0.125)

    assert fx.get_exchange_rate("HKD", "USD").rate == 0.125
    assert fx.get_exchange_rate("EUR", "USD").rate == 1.0
    assert fx.get_exchange_rate("USD", "USD").rate == 1.0
    assert fx.convert_amount(160.0, "HKD", "USD") == (20.0, 0.125)


def test_exchange_rate_endpoint(client, fx):
    fx.set_rate("HKD", "USD", 0.128)

    response = client.get("/api/exchange-rate", params={"from": "hkd", "to": "USD"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["from_currency"] == "HKD"
    assert body["data"]["to_currency"] == "USD"
    assert body["data"]["rate"] == 0.128


def test_exchange_rate_endpoint_rejects_bad_codes(client):
    response = client.get("/api/exchange-rate", params={"from": "HK", "to": "USD"})
    assert response.status_code == 400

    response = client.get("/api/exchange-rate", params={"from": "HKD"})
    assert response.status_code == 422
