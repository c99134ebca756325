"""Tests for the delivery provider clients and endpoints."""
import json
import random

import httpx
import pytest

from electronics_store.clients.delivery import (
    DemoDeliveryClient,
    LiveDeliveryClient,
    build_delivery_client,
    estimate_weight,
    select_tariff,
)
from electronics_store.config import Settings
from electronics_store.dependencies import get_delivery_client
from electronics_store.main import app
from electronics_store.schemas.delivery import DeliveryQuoteRequest, Tariff
from electronics_store.schemas.order import OrderLine
from electronics_store.utils.cache import CacheService

BASE_URL = "https://api.edu.cdek.ru/v2"

TARIFF_LIST = {
    "tariff_codes": [
        {"tariff_code": 136, "tariff_name": "Parcel door-door", "delivery_mode": 1,
         "delivery_sum": 610.0, "period_min": 2, "period_max": 4},
        {"tariff_code": 138, "tariff_name": "Parcel warehouse-warehouse", "delivery_mode": 2,
         "delivery_sum": 420.0, "period_min": 1, "period_max": 3},
    ]
}


class DictRedis:
    """In-memory stand-in for the handful of Redis commands the cache uses."""

    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def setex(self, key, ttl, value):
        self.data[key] = value

    def delete(self, key):
        self.data.pop(key, None)

    def ping(self):
        return True


def live_settings():
    return Settings(CDEK_CLIENT_ID="client", CDEK_CLIENT_SECRET="secret")


class FakeProvider:
    """Routes requests to canned provider responses and records them."""

    def __init__(self, tariffs=TARIFF_LIST, cities=None, token_status=200, points=None, order=None):
        self.tariffs = tariffs
        self.cities = cities if cities is not None else [{"code": 137, "city": "Saint Petersburg"}]
        self.points = points if points is not None else []
        self.order = order
        self.token_status = token_status
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.endswith("/oauth/token"):
            if self.token_status != 200:
                return httpx.Response(
                    self.token_status,
                    json={"error": "invalid_client", "error_description": "Bad credentials"},
                )
            return httpx.Response(200, json={"access_token": "token-1", "expires_in": 3600})
        if path.endswith("/location/cities"):
            return httpx.Response(200, json=self.cities)
        if path.endswith("/calculator/tarifflist"):
            return httpx.Response(200, json=self.tariffs)
        if path.endswith("/deliverypoints"):
            return httpx.Response(200, json=self.points)
        if path.endswith("/orders/broken"):
            return httpx.Response(200, json=self.order)
        if path.endswith("/orders/abc-123"):
            return httpx.Response(200, json={"entity": {
                "cdek_number": "1001",
                "status_code": "IN_TRANSIT",
                "location": {"city": "Tver"},
                "statuses": [
                    {"code": "CREATED", "date_time": "2024-01-01T10:00:00", "city": "Moscow"},
                    {"code": "IN_TRANSIT", "date_time": "2024-01-02T10:00:00", "city": "Tver"},
                ],
            }})
        return httpx.Response(404, json={"errors": [{"code": "not_found", "message": "Not found"}]})

    def paths(self):
        return [r.url.path for r in self.requests]


def make_live_client(provider):
    http_client = httpx.Client(transport=httpx.MockTransport(provider))
    return LiveDeliveryClient(http_client, live_settings(), CacheService(client=DictRedis()))


def test_estimate_weight():
    assert estimate_weight(None) == 1000
    assert estimate_weight([]) == 1000
    lines = [OrderLine(product_id=1, quantity=2), OrderLine(product_id=2, quantity=1)]
    assert estimate_weight(lines) == 1500


def test_select_tariff_prefers_matching_type_then_cheapest():
    tariffs = [
        Tariff(tariff_code=10, tariff_name="Express", delivery_mode=3, delivery_cost=900, delivery_days="1-1"),
        Tariff(tariff_code=11, tariff_name="Economy", delivery_mode=4, delivery_cost=300, delivery_days="5-9"),
        Tariff(tariff_code=12, tariff_name="Courier", delivery_mode=1, delivery_cost=700, delivery_days="2-3"),
    ]

    assert select_tariff(tariffs, "door").tariff_code == 12
    assert select_tariff(tariffs, "pickup").tariff_code == 11


def test_live_quote_selects_door_tariff():
    provider = FakeProvider()
    client = make_live_client(provider)

    quote = client.quote(DeliveryQuoteRequest(city="Saint Petersburg", delivery_type="door"))

    assert quote.success is True
    assert quote.tariff_code == 136
    assert quote.delivery_cost == 610.0
    assert quote.delivery_days == "2-4"
    assert quote.city_code == 137
    assert len(quote.all_tariffs) == 2
    assert quote.demo_mode is False

    calc_request = provider.requests[-1]
    assert calc_request.headers["Authorization"] == "Bearer token-1"
    payload = json.loads(calc_request.content)
    assert payload["from_location"] == {"code": 44}
    assert payload["to_location"] == {"code": 137}
    assert payload["packages"][0]["weight"] == 1000


def test_live_quote_pickup_uses_item_weight():
    provider = FakeProvider()
    client = make_live_client(provider)

    quote = client.quote(DeliveryQuoteRequest(
        city="Saint Petersburg",
        delivery_type="pickup",
        items=[{"productId": 1, "quantity": 3}],
    ))

    assert quote.tariff_code == 138
    assert quote.delivery_cost == 420.0
    payload = json.loads(provider.requests[-1].content)
    assert payload["packages"][0]["weight"] == 1500


def test_live_client_reuses_cached_token():
    provider = FakeProvider()
    client = make_live_client(provider)

    client.quote(DeliveryQuoteRequest(city="Saint Petersburg"))
    client.quote(DeliveryQuoteRequest(city_code=137))

    assert provider.paths().count("/v2/oauth/token") == 1


def test_live_quote_falls_back_without_tariffs():
    client = make_live_client(FakeProvider(tariffs={"tariff_codes": []}))

    quote = client.quote(DeliveryQuoteRequest(city="Saint Petersburg", delivery_type="door"))

    assert quote.success is False
    assert quote.error == "No tariffs available for this route"
    assert quote.fallback.delivery_cost == 500
    assert quote.fallback.delivery_days == "3-5"
    assert "approximate" in quote.fallback.tariff_name


def test_live_quote_falls_back_for_unknown_city():
    client = make_live_client(FakeProvider(cities=[]))

    quote = client.quote(DeliveryQuoteRequest(city="Atlantis", delivery_type="pickup"))

    assert quote.success is False
    assert "Atlantis" in quote.error
    assert quote.fallback.delivery_cost == 350


def test_live_quote_falls_back_on_auth_failure():
    client = make_live_client(FakeProvider(token_status=401))

    quote = client.quote(DeliveryQuoteRequest(city="Saint Petersburg"))

    assert quote.success is False
    assert "Bad credentials" in quote.error
    assert quote.fallback is not None


def test_live_quote_falls_back_on_timeout():
    def timeout(request):
        raise httpx.ReadTimeout("timed out", request=request)

    http_client = httpx.Client(transport=httpx.MockTransport(timeout))
    client = LiveDeliveryClient(http_client, live_settings(), CacheService(client=DictRedis()))

    quote = client.quote(DeliveryQuoteRequest(city="Saint Petersburg"))

    assert quote.success is False
    assert quote.fallback.delivery_cost == 500


def test_live_find_cities():
    client = make_live_client(FakeProvider(cities=[
        {"code": 344, "city": "Kazan", "region": "Republic of Tatarstan", "country": "Russia"}
    ]))

    result = client.find_cities("Kazan")

    assert result.success is True
    assert result.cities[0].code == 344
    assert result.cities[0].region == "Republic of Tatarstan"


def test_live_track_translates_statuses():
    client = make_live_client(FakeProvider())

    info = client.track("abc-123")

    assert info.success is True
    assert info.status == "In transit"
    assert info.location == "Tver"
    assert info.tracking_number == "1001"
    assert [e.status for e in info.history] == ["Order created", "In transit"]


def test_live_track_unknown_order():
    client = make_live_client(FakeProvider())

    info = client.track("missing")

    assert info.success is False
    assert info.error == "Could not fetch delivery status"


def test_live_quote_falls_back_on_malformed_city_response():
    client = make_live_client(FakeProvider(cities={"errors": [{"code": "v2_internal_error"}]}))

    quote = client.quote(DeliveryQuoteRequest(city="Moscow", delivery_type="door"))

    assert quote.success is False
    assert quote.error == "Malformed city response"
    assert quote.fallback.delivery_cost == 500


def test_live_find_cities_rejects_entries_without_code():
    client = make_live_client(FakeProvider(cities=[{"city": "Moscow"}]))

    result = client.find_cities("Moscow")

    assert result.success is False
    assert result.cities == []


def test_live_delivery_points_rejects_object_payload():
    client = make_live_client(FakeProvider(points={"errors": []}))

    result = client.delivery_points("Moscow")

    assert result.success is False
    assert result.count == 0


def test_live_delivery_points():
    client = make_live_client(FakeProvider(points=[{
        "code": "MSK5",
        "name": "Arbat",
        "type": "POSTAMAT",
        "location": {"city": "Moscow", "address_full": "Moscow, Arbat 1"},
    }]))

    result = client.delivery_points("Moscow")

    assert result.success is True
    assert result.points[0].type == "Parcel locker"
    assert result.points[0].address == "Moscow, Arbat 1"


@pytest.mark.parametrize("order", [
    ["not", "an", "object"],
    {"entity": "pending"},
    {"entity": {"status_code": "IN_TRANSIT", "statuses": ["CREATED"]}},
])
def test_live_track_rejects_malformed_order(order):
    client = make_live_client(FakeProvider(order=order))

    info = client.track("broken")

    assert info.success is False
    assert info.error == "Could not fetch delivery status"


def test_calculate_endpoint_live_mode_never_errors(client):
    live_client = make_live_client(FakeProvider(cities={"errors": []}))
    app.dependency_overrides[get_delivery_client] = lambda: live_client
    try:
        response = client.post(
            "/api/delivery/calculate",
            json={"city": "Moscow", "deliveryType": "pickup"}
        )
    finally:
        del app.dependency_overrides[get_delivery_client]

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is False
    assert data["fallback"]["deliveryCost"] == 350


@pytest.mark.parametrize("delivery_type,tariff_code", [("door", 136), ("pickup", 138)])
def test_demo_quote(delivery_type, tariff_code):
    client = DemoDeliveryClient(rng=random.Random(0))

    quote = client.quote(DeliveryQuoteRequest(city="Kazan", delivery_type=delivery_type))

    assert quote.success is True
    assert quote.demo_mode is True
    assert quote.tariff_code == tariff_code
    assert quote.city_code == 344
    assert quote.tariff_name.endswith("(demo)")
    assert len(quote.all_tariffs) == 3


def test_demo_find_cities_defaults_to_moscow():
    result = DemoDeliveryClient().find_cities("Unknown town")

    assert result.success is True
    assert result.cities[0].city == "Moscow"


def test_build_delivery_client_selects_mode():
    http_client = httpx.Client()
    cache = CacheService(client=DictRedis())

    assert isinstance(build_delivery_client(Settings(), http_client, cache), DemoDeliveryClient)
    assert isinstance(build_delivery_client(live_settings(), http_client, cache), LiveDeliveryClient)
    http_client.close()


def test_calculate_endpoint_demo_mode(client):
    response = client.post(
        "/api/delivery/calculate",
        json={"city": "Moscow", "deliveryType": "pickup", "items": [{"productId": 1, "quantity": 2}]}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["demoMode"] is True
    assert data["tariffCode"] == 138
    assert "allTariffs" in data


def test_calculate_endpoint_rejects_unknown_delivery_type(client):
    response = client.post(
        "/api/delivery/calculate",
        json={"city": "Moscow", "deliveryType": "drone"}
    )

    assert response.status_code == 400


def test_points_endpoint_demo_mode(client):
    response = client.get("/api/delivery/points", params={"city": "Kazan"})

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 3
    assert all(p["city"] == "Kazan" for p in data["points"])
