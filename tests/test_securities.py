"""Tests for the securities proxy clients and endpoints."""
import json

import httpx

from electronics_store.clients.securities import (
    DEMO_SECURITIES,
    DemoSecuritiesClient,
    LiveSecuritiesClient,
)
from electronics_store.schemas.securities import PriceTriggerRequest, SecurityOperationRequest

BASE_URL = "https://invest.example.com/api/Investment"


def make_client(handler):
    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    return LiveSecuritiesClient(http_client, BASE_URL)


def operation():
    return SecurityOperationRequest(
        security_id=1,
        quantity=10,
        purchase_price_per_share=170.5,
        commission=5,
        client_email="ivan@example.com",
    )


def test_list_securities_passes_through_json_list():
    securities = [{"id": 7, "ticker": "NVDA", "name": "NVIDIA Corp.", "price": 900.0}]
    client = make_client(lambda request: httpx.Response(200, json=securities))

    result = client.list_securities()

    assert result.success is True
    assert result.data == securities
    assert result.count == 1
    assert result.demo_mode is False


def test_list_securities_unwraps_object():
    securities = [{"id": 1, "ticker": "AAPL"}]
    client = make_client(lambda request: httpx.Response(200, json={"securities": securities}))

    result = client.list_securities()

    assert result.data == securities


def test_list_securities_falls_back_to_demo_on_html():
    html = "<!DOCTYPE html><html><body>Service waking up</body></html>"
    client = make_client(
        lambda request: httpx.Response(200, text=html, headers={"Content-Type": "text/html"})
    )

    result = client.list_securities()

    assert result.success is True
    assert result.demo_mode is True
    assert result.data == DEMO_SECURITIES
    assert result.count == 5


def test_list_securities_reports_http_error():
    client = make_client(lambda request: httpx.Response(404, json={"title": "Not Found"}))

    result = client.list_securities()

    assert result.success is False
    assert "404" in result.error
    assert result.details == {"title": "Not Found"}


def test_network_failure_becomes_failure_result():
    def unreachable(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(unreachable)

    result = client.list_operations()

    assert result.success is False
    assert "no response" in result.error


def test_calculate_operation_sends_camel_case_payload():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"totalCost": 1710.0})

    client = make_client(handler)

    result = client.calculate_operation(operation())

    assert result.success is True
    assert result.data == {"totalCost": 1710.0}
    assert seen["path"] == "/api/Investment/calculate"
    assert seen["body"] == {
        "securityId": 1,
        "quantity": 10,
        "purchasePricePerShare": 170.5,
        "commission": 5,
    }


def test_create_operation_includes_client_email():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json={"id": 42})

    result = make_client(handler).create_operation(operation())

    assert result.success is True
    assert result.data == {"id": 42}
    assert seen["body"]["clientEmail"] == "ivan@example.com"


def test_create_trigger_defaults_to_below():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": 3})

    make_client(handler).create_trigger(PriceTriggerRequest(operation_id=42, target_price=150))

    assert seen["body"] == {"operationId": 42, "targetPrice": 150, "triggerType": "BELOW"}


def test_demo_client_calculates_locally():
    result = DemoSecuritiesClient().calculate_operation(operation())

    assert result.success is True
    assert result.demo_mode is True
    assert result.data["totalCost"] == 1710.0


def test_demo_client_cannot_record_operations():
    result = DemoSecuritiesClient().create_operation(operation())

    assert result.success is False
    assert result.error == "Investment service is not configured"


def test_securities_endpoint_demo_mode(client):
    response = client.get("/api/investment/securities")

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["demoMode"] is True
    assert data["count"] == 5
    assert data["data"][0]["ticker"] == "AAPL"


def test_calculate_endpoint_validates_body(client):
    response = client.post("/api/investment/calculate", json={"securityId": 1})

    assert response.status_code == 400
