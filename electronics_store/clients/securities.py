"""Investment / securities service proxy."""
import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from electronics_store.config import Settings
from electronics_store.errors import UpstreamError
from electronics_store.schemas.securities import (
    PriceTriggerRequest,
    ProxyResult,
    SecurityOperationRequest,
)

logger = logging.getLogger(__name__)

DEMO_SECURITIES = [
    {"id": 1, "ticker": "AAPL", "name": "Apple Inc.", "price": 170.50, "currentPrice": 170.50},
    {"id": 2, "ticker": "GOOGL", "name": "Alphabet Inc.", "price": 140.20, "currentPrice": 140.20},
    {"id": 3, "ticker": "MSFT", "name": "Microsoft Corp.", "price": 380.75, "currentPrice": 380.75},
    {"id": 4, "ticker": "TSLA", "name": "Tesla Inc.", "price": 245.30, "currentPrice": 245.30},
    {"id": 5, "ticker": "AMZN", "name": "Amazon.com Inc.", "price": 155.90, "currentPrice": 155.90},
]

DEMO_NOTE = "Investment service unavailable. Showing demo data."


def demo_securities() -> ProxyResult:
    return ProxyResult(
        success=True,
        data=DEMO_SECURITIES,
        count=len(DEMO_SECURITIES),
        demo_mode=True,
        note=DEMO_NOTE,
    )


class SecuritiesClient(ABC):
    """Operations offered by the remote securities service."""

    demo_mode = False

    @abstractmethod
    def status(self) -> ProxyResult:
        """Reachability of the remote service."""

    @abstractmethod
    def list_securities(self) -> ProxyResult:
        """Tradable instruments."""

    @abstractmethod
    def calculate_operation(self, operation: SecurityOperationRequest) -> ProxyResult:
        """Price a buy/sell operation without recording it."""

    @abstractmethod
    def create_operation(self, operation: SecurityOperationRequest) -> ProxyResult:
        """Record an operation."""

    @abstractmethod
    def list_operations(self) -> ProxyResult:
        """Recorded operations."""

    @abstractmethod
    def create_trigger(self, trigger: PriceTriggerRequest) -> ProxyResult:
        """Create a price trigger for an operation."""

    @abstractmethod
    def list_triggers(self) -> ProxyResult:
        """Existing price triggers."""

    @abstractmethod
    def check_triggers(self) -> ProxyResult:
        """Ask the remote service to evaluate all triggers."""


class LiveSecuritiesClient(SecuritiesClient):
    """Pass-through client for the remote securities service."""

    def __init__(self, http_client: httpx.Client, base_url: str):
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")

    def _send(self, method: str, path: str, failure: str, **kwargs) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            response = self.http_client.request(
                method, url, headers={"Accept": "application/json"}, **kwargs
            )
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            raise UpstreamError(
                f"{failure} ({status_code})",
                code=str(status_code),
                details=_response_details(e.response),
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"{failure} (no response)", details=str(e)) from e

    def _proxy(self, method: str, path: str, failure: str, **kwargs) -> ProxyResult:
        try:
            response = self._send(method, path, failure, **kwargs)
            data = response.json()
        except UpstreamError as e:
            logger.error(f"Securities service call {method} {path} failed: {e.message}")
            return ProxyResult(success=False, error=e.message, details=e.details)
        except ValueError:
            logger.error(f"Securities service call {method} {path} returned non-JSON")
            return ProxyResult(success=False, error=failure, details="Response is not JSON")

        count = len(data) if isinstance(data, list) else None
        return ProxyResult(success=True, data=data, count=count)

    def status(self) -> ProxyResult:
        try:
            response = self._send("GET", "", "Investment service unavailable")
        except UpstreamError as e:
            logger.error(f"Securities service status check failed: {e.message}")
            return ProxyResult(success=False, error=e.message, details=e.details)
        return ProxyResult(success=True, data=_decode(response), note="Investment service available")

    def list_securities(self) -> ProxyResult:
        """
        Fetch the instrument list.

        An HTML error page (or any non-JSON body) served with a success
        status switches the result to the demo instrument list.
        """
        try:
            response = self._send("GET", "/securities", "Could not fetch securities")
        except UpstreamError as e:
            logger.error(f"Securities list failed: {e.message}")
            return ProxyResult(success=False, error=e.message, details=e.details)

        try:
            securities = response.json()
        except ValueError:
            logger.warning("Securities service returned a non-JSON payload, using demo data")
            return demo_securities()

        if not isinstance(securities, list):
            if isinstance(securities, dict) and isinstance(securities.get("securities"), list):
                securities = securities["securities"]
            elif isinstance(securities, dict):
                securities = list(securities.values())
            else:
                return ProxyResult(
                    success=False,
                    error="Could not fetch securities",
                    details="Unexpected response format",
                )

        logger.info(f"Fetched {len(securities)} securities")
        return ProxyResult(success=True, data=securities, count=len(securities))

    def calculate_operation(self, operation: SecurityOperationRequest) -> ProxyResult:
        return self._proxy(
            "POST",
            "/calculate",
            "Could not calculate operation cost",
            json=operation.model_dump(by_alias=True, exclude={"client_email"}),
        )

    def create_operation(self, operation: SecurityOperationRequest) -> ProxyResult:
        return self._proxy(
            "POST",
            "/operations",
            "Could not create operation",
            json=operation.model_dump(by_alias=True),
        )

    def list_operations(self) -> ProxyResult:
        return self._proxy("GET", "/operations", "Could not fetch operations")

    def create_trigger(self, trigger: PriceTriggerRequest) -> ProxyResult:
        return self._proxy(
            "POST",
            "/triggers",
            "Could not create trigger",
            json=trigger.model_dump(by_alias=True),
        )

    def list_triggers(self) -> ProxyResult:
        return self._proxy("GET", "/triggers", "Could not fetch triggers")

    def check_triggers(self) -> ProxyResult:
        return self._proxy("POST", "/triggers/check", "Could not check triggers", json={})


class DemoSecuritiesClient(SecuritiesClient):
    """Stand-in used when no investment service URL is configured."""

    demo_mode = True
    NOT_CONFIGURED = "Investment service is not configured"

    def status(self) -> ProxyResult:
        return ProxyResult(success=True, demo_mode=True, note=DEMO_NOTE)

    def list_securities(self) -> ProxyResult:
        return demo_securities()

    def calculate_operation(self, operation: SecurityOperationRequest) -> ProxyResult:
        subtotal = operation.quantity * operation.purchase_price_per_share
        return ProxyResult(
            success=True,
            data={
                "securityId": operation.security_id,
                "quantity": operation.quantity,
                "purchasePricePerShare": operation.purchase_price_per_share,
                "commission": operation.commission,
                "totalCost": round(subtotal + operation.commission, 2),
            },
            demo_mode=True,
            note=DEMO_NOTE,
        )

    def create_operation(self, operation: SecurityOperationRequest) -> ProxyResult:
        return ProxyResult(success=False, demo_mode=True, error=self.NOT_CONFIGURED)

    def list_operations(self) -> ProxyResult:
        return ProxyResult(success=True, data=[], count=0, demo_mode=True, note=DEMO_NOTE)

    def create_trigger(self, trigger: PriceTriggerRequest) -> ProxyResult:
        return ProxyResult(success=False, demo_mode=True, error=self.NOT_CONFIGURED)

    def list_triggers(self) -> ProxyResult:
        return ProxyResult(success=True, data=[], count=0, demo_mode=True, note=DEMO_NOTE)

    def check_triggers(self) -> ProxyResult:
        return ProxyResult(success=False, demo_mode=True, error=self.NOT_CONFIGURED)


def _decode(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text[:500]


def _response_details(response: httpx.Response) -> Any:
    return _decode(response) if response.content else None


def build_securities_client(settings: Settings, http_client: httpx.Client) -> SecuritiesClient:
    """Choose the live proxy when an investment service URL is configured."""
    if settings.INVESTMENT_API_URL:
        logger.info(f"Investment service: {settings.INVESTMENT_API_URL}")
        return LiveSecuritiesClient(http_client, settings.INVESTMENT_API_URL)

    logger.warning("Investment service: demo mode. Set INVESTMENT_API_URL to proxy a real service.")
    return DemoSecuritiesClient()
