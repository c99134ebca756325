"""Delivery provider (CDEK API v2) client wrappers."""
import logging
import random
from abc import ABC, abstractmethod
from typing import Any, List, Optional

import httpx

from electronics_store.config import Settings
from electronics_store.errors import UpstreamError
from electronics_store.schemas.delivery import (
    City,
    CityLookup,
    DeliveryFallback,
    DeliveryPoint,
    DeliveryPointList,
    DeliveryQuote,
    DeliveryQuoteRequest,
    Tariff,
    TrackingEvent,
    TrackingInfo,
)
from electronics_store.schemas.order import OrderLine
from electronics_store.utils.cache import CacheService

logger = logging.getLogger(__name__)

DOOR_TARIFF_CODE = 136
PICKUP_TARIFF_CODE = 138
DOOR_DELIVERY_MODE = 1
PICKUP_DELIVERY_MODE = 2

ITEM_WEIGHT_GRAMS = 500
DEFAULT_WEIGHT_GRAMS = 1000
PACKAGE_DIMENSIONS = {"length": 30, "width": 20, "height": 10}

FALLBACK_COST = {"door": 500, "pickup": 350}
FALLBACK_DAYS = "3-5"

TRACKING_URL = "https://www.cdek.ru/ru/tracking?order_id={number}"

STATUS_NAMES = {
    "CREATED": "Order created",
    "ACCEPTED": "Accepted at warehouse",
    "READY_FOR_SHIPMENT": "Ready for shipment",
    "DELIVERED_TO_SENDER": "Handed over to courier",
    "IN_TRANSIT": "In transit",
    "ACCEPTED_IN_DESTINATION": "Arrived in destination city",
    "READY_FOR_RECIPIENT": "Ready for pickup",
    "DELIVERED": "Delivered",
    "NOT_DELIVERED": "Not delivered",
    "CANCELED": "Cancelled",
}


def estimate_weight(items: Optional[List[OrderLine]]) -> int:
    """Parcel weight in grams: a flat per-unit weight, or a default for no items."""
    if not items:
        return DEFAULT_WEIGHT_GRAMS
    return sum(ITEM_WEIGHT_GRAMS * item.quantity for item in items)


def translate_status(status_code: Optional[str]) -> Optional[str]:
    return STATUS_NAMES.get(status_code, status_code)


def select_tariff(tariffs: List[Tariff], delivery_type: str) -> Tariff:
    """
    Pick the tariff matching the delivery type.

    Door delivery matches tariff 136 or delivery mode 1, pickup matches
    tariff 138 or mode 2; without a match the cheapest tariff wins.
    """
    if delivery_type == "door":
        wanted_code, wanted_mode = DOOR_TARIFF_CODE, DOOR_DELIVERY_MODE
    else:
        wanted_code, wanted_mode = PICKUP_TARIFF_CODE, PICKUP_DELIVERY_MODE

    for tariff in tariffs:
        if tariff.tariff_code == wanted_code or tariff.delivery_mode == wanted_mode:
            return tariff
    return min(tariffs, key=lambda t: t.delivery_cost)


def fallback_quote(delivery_type: str, error: UpstreamError) -> DeliveryQuote:
    """Approximate quote returned when the provider could not price the route."""
    tariff_name = "Door-to-door parcel" if delivery_type == "door" else "Warehouse-to-warehouse parcel"
    return DeliveryQuote(
        success=False,
        error=error.message,
        error_code=str(error.code) if error.code is not None else None,
        fallback=DeliveryFallback(
            delivery_cost=FALLBACK_COST[delivery_type],
            delivery_days=FALLBACK_DAYS,
            tariff_name=f"{tariff_name} (approximate price)",
            note=f"Delivery provider: {error.message}. Showing an approximate price.",
        ),
    )


class DeliveryClient(ABC):
    """Delivery provider operations shared by the live and demo clients."""

    demo_mode = False

    @abstractmethod
    def quote(self, request: DeliveryQuoteRequest) -> DeliveryQuote:
        """Price a parcel to a city. Never raises on provider failure."""

    @abstractmethod
    def find_cities(self, query: str) -> CityLookup:
        """Resolve a human-entered city name to provider city codes."""

    @abstractmethod
    def delivery_points(self, city: str) -> DeliveryPointList:
        """List pickup points in a city."""

    @abstractmethod
    def track(self, provider_order_id: str) -> TrackingInfo:
        """Current status and history of a provider shipment."""


class LiveDeliveryClient(DeliveryClient):
    """
    Client for the real delivery provider API.

    Authenticates with OAuth client credentials; the access token is kept
    in Redis until shortly before it expires.
    """

    TOKEN_CACHE_PREFIX = "cdek"
    TOKEN_EXPIRY_MARGIN = 60

    def __init__(self, http_client: httpx.Client, settings: Settings, cache: CacheService):
        self.http_client = http_client
        self.base_url = settings.cdek_base_url
        self.client_id = settings.CDEK_CLIENT_ID
        self.client_secret = settings.CDEK_CLIENT_SECRET
        self.from_location_code = settings.CDEK_FROM_LOCATION_CODE
        self.cache = cache

    @property
    def _token_key(self) -> str:
        return f"token:{self.client_id}"

    def _get_token(self) -> str:
        token = self.cache.get(self.TOKEN_CACHE_PREFIX, self._token_key)
        if token:
            return token

        logger.info(f"Requesting delivery provider token from {self.base_url}/oauth/token")
        try:
            response = self.http_client.post(
                f"{self.base_url}/oauth/token",
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                },
            )
            response.raise_for_status()
            payload = response.json()
            token = payload["access_token"]
        except httpx.HTTPStatusError as e:
            message, code, details = _describe_error_response(e.response)
            raise UpstreamError(f"Authentication failed: {message}", code, details) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"Authentication failed: {e}") from e
        except (ValueError, KeyError) as e:
            raise UpstreamError("Authentication failed: malformed token response") from e

        ttl = max(int(payload.get("expires_in", 3600)) - self.TOKEN_EXPIRY_MARGIN, 1)
        self.cache.set(self.TOKEN_CACHE_PREFIX, self._token_key, token, ttl=ttl)
        return token

    def _request(self, method: str, path: str, **kwargs) -> Any:
        """Send an authenticated request and return the decoded JSON body."""
        token = self._get_token()
        try:
            response = self.http_client.request(
                method,
                f"{self.base_url}{path}",
                headers={"Authorization": f"Bearer {token}"},
                **kwargs,
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 401:
                self.cache.delete(self.TOKEN_CACHE_PREFIX, self._token_key)
            raise UpstreamError(*_describe_error_response(e.response)) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"Delivery provider unreachable: {e}") from e
        except ValueError as e:
            raise UpstreamError("Delivery provider returned a non-JSON response") from e

    def _resolve_city(self, city: Optional[str]) -> int:
        if not city:
            raise UpstreamError("Destination city is required")
        data = self._request("GET", "/location/cities", params={"city": city, "size": 10})
        cities = _parse_cities(data)
        if not cities:
            raise UpstreamError(f'City "{city}" not found')
        logger.info(f"Resolved city {city} to code {cities[0].code}")
        return cities[0].code

    def quote(self, request: DeliveryQuoteRequest) -> DeliveryQuote:
        try:
            weight = request.weight or estimate_weight(request.items)
            city_code = request.city_code or self._resolve_city(request.city)

            data = self._request(
                "POST",
                "/calculator/tarifflist",
                json={
                    "type": 1,
                    "currency": 1,
                    "lang": "rus",
                    "from_location": {"code": self.from_location_code},
                    "to_location": {"code": city_code},
                    "packages": [{"weight": weight, **PACKAGE_DIMENSIONS}],
                },
            )
            tariffs = _parse_tariffs(data)
            if not tariffs:
                raise UpstreamError("No tariffs available for this route")
        except UpstreamError as e:
            logger.error(f"Delivery calculation failed: {e.message}")
            return fallback_quote(request.delivery_type, e)

        selected = select_tariff(tariffs, request.delivery_type)
        logger.info(
            f"Selected tariff {selected.tariff_code} ({selected.tariff_name}): "
            f"{selected.delivery_cost} RUB, {selected.delivery_days} days"
        )
        return DeliveryQuote(
            success=True,
            delivery_cost=selected.delivery_cost,
            delivery_days=selected.delivery_days,
            tariff_code=selected.tariff_code,
            tariff_name=selected.tariff_name,
            tariff_description=selected.tariff_description,
            city_code=city_code,
            all_tariffs=tariffs,
        )

    def find_cities(self, query: str) -> CityLookup:
        try:
            data = self._request("GET", "/location/cities", params={"city": query, "size": 10})
            cities = _parse_cities(data)
        except UpstreamError as e:
            logger.error(f"City lookup failed: {e.message}")
            return CityLookup(success=False, error="Could not look up cities", details=e.details or e.message)

        return CityLookup(success=True, cities=cities)

    def delivery_points(self, city: str) -> DeliveryPointList:
        try:
            data = self._request("GET", "/deliverypoints", params={"city": city, "type": "PVZ"})
            points = _parse_points(data)
        except UpstreamError as e:
            logger.error(f"Delivery point lookup failed: {e.message}")
            return DeliveryPointList(
                success=False, error="Could not fetch pickup points", details=e.details or e.message
            )

        return DeliveryPointList(success=True, points=points, count=len(points))

    def track(self, provider_order_id: str) -> TrackingInfo:
        try:
            data = self._request("GET", f"/orders/{provider_order_id}")
            info = _parse_tracking(data)
        except UpstreamError as e:
            logger.error(f"Tracking failed for {provider_order_id}: {e.message}")
            return TrackingInfo(
                success=False,
                error="Could not fetch delivery status",
                details=e.details or e.message,
            )

        return info


DEMO_CITIES = {
    "Moscow": City(code=44, city="Moscow", region="Moscow", country="Russia"),
    "Saint Petersburg": City(code=137, city="Saint Petersburg", region="Saint Petersburg", country="Russia"),
    "Novosibirsk": City(code=270, city="Novosibirsk", region="Novosibirsk Oblast", country="Russia"),
    "Yekaterinburg": City(code=250, city="Yekaterinburg", region="Sverdlovsk Oblast", country="Russia"),
    "Kazan": City(code=344, city="Kazan", region="Republic of Tatarstan", country="Russia"),
}

DEMO_NOTE = "Demo data. Configure delivery provider credentials for real prices."


class DemoDeliveryClient(DeliveryClient):
    """Returns synthetic provider data when no credentials are configured."""

    demo_mode = True

    def __init__(self, rng: random.Random = None):
        self.rng = rng or random.Random()

    def quote(self, request: DeliveryQuoteRequest) -> DeliveryQuote:
        variation = self.rng.randint(0, 99)
        base_cost = (450 if request.delivery_type == "door" else 320) + variation
        tariffs = [
            Tariff(
                tariff_code=DOOR_TARIFF_CODE,
                tariff_name="Door-to-door parcel",
                tariff_description="Delivery to the recipient's door",
                delivery_mode=DOOR_DELIVERY_MODE,
                delivery_cost=base_cost,
                delivery_days="2-4",
            ),
            Tariff(
                tariff_code=PICKUP_TARIFF_CODE,
                tariff_name="Warehouse-to-warehouse parcel",
                tariff_description="Pickup from a pickup point",
                delivery_mode=PICKUP_DELIVERY_MODE,
                delivery_cost=270 + variation,
                delivery_days="2-3",
            ),
            Tariff(
                tariff_code=139,
                tariff_name="Door-to-warehouse parcel",
                tariff_description="Collected from sender, picked up by recipient",
                delivery_mode=3,
                delivery_cost=350 + variation,
                delivery_days="2-4",
            ),
        ]
        selected = select_tariff(tariffs, request.delivery_type)
        city_code = request.city_code or self._lookup(request.city).code

        return DeliveryQuote(
            success=True,
            delivery_cost=selected.delivery_cost,
            delivery_days=selected.delivery_days,
            tariff_code=selected.tariff_code,
            tariff_name=f"{selected.tariff_name} (demo)",
            tariff_description=selected.tariff_description,
            city_code=city_code,
            all_tariffs=tariffs,
            demo_mode=True,
            note=DEMO_NOTE,
        )

    def _lookup(self, city: Optional[str]) -> City:
        return DEMO_CITIES.get(city, DEMO_CITIES["Moscow"])

    def find_cities(self, query: str) -> CityLookup:
        return CityLookup(success=True, cities=[self._lookup(query)], demo_mode=True)

    def delivery_points(self, city: str) -> DeliveryPointList:
        points = [
            DeliveryPoint(
                code="MSK001",
                name="Tverskaya pickup point",
                address=f"{city}, Tverskaya st. 1",
                city=city,
                latitude=55.7558,
                longitude=37.6173,
                work_time="Mon-Fri 9:00-20:00, Sat-Sun 10:00-18:00",
                type="Pickup point",
            ),
            DeliveryPoint(
                code="MSK002",
                name="Parcel locker",
                address=f"{city}, Lenina st. 10",
                city=city,
                latitude=55.7600,
                longitude=37.6100,
                work_time="24/7",
                type="Parcel locker",
            ),
            DeliveryPoint(
                code="MSK003",
                name="Gorod mall pickup point",
                address=f"{city}, Mira ave. 150",
                city=city,
                latitude=55.7700,
                longitude=37.6400,
                work_time="Mon-Sun 10:00-22:00",
                type="Pickup point",
            ),
        ]
        return DeliveryPointList(success=True, points=points, count=len(points), demo_mode=True)

    def track(self, provider_order_id: str) -> TrackingInfo:
        number = f"DEMO-{provider_order_id}"
        return TrackingInfo(
            success=True,
            status=translate_status("IN_TRANSIT"),
            status_code="IN_TRANSIT",
            location="Moscow",
            tracking_number=number,
            tracking_url=TRACKING_URL.format(number=number),
            history=[
                TrackingEvent(status=translate_status("CREATED"), location="Moscow"),
                TrackingEvent(status=translate_status("IN_TRANSIT"), location="Moscow"),
            ],
            demo_mode=True,
        )


def _describe_error_response(response: httpx.Response):
    """Extract (message, code, details) from a provider error response."""
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}", None, response.text[:500]

    errors = body.get("errors") if isinstance(body, dict) else None
    if errors:
        first = errors[0]
        return first.get("message") or f"HTTP {response.status_code}", first.get("code"), errors
    if isinstance(body, dict):
        message = body.get("error_description") or body.get("error")
        if message:
            return str(message), None, body
    return f"HTTP {response.status_code}", None, body


def build_delivery_client(
    settings: Settings, http_client: httpx.Client, cache: CacheService
) -> DeliveryClient:
    """Choose the live client when provider credentials are configured."""
    if settings.delivery_live_mode:
        logger.info(f"Delivery provider: live mode, {settings.cdek_base_url}")
        return LiveDeliveryClient(http_client, settings, cache)

    logger.warning(
        "Delivery provider: demo mode. Set CDEK_CLIENT_ID and CDEK_CLIENT_SECRET "
        "to use the real API."
    )
    return DemoDeliveryClient()


def _parse_tariffs(data: Any) -> List[Tariff]:
    try:
        return [
            Tariff(
                tariff_code=t["tariff_code"],
                tariff_name=t["tariff_name"],
                tariff_description=t.get("tariff_description"),
                delivery_mode=t.get("delivery_mode"),
                delivery_cost=t["delivery_sum"],
                delivery_days=f"{t.get('period_min') or 'n/a'}-{t.get('period_max') or 'n/a'}",
            )
            for t in data.get("tariff_codes") or []
        ]
    except (KeyError, TypeError, AttributeError, ValueError) as e:
        raise UpstreamError("Malformed tariff response") from e


def _records(data: Any, what: str) -> List[dict]:
    """The provider returns collections as JSON arrays of objects."""
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise UpstreamError(f"Malformed {what} response", details=data)
    return data


def _parse_cities(data: Any) -> List[City]:
    try:
        return [
            City(code=c["code"], city=c["city"], region=c.get("region"), country=c.get("country"))
            for c in _records(data, "city")
        ]
    except (KeyError, ValueError) as e:
        raise UpstreamError("Malformed city response") from e


def _parse_points(data: Any) -> List[DeliveryPoint]:
    points = []
    try:
        for p in _records(data, "pickup point"):
            location = p.get("location") or {}
            points.append(
                DeliveryPoint(
                    code=p["code"],
                    name=p["name"],
                    address=location.get("address_full"),
                    city=location.get("city"),
                    latitude=location.get("latitude"),
                    longitude=location.get("longitude"),
                    work_time=p.get("work_time"),
                    type="Pickup point" if p.get("type") == "PVZ" else "Parcel locker",
                )
            )
    except (KeyError, TypeError, AttributeError, ValueError) as e:
        raise UpstreamError("Malformed pickup point response") from e
    return points


def _parse_tracking(data: Any) -> TrackingInfo:
    entity = data.get("entity") if isinstance(data, dict) else None
    if not isinstance(entity, dict) or not entity:
        raise UpstreamError("Malformed tracking response", details=data)

    try:
        number = entity.get("cdek_number")
        return TrackingInfo(
            success=True,
            status=translate_status(entity.get("status_code")),
            status_code=entity.get("status_code"),
            location=(entity.get("location") or {}).get("city") or "Unknown",
            tracking_number=number,
            tracking_url=TRACKING_URL.format(number=number) if number else None,
            history=[
                TrackingEvent(
                    status=translate_status(s.get("code")),
                    date=s.get("date_time"),
                    location=s.get("city") or "",
                )
                for s in _records(entity.get("statuses") or [], "tracking")
            ],
        )
    except (TypeError, AttributeError, ValueError) as e:
        raise UpstreamError("Malformed tracking response") from e
