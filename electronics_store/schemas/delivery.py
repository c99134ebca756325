from pydantic import Field
from typing import Any, Literal, Optional

from electronics_store.schemas.common import CamelModel
from electronics_store.schemas.order import OrderLine

DeliveryType = Literal["door", "pickup"]


class DeliveryQuoteRequest(CamelModel):
    """Parameters for a delivery cost calculation."""
    city: Optional[str] = Field(None, description="Destination city name")
    city_code: Optional[int] = Field(None, description="Provider city code, skips the lookup")
    delivery_type: DeliveryType = Field("door", description="Door delivery or pickup point")
    weight: Optional[int] = Field(None, gt=0, description="Parcel weight in grams")
    items: Optional[list[OrderLine]] = Field(None, description="Order lines used to estimate weight")


class Tariff(CamelModel):
    """A shipping option offered by the provider."""
    tariff_code: int
    tariff_name: str
    tariff_description: Optional[str] = None
    delivery_mode: Optional[int] = None
    delivery_cost: float
    delivery_days: str
    currency: str = "RUB"


class DeliveryFallback(CamelModel):
    """Approximate price returned when the provider cannot be used."""
    delivery_cost: float
    delivery_days: str
    tariff_name: str
    note: str


class DeliveryQuote(CamelModel):
    """Result of a delivery cost calculation."""
    success: bool
    delivery_cost: Optional[float] = None
    delivery_days: Optional[str] = None
    tariff_code: Optional[int] = None
    tariff_name: Optional[str] = None
    tariff_description: Optional[str] = None
    currency: str = "RUB"
    city_code: Optional[int] = None
    all_tariffs: list[Tariff] = []
    demo_mode: bool = False
    note: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    fallback: Optional[DeliveryFallback] = None


class City(CamelModel):
    code: int
    city: str
    region: Optional[str] = None
    country: Optional[str] = None


class CityLookup(CamelModel):
    success: bool
    cities: list[City] = []
    demo_mode: bool = False
    error: Optional[str] = None
    details: Optional[Any] = None


class DeliveryPoint(CamelModel):
    code: str
    name: str
    address: Optional[str] = None
    city: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    work_time: Optional[str] = None
    type: str


class DeliveryPointList(CamelModel):
    success: bool
    points: list[DeliveryPoint] = []
    count: int = 0
    demo_mode: bool = False
    error: Optional[str] = None
    details: Optional[Any] = None


class TrackingEvent(CamelModel):
    status: str
    date: Optional[str] = None
    location: Optional[str] = None


class TrackingInfo(CamelModel):
    success: bool
    status: Optional[str] = None
    status_code: Optional[str] = None
    location: Optional[str] = None
    tracking_number: Optional[str] = None
    tracking_url: Optional[str] = None
    history: list[TrackingEvent] = []
    demo_mode: bool = False
    error: Optional[str] = None
    details: Optional[Any] = None
