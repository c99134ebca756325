from fastapi import APIRouter, Depends, Query

from electronics_store.clients.delivery import DeliveryClient
from electronics_store.dependencies import get_delivery_client
from electronics_store.schemas.delivery import (
    CityLookup,
    DeliveryPointList,
    DeliveryQuote,
    DeliveryQuoteRequest,
    TrackingInfo,
)

router = APIRouter(prefix="/api/delivery", tags=["Delivery"])


@router.post(
    "/calculate",
    response_model=DeliveryQuote,
    response_model_exclude_none=True,
    summary="Calculate delivery cost",
    description="""
    Price a parcel to a destination city.

    The provider never makes this endpoint fail: when it cannot price the
    route, the response has `success: false` and an approximate `fallback`
    price. Without provider credentials the service runs in demo mode and
    returns synthetic prices flagged with `demoMode: true`.
    """
)
def calculate_delivery(
    quote_request: DeliveryQuoteRequest,
    client: DeliveryClient = Depends(get_delivery_client)
):
    """Get a delivery quote."""
    return client.quote(quote_request)


@router.get(
    "/cities",
    response_model=CityLookup,
    response_model_exclude_none=True,
    summary="Find provider city codes"
)
def find_cities(
    q: str = Query(..., min_length=1, description="City name"),
    client: DeliveryClient = Depends(get_delivery_client)
):
    """Look up cities by name."""
    return client.find_cities(q)


@router.get(
    "/points",
    response_model=DeliveryPointList,
    response_model_exclude_none=True,
    summary="List pickup points in a city"
)
def delivery_points(
    city: str = Query(..., min_length=1, description="City name"),
    client: DeliveryClient = Depends(get_delivery_client)
):
    """Get pickup points."""
    return client.delivery_points(city)


@router.get(
    "/track/{provider_order_id}",
    response_model=TrackingInfo,
    response_model_exclude_none=True,
    summary="Track a shipment"
)
def track_delivery(
    provider_order_id: str,
    client: DeliveryClient = Depends(get_delivery_client)
):
    """Get shipment status and history."""
    return client.track(provider_order_id)
