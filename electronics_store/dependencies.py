"""Dependency injection for the outbound integration clients."""
from fastapi import Request

from electronics_store.clients.delivery import DeliveryClient
from electronics_store.clients.securities import SecuritiesClient


def get_delivery_client(request: Request) -> DeliveryClient:
    """Get the delivery client chosen at startup from app state."""
    return request.app.state.delivery_client


def get_securities_client(request: Request) -> SecuritiesClient:
    """Get the securities client chosen at startup from app state."""
    return request.app.state.securities_client
