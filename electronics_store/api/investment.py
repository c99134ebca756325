from fastapi import APIRouter, Depends

from electronics_store.clients.securities import SecuritiesClient
from electronics_store.dependencies import get_securities_client
from electronics_store.schemas.securities import (
    PriceTriggerRequest,
    ProxyResult,
    SecurityOperationRequest,
)

router = APIRouter(prefix="/api/investment", tags=["Investment"])


@router.get("/status", response_model=ProxyResult, summary="Investment service status")
def service_status(client: SecuritiesClient = Depends(get_securities_client)):
    return client.status()


@router.get(
    "/securities",
    response_model=ProxyResult,
    summary="List securities",
    description="Instrument list from the investment service, or demo instruments when it is unavailable."
)
def list_securities(client: SecuritiesClient = Depends(get_securities_client)):
    return client.list_securities()


@router.post("/calculate", response_model=ProxyResult, summary="Price a buy/sell operation")
def calculate_operation(
    operation: SecurityOperationRequest,
    client: SecuritiesClient = Depends(get_securities_client)
):
    return client.calculate_operation(operation)


@router.post("/operations", response_model=ProxyResult, summary="Record an operation")
def create_operation(
    operation: SecurityOperationRequest,
    client: SecuritiesClient = Depends(get_securities_client)
):
    return client.create_operation(operation)


@router.get("/operations", response_model=ProxyResult, summary="List operations")
def list_operations(client: SecuritiesClient = Depends(get_securities_client)):
    return client.list_operations()


@router.post("/triggers", response_model=ProxyResult, summary="Create a price trigger")
def create_trigger(
    trigger: PriceTriggerRequest,
    client: SecuritiesClient = Depends(get_securities_client)
):
    return client.create_trigger(trigger)


@router.get("/triggers", response_model=ProxyResult, summary="List price triggers")
def list_triggers(client: SecuritiesClient = Depends(get_securities_client)):
    return client.list_triggers()


@router.post("/triggers/check", response_model=ProxyResult, summary="Evaluate price triggers")
def check_triggers(client: SecuritiesClient = Depends(get_securities_client)):
    return client.check_triggers()
