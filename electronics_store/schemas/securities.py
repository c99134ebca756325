from pydantic import Field
from typing import Any, Literal, Optional

from electronics_store.schemas.common import CamelModel


class SecurityOperationRequest(CamelModel):
    """A buy/sell operation on a security, priced or recorded by the remote service."""
    security_id: int = Field(..., description="Security identifier")
    quantity: int = Field(..., ge=1, description="Number of shares")
    purchase_price_per_share: float = Field(..., ge=0, description="Price per share")
    commission: float = Field(0, ge=0, description="Broker commission")
    client_email: Optional[str] = Field(None, description="Client email for notifications")


class PriceTriggerRequest(CamelModel):
    """A price trigger attached to an operation."""
    operation_id: int = Field(..., description="Operation the trigger watches")
    target_price: float = Field(..., gt=0, description="Price that fires the trigger")
    trigger_type: Literal["BELOW", "ABOVE"] = Field("BELOW", description="Fire below or above the target")


class ProxyResult(CamelModel):
    """Envelope for every securities service response."""
    success: bool
    data: Optional[Any] = None
    count: Optional[int] = None
    demo_mode: bool = False
    note: Optional[str] = None
    error: Optional[str] = None
    details: Optional[Any] = None
