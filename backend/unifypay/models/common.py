"""Shared enumerations and value objects."""
from typing import Literal, Optional, Tuple
from pydantic import BaseModel, Field

Currency = Literal["PEN", "USD", "EUR"]

# Balance queries accept a wider set than record creation does
BALANCE_CURRENCIES: Tuple[str, ...] = ("USD", "EUR", "PEN", "MXN", "COP")

Direction = Literal["income", "expense"]
TransactionStatus = Literal["confirmed", "pending", "cancelled"]
DepositStatus = Literal["confirmed", "pending", "rejected"]
DepositType = Literal["Transfer", "Cash", "Check", "Counter deposit"]

CONFIRMED = "confirmed"


class Attachment(BaseModel):
    """A decoded embedded file, kept base64-encoded at rest."""

    name: str = Field(..., description="Client-supplied or generated filename")
    mime_type: str = Field(..., description="MIME type, e.g. application/pdf")
    size: int = Field(..., ge=0, description="Decoded size in bytes")
    data: str = Field(..., description="Base64 payload")
    encoding: str = Field(default="base64")


class RelatedTransaction(BaseModel):
    """Summary of the transaction a deposit points at."""

    id: Optional[str] = None
    code: str
    description: str
