"""Transaction data models."""
import re
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
from unifypay.models.common import Currency, Direction, TransactionStatus

CODE_PATTERN = re.compile(r"^(IN|EX|DE)\d{3,}$")

_DIRECTION_PREFIX = {"income": "IN", "expense": "EX"}


class Transaction(BaseModel):
    """Stored transaction."""

    id: str
    code: str = Field(..., description="IN### for income, EX### for expense")
    description: str
    amount: float = Field(..., ge=0, allow_inf_nan=False)
    direction: Direction
    currency: Currency
    status: TransactionStatus = "pending"
    occurred_at: datetime
    payment_method: str
    reference: Optional[str] = None
    notes: Optional[str] = None
    attachment_name: Optional[str] = None
    attachment_type: Optional[str] = None
    attachment_size: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "5b0e6a7e-2c1f-4c55-9d3e-0d0a7f1c2b11",
                "code": "IN001",
                "description": "Consulting invoice #42",
                "amount": 1500.0,
                "direction": "income",
                "currency": "USD",
                "status": "confirmed",
                "occurred_at": "2024-01-15T10:30:00Z",
                "payment_method": "Bank transfer",
            }
        }
    )


class TransactionCreate(BaseModel):
    """Transaction creation payload. ``id`` and ``code`` are generated when absent."""

    id: Optional[str] = Field(None, min_length=1)
    code: Optional[str] = None
    description: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0, allow_inf_nan=False)
    direction: Direction
    currency: Currency
    status: TransactionStatus = "pending"
    occurred_at: Optional[datetime] = None
    payment_method: str = Field(..., min_length=1)
    reference: Optional[str] = None
    notes: Optional[str] = None
    file: Optional[str] = Field(None, description="Embedded file as a base64 data URL")
    file_name: Optional[str] = None

    @model_validator(mode="after")
    def check_code_prefix(self) -> "TransactionCreate":
        if self.code is not None:
            prefix = _DIRECTION_PREFIX[self.direction]
            if not CODE_PATTERN.match(self.code) or not self.code.startswith(prefix):
                raise ValueError(f"code must look like {prefix}001 for {self.direction} transactions")
        return self


_REQUIRED_ON_UPDATE = ("description", "amount", "currency", "status", "occurred_at", "payment_method")


class TransactionUpdate(BaseModel):
    """Partial update. ``code`` and ``direction`` are fixed at creation and ignored here."""

    model_config = ConfigDict(extra="ignore")

    description: Optional[str] = Field(None, min_length=1)
    amount: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    currency: Optional[Currency] = None
    status: Optional[TransactionStatus] = None
    occurred_at: Optional[datetime] = None
    payment_method: Optional[str] = Field(None, min_length=1)
    reference: Optional[str] = None
    notes: Optional[str] = None
    file: Optional[str] = None
    file_name: Optional[str] = None

    @model_validator(mode="after")
    def reject_null_required(self) -> "TransactionUpdate":
        for name in _REQUIRED_ON_UPDATE:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        """Fields explicitly sent by the client, minus the file payload."""
        return self.model_dump(exclude_unset=True, exclude={"file", "file_name"})
