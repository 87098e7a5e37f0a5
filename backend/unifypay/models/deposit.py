"""Deposit data models."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
from unifypay.models.common import Currency, DepositStatus, DepositType
from unifypay.models.transaction import CODE_PATTERN


class Deposit(BaseModel):
    """Stored deposit."""

    id: str
    code: str = Field(..., description="DE###, one sequence for every currency")
    amount: float = Field(..., ge=0, allow_inf_nan=False)
    currency: Currency
    occurred_at: datetime
    recipient: str
    bank: Optional[str] = None
    account_number: Optional[str] = None
    deposit_type: DepositType
    status: DepositStatus = "pending"
    description: str
    supporting_document: Optional[str] = None
    notes: Optional[str] = None
    transaction_ref: Optional[str] = Field(None, description="id of a related transaction (weak reference)")
    attachment_name: Optional[str] = None
    attachment_type: Optional[str] = None
    attachment_size: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class DepositCreate(BaseModel):
    """Deposit creation payload."""

    id: Optional[str] = Field(None, min_length=1)
    code: Optional[str] = None
    amount: float = Field(..., ge=0, allow_inf_nan=False)
    currency: Currency
    occurred_at: Optional[datetime] = None
    recipient: str = Field(..., min_length=1)
    bank: Optional[str] = None
    account_number: Optional[str] = None
    deposit_type: DepositType
    status: DepositStatus = "pending"
    description: str = Field(..., min_length=1)
    supporting_document: Optional[str] = None
    notes: Optional[str] = None
    transaction_ref: Optional[str] = None
    file: Optional[str] = Field(None, description="Receipt as a base64 data URL")
    file_name: Optional[str] = None

    @model_validator(mode="after")
    def check_code_prefix(self) -> "DepositCreate":
        if self.code is not None and (not CODE_PATTERN.match(self.code) or not self.code.startswith("DE")):
            raise ValueError("code must look like DE001")
        return self


_REQUIRED_ON_UPDATE = ("amount", "currency", "occurred_at", "recipient", "deposit_type", "status", "description")


class DepositUpdate(BaseModel):
    """Partial update; ``code`` is ignored."""

    model_config = ConfigDict(extra="ignore")

    amount: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    currency: Optional[Currency] = None
    occurred_at: Optional[datetime] = None
    recipient: Optional[str] = Field(None, min_length=1)
    bank: Optional[str] = None
    account_number: Optional[str] = None
    deposit_type: Optional[DepositType] = None
    status: Optional[DepositStatus] = None
    description: Optional[str] = Field(None, min_length=1)
    supporting_document: Optional[str] = None
    notes: Optional[str] = None
    transaction_ref: Optional[str] = None
    file: Optional[str] = None
    file_name: Optional[str] = None

    @model_validator(mode="after")
    def reject_null_required(self) -> "DepositUpdate":
        for name in _REQUIRED_ON_UPDATE:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude={"file", "file_name"})
