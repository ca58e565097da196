"""Transaction Schemas — Pydantic models for the /v2/transactions payloads.

Invariants:
    - Amounts are integer minor units (cents), strictly positive
    - Unknown fields are preserved in both directions (the API evolves faster than the client)
    - Request bodies serialize with camelCase aliases and without None values

Design Decisions:
    - extra="allow": no schema validation beyond what the client itself needs
    - Literal for payment method: Pydantic handles validation natively
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pagou.core.domain_types import TransactionId

PaymentMethod = Literal["pix", "credit_card", "boleto"]


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class Customer(_WireModel):
    name: str | None = Field(None, max_length=200)
    email: str | None = None
    document: str | None = None
    phone: str | None = None


class TransactionCreate(_WireModel):
    """Body for POST /v2/transactions."""
    amount: int = Field(gt=0)
    currency: str = Field("BRL", min_length=3, max_length=3)
    method: PaymentMethod
    description: str | None = Field(None, max_length=500)
    customer: Customer | None = None
    external_ref: str | None = Field(None, alias="externalRef")
    metadata: dict[str, Any] | None = None

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()


class TransactionUpdate(_WireModel):
    """Body for PUT /v2/transactions/{id}: sandbox/test status simulation."""
    status: str | None = None
    metadata: dict[str, Any] | None = None


class RefundRequest(_WireModel):
    """Body for PUT /v2/transactions/{id}/refund. Omitted amount = full refund."""
    amount: int | None = Field(None, gt=0)
    reason: str | None = Field(None, max_length=500)


class Transaction(_WireModel):
    """A transaction as returned by the API."""
    id: TransactionId
    status: str | None = None
    amount: int | None = None
    refunded_amount: int | None = Field(None, alias="refundedAmount")
    currency: str | None = None
    method: str | None = None
    description: str | None = None
    external_ref: str | None = Field(None, alias="externalRef")
    created_at: str | None = Field(None, alias="createdAt")
    updated_at: str | None = Field(None, alias="updatedAt")
