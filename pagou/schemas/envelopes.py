"""Response Envelopes — the two shapes every successful API call returns.

Invariants:
    - DataEnvelope: {success, requestId, data}
    - ListEnvelope: {success, requestId, metadata: {page, limit, total}, data: [...]}
    - Envelopes are frozen once built (terminal results)
    - A null/missing list `data` reads as an empty page

Design Decisions:
    - Generic BaseModel so resources can ask for DataEnvelope[Transaction]
    - populate_by_name + alias: wire uses camelCase requestId, Python uses request_id
    - extra="ignore" on envelopes: no schema validation beyond the envelope shape
"""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

T = TypeVar("T")


class ListMetadata(BaseModel):
    """Server-reported paging position: total is authoritative for termination.

    page and limit are None when the server omits them; the requested cursor fills in.
    """
    model_config = ConfigDict(frozen=True, extra="allow")

    page: int | None = Field(None, ge=1)
    limit: int | None = Field(None, ge=0)
    total: int | None = Field(None, ge=0)


class DataEnvelope(BaseModel, Generic[T]):
    """Single-resource response."""
    model_config = ConfigDict(
        frozen=True, populate_by_name=True, extra="ignore",
    )

    success: bool = True
    request_id: str | None = Field(None, alias="requestId")
    data: T | None = None


class ListEnvelope(BaseModel, Generic[T]):
    """One page of a list endpoint."""
    model_config = ConfigDict(
        frozen=True, populate_by_name=True, extra="ignore",
    )

    success: bool = True
    request_id: str | None = Field(None, alias="requestId")
    metadata: ListMetadata = Field(default_factory=ListMetadata)
    data: list[T] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def null_data_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("metadata", mode="before")
    @classmethod
    def null_metadata_is_default(cls, v: Any) -> Any:
        return {} if v is None else v
