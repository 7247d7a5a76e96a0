"""Portfolio schemas."""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from portfolio_sync.models.portfolio import ENTITY_ID_LENGTH
from portfolio_sync.schemas.transaction import Timestamp


class PortfolioBase(BaseModel):
    """Base portfolio schema."""

    name: str = Field(..., min_length=1, max_length=50)
    color: Optional[str] = Field(None, max_length=20)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class PortfolioUpsert(PortfolioBase):
    """Create-or-update body; ``id`` is client generated when present."""

    model_config = ConfigDict(extra="forbid")

    id: Optional[str] = Field(None, min_length=1, max_length=ENTITY_ID_LENGTH)


class PortfolioUpdate(BaseModel):
    """Schema for updating a portfolio."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=50)
    color: Optional[str] = Field(None, max_length=20)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class PortfolioResponse(BaseModel):
    """Schema for portfolio response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: UUID
    name: str
    color: str
    created_at: Timestamp
    updated_at: Timestamp


class OperationResult(BaseModel):
    success: bool = True
    message: str
