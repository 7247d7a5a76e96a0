"""Transaction schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer, StringConstraints

from portfolio_sync.core.timeutils import coerce_epoch_ms, to_epoch_ms
from portfolio_sync.models.portfolio import ENTITY_ID_LENGTH
from portfolio_sync.models.transaction import TransactionType


def normalize_symbol(v):
    return v.strip().upper() if isinstance(v, str) else v


# Accepts epoch milliseconds or ISO-8601, emits epoch milliseconds.
Timestamp = Annotated[
    datetime,
    BeforeValidator(coerce_epoch_ms),
    PlainSerializer(to_epoch_ms, return_type=int, when_used="json"),
]
# Exact on the way in, a JSON number on the way out.
_as_number = PlainSerializer(float, return_type=float, when_used="json")
Amount = Annotated[Decimal, _as_number]
# Bounded to the quantity / price columns, Numeric(24, 8) and Numeric(18, 8).
Quantity = Annotated[Decimal, Field(gt=0, max_digits=24, decimal_places=8), _as_number]
Price = Annotated[Decimal, Field(ge=0, max_digits=18, decimal_places=8), _as_number]
Symbol = Annotated[str, BeforeValidator(normalize_symbol), StringConstraints(min_length=1, max_length=20)]
EntityId = Annotated[str, StringConstraints(min_length=1, max_length=ENTITY_ID_LENGTH)]


class TransactionUpsert(BaseModel):
    """Create-or-update body for one transaction.

    Also validates each raw item of a bulk import.
    """

    id: Optional[EntityId] = None
    stock_symbol: Symbol
    type: TransactionType
    quantity: Quantity
    price: Price
    date: Optional[Timestamp] = None


class TransactionResponse(BaseModel):
    """Schema for transaction response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    portfolio_id: str
    stock_symbol: str
    type: TransactionType
    quantity: Amount
    price: Amount
    date: Timestamp
    created_at: Timestamp
    updated_at: Timestamp


class DeleteAllResult(BaseModel):
    """Result of delete all operation."""

    deleted_count: int


class ImportRequest(BaseModel):
    """Items stay raw so each one is validated (and may fail) on its own."""

    model_config = ConfigDict(extra="forbid")

    transactions: List[Any]


class ImportItemError(BaseModel):
    index: int
    item: Any
    error: str


class ImportResult(BaseModel):
    """Result of a bulk import."""

    imported_count: int
    errors: List[ImportItemError] = []
