"""Sync schemas: the snapshot wire shape and the conflict/resolve requests."""

import enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from portfolio_sync.models.transaction import TransactionType
from portfolio_sync.schemas.transaction import EntityId, Price, Quantity, Symbol, Timestamp


class MergeStrategy(str, enum.Enum):
    MERGE = "MERGE"
    USE_LOCAL = "USE_LOCAL"
    USE_SERVER = "USE_SERVER"


# --- Snapshot as returned to clients (timestamps in epoch ms) ---


class SnapshotTransaction(BaseModel):
    id: str
    type: TransactionType
    quantity: float
    price: float
    date: int


class SnapshotStock(BaseModel):
    symbol: str
    transactions: List[SnapshotTransaction] = []


class SnapshotPortfolio(BaseModel):
    id: str
    name: str
    color: str
    stocks: List[SnapshotStock] = []
    last_updated: int


class PortfolioMetadata(BaseModel):
    id: str
    name: str
    created_at: int
    last_updated: int


class Snapshot(BaseModel):
    """Full Portfolio -> stock -> Transaction tree of one user."""

    portfolios: List[SnapshotPortfolio] = []
    metadata: List[PortfolioMetadata] = []
    selected_portfolio_id: Optional[str] = None


# --- Snapshot as uploaded by a client ---


class LocalTransaction(BaseModel):
    id: EntityId
    type: TransactionType
    quantity: Quantity
    price: Price
    date: Optional[Timestamp] = None
    # Per-record edit time. Without it the record never overrides a server
    # row; when written it is stamped with the portfolio's last_updated.
    updated_at: Optional[Timestamp] = None


class LocalStock(BaseModel):
    symbol: Symbol
    transactions: List[LocalTransaction] = []


class LocalPortfolio(BaseModel):
    id: EntityId
    name: str = Field(..., min_length=1, max_length=50)
    color: Optional[str] = Field(None, max_length=20)
    stocks: List[LocalStock] = []
    last_updated: Optional[Timestamp] = None


class LocalPortfolioMetadata(BaseModel):
    id: EntityId
    name: Optional[str] = None
    created_at: Optional[Timestamp] = None
    last_updated: Optional[Timestamp] = None


class LocalSnapshot(BaseModel):
    """A client's replica. Fully validated before anything is written."""

    portfolios: List[LocalPortfolio]
    metadata: List[LocalPortfolioMetadata] = []
    selected_portfolio_id: Optional[str] = None

    @model_validator(mode="after")
    def check_unique_ids(self) -> "LocalSnapshot":
        portfolio_ids = [p.id for p in self.portfolios]
        if len(portfolio_ids) != len(set(portfolio_ids)):
            raise ValueError("Duplicate portfolio id in local data")
        transaction_ids = [
            t.id for p in self.portfolios for s in p.stocks for t in s.transactions
        ]
        if len(transaction_ids) != len(set(transaction_ids)):
            raise ValueError("Duplicate transaction id in local data")
        return self


class UploadLocalRequest(LocalSnapshot):
    model_config = ConfigDict(extra="forbid")


class UploadLocalResponse(BaseModel):
    success: bool = True
    message: str
    data: LocalSnapshot


class CheckConflictRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    local_portfolio_count: int = Field(..., ge=0)
    local_transaction_count: int = Field(..., ge=0)


class ConflictCheckResult(BaseModel):
    has_conflict: bool
    server_portfolio_count: int
    server_transaction_count: int
    server_data: Optional[Snapshot] = None


class ResolveConflictRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    strategy: MergeStrategy
    local_data: Optional[LocalSnapshot] = None
