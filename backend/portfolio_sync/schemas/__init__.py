"""Pydantic schemas."""

from portfolio_sync.schemas.portfolio import (
    OperationResult,
    PortfolioUpdate,
    PortfolioUpsert,
    PortfolioResponse,
)
from portfolio_sync.schemas.transaction import (
    DeleteAllResult,
    ImportRequest,
    ImportResult,
    TransactionUpsert,
    TransactionResponse,
)
from portfolio_sync.schemas.sync import (
    CheckConflictRequest,
    ConflictCheckResult,
    LocalSnapshot,
    MergeStrategy,
    ResolveConflictRequest,
    Snapshot,
    UploadLocalRequest,
    UploadLocalResponse,
)

__all__ = [
    "OperationResult",
    "PortfolioUpdate",
    "PortfolioUpsert",
    "PortfolioResponse",
    "DeleteAllResult",
    "ImportRequest",
    "ImportResult",
    "TransactionUpsert",
    "TransactionResponse",
    "CheckConflictRequest",
    "ConflictCheckResult",
    "LocalSnapshot",
    "MergeStrategy",
    "ResolveConflictRequest",
    "Snapshot",
    "UploadLocalRequest",
    "UploadLocalResponse",
]
