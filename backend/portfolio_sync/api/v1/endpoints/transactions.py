"""Transaction endpoints, nested under a portfolio."""

from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_sync.api.deps import get_current_user
from portfolio_sync.core.database import get_db
from portfolio_sync.core.rate_limit import RATE_LIMITS, limiter
from portfolio_sync.models.user import User
from portfolio_sync.schemas.portfolio import OperationResult
from portfolio_sync.schemas.transaction import (
    DeleteAllResult,
    ImportRequest,
    ImportResult,
    TransactionResponse,
    TransactionUpsert,
)
from portfolio_sync.services.import_service import import_service
from portfolio_sync.services.portfolio_store import portfolio_store

router = APIRouter()


@router.get("/{portfolio_id}/transactions", response_model=List[TransactionResponse])
async def list_transactions(
    portfolio_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> List[TransactionResponse]:
    """List a portfolio's transactions, newest first."""
    return await portfolio_store.list_transactions(db, current_user.id, portfolio_id)


@router.post("/{portfolio_id}/transactions", response_model=TransactionResponse)
async def upsert_transaction(
    portfolio_id: str,
    transaction_in: TransactionUpsert,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TransactionResponse:
    """Add or update (sync) a transaction keyed by its client id."""
    return await portfolio_store.upsert_transaction(db, current_user.id, portfolio_id, transaction_in)


@router.delete("/{portfolio_id}/transactions/{transaction_id}", response_model=OperationResult)
async def delete_transaction(
    portfolio_id: str,
    transaction_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> OperationResult:
    """Delete one transaction."""
    await portfolio_store.delete_transaction(db, current_user.id, portfolio_id, transaction_id)
    return OperationResult(message="Transaction deleted")


@router.delete("/{portfolio_id}/transactions", response_model=DeleteAllResult)
async def delete_all_transactions(
    portfolio_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> DeleteAllResult:
    """Delete every transaction of a portfolio."""
    deleted_count = await portfolio_store.delete_all_transactions(db, current_user.id, portfolio_id)
    return DeleteAllResult(deleted_count=deleted_count)


@router.post("/{portfolio_id}/import", response_model=ImportResult)
@limiter.limit(RATE_LIMITS["bulk_import"])
async def import_transactions(
    request: Request,
    portfolio_id: str,
    import_in: ImportRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ImportResult:
    """Bulk import transactions.

    Each item is validated on its own; rejected items are listed in
    ``errors`` and the rest are still imported.
    """
    return await import_service.import_transactions(
        db, current_user.id, portfolio_id, import_in.transactions
    )
