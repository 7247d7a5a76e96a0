"""Offline sync endpoints: snapshot, conflict check and resolution."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_sync.api.deps import get_current_user
from portfolio_sync.core.database import get_db
from portfolio_sync.core.rate_limit import RATE_LIMITS, limiter
from portfolio_sync.models.user import User
from portfolio_sync.schemas.sync import (
    CheckConflictRequest,
    ConflictCheckResult,
    ResolveConflictRequest,
    Snapshot,
    UploadLocalRequest,
    UploadLocalResponse,
)
from portfolio_sync.services.conflict_service import conflict_service
from portfolio_sync.services.merge_service import merge_service
from portfolio_sync.services.snapshot_service import snapshot_service

router = APIRouter()


@router.get("/sync", response_model=Snapshot)
async def get_snapshot(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Snapshot:
    """All portfolios with stocks and transactions, nested for app sync."""
    return await snapshot_service.build(db, current_user.id)


@router.post("/check-conflict", response_model=ConflictCheckResult)
async def check_conflict(
    check_in: CheckConflictRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ConflictCheckResult:
    """Compare the client's counts with the server's."""
    return await conflict_service.detect(
        db,
        current_user.id,
        check_in.local_portfolio_count,
        check_in.local_transaction_count,
    )


@router.post("/upload-local", response_model=UploadLocalResponse)
@limiter.limit(RATE_LIMITS["sync_replace"])
async def upload_local(
    request: Request,
    upload_in: UploadLocalRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UploadLocalResponse:
    """Replace all server data with the uploaded local data."""
    await merge_service.replace_with_local(db, current_user.id, upload_in)
    return UploadLocalResponse(
        message="Local data uploaded successfully",
        data=upload_in,
    )


@router.post("/resolve-conflict", response_model=Snapshot)
@limiter.limit(RATE_LIMITS["sync_replace"])
async def resolve_conflict(
    request: Request,
    resolve_in: ResolveConflictRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Snapshot:
    """Resolve a sync conflict with an explicit strategy."""
    return await merge_service.resolve(
        db, current_user.id, resolve_in.strategy, resolve_in.local_data
    )
