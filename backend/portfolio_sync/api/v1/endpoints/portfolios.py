"""Portfolio endpoints."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_sync.api.deps import get_current_user
from portfolio_sync.core.database import get_db
from portfolio_sync.models.user import User
from portfolio_sync.schemas.portfolio import (
    OperationResult,
    PortfolioResponse,
    PortfolioUpdate,
    PortfolioUpsert,
)
from portfolio_sync.services.portfolio_store import portfolio_store

router = APIRouter()


@router.get("/", response_model=List[PortfolioResponse])
async def list_portfolios(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> List[PortfolioResponse]:
    """List all portfolios for the current user."""
    return await portfolio_store.list_portfolios(db, current_user.id)


@router.post("/", response_model=PortfolioResponse)
async def upsert_portfolio(
    portfolio_in: PortfolioUpsert,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> PortfolioResponse:
    """Create or update (sync) a portfolio.

    Clients send the id they generated offline; sending it again updates the
    same row instead of creating a duplicate.
    """
    return await portfolio_store.upsert_portfolio(db, current_user.id, portfolio_in)


@router.put("/{portfolio_id}", response_model=PortfolioResponse)
async def update_portfolio(
    portfolio_id: str,
    portfolio_in: PortfolioUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> PortfolioResponse:
    """Update a portfolio's name and/or color."""
    return await portfolio_store.update_portfolio(db, current_user.id, portfolio_id, portfolio_in)


@router.delete("/{portfolio_id}", response_model=OperationResult)
async def delete_portfolio(
    portfolio_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> OperationResult:
    """Delete a portfolio together with its transactions."""
    await portfolio_store.delete_portfolio(db, current_user.id, portfolio_id)
    return OperationResult(message="Portfolio deleted")
