"""API v1 router."""

from fastapi import APIRouter

from portfolio_sync.api.v1.endpoints import (
    portfolios,
    sync,
    transactions,
)

api_router = APIRouter()

# Fixed sync paths first so they are never read as a portfolio id
api_router.include_router(sync.router, prefix="/portfolios", tags=["Sync"])
api_router.include_router(portfolios.router, prefix="/portfolios", tags=["Portfolios"])
api_router.include_router(transactions.router, prefix="/portfolios", tags=["Transactions"])
