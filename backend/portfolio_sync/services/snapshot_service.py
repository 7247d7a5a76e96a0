"""Snapshot builder: the one place that decides what a client sees."""

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_sync.core.timeutils import ensure_utc, to_epoch_ms
from portfolio_sync.models.portfolio import Portfolio
from portfolio_sync.models.transaction import Transaction
from portfolio_sync.schemas.sync import (
    PortfolioMetadata,
    Snapshot,
    SnapshotPortfolio,
    SnapshotStock,
    SnapshotTransaction,
)


@dataclass
class ServerCounts:
    portfolios: int
    transactions: int


def last_modified(portfolio: Portfolio, transactions: List[Transaction]) -> datetime:
    """Logical last-modified time: the latest of the header and its transactions."""
    candidates = [ensure_utc(portfolio.updated_at)]
    candidates.extend(ensure_utc(t.updated_at) for t in transactions)
    return max(candidates)


def format_snapshot(portfolios: List[Portfolio], transactions: List[Transaction]) -> Snapshot:
    """Assemble the wire shape from rows.

    ``portfolios`` must already be ordered newest first and ``transactions``
    by date then created_at, newest first.
    """
    by_portfolio: Dict[str, List[Transaction]] = defaultdict(list)
    for t in transactions:
        by_portfolio[t.portfolio_id].append(t)

    snapshot_portfolios = []
    metadata = []
    for portfolio in portfolios:
        portfolio_transactions = by_portfolio.get(portfolio.id, [])

        # dicts keep insertion order: stocks follow their newest transaction
        stocks: Dict[str, SnapshotStock] = {}
        for t in portfolio_transactions:
            symbol = t.stock_symbol.upper()
            if symbol not in stocks:
                stocks[symbol] = SnapshotStock(symbol=symbol, transactions=[])
            stocks[symbol].transactions.append(
                SnapshotTransaction(
                    id=t.id,
                    type=t.type,
                    quantity=float(t.quantity),
                    price=float(t.price),
                    date=to_epoch_ms(t.date),
                )
            )

        last_updated = to_epoch_ms(last_modified(portfolio, portfolio_transactions))
        snapshot_portfolios.append(
            SnapshotPortfolio(
                id=portfolio.id,
                name=portfolio.name,
                color=portfolio.color,
                stocks=list(stocks.values()),
                last_updated=last_updated,
            )
        )
        metadata.append(
            PortfolioMetadata(
                id=portfolio.id,
                name=portfolio.name,
                created_at=to_epoch_ms(portfolio.created_at),
                last_updated=last_updated,
            )
        )

    return Snapshot(
        portfolios=snapshot_portfolios,
        metadata=metadata,
        selected_portfolio_id=portfolios[0].id if portfolios else None,
    )


class SnapshotService:
    """Reads a user's full Portfolio -> Transaction tree."""

    async def load(
        self, db: AsyncSession, user_id: UUID
    ) -> Tuple[List[Portfolio], List[Transaction]]:
        """Current rows of one user, in snapshot order."""
        portfolio_result = await db.execute(
            select(Portfolio)
            .where(Portfolio.user_id == user_id)
            .order_by(Portfolio.created_at.desc(), Portfolio.id)
            .execution_options(populate_existing=True)
        )
        portfolios = list(portfolio_result.scalars().all())
        if not portfolios:
            return portfolios, []

        transaction_result = await db.execute(
            select(Transaction)
            .where(Transaction.portfolio_id.in_([p.id for p in portfolios]))
            .order_by(Transaction.date.desc(), Transaction.created_at.desc(), Transaction.id)
            .execution_options(populate_existing=True)
        )
        return portfolios, list(transaction_result.scalars().all())

    async def build(self, db: AsyncSession, user_id: UUID) -> Snapshot:
        portfolios, transactions = await self.load(db, user_id)
        return format_snapshot(portfolios, transactions)

    async def count(self, db: AsyncSession, user_id: UUID) -> ServerCounts:
        portfolio_count = await db.execute(
            select(func.count()).select_from(Portfolio).where(Portfolio.user_id == user_id)
        )
        transaction_count = await db.execute(
            select(func.count())
            .select_from(Transaction)
            .join(Portfolio, Portfolio.id == Transaction.portfolio_id)
            .where(Portfolio.user_id == user_id)
        )
        return ServerCounts(
            portfolios=portfolio_count.scalar_one(),
            transactions=transaction_count.scalar_one(),
        )


snapshot_service = SnapshotService()
