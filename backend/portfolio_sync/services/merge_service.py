"""Merge resolver: reconcile a client replica with the server replica.

Three explicit strategies, no default:

* ``USE_SERVER`` - return the server snapshot, write nothing.
* ``USE_LOCAL``  - the client replica replaces everything the user owns.
* ``MERGE``      - entity-level last-write-wins keyed by id.

Both writing strategies delete the user's rows and insert the new set inside
one transaction, so readers see either the old or the new state. All payload
validation happens before the first DELETE. Two concurrent resolutions for
the same user are not serialized; the last transaction to commit wins.

Timestamps are compared at millisecond precision because that is what
clients see and echo back. A tie keeps the server version.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_sync.core.config import settings
from portfolio_sync.core.exceptions import NotFoundError, SyncValidationError
from portfolio_sync.core.timeutils import ensure_utc, to_epoch_ms, utcnow
from portfolio_sync.models.portfolio import Portfolio
from portfolio_sync.models.transaction import Transaction, TransactionType
from portfolio_sync.schemas.sync import LocalSnapshot, MergeStrategy, Snapshot
from portfolio_sync.services.snapshot_service import snapshot_service

logger = logging.getLogger(__name__)


@dataclass
class PortfolioRecord:
    id: str
    name: str
    color: Optional[str]
    created_at: Optional[datetime]
    # None on a local record means the client did not report an edit time
    updated_at: Optional[datetime]


@dataclass
class TransactionRecord:
    id: str
    portfolio_id: str
    stock_symbol: str
    type: TransactionType
    quantity: Decimal
    price: Decimal
    date: Optional[datetime]
    created_at: Optional[datetime]
    # Only a reported edit time takes part in last-write-wins
    updated_at: Optional[datetime]
    # Stored when the record is written without its own updated_at
    inherited_at: Optional[datetime] = None


@dataclass
class MergePlan:
    portfolios: List[PortfolioRecord]
    transactions: List[TransactionRecord]
    local_wins: int = 0
    orphans_dropped: int = 0
    dropped_ids: List[str] = field(default_factory=list)


def is_newer(local_ts: Optional[datetime], server_ts: Optional[datetime]) -> bool:
    """Strictly-greater check; a missing local timestamp never wins."""
    if local_ts is None:
        return False
    if server_ts is None:
        return True
    return to_epoch_ms(local_ts) > to_epoch_ms(server_ts)


def records_from_rows(
    portfolios: List[Portfolio], transactions: List[Transaction]
) -> Tuple[List[PortfolioRecord], List[TransactionRecord]]:
    portfolio_records = [
        PortfolioRecord(
            id=p.id,
            name=p.name,
            color=p.color,
            created_at=ensure_utc(p.created_at),
            updated_at=ensure_utc(p.updated_at),
        )
        for p in portfolios
    ]
    transaction_records = [
        TransactionRecord(
            id=t.id,
            portfolio_id=t.portfolio_id,
            stock_symbol=t.stock_symbol,
            type=t.type,
            quantity=t.quantity,
            price=t.price,
            date=ensure_utc(t.date),
            created_at=ensure_utc(t.created_at),
            updated_at=ensure_utc(t.updated_at),
        )
        for t in transactions
    ]
    return portfolio_records, transaction_records


def records_from_snapshot(
    local: LocalSnapshot,
) -> Tuple[List[PortfolioRecord], List[TransactionRecord]]:
    """Flatten a client snapshot into records, keeping reported timestamps.

    A transaction without its own ``updated_at`` never beats a server row;
    if it is written anyway it is stamped with the portfolio's
    ``last_updated``. ``created_at`` comes from the metadata list when the
    client sent one.
    """
    created = {m.id: m.created_at for m in local.metadata if m.created_at is not None}

    portfolio_records = []
    transaction_records = []
    for p in local.portfolios:
        last_updated = ensure_utc(p.last_updated) if p.last_updated else None
        portfolio_records.append(
            PortfolioRecord(
                id=p.id,
                name=p.name.strip(),
                color=p.color,
                created_at=ensure_utc(created[p.id]) if p.id in created else None,
                updated_at=last_updated,
            )
        )
        for stock in p.stocks:
            for t in stock.transactions:
                transaction_records.append(
                    TransactionRecord(
                        id=t.id,
                        portfolio_id=p.id,
                        stock_symbol=stock.symbol,
                        type=t.type,
                        quantity=t.quantity,
                        price=t.price,
                        date=ensure_utc(t.date) if t.date else None,
                        created_at=None,
                        updated_at=ensure_utc(t.updated_at) if t.updated_at else None,
                        inherited_at=last_updated,
                    )
                )
    return portfolio_records, transaction_records


def plan_merge(
    server_portfolios: List[PortfolioRecord],
    server_transactions: List[TransactionRecord],
    local_portfolios: List[PortfolioRecord],
    local_transactions: List[TransactionRecord],
) -> MergePlan:
    """Entity-level last-write-wins over the union of both replicas.

    Portfolios: the local header (name, color) replaces the server one only
    when its ``last_updated`` is strictly newer than the row's ``updated_at``.
    Transactions: the newer side replaces the whole record, never a field
    splice. Entities present on one side only are kept. Transactions whose
    portfolio did not survive are dropped.
    """
    local_wins = 0

    portfolios: Dict[str, PortfolioRecord] = {p.id: p for p in server_portfolios}
    for local in local_portfolios:
        server = portfolios.get(local.id)
        if server is None:
            portfolios[local.id] = local
        elif is_newer(local.updated_at, server.updated_at):
            portfolios[local.id] = replace(
                server,
                name=local.name,
                color=local.color or server.color,
                updated_at=local.updated_at,
            )
            local_wins += 1

    transactions: Dict[str, TransactionRecord] = {t.id: t for t in server_transactions}
    for local in local_transactions:
        server = transactions.get(local.id)
        if server is None:
            transactions[local.id] = local
        elif is_newer(local.updated_at, server.updated_at):
            transactions[local.id] = replace(local, created_at=server.created_at)
            local_wins += 1

    kept = [t for t in transactions.values() if t.portfolio_id in portfolios]
    dropped = [t.id for t in transactions.values() if t.portfolio_id not in portfolios]

    return MergePlan(
        portfolios=list(portfolios.values()),
        transactions=kept,
        local_wins=local_wins,
        orphans_dropped=len(dropped),
        dropped_ids=dropped,
    )


def _portfolio_row(user_id: UUID, record: PortfolioRecord, now: datetime) -> Portfolio:
    updated_at = record.updated_at or now
    return Portfolio(
        id=record.id,
        user_id=user_id,
        name=record.name,
        color=record.color or settings.DEFAULT_PORTFOLIO_COLOR,
        created_at=record.created_at or updated_at,
        updated_at=updated_at,
    )


def _transaction_row(record: TransactionRecord, now: datetime) -> Transaction:
    updated_at = record.updated_at or record.inherited_at or now
    return Transaction(
        id=record.id,
        portfolio_id=record.portfolio_id,
        stock_symbol=record.stock_symbol.upper(),
        type=record.type,
        quantity=record.quantity,
        price=record.price,
        date=record.date or now,
        created_at=record.created_at or updated_at,
        updated_at=updated_at,
    )


class MergeService:
    """Applies a strategy and commits the reconciled replica."""

    async def resolve(
        self,
        db: AsyncSession,
        user_id: UUID,
        strategy: MergeStrategy,
        local: Optional[LocalSnapshot] = None,
    ) -> Snapshot:
        logger.info(
            "Resolving sync conflict",
            extra={"user_id": str(user_id), "strategy": strategy.value},
        )
        if strategy == MergeStrategy.USE_SERVER:
            return await snapshot_service.build(db, user_id)

        if local is None:
            raise SyncValidationError(
                f"local_data with portfolios required for {strategy.value} strategy"
            )

        if strategy == MergeStrategy.USE_LOCAL:
            await self.replace_with_local(db, user_id, local)
        elif strategy == MergeStrategy.MERGE:
            await self.merge(db, user_id, local)
        else:
            raise SyncValidationError("Strategy must be MERGE, USE_LOCAL, or USE_SERVER")

        # Fresh read: this is now the ground truth for every device of the user
        return await snapshot_service.build(db, user_id)

    async def replace_with_local(self, db: AsyncSession, user_id: UUID, local: LocalSnapshot) -> None:
        """Make the client replica the server replica, verbatim."""
        portfolios, transactions = records_from_snapshot(local)
        await self._replace(db, user_id, portfolios, transactions)
        logger.info(
            "Replaced server data with local data",
            extra={
                "user_id": str(user_id),
                "portfolios": len(portfolios),
                "transactions": len(transactions),
            },
        )

    async def merge(self, db: AsyncSession, user_id: UUID, local: LocalSnapshot) -> MergePlan:
        server_rows = await snapshot_service.load(db, user_id)
        server_portfolios, server_transactions = records_from_rows(*server_rows)
        local_portfolios, local_transactions = records_from_snapshot(local)

        plan = plan_merge(server_portfolios, server_transactions, local_portfolios, local_transactions)
        if plan.orphans_dropped:
            logger.warning(
                "Dropped orphan transactions during merge",
                extra={"user_id": str(user_id), "transaction_ids": plan.dropped_ids},
            )

        await self._replace(db, user_id, plan.portfolios, plan.transactions)
        logger.info(
            "Merged local data",
            extra={
                "user_id": str(user_id),
                "portfolios": len(plan.portfolios),
                "transactions": len(plan.transactions),
                "local_wins": plan.local_wins,
            },
        )
        return plan

    async def _check_ids_available(
        self,
        db: AsyncSession,
        user_id: UUID,
        portfolios: List[PortfolioRecord],
        transactions: List[TransactionRecord],
    ) -> None:
        """Reject ids that already belong to another user's data."""
        portfolio_ids = [p.id for p in portfolios]
        if portfolio_ids:
            result = await db.execute(
                select(Portfolio.id).where(
                    Portfolio.id.in_(portfolio_ids),
                    Portfolio.user_id != user_id,
                )
            )
            if result.first() is not None:
                raise NotFoundError("Portfolio not found")

        transaction_ids = [t.id for t in transactions]
        if transaction_ids:
            result = await db.execute(
                select(Transaction.id)
                .join(Portfolio, Portfolio.id == Transaction.portfolio_id)
                .where(
                    Transaction.id.in_(transaction_ids),
                    Portfolio.user_id != user_id,
                )
            )
            if result.first() is not None:
                raise NotFoundError("Transaction not found")

    async def _replace(
        self,
        db: AsyncSession,
        user_id: UUID,
        portfolios: List[PortfolioRecord],
        transactions: List[TransactionRecord],
    ) -> None:
        """Delete everything the user owns and insert the given set, atomically."""
        await self._check_ids_available(db, user_id, portfolios, transactions)

        now = utcnow()
        portfolio_rows = [_portfolio_row(user_id, p, now) for p in portfolios]
        transaction_rows = [_transaction_row(t, now) for t in transactions]

        try:
            owned = await db.execute(select(Portfolio.id).where(Portfolio.user_id == user_id))
            owned_ids = list(owned.scalars().all())
            if owned_ids:
                await db.execute(delete(Transaction).where(Transaction.portfolio_id.in_(owned_ids)))
                await db.execute(delete(Portfolio).where(Portfolio.id.in_(owned_ids)))

            # No ORM relationship between the two, so parents are flushed first
            db.add_all(portfolio_rows)
            await db.flush()
            db.add_all(transaction_rows)
            await db.flush()
            await db.commit()
        except SQLAlchemyError as e:
            logger.error(
                f"Replace failed, rolling back: {type(e).__name__}: {e}",
                extra={"user_id": str(user_id)},
            )
            await db.rollback()
            raise


merge_service = MergeService()
