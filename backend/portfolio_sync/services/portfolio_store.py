"""Entity store: ownership-checked reads and idempotent upserts.

Every write is keyed by a stable, client-generated id. Re-sending an entity
is an update, and re-sending an identical entity changes nothing at all
(``updated_at`` only moves when a field actually changes).
"""

import logging
import uuid
from datetime import datetime
from typing import Dict, List
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_sync.core.config import settings
from portfolio_sync.core.exceptions import NotFoundError
from portfolio_sync.core.timeutils import ensure_utc, utcnow
from portfolio_sync.models.portfolio import Portfolio
from portfolio_sync.models.transaction import Transaction
from portfolio_sync.schemas.portfolio import PortfolioUpdate, PortfolioUpsert
from portfolio_sync.schemas.transaction import TransactionUpsert

logger = logging.getLogger(__name__)


def new_entity_id() -> str:
    """Server-side fallback id, same 128-bit random scheme clients use."""
    return str(uuid.uuid4())


def _same(current, value) -> bool:
    if isinstance(current, datetime) and isinstance(value, datetime):
        return ensure_utc(current) == ensure_utc(value)
    return current == value


def _apply_changes(entity, values: Dict) -> bool:
    """Set attributes that differ; report whether anything changed."""
    changed = False
    for field, value in values.items():
        if not _same(getattr(entity, field), value):
            setattr(entity, field, value)
            changed = True
    if changed:
        entity.updated_at = utcnow()
    return changed


class PortfolioStore:
    """Portfolio and Transaction persistence scoped to one user."""

    # --- Portfolios ---

    async def list_portfolios(self, db: AsyncSession, user_id: UUID) -> List[Portfolio]:
        result = await db.execute(
            select(Portfolio)
            .where(Portfolio.user_id == user_id)
            .order_by(Portfolio.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_owned_portfolio(
        self, db: AsyncSession, user_id: UUID, portfolio_id: str
    ) -> Portfolio:
        result = await db.execute(
            select(Portfolio).where(
                Portfolio.id == portfolio_id,
                Portfolio.user_id == user_id,
            )
        )
        portfolio = result.scalar_one_or_none()
        if not portfolio:
            raise NotFoundError("Portfolio not found")
        return portfolio

    async def upsert_portfolio(
        self, db: AsyncSession, user_id: UUID, data: PortfolioUpsert
    ) -> Portfolio:
        """Insert, or overwrite name/color of the caller's portfolio with that id."""
        values = {
            "name": data.name,
            "color": data.color or settings.DEFAULT_PORTFOLIO_COLOR,
        }
        portfolio = await db.get(Portfolio, data.id) if data.id else None

        if portfolio is not None:
            if portfolio.user_id != user_id:
                # Someone else's id; answer as if it did not exist
                raise NotFoundError("Portfolio not found")
            if _apply_changes(portfolio, values):
                await db.commit()
            return portfolio

        now = utcnow()
        portfolio = Portfolio(
            id=data.id or new_entity_id(),
            user_id=user_id,
            created_at=now,
            updated_at=now,
            **values,
        )
        db.add(portfolio)
        await db.commit()
        logger.info("Portfolio created", extra={"user_id": str(user_id), "portfolio_id": portfolio.id})
        return portfolio

    async def update_portfolio(
        self, db: AsyncSession, user_id: UUID, portfolio_id: str, data: PortfolioUpdate
    ) -> Portfolio:
        portfolio = await self.get_owned_portfolio(db, user_id, portfolio_id)
        if _apply_changes(portfolio, data.model_dump(exclude_unset=True, exclude_none=True)):
            await db.commit()
        return portfolio

    async def delete_portfolio(self, db: AsyncSession, user_id: UUID, portfolio_id: str) -> None:
        """Delete a portfolio and its transactions."""
        portfolio = await self.get_owned_portfolio(db, user_id, portfolio_id)
        # Explicit so the cascade does not depend on the backend enforcing FKs
        await db.execute(delete(Transaction).where(Transaction.portfolio_id == portfolio.id))
        await db.delete(portfolio)
        await db.commit()
        logger.info("Portfolio deleted", extra={"user_id": str(user_id), "portfolio_id": portfolio_id})

    # --- Transactions ---

    async def list_transactions(
        self, db: AsyncSession, user_id: UUID, portfolio_id: str
    ) -> List[Transaction]:
        await self.get_owned_portfolio(db, user_id, portfolio_id)
        result = await db.execute(
            select(Transaction)
            .where(Transaction.portfolio_id == portfolio_id)
            .order_by(Transaction.date.desc(), Transaction.created_at.desc())
        )
        return list(result.scalars().all())

    async def stage_transaction(
        self, db: AsyncSession, portfolio_id: str, data: TransactionUpsert
    ) -> Transaction:
        """Insert or update one transaction in the session without committing.

        The caller must already have checked that ``portfolio_id`` belongs to
        the acting user.
        """
        values = {
            "stock_symbol": data.stock_symbol,
            "type": data.type,
            "quantity": data.quantity,
            "price": data.price,
            "date": ensure_utc(data.date) if data.date else None,
        }
        transaction = await db.get(Transaction, data.id) if data.id else None

        if transaction is not None:
            if transaction.portfolio_id != portfolio_id:
                raise NotFoundError("Transaction not found")
            if values["date"] is None:
                values.pop("date")
            _apply_changes(transaction, values)
            return transaction

        now = utcnow()
        values["date"] = values["date"] or now
        transaction = Transaction(
            id=data.id or new_entity_id(),
            portfolio_id=portfolio_id,
            created_at=now,
            updated_at=now,
            **values,
        )
        db.add(transaction)
        return transaction

    async def upsert_transaction(
        self, db: AsyncSession, user_id: UUID, portfolio_id: str, data: TransactionUpsert
    ) -> Transaction:
        await self.get_owned_portfolio(db, user_id, portfolio_id)
        transaction = await self.stage_transaction(db, portfolio_id, data)
        await db.commit()
        return transaction

    async def delete_transaction(
        self, db: AsyncSession, user_id: UUID, portfolio_id: str, transaction_id: str
    ) -> None:
        await self.get_owned_portfolio(db, user_id, portfolio_id)
        result = await db.execute(
            select(Transaction).where(
                Transaction.id == transaction_id,
                Transaction.portfolio_id == portfolio_id,
            )
        )
        transaction = result.scalar_one_or_none()
        if not transaction:
            raise NotFoundError("Transaction not found")
        await db.delete(transaction)
        await db.commit()

    async def delete_all_transactions(
        self, db: AsyncSession, user_id: UUID, portfolio_id: str
    ) -> int:
        await self.get_owned_portfolio(db, user_id, portfolio_id)
        count_result = await db.execute(
            select(func.count()).select_from(Transaction).where(Transaction.portfolio_id == portfolio_id)
        )
        deleted_count = count_result.scalar_one()
        await db.execute(delete(Transaction).where(Transaction.portfolio_id == portfolio_id))
        await db.commit()
        return deleted_count


portfolio_store = PortfolioStore()
