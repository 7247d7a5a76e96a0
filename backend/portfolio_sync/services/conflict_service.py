"""Conflict detector.

Deliberately coarse: only the number of portfolios and transactions is
compared, so edits that keep both counts unchanged are not reported.
Clients that need content-level detection diff full snapshots.
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_sync.schemas.sync import ConflictCheckResult
from portfolio_sync.services.snapshot_service import snapshot_service

logger = logging.getLogger(__name__)


class ConflictService:
    async def detect(
        self,
        db: AsyncSession,
        user_id: UUID,
        local_portfolio_count: int,
        local_transaction_count: int,
    ) -> ConflictCheckResult:
        counts = await snapshot_service.count(db, user_id)
        has_conflict = (
            local_portfolio_count != counts.portfolios
            or local_transaction_count != counts.transactions
        )

        # Ship the server replica along so the client can resolve right away
        server_data = await snapshot_service.build(db, user_id) if has_conflict else None

        if has_conflict:
            logger.info(
                "Sync conflict detected",
                extra={
                    "user_id": str(user_id),
                    "local_counts": (local_portfolio_count, local_transaction_count),
                    "server_counts": (counts.portfolios, counts.transactions),
                },
            )

        return ConflictCheckResult(
            has_conflict=has_conflict,
            server_portfolio_count=counts.portfolios,
            server_transaction_count=counts.transactions,
            server_data=server_data,
        )


conflict_service = ConflictService()
