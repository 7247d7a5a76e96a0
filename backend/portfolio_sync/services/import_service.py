"""Bulk importer: additive, best-effort per item, all-or-nothing on storage."""

import logging
from typing import Any, List
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_sync.core.config import settings
from portfolio_sync.core.exceptions import NotFoundError, SyncValidationError
from portfolio_sync.schemas.transaction import ImportItemError, ImportResult, TransactionUpsert
from portfolio_sync.services.portfolio_store import portfolio_store

logger = logging.getLogger(__name__)


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ())) or "item"
        parts.append(f"{location}: {err.get('msg')}")
    return "; ".join(parts)


class ImportService:
    async def import_transactions(
        self,
        db: AsyncSession,
        user_id: UUID,
        portfolio_id: str,
        items: List[Any],
    ) -> ImportResult:
        """Upsert every valid item into one portfolio.

        Invalid items are reported in ``errors`` and skipped without affecting
        the others. A storage failure rolls the whole batch back and is
        re-raised.
        """
        if len(items) > settings.IMPORT_MAX_ITEMS:
            raise SyncValidationError(
                f"Too many transactions: {len(items)} (max {settings.IMPORT_MAX_ITEMS})"
            )

        await portfolio_store.get_owned_portfolio(db, user_id, portfolio_id)

        errors: List[ImportItemError] = []
        imported = 0
        try:
            for index, item in enumerate(items):
                if not isinstance(item, dict):
                    errors.append(ImportItemError(index=index, item=item, error="Item must be an object"))
                    continue
                try:
                    data = TransactionUpsert.model_validate(item)
                except ValidationError as e:
                    errors.append(ImportItemError(index=index, item=item, error=_describe(e)))
                    continue

                try:
                    await portfolio_store.stage_transaction(db, portfolio_id, data)
                except NotFoundError as e:
                    errors.append(ImportItemError(index=index, item=item, error=e.detail))
                    continue

                # Flush per item so a repeated id in the same batch becomes an update
                await db.flush()
                imported += 1

            await db.commit()
        except SQLAlchemyError as e:
            logger.error(
                f"Import failed, rolling back: {type(e).__name__}: {e}",
                extra={"user_id": str(user_id), "portfolio_id": portfolio_id},
            )
            await db.rollback()
            raise

        logger.info(
            "Imported transactions",
            extra={
                "user_id": str(user_id),
                "portfolio_id": portfolio_id,
                "imported": imported,
                "rejected": len(errors),
            },
        )
        return ImportResult(imported_count=imported, errors=errors)


import_service = ImportService()
