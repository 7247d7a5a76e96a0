"""Merge service tests that need direct session access."""

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_sync.models.user import User
from portfolio_sync.schemas.sync import LocalSnapshot, MergeStrategy
from portfolio_sync.services.merge_service import merge_service
from portfolio_sync.services.snapshot_service import snapshot_service

BASE = 1700000000000


def _snapshot(name: str, last_updated: int) -> LocalSnapshot:
    return LocalSnapshot.model_validate(
        {
            "portfolios": [
                {
                    "id": "p1",
                    "name": name,
                    "last_updated": last_updated,
                    "stocks": [
                        {
                            "symbol": "NABIL",
                            "transactions": [
                                {"id": "t1", "type": "IPO", "quantity": 10, "price": 100, "date": BASE},
                            ],
                        }
                    ],
                }
            ],
            "metadata": [{"id": "p1", "created_at": BASE - 1000}],
        }
    )


def _fail_on_flush(db_session: AsyncSession, monkeypatch) -> None:
    async def failing_flush(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db_session, "flush", failing_flush)


@pytest.mark.asyncio
async def test_replace_is_atomic_on_storage_error(
    db_session: AsyncSession, regular_user: User, monkeypatch
):
    """Deletes already issued are rolled back with the failed insert."""
    user_id = regular_user.id
    await merge_service.replace_with_local(db_session, user_id, _snapshot("Growth", BASE))
    before = await snapshot_service.build(db_session, user_id)

    _fail_on_flush(db_session, monkeypatch)
    with pytest.raises(OperationalError):
        await merge_service.replace_with_local(db_session, user_id, _snapshot("Replaced", BASE + 1))
    monkeypatch.undo()

    after = await snapshot_service.build(db_session, user_id)
    assert after == before
    assert after.portfolios[0].name == "Growth"


@pytest.mark.asyncio
async def test_merge_is_atomic_on_storage_error(
    db_session: AsyncSession, regular_user: User, monkeypatch
):
    user_id = regular_user.id
    await merge_service.replace_with_local(db_session, user_id, _snapshot("Growth", BASE))
    before = await snapshot_service.build(db_session, user_id)

    _fail_on_flush(db_session, monkeypatch)
    with pytest.raises(OperationalError):
        await merge_service.resolve(
            db_session, user_id, MergeStrategy.MERGE, _snapshot("Newer", BASE + 10000)
        )
    monkeypatch.undo()

    after = await snapshot_service.build(db_session, user_id)
    assert after == before


@pytest.mark.asyncio
async def test_merge_reports_plan(db_session: AsyncSession, regular_user: User):
    user_id = regular_user.id
    await merge_service.replace_with_local(db_session, user_id, _snapshot("Growth", BASE))

    plan = await merge_service.merge(db_session, user_id, _snapshot("Newer", BASE + 10000))
    assert plan.local_wins == 1
    assert plan.orphans_dropped == 0
    assert [p.name for p in plan.portfolios] == ["Newer"]

    counts = await snapshot_service.count(db_session, user_id)
    assert (counts.portfolios, counts.transactions) == (1, 1)


@pytest.mark.asyncio
async def test_replace_with_local_is_verbatim(db_session: AsyncSession, regular_user: User):
    """Stored timestamps are the client's, so a reread echoes them back."""
    user_id = regular_user.id
    await merge_service.replace_with_local(db_session, user_id, _snapshot("Growth", BASE))

    snapshot = await snapshot_service.build(db_session, user_id)
    assert snapshot.portfolios[0].last_updated == BASE
    assert snapshot.metadata[0].created_at == BASE - 1000
    assert snapshot.portfolios[0].stocks[0].transactions[0].date == BASE
