"""Tests for the SQLAlchemy check-in store."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, insert, select, text
from sqlalchemy.exc import DataError, IntegrityError, OperationalError

from ogenki_server.models.checkin import CheckInRecord
from ogenki_server.schemas.checkin import CheckInCreate, CheckInType
from ogenki_server.services.errors import (
    PersistenceFailure,
    StoreConstraintViolation,
    StoreUnavailable,
)
from ogenki_server.services.store import SQLAlchemyCheckInStore, classify_database_error


def start_of_today() -> datetime:
    return datetime.now(UTC).replace(hour=0, minute=0, second=0, microsecond=0)


def manual() -> CheckInCreate:
    return CheckInCreate(check_in_type="manual")


async def count_rows(session) -> int:
    result = await session.execute(select(func.count()).select_from(CheckInRecord))
    return result.scalar_one()


class TestInsert:
    """Tests for SQLAlchemyCheckInStore.insert."""

    async def test_insert_assigns_id_and_created_at(self, sql_store, async_session):
        """The database assigns increasing ids and a creation time."""
        first_id, first_created = await sql_store.insert(1, manual(), datetime.now(UTC))
        second_id, _ = await sql_store.insert(1, manual(), datetime.now(UTC))

        assert second_id > first_id
        assert isinstance(first_created, datetime)
        assert await count_rows(async_session) == 2

    async def test_constraint_violation(self, sql_store, async_session):
        """A type outside manual/passive is rejected by the table constraint."""
        bogus = CheckInCreate.model_construct(
            check_in_type="bogus", step_count=None, battery_level=None
        )

        with pytest.raises(StoreConstraintViolation) as exc_info:
            await sql_store.insert(1, bogus, datetime.now(UTC))

        assert isinstance(exc_info.value.__cause__, IntegrityError)
        assert await count_rows(async_session) == 0

    async def test_connection_loss(self):
        """Operational errors surface as StoreUnavailable."""
        session = AsyncMock()
        session.execute.side_effect = OperationalError(
            "INSERT", {}, Exception("connection refused")
        )
        store = SQLAlchemyCheckInStore(session)

        with pytest.raises(StoreUnavailable):
            await store.insert(1, manual(), datetime.now(UTC))

        session.rollback.assert_awaited_once()
        session.commit.assert_not_called()


class TestLatestToday:
    """Tests for SQLAlchemyCheckInStore.latest_today."""

    async def test_none_without_check_ins(self, sql_store):
        """No rows means None."""
        assert await sql_store.latest_today(1) is None

    async def test_latest_of_two_today(self, sql_store):
        """The later check-in of the day wins."""
        t1 = start_of_today() + timedelta(seconds=1)
        t2 = start_of_today() + timedelta(seconds=2)
        await sql_store.insert(1, manual(), t2)
        await sql_store.insert(1, CheckInCreate(check_in_type="passive"), t1)

        check_in = await sql_store.latest_today(1)

        assert check_in is not None
        assert check_in.checked_at == t2
        assert check_in.check_in_type == CheckInType.MANUAL

    async def test_ignores_yesterday_and_other_users(self, sql_store):
        """Only today's rows for the requested user count."""
        await sql_store.insert(1, manual(), start_of_today() - timedelta(hours=1))
        await sql_store.insert(2, manual(), start_of_today() + timedelta(seconds=1))

        assert await sql_store.latest_today(1) is None

    async def test_read_failure(self):
        """Read errors are classified like write errors."""
        session = AsyncMock()
        session.execute.side_effect = DataError("SELECT", {}, Exception("bad value"))
        store = SQLAlchemyCheckInStore(session)

        with pytest.raises(PersistenceFailure) as exc_info:
            await store.latest_today(1)

        assert exc_info.value.message == "failed to fetch check-in"


class TestHistory:
    """Tests for SQLAlchemyCheckInStore.history."""

    async def test_empty(self, sql_store):
        """No rows means an empty list."""
        assert await sql_store.history(1, 30) == []

    async def test_order_and_limit(self, sql_store):
        """Rows come back newest first, truncated to limit."""
        base = datetime.now(UTC) - timedelta(days=5)
        for i in range(5):
            await sql_store.insert(1, manual(), base + timedelta(days=i))

        history = await sql_store.history(1, 3)

        assert [c.checked_at for c in history] == [
            base + timedelta(days=4),
            base + timedelta(days=3),
            base + timedelta(days=2),
        ]
        assert await sql_store.history(1, 0) == []

    async def test_ties_broken_by_id(self, sql_store):
        """Equal checked_at values are ordered by id, newest first."""
        same_time = datetime.now(UTC) - timedelta(hours=1)
        first_id, _ = await sql_store.insert(1, manual(), same_time)
        second_id, _ = await sql_store.insert(1, manual(), same_time)

        history = await sql_store.history(1, 10)

        assert [c.id for c in history] == [second_id, first_id]

    async def test_round_trip(self, sql_store):
        """Stored values read back unchanged."""
        checked_at = datetime.now(UTC) - timedelta(minutes=5)
        request = CheckInCreate(check_in_type="passive", step_count=5000, battery_level=80)
        check_in_id, _ = await sql_store.insert(9, request, checked_at)

        [check_in] = await sql_store.history(9, 30)

        assert check_in.id == check_in_id
        assert check_in.user_id == 9
        assert check_in.check_in_type == CheckInType.PASSIVE
        assert check_in.step_count == 5000
        assert check_in.battery_level == 80
        assert check_in.checked_at == checked_at
        assert check_in.created_at.tzinfo is not None

    async def test_undecodable_rows_skipped(self, sql_store, async_session):
        """A corrupt row is skipped instead of failing the whole history."""
        base = datetime.now(UTC) - timedelta(days=1)
        await sql_store.insert(1, manual(), base)
        await sql_store.insert(1, manual(), base + timedelta(hours=2))

        await async_session.execute(text("PRAGMA ignore_check_constraints = ON"))
        await async_session.execute(
            insert(CheckInRecord).values(
                user_id=1, check_in_type="bogus", checked_at=base + timedelta(hours=1)
            )
        )
        await async_session.commit()
        await async_session.execute(text("PRAGMA ignore_check_constraints = OFF"))

        history = await sql_store.history(1, 30)

        assert len(history) == 2
        assert all(c.check_in_type == CheckInType.MANUAL for c in history)


class TestClassifyDatabaseError:
    """Tests for database error classification."""

    def test_integrity_error(self):
        error = IntegrityError("INSERT", {}, Exception("check constraint"))
        assert isinstance(classify_database_error(error, "x"), StoreConstraintViolation)

    def test_connection_errors(self):
        assert isinstance(
            classify_database_error(OperationalError("SELECT", {}, Exception()), "x"),
            StoreUnavailable,
        )
        assert isinstance(
            classify_database_error(ConnectionRefusedError(), "x"), StoreUnavailable
        )

    def test_other_errors(self):
        failure = classify_database_error(DataError("SELECT", {}, Exception()), "Failed to x")

        assert type(failure) is PersistenceFailure
        assert failure.message == "Failed to x"
