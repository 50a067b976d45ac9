"""Check-in persistence.

Stores are thin mappings from typed calls to a backing store. They do no
business validation; the day boundary for "today" lives here so that one
definition of a day is used everywhere.
"""

from datetime import UTC, datetime, tzinfo
from typing import Protocol

import structlog
from pydantic import ValidationError
from sqlalchemy import exc as sa_exc
from sqlalchemy import func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from ogenki_server.models.checkin import CheckInRecord
from ogenki_server.schemas.checkin import CheckIn, CheckInCreate
from ogenki_server.services.errors import (
    PersistenceFailure,
    StoreConstraintViolation,
    StoreUnavailable,
)

logger = structlog.get_logger()


class CheckInStore(Protocol):
    """Capabilities every check-in store provides."""

    async def insert(
        self, user_id: int, request: CheckInCreate, checked_at: datetime
    ) -> tuple[int, datetime]:
        """Write a check-in and return its (id, created_at)."""
        ...

    async def latest_today(self, user_id: int) -> CheckIn | None:
        """Most recent check-in whose checked_at falls on the current day."""
        ...

    async def history(self, user_id: int, limit: int) -> list[CheckIn]:
        """Up to ``limit`` check-ins, most recent first."""
        ...


def classify_database_error(exception: Exception, message: str) -> PersistenceFailure:
    """Map a driver/SQLAlchemy exception onto the persistence error taxonomy.

    Args:
        exception: The exception raised by the database layer
        message: User-facing message for generic failures

    Returns:
        PersistenceFailure (or subclass) to raise from the original exception
    """
    if isinstance(exception, sa_exc.IntegrityError):
        return StoreConstraintViolation("Check-in rejected by database")

    if isinstance(
        exception,
        (sa_exc.OperationalError, sa_exc.InterfaceError, sa_exc.TimeoutError, OSError),
    ):
        return StoreUnavailable("Check-in store unavailable")

    if isinstance(exception, sa_exc.DBAPIError) and exception.connection_invalidated:
        return StoreUnavailable("Check-in store unavailable")

    return PersistenceFailure(message)


class SQLAlchemyCheckInStore:
    """Check-in store backed by the check_ins table.

    Uses the session of the current request. Each insert is committed on its
    own; reads run without an explicit transaction.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize store.

        Args:
            session: Database session
        """
        self.session = session
        self.logger = logger.bind(store="sqlalchemy")

    async def insert(
        self, user_id: int, request: CheckInCreate, checked_at: datetime
    ) -> tuple[int, datetime]:
        """Insert a check-in row.

        Raises:
            StoreUnavailable: Database unreachable
            StoreConstraintViolation: Row rejected by a table constraint
            PersistenceFailure: Any other database error
        """
        stmt = (
            insert(CheckInRecord)
            .values(
                user_id=user_id,
                check_in_type=request.check_in_type,
                step_count=request.step_count,
                battery_level=request.battery_level,
                checked_at=checked_at,
            )
            .returning(CheckInRecord.id, CheckInRecord.created_at)
        )

        try:
            result = await self.session.execute(stmt)
            row = result.one()
            await self.session.commit()
        except (sa_exc.SQLAlchemyError, OSError) as e:
            await self.session.rollback()
            raise classify_database_error(e, "Failed to create check-in") from e

        return row.id, row.created_at

    async def latest_today(self, user_id: int) -> CheckIn | None:
        """Get the latest check-in for today.

        "Today" is date(checked_at) = CURRENT_DATE evaluated by the database
        in its session time zone.
        """
        stmt = (
            select(CheckInRecord)
            .where(CheckInRecord.user_id == user_id)
            .where(func.date(CheckInRecord.checked_at) == func.current_date())
            .order_by(CheckInRecord.checked_at.desc(), CheckInRecord.id.desc())
            .limit(1)
        )

        try:
            result = await self.session.execute(stmt)
            record = result.scalars().first()
        except (sa_exc.SQLAlchemyError, OSError) as e:
            raise classify_database_error(e, "failed to fetch check-in") from e

        if record is None:
            return None

        try:
            return CheckIn.model_validate(record)
        except ValidationError as e:
            raise PersistenceFailure("failed to fetch check-in") from e

    async def history(self, user_id: int, limit: int) -> list[CheckIn]:
        """Get check-ins for a user, most recent first.

        Rows that cannot be decoded are logged and skipped so one bad row
        does not fail the whole history.
        """
        stmt = (
            select(CheckInRecord)
            .where(CheckInRecord.user_id == user_id)
            .order_by(CheckInRecord.checked_at.desc(), CheckInRecord.id.desc())
            .limit(limit)
        )

        try:
            result = await self.session.execute(stmt)
            records = result.scalars().all()
        except (sa_exc.SQLAlchemyError, OSError) as e:
            raise classify_database_error(e, "Failed to fetch history") from e

        check_ins = []
        for record in records:
            try:
                check_ins.append(CheckIn.model_validate(record))
            except ValidationError as e:
                self.logger.warning(
                    "Skipping undecodable check-in row",
                    check_in_id=record.id,
                    user_id=user_id,
                    error=str(e),
                )
        return check_ins


class InMemoryCheckInStore:
    """Check-in store held in process memory.

    Intended for tests and local experiments. "Today" is computed in ``tz``.
    """

    def __init__(self, tz: tzinfo = UTC) -> None:
        """Initialize store.

        Args:
            tz: Time zone that defines the current day
        """
        self.tz = tz
        self.check_ins: list[CheckIn] = []
        self._next_id = 1

    async def insert(
        self, user_id: int, request: CheckInCreate, checked_at: datetime
    ) -> tuple[int, datetime]:
        """Append a check-in."""
        check_in = CheckIn(
            id=self._next_id,
            user_id=user_id,
            check_in_type=request.check_in_type,
            step_count=request.step_count,
            battery_level=request.battery_level,
            checked_at=checked_at,
            created_at=datetime.now(UTC),
        )
        self._next_id += 1
        self.check_ins.append(check_in)
        return check_in.id, check_in.created_at

    async def latest_today(self, user_id: int) -> CheckIn | None:
        """Get the latest check-in for today in ``tz``."""
        today = datetime.now(self.tz).date()
        for check_in in self._newest_first(user_id):
            if check_in.checked_at.astimezone(self.tz).date() == today:
                return check_in
        return None

    async def history(self, user_id: int, limit: int) -> list[CheckIn]:
        """Get check-ins for a user, most recent first."""
        return self._newest_first(user_id)[:limit]

    def _newest_first(self, user_id: int) -> list[CheckIn]:
        return sorted(
            (c for c in self.check_ins if c.user_id == user_id),
            key=lambda c: (c.checked_at, c.id),
            reverse=True,
        )
