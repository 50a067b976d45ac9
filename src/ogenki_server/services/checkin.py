"""Check-in service: validation, identity resolution and query policy."""

import re
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import structlog
from pydantic import ValidationError

from ogenki_server.schemas.checkin import CheckIn, CheckInCreate
from ogenki_server.services.errors import InvalidIdentity, InvalidRequest, PersistenceFailure
from ogenki_server.services.store import CheckInStore

logger = structlog.get_logger()

DEFAULT_HISTORY_LIMIT = 30

# user_id is stored in a 32-bit integer column
MAX_USER_ID = 2**31 - 1
USER_ID_PATTERN = re.compile(r"[0-9]+")


def parse_user_id(raw: str) -> int:
    """Parse a user id path segment.

    Args:
        raw: User id as received in the URL

    Returns:
        The integer user id

    Raises:
        InvalidIdentity: If raw is not a non-negative decimal integer that fits the column
    """
    if not isinstance(raw, str) or not USER_ID_PATTERN.fullmatch(raw):
        raise InvalidIdentity(f"invalid user ID: {raw}")

    user_id = int(raw)
    if user_id > MAX_USER_ID:
        raise InvalidIdentity(f"invalid user ID: {raw}")
    return user_id


def parse_check_in_request(body: Mapping[str, Any] | CheckInCreate) -> CheckInCreate:
    """Validate a check-in request body.

    Raises:
        InvalidRequest: If the body is not an object, check_in_type is not
            manual/passive, or telemetry fields are not integers
    """
    if isinstance(body, CheckInCreate):
        return body
    if not isinstance(body, Mapping):
        raise InvalidRequest("Invalid request body", details="body must be a JSON object")

    try:
        return CheckInCreate.model_validate(dict(body))
    except ValidationError as e:
        raise InvalidRequest(
            "Invalid request body",
            details=e.errors(include_url=False, include_context=False),
        ) from e


class CheckInService:
    """Service for recording and querying check-ins.

    All validation happens here, before the store is called. Store errors
    are logged and re-raised unchanged; nothing is retried.
    """

    def __init__(self, store: CheckInStore, max_history_limit: int | None = None) -> None:
        """Initialize check-in service.

        Args:
            store: Check-in store
            max_history_limit: Upper bound for history limits (None = no bound)
        """
        self.store = store
        self.max_history_limit = max_history_limit
        self.logger = logger.bind(service="checkin")

    async def submit(
        self, user_id_raw: str, body: Mapping[str, Any] | CheckInCreate
    ) -> CheckIn:
        """Record a check-in.

        checked_at is the server time at processing; any client timestamp is ignored.

        Args:
            user_id_raw: User id from the URL
            body: Decoded request body

        Returns:
            The stored check-in including id and created_at

        Raises:
            InvalidIdentity: Malformed user id
            InvalidRequest: Malformed body
            PersistenceFailure: Store write failed
        """
        user_id = parse_user_id(user_id_raw)
        request = parse_check_in_request(body)
        checked_at = datetime.now(UTC)

        try:
            check_in_id, created_at = await self.store.insert(user_id, request, checked_at)
        except PersistenceFailure as e:
            self.logger.error(
                "Failed to create check-in",
                user_id=user_id,
                error_type=type(e).__name__,
                cause=repr(e.__cause__),
            )
            raise

        check_in = CheckIn(
            id=check_in_id,
            user_id=user_id,
            check_in_type=request.check_in_type,
            step_count=request.step_count,
            battery_level=request.battery_level,
            checked_at=checked_at,
            created_at=created_at,
        )
        self.logger.info(
            "Check-in created",
            user_id=user_id,
            check_in_id=check_in.id,
            check_in_type=check_in.check_in_type.value,
        )
        return check_in

    async def get_today(self, user_id_raw: str) -> CheckIn | None:
        """Get the most recent check-in made today, or None."""
        user_id = parse_user_id(user_id_raw)

        try:
            return await self.store.latest_today(user_id)
        except PersistenceFailure as e:
            self.logger.error(
                "Failed to fetch today's check-in",
                user_id=user_id,
                error_type=type(e).__name__,
                cause=repr(e.__cause__),
            )
            raise

    async def get_history(
        self, user_id_raw: str, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> list[CheckIn]:
        """Get check-in history, most recent first.

        Args:
            user_id_raw: User id from the URL
            limit: Maximum number of check-ins to return

        Returns:
            Up to limit check-ins ordered by checked_at descending

        Raises:
            InvalidIdentity: Malformed user id
            InvalidRequest: limit is not a non-negative integer
            PersistenceFailure: Store read failed
        """
        user_id = parse_user_id(user_id_raw)

        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
            raise InvalidRequest("Invalid limit", details="limit must be a non-negative integer")

        if self.max_history_limit is not None and limit > self.max_history_limit:
            self.logger.info(
                "Clamping history limit",
                user_id=user_id,
                requested=limit,
                max_limit=self.max_history_limit,
            )
            limit = self.max_history_limit

        try:
            return await self.store.history(user_id, limit)
        except PersistenceFailure as e:
            self.logger.error(
                "Failed to fetch history",
                user_id=user_id,
                error_type=type(e).__name__,
                cause=repr(e.__cause__),
            )
            raise
