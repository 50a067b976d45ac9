"""Pydantic schemas for check-ins."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator


class CheckInType(str, Enum):
    """How a check-in was triggered."""

    MANUAL = "manual"  # Person pressed the check-in button
    PASSIVE = "passive"  # Device activity reported automatically


class CheckInCreate(BaseModel):
    """Request body for creating a check-in.

    Optional telemetry is only type-checked: integers are required but no
    range is enforced. None means the field was not supplied.
    """

    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    check_in_type: CheckInType = Field(description="manual or passive")
    step_count: StrictInt | None = Field(default=None, description="Steps reported by device")
    battery_level: StrictInt | None = Field(
        default=None, description="Device battery percentage (conventionally 0-100)"
    )


class CheckIn(BaseModel):
    """A stored check-in."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    check_in_type: CheckInType
    step_count: int | None = None
    battery_level: int | None = None
    checked_at: datetime
    created_at: datetime

    @field_validator("checked_at", "created_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        """Treat naive timestamps from the database as UTC."""
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    def to_response(self) -> dict[str, Any]:
        """Serialize for API responses, omitting telemetry that was not supplied."""
        return self.model_dump(mode="json", exclude_none=True)
