"""Check-in data model."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from ogenki_server.models.base import Base


class CheckInRecord(Base):
    """A single wellness check-in for a tracked person.

    Rows are append-only: they are inserted once and never updated.
    user_id is an opaque identifier; no foreign key is enforced here.
    """

    __tablename__ = "check_ins"
    __table_args__ = (
        CheckConstraint(
            "check_in_type IN ('manual', 'passive')",
            name="ck_check_ins_check_in_type",
        ),
        Index("ix_check_ins_user_checked_at", "user_id", "checked_at"),
        {"comment": "Wellness check-ins (manual or passive)"},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Tracked person the check-in belongs to",
    )
    check_in_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="manual or passive",
    )

    # Device telemetry, usually only sent with passive check-ins
    step_count: Mapped[int | None] = mapped_column(Integer, comment="Steps reported by device")
    battery_level: Mapped[int | None] = mapped_column(
        Integer, comment="Device battery percentage"
    )

    checked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="Server time the check-in was processed",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="Time the row was written",
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<CheckInRecord(id={self.id}, user_id={self.user_id}, "
            f"type={self.check_in_type}, checked_at={self.checked_at})>"
        )
