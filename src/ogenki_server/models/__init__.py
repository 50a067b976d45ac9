"""Database models."""

from ogenki_server.models.base import Base
from ogenki_server.models.checkin import CheckInRecord

__all__ = [
    "Base",
    "CheckInRecord",
]
