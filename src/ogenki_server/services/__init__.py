"""Application services."""

from ogenki_server.services.checkin import CheckInService
from ogenki_server.services.store import (
    CheckInStore,
    InMemoryCheckInStore,
    SQLAlchemyCheckInStore,
)

__all__ = [
    "CheckInService",
    "CheckInStore",
    "InMemoryCheckInStore",
    "SQLAlchemyCheckInStore",
]
