"""Pydantic schemas for check-in requests and responses."""

from ogenki_server.schemas.checkin import CheckIn, CheckInCreate, CheckInType

__all__ = [
    "CheckIn",
    "CheckInCreate",
    "CheckInType",
]
