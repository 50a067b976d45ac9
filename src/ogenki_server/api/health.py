"""Health check endpoint."""

from datetime import UTC, datetime

from litestar import Router, get
from litestar.status_codes import HTTP_200_OK

from ogenki_server import __version__


# /api/v1/health sits with the versioned API; /health is for load balancers
@get(["/health", "/api/v1/health"], status_code=HTTP_200_OK, sync_to_thread=False)
def health_check() -> dict[str, str]:
    """Health check endpoint.

    Returns:
        Status, version and server time
    """
    return {
        "status": "ok",
        "message": "Ogenkidesuka API is running",
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
    }


health_router = Router(path="/", route_handlers=[health_check])
