"""API routes."""

from litestar import Router

from ogenki_server.api.checkins import checkins_router
from ogenki_server.api.health import health_router

# Versioned API routers get the /api/v1 prefix
_v1_routers = [
    checkins_router,
]

api_v1_router = Router(path="/api/v1", route_handlers=_v1_routers)

# - health_router: /health and /api/v1/health
# - api_v1_router: /api/v1/* - check-in endpoints
api_routers = [health_router, api_v1_router]

__all__ = ["api_routers"]
