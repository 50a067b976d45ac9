"""Check-in API endpoints."""

from typing import Annotated, Any

from litestar import MediaType, Request, Response, Router, get, post
from litestar.datastructures import State
from litestar.di import Provide
from litestar.exceptions import SerializationException
from litestar.params import Parameter
from litestar.status_codes import HTTP_200_OK, HTTP_201_CREATED
from sqlalchemy.ext.asyncio import AsyncSession

from ogenki_server.services.checkin import CheckInService
from ogenki_server.services.errors import CheckInError, InvalidRequest, PersistenceFailure
from ogenki_server.services.store import SQLAlchemyCheckInStore


def provide_checkin_service(session: AsyncSession, state: State) -> CheckInService:
    """Build a check-in service on the request's database session."""
    return CheckInService(
        SQLAlchemyCheckInStore(session),
        max_history_limit=state.get("history_max_limit"),
    )


def checkin_error_handler(request: Request[Any, Any, Any], exc: CheckInError) -> Response[Any]:
    """Render check-in errors as JSON.

    The underlying database error is only included outside production.
    """
    content: dict[str, Any] = {"error": exc.message}

    if isinstance(exc, PersistenceFailure):
        if request.app.state.get("expose_error_details", False) and exc.__cause__ is not None:
            content["details"] = str(exc.__cause__)
    elif exc.details is not None:
        content["details"] = exc.details

    return Response(content=content, status_code=exc.status_code, media_type=MediaType.JSON)


async def read_json_body(request: Request[Any, Any, Any]) -> Any:
    """Decode the request body, leaving shape checks to the service.

    Raises:
        InvalidRequest: If the body is not valid JSON
    """
    try:
        return await request.json()
    except SerializationException as e:
        raise InvalidRequest("Invalid request body", details=str(e)) from e


@post("/checkins/{user_id:str}", status_code=HTTP_201_CREATED)
async def create_check_in(
    user_id: str,
    request: Request[Any, Any, Any],
    checkin_service: CheckInService,
) -> dict[str, Any]:
    """Create a check-in for a user.

    Body:
        check_in_type: "manual" or "passive"
        step_count: Optional integer
        battery_level: Optional integer

    Example:
        POST /api/v1/checkins/42 {"check_in_type": "passive", "step_count": 5000}
    """
    body = await read_json_body(request)
    check_in = await checkin_service.submit(user_id, body)

    return {
        "message": "Check-in created successfully",
        "data": check_in.to_response(),
    }


@get("/checkins/{user_id:str}/today", status_code=HTTP_200_OK)
async def get_today_check_in(
    user_id: str,
    checkin_service: CheckInService,
) -> dict[str, Any]:
    """Check whether a user has checked in today.

    Returns the most recent check-in of the current day. "data" is null
    when there is none yet; that is not an error.
    """
    check_in = await checkin_service.get_today(user_id)

    if check_in is None:
        return {"message": "No check-in today", "data": None}

    return {"message": "check-in found", "data": check_in.to_response()}


@get("/checkins/{user_id:str}/history", status_code=HTTP_200_OK)
async def get_check_in_history(
    user_id: str,
    checkin_service: CheckInService,
    state: State,
    limit: Annotated[
        int | None,
        Parameter(query="limit", ge=0, description="Maximum number of check-ins (default 30)"),
    ] = None,
) -> dict[str, Any]:
    """Get check-in history for a user, most recent first.

    Example:
        GET /api/v1/checkins/42/history?limit=7
    """
    if limit is None:
        limit = state.get("history_default_limit", 30)

    history = await checkin_service.get_history(user_id, limit)

    return {
        "message": "History retrieved successfully",
        "data": [check_in.to_response() for check_in in history],
        "count": len(history),
    }


checkins_router = Router(
    path="/",
    route_handlers=[create_check_in, get_today_check_in, get_check_in_history],
    dependencies={"checkin_service": Provide(provide_checkin_service, sync_to_thread=False)},
    exception_handlers={CheckInError: checkin_error_handler},
    tags=["Check-ins"],
)
