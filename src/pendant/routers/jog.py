import fastapi
from fastapi import APIRouter
from fastapi import Depends

from pendant import utils
from pendant.schemas.jog import JogSnapshot
from pendant.services.pendant import PendantService

async def jog_state_endpoint(
    pendant: PendantService = Depends(utils.get_pendant_service)
) -> JogSnapshot:
    """
    Report the jog scheduler's current state.

    Args:
        pendant: Running pendant service

    Returns:
        JogSnapshot with session state, repeat count, flow-control state,
        latest gamepad intent and command counters

    Raises:
        HTTPException: 503 if the pendant service is not available
    """
    return pendant.snapshot()

def factory(app: fastapi.FastAPI) -> APIRouter:
    """
    Create the jog API router.

    Args:
        app: FastAPI application instance

    Returns:
        Configured APIRouter with jog endpoints:
        - GET /jog/state - Current jog session and flow-control state
    """
    router = APIRouter(prefix="/jog", tags=["jog"])

    router.add_api_route(
        "/state",
        jog_state_endpoint,
        methods=["GET"],
        response_model=JogSnapshot
    )

    return router
