from typing import Any

from fastapi import APIRouter, Request, Response
from loguru import logger

from proxy.app.constants import SERVICE_NAME

health_router = APIRouter(tags=["Health"])


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


@health_router.get(
    "/health/live",
    summary="Liveness probe",
    description="Returns 200 if the front-end process is running.",
    responses={200: {"description": "Service is alive."}},
)
async def live() -> dict:
    return {"status": "ok"}


@health_router.get(
    "/health/ready",
    summary="Readiness probe",
    description="Returns 200 only when the fetch client is wired and open.",
    responses={
        200: {"description": "Client is ready."},
        503: {"description": "Client missing or closed."},
    },
)
async def ready(request: Request) -> Response:
    client = getattr(request.app.state, "client", None)
    if client is None:
        _log("client_not_initialized")
        return Response(status_code=503, content="Not ready")
    if client.closed:
        _log("client_closed")
        return Response(status_code=503, content="Client closed")
    return Response(status_code=200, content="OK")
