from __future__ import annotations

import html
from typing import Any
from urllib.parse import urlencode

from fastapi import APIRouter, Request, Response
from loguru import logger
from starlette.concurrency import run_in_threadpool

from nwfetch.domain.errors import FetchError
from proxy.app.constants import DEFAULT_CONTENT_TYPE, MISSING_ADDR_MESSAGE, SERVICE_NAME


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


fetch_router = APIRouter(tags=["Proxy"])

_FRAME_PAGE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>HTTP to NWEP Proxy Server</title>
<style>*{{margin:0;padding:0}}iframe{{width:100%;height:100vh;border:none}}</style>
</head>
<body><iframe src="{src}"></iframe></body>
</html>"""


def _text(status_code: int, content: str) -> Response:
    return Response(status_code=status_code, content=content, media_type=DEFAULT_CONTENT_TYPE)


@fetch_router.get(
    "/raw",
    summary="Fetch a WEB/1 resource",
    description="Performs a read request to the WEB/1 address in `addr` and relays the upstream body and content-type.",
    responses={
        200: {"description": "Upstream body relayed."},
        400: {"description": "Missing addr query parameter."},
        502: {"description": "Upstream unreachable or answered with an error status."},
        503: {"description": "Fetch client not available."},
    },
)
async def raw(request: Request, addr: str | None = None) -> Response:
    if not addr:
        return _text(400, MISSING_ADDR_MESSAGE)

    client = getattr(request.app.state, "client", None)
    if client is None:
        return _text(503, "Client not available")

    try:
        upstream = await run_in_threadpool(client.get, addr)
    except FetchError as exc:
        _log("upstream_unreachable", addr=addr, stage=exc.stage.value, error=str(exc.cause))
        return _text(502, f"Unable to reach {addr}")

    if upstream.status_error() is not None:
        _log("upstream_error", addr=addr, status=upstream.status)
        return _text(502, f"upstream error: {upstream.status}: {upstream.status_details}")

    content_type = upstream.header("content-type") or DEFAULT_CONTENT_TYPE
    return Response(status_code=200, content=upstream.body, media_type=content_type)


@fetch_router.get(
    "/",
    summary="Browse a WEB/1 resource",
    description="Returns an HTML page that frames /raw for the given `addr`.",
    responses={
        200: {"description": "HTML page framing the upstream resource."},
        400: {"description": "Missing addr query parameter."},
    },
)
async def frame(addr: str | None = None) -> Response:
    if not addr:
        return _text(400, MISSING_ADDR_MESSAGE)
    src = html.escape("/raw?" + urlencode({"addr": addr}))
    return Response(
        status_code=200,
        content=_FRAME_PAGE.format(src=src),
        media_type="text/html; charset=utf-8",
    )
