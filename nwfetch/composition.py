"""Default client: a process-wide singleton for simple call sites.

Lifecycle is explicit. `init` builds the client, `shutdown` closes it, and one
lock guards both. Module helpers (`get`, `post`, `do`) raise RuntimeError
until `init` has run. Long-lived programs should build and pass their own
`Client` instead.

    nwfetch.init()
    try:
        resp = nwfetch.get("web://node1/hello")
    finally:
        nwfetch.shutdown()
"""
from __future__ import annotations

import threading
from typing import Any

from loguru import logger

from nwfetch.application.client import Client, ClientOption
from nwfetch.config.settings import Settings
from nwfetch.core import SERVICE_NAME
from nwfetch.domain.request import Request
from nwfetch.domain.response import Response
from nwfetch.ports.engine import Engine

_default_client: Client | None = None
_default_lock = threading.Lock()


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


def init(
    settings: Settings | None = None,
    *options: ClientOption,
    engine: Engine | None = None,
) -> Client:
    """Create the default client, closing any client it replaces."""
    global _default_client
    client = Client.from_settings(settings or Settings(), *options, engine=engine)
    with _default_lock:
        previous, _default_client = _default_client, client
    if previous is not None:
        previous.close()
        _log("default_client_replaced")
    _log("default_client_initialized", node_id=client.keypair.node_id)
    return client


def default() -> Client:
    with _default_lock:
        client = _default_client
    if client is None:
        raise RuntimeError("nwfetch.init() must be called before using the default client")
    return client


def shutdown() -> None:
    """Close the default client. Helpers raise RuntimeError until init runs again."""
    global _default_client
    with _default_lock:
        client, _default_client = _default_client, None
    if client is not None:
        client.close()
        _log("default_client_shutdown")


def version() -> str:
    return default().engine_version


def get(url: str) -> Response:
    return default().get(url)


def post(url: str, body: bytes | None) -> Response:
    return default().post(url, body)


def do(request: Request) -> Response:
    return default().do(request)
