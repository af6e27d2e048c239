"""In-process WEB/1 servers for the loopback engine.

Local mode and tests only. Servers register on a `LoopbackNetwork` under their
canonical ``[host]:port`` key and answer exchanges with plain handler
functions::

    network = LoopbackNetwork()
    server = network.serve("node1")

    @server.route(Method.READ, "/greet")
    def greet(request: ServerRequest) -> EngineResponse:
        return EngineResponse(status=Status.OK, body=b"hello")
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from loguru import logger

from nwfetch.constants import DEFAULT_PORT, Method, Status
from nwfetch.core import SERVICE_NAME
from nwfetch.domain.address import WebURL
from nwfetch.domain.identity import verify_signature
from nwfetch.ports.engine import EngineResponse, Header, Notification

if TYPE_CHECKING:
    from nwfetch.infrastructure.engine.loopback.engine import LoopbackConnection

NO_SUCH_PATH = "no such path"


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).debug("")


@dataclass(frozen=True)
class ServerRequest:
    method: str
    path: str
    headers: tuple[Header, ...] = field(default_factory=tuple)
    body: bytes = b""
    peer: bytes = b""

    def header(self, name: str) -> str | None:
        for h in self.headers:
            if h.name == name:
                return h.value
        return None


Handler = Callable[[ServerRequest], EngineResponse]


class LoopbackServer:
    def __init__(self, host: str, port: int = DEFAULT_PORT) -> None:
        self.url = WebURL(host=host, port=port)
        self._routes: dict[tuple[str, str], Handler] = {}
        self._sessions: list["LoopbackConnection"] = []
        self._lock = threading.Lock()
        self.accepted = 0

    @property
    def address(self) -> str:
        return self.url.key

    def add_route(self, method: str, path: str, handler: Handler) -> None:
        if method not in Method.ALL:
            raise ValueError(f"unknown method: {method!r}")
        with self._lock:
            self._routes[(method, path)] = handler

    def route(self, method: str, path: str) -> Callable[[Handler], Handler]:
        def decorator(handler: Handler) -> Handler:
            self.add_route(method, path, handler)
            return handler

        return decorator

    def authenticate(self, public_key: bytes, challenge: bytes, signature: bytes) -> bool:
        return verify_signature(public_key, signature, challenge)

    def handle(self, request: ServerRequest) -> EngineResponse:
        route_path = request.path.split("?", 1)[0]
        with self._lock:
            handler = self._routes.get((request.method, route_path))
        if handler is None:
            return EngineResponse(status=Status.NOT_FOUND, status_details=NO_SUCH_PATH)
        try:
            return handler(request)
        except Exception as exc:
            logger.warning("loopback handler failed for {} {}: {}", request.method, route_path, exc)
            return EngineResponse(status=Status.INTERNAL_ERROR, status_details=str(exc))

    def notify(self, notification: Notification) -> int:
        """Push a notification to every connected client. Returns the number of sessions reached."""
        with self._lock:
            sessions = list(self._sessions)
        for session in sessions:
            session.deliver(notification)
        return len(sessions)

    def reset_connections(self) -> int:
        """Break every live session, as a server restart would. Returns the number reset."""
        with self._lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.mark_broken()
        _log("loopback_sessions_reset", address=self.address, count=len(sessions))
        return len(sessions)

    @property
    def session_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def attach(self, session: "LoopbackConnection") -> None:
        with self._lock:
            self._sessions.append(session)
            self.accepted += 1

    def detach(self, session: "LoopbackConnection") -> None:
        with self._lock:
            if session in self._sessions:
                self._sessions.remove(session)


class LoopbackNetwork:
    """Registry of reachable loopback servers keyed by canonical address."""

    def __init__(self) -> None:
        self._servers: dict[str, LoopbackServer] = {}
        self._lock = threading.Lock()

    def serve(self, host: str, port: int = DEFAULT_PORT) -> LoopbackServer:
        server = LoopbackServer(host, port)
        self.register(server)
        return server

    def register(self, server: LoopbackServer) -> None:
        with self._lock:
            if server.address in self._servers:
                raise ValueError(f"address already in use: {server.address}")
            self._servers[server.address] = server

    def unregister(self, address: str) -> LoopbackServer | None:
        with self._lock:
            server = self._servers.pop(address, None)
        if server is not None:
            server.reset_connections()
        return server

    def lookup(self, address: str) -> LoopbackServer | None:
        with self._lock:
            return self._servers.get(address)


DEFAULT_NETWORK = LoopbackNetwork()
