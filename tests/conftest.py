from __future__ import annotations

import threading
from typing import Any, Sequence

import pytest
from fastapi import FastAPI

from nwfetch.application.client import Client
from nwfetch.constants import Status
from nwfetch.domain.identity import Keypair
from nwfetch.infrastructure.engine.loopback.engine import LoopbackEngine
from nwfetch.infrastructure.engine.loopback.server import LoopbackNetwork
from nwfetch.ports.engine import DialOptions, EngineError, EngineResponse, Header
from proxy.app.routers.fetch import fetch_router
from proxy.app.routers.health import health_router

SEED = bytes(range(32))


class FakeConnection:
    """Implements the Connection port; records every exchange."""

    def __init__(self, url: str, *, response: EngineResponse | None = None) -> None:
        self.url = url
        self.response = response or EngineResponse(status=Status.OK, body=b"ok")
        self.raise_on_fetch: Exception | None = None
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def fetch(
        self,
        method: str,
        path: str,
        body: bytes | None,
        headers: Sequence[Header],
        *,
        timeout: float | None = None,
    ) -> EngineResponse:
        self.calls.append(
            {
                "method": method,
                "path": path,
                "body": body,
                "headers": list(headers),
                "timeout": timeout,
            }
        )
        if self.raise_on_fetch is not None:
            raise self.raise_on_fetch
        return self.response

    def close(self) -> None:
        self.closed = True


class FakeEngine:
    """Implements the Engine port. Each dial returns a fresh FakeConnection."""

    def __init__(
        self,
        *,
        response: EngineResponse | None = None,
        raise_on_dial: Exception | None = None,
        dial_barrier: threading.Barrier | None = None,
    ) -> None:
        self.response = response
        self.raise_on_dial = raise_on_dial
        self.dial_barrier = dial_barrier
        self.dials: list[tuple[str, Keypair, DialOptions]] = []
        self.connections: list[FakeConnection] = []
        self.closed = False
        self._lock = threading.Lock()

    @property
    def version(self) -> str:
        return "fake/1"

    def dial(self, url: str, keypair: Keypair, options: DialOptions) -> FakeConnection:
        with self._lock:
            self.dials.append((url, keypair, options))
        if self.raise_on_dial is not None:
            raise self.raise_on_dial
        if self.dial_barrier is not None:
            self.dial_barrier.wait(timeout=5)
        conn = FakeConnection(url, response=self.response)
        with self._lock:
            self.connections.append(conn)
        return conn

    def close(self) -> None:
        self.closed = True


class FailingCloseConnection(FakeConnection):
    def close(self) -> None:
        self.closed = True
        raise EngineError("close failed")


@pytest.fixture()
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture()
def keypair() -> Keypair:
    return Keypair.from_seed(SEED)


@pytest.fixture()
def client(fake_engine: FakeEngine):
    c = Client(engine=fake_engine)
    yield c
    c.close()


@pytest.fixture()
def network() -> LoopbackNetwork:
    return LoopbackNetwork()


@pytest.fixture()
def loopback_engine(network: LoopbackNetwork):
    engine = LoopbackEngine(network)
    yield engine
    engine.close()


@pytest.fixture()
def test_app() -> FastAPI:
    app = FastAPI()
    app.state.client = None
    app.include_router(health_router)
    app.include_router(fetch_router)
    return app
