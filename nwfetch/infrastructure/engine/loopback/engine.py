"""Loopback engine: Engine implementation that exchanges with in-process servers."""
from __future__ import annotations

import os
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Sequence

from nwfetch.domain.address import AddressError, parse_url
from nwfetch.domain.errors import IdentityError
from nwfetch.domain.identity import Keypair
from nwfetch.infrastructure.engine.loopback.server import (
    DEFAULT_NETWORK,
    LoopbackNetwork,
    LoopbackServer,
    ServerRequest,
)
from nwfetch.ports.engine import (
    DialOptions,
    EngineError,
    EngineResponse,
    EngineTimeoutError,
    Header,
    Notification,
)

LOOPBACK_VERSION = "loopback/1"
DEFAULT_MAX_WORKERS = 16


class LoopbackConnection:
    def __init__(
        self,
        engine: "LoopbackEngine",
        server: LoopbackServer,
        peer: bytes,
        options: DialOptions,
    ) -> None:
        self._engine = engine
        self._server = server
        self._peer = peer
        self._options = options
        settings = options.settings
        self._max_message_size = settings.max_message_size if settings else 0
        self._streams = (
            threading.BoundedSemaphore(settings.max_streams)
            if settings and settings.max_streams
            else None
        )
        self._closed = False
        self._broken = False

    @property
    def closed(self) -> bool:
        return self._closed

    def fetch(
        self,
        method: str,
        path: str,
        body: bytes | None,
        headers: Sequence[Header],
        *,
        timeout: float | None = None,
    ) -> EngineResponse:
        if self._closed:
            raise EngineError("connection closed")
        if self._broken:
            raise EngineError("connection reset by peer")

        payload = body or b""
        if self._max_message_size and len(payload) > self._max_message_size:
            raise EngineError(
                f"message size {len(payload)} exceeds limit {self._max_message_size}"
            )

        request = ServerRequest(
            method=method,
            path=path,
            headers=tuple(headers),
            body=payload,
            peer=self._peer,
        )

        if self._streams is not None and not self._streams.acquire(timeout=timeout):
            raise EngineTimeoutError("timed out waiting for a free stream")
        try:
            if timeout is None:
                return self._server.handle(request)
            future = self._engine.submit(self._server.handle, request)
            try:
                return future.result(timeout=timeout)
            except FutureTimeoutError as exc:
                future.cancel()
                raise EngineTimeoutError(f"exchange timed out after {timeout}s") from exc
        finally:
            if self._streams is not None:
                self._streams.release()

    def deliver(self, notification: Notification) -> None:
        callback = self._options.on_notify
        if callback is None or self._closed:
            return
        self._engine.submit(callback, notification)

    def mark_broken(self) -> None:
        self._broken = True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._server.detach(self)


class LoopbackEngine:
    """Engine for local mode and tests. Servers live on a LoopbackNetwork in the same process."""

    def __init__(
        self,
        network: LoopbackNetwork | None = None,
        *,
        max_workers: int | None = None,
    ) -> None:
        self._network = network or DEFAULT_NETWORK
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or DEFAULT_MAX_WORKERS,
            thread_name_prefix="nwfetch-loopback",
        )

    @property
    def version(self) -> str:
        return LOOPBACK_VERSION

    @property
    def network(self) -> LoopbackNetwork:
        return self._network

    def submit(self, fn, *args):
        return self._executor.submit(fn, *args)

    def dial(self, url: str, keypair: Keypair, options: DialOptions) -> LoopbackConnection:
        try:
            target = parse_url(url)
        except AddressError as exc:
            raise EngineError(f"invalid dial address: {exc}") from exc

        server = self._network.lookup(target.key)
        if server is None:
            raise EngineError(f"connection refused: {target.key}")

        challenge = os.urandom(32)
        try:
            signature = keypair.sign(challenge)
        except IdentityError as exc:
            raise EngineError(f"handshake failed: {exc}") from exc
        if not server.authenticate(keypair.public_key, challenge, signature):
            raise EngineError("handshake failed: peer identity rejected")

        conn = LoopbackConnection(self, server, keypair.public_key, options)
        server.attach(conn)
        return conn

    def close(self) -> None:
        self._executor.shutdown(wait=False)
