"""High-level fetch client.

A `Client` owns an Ed25519 identity, a connection pool and per-client
defaults. It is configured with option functions applied in order::

    client = Client(with_seed(seed), with_timeout(10.0))
    try:
        resp = client.get("web://node1/hello")
    finally:
        client.close()

All methods are safe for concurrent use. Transport failures raise `FetchError`
tagged with the failing stage; protocol error statuses come back as ordinary
responses.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable

from loguru import logger

from nwfetch.config.settings import Settings
from nwfetch.constants import Method
from nwfetch.core import SERVICE_NAME
from nwfetch.domain.address import AddressError, normalize_url, parse_url
from nwfetch.domain.errors import FetchError, Stage
from nwfetch.domain.identity import Keypair, seed_from_hex
from nwfetch.domain.pool import ConnectionPool
from nwfetch.domain.request import Request
from nwfetch.domain.response import Response
from nwfetch.infrastructure.engine.factory import create_engine
from nwfetch.ports.engine import (
    DialOptions,
    Engine,
    EngineError,
    EngineSettings,
    NotifyCallback,
)


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


@dataclass
class ClientConfig:
    keypair: Keypair | None = None
    seed: bytes | None = None
    timeout: float = 0.0
    settings: EngineSettings | None = None
    on_notify: NotifyCallback | None = None
    pool_size: int = 0


ClientOption = Callable[[ClientConfig], None]


def with_keypair(keypair: Keypair) -> ClientOption:
    """Use an existing identity. The caller keeps ownership; `Client.close` will not clear it."""

    def apply(cfg: ClientConfig) -> None:
        cfg.keypair = keypair
        cfg.seed = None

    return apply


def with_seed(seed: bytes) -> ClientOption:
    """Derive the identity from a 32-byte seed. The client owns and clears the derived keypair."""
    seed = bytes(seed)

    def apply(cfg: ClientConfig) -> None:
        cfg.seed = seed
        cfg.keypair = None

    return apply


def with_timeout(seconds: float) -> ClientOption:
    """Default timeout for every request. 0 means no timeout (engine default)."""
    if seconds < 0:
        raise ValueError("timeout must be >= 0")

    def apply(cfg: ClientConfig) -> None:
        cfg.timeout = float(seconds)

    return apply


def with_settings(settings: EngineSettings) -> ClientOption:
    def apply(cfg: ClientConfig) -> None:
        cfg.settings = settings

    return apply


def with_on_notify(callback: NotifyCallback) -> ClientOption:
    """Callback for unsolicited server notifications. May run on an engine thread; must not block."""

    def apply(cfg: ClientConfig) -> None:
        cfg.on_notify = callback

    return apply


def with_pool_size(size: int) -> ClientOption:
    """Reserved. One connection per server is kept regardless of this value."""

    def apply(cfg: ClientConfig) -> None:
        cfg.pool_size = int(size)

    return apply


class Client:
    def __init__(
        self,
        *options: ClientOption,
        engine: Engine | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Apply options in order and build the identity.

        When no engine is given, one is created from ``settings`` (or the
        environment) and owned by the client. Raises IdentityError if the
        keypair cannot be generated or derived.
        """
        cfg = ClientConfig()
        for option in options:
            option(cfg)

        if cfg.keypair is not None:
            keypair, owns_keypair = cfg.keypair, False
        elif cfg.seed is not None:
            keypair, owns_keypair = Keypair.from_seed(cfg.seed), True
        else:
            keypair, owns_keypair = Keypair.generate(), True

        owns_engine = engine is None
        if engine is None:
            try:
                engine = create_engine(settings or Settings())
            except Exception:
                if owns_keypair:
                    keypair.clear()
                raise

        self._keypair = keypair
        self._owns_keypair = owns_keypair
        self._engine = engine
        self._owns_engine = owns_engine
        self._timeout = cfg.timeout
        self._pool = ConnectionPool(
            engine,
            keypair,
            DialOptions(
                settings=cfg.settings,
                on_notify=cfg.on_notify,
                timeout=cfg.timeout or None,
            ),
        )
        self._close_lock = threading.Lock()
        self._closed = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *options: ClientOption,
        engine: Engine | None = None,
    ) -> "Client":
        """Build a client from Settings. Extra options are applied after the settings-derived ones."""
        base: list[ClientOption] = [
            with_timeout(settings.timeout_seconds),
            with_pool_size(settings.pool_size),
        ]
        seed_hex = settings.identity_seed.get_secret_value()
        if seed_hex:
            base.append(with_seed(seed_from_hex(seed_hex)))
        if settings.max_streams or settings.max_message_size or settings.compression:
            base.append(
                with_settings(
                    EngineSettings(
                        max_streams=settings.max_streams,
                        max_message_size=settings.max_message_size,
                        compression=settings.compression,
                    )
                )
            )
        return cls(*base, *options, engine=engine, settings=settings)

    @property
    def keypair(self) -> Keypair:
        return self._keypair

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def pool(self) -> ConnectionPool:
        return self._pool

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def engine_version(self) -> str:
        return self._engine.version

    def do(self, request: Request) -> Response:
        if self._closed:
            raise RuntimeError("client is closed")

        try:
            target = parse_url(normalize_url(request.url))
        except AddressError as exc:
            raise self._failure(Stage.PARSE, request.url, exc) from exc

        try:
            conn, key = self._pool.get(target)
        except (EngineError, OSError) as exc:
            raise self._failure(Stage.CONNECT, request.url, exc) from exc

        # close() may have swept the pool while we were dialing.
        if self._closed:
            self._pool.remove(key)
            raise RuntimeError("client is closed")

        timeout = request.timeout or self._timeout
        try:
            raw = conn.fetch(
                request.method,
                target.path,
                request.body,
                request.headers,
                timeout=timeout or None,
            )
        except (EngineError, OSError) as exc:
            self._pool.remove(key)
            raise self._failure(Stage.FETCH, request.url, exc) from exc

        return Response.from_engine(raw)

    def get(self, url: str) -> Response:
        return self.do(Request(url=url, method=Method.READ))

    def post(self, url: str, body: bytes | None) -> Response:
        return self.do(Request(url=url, method=Method.WRITE, body=body))

    def close(self) -> None:
        """Close pooled connections and clear an owned identity. The client must not be used afterwards."""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True

        self._pool.close_all()
        if self._owns_keypair:
            self._keypair.clear()
        if self._owns_engine:
            try:
                self._engine.close()
            except Exception as exc:
                logger.warning("engine close failed: {}", exc)
        _log("client_closed", node_id=self._keypair.node_id)

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @staticmethod
    def _failure(stage: Stage, url: str, cause: BaseException) -> FetchError:
        _log("fetch_failed", stage=stage.value, url=url, error=str(cause))
        return FetchError(stage, url, cause)
