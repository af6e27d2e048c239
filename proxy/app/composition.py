"""
Composition root: single place where the front end's fetch client is wired.

Builds the nwfetch Client from settings and owns its lifecycle
(connect/close). Used by the lifespan to populate app.state. Explicit wiring
only; the engine backend is selected by nwfetch settings.
"""
from __future__ import annotations

from loguru import logger

from nwfetch.application.client import Client, with_timeout
from nwfetch.config.settings import Settings as ClientSettings
from nwfetch.ports.engine import Engine
from proxy.app.config.settings import Settings


class ProxyDependencies:
    """Holds the wired client and its lifecycle. Built only in the composition root."""

    def __init__(
        self,
        *,
        settings: Settings,
        client_settings: ClientSettings,
        engine: Engine | None = None,
    ) -> None:
        self._settings = settings
        self._client_settings = client_settings
        self._engine = engine
        self._client: Client | None = None

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def client(self) -> Client:
        if self._client is None:
            raise RuntimeError("client is not initialized")
        return self._client

    def connect(self) -> None:
        self._client = Client.from_settings(
            self._client_settings,
            with_timeout(self._settings.upstream_timeout_seconds),
            engine=self._engine,
        )

    def close(self) -> None:
        if self._client is not None:
            try:
                self._client.close()
            except Exception as exc:
                logger.warning("client close failed: {}", exc)
            self._client = None


def create_proxy_dependencies(
    settings: Settings | None = None,
    client_settings: ClientSettings | None = None,
    engine: Engine | None = None,
) -> ProxyDependencies:
    return ProxyDependencies(
        settings=settings or Settings(),
        client_settings=client_settings or ClientSettings(),
        engine=engine,
    )
