"""Engine port: contract for the NWEP protocol engine.

Client and pool code depend on this port; the engine that performs framing,
handshake, multiplexing and wire crypto lives in infrastructure (or in a
third-party binding). Keeps the fetch layer free of transport imports.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Protocol, Sequence, runtime_checkable

if TYPE_CHECKING:
    from nwfetch.domain.identity import Keypair


class EngineError(Exception):
    """Base for engine failures (dial, handshake, exchange)."""


class EngineTimeoutError(EngineError):
    """Raised when a dial or exchange exceeds its timeout."""


@dataclass(frozen=True)
class Header:
    name: str
    value: str


@dataclass(frozen=True)
class Notification:
    """Unsolicited server push delivered to the client's callback."""

    event: str
    path: str
    headers: tuple[Header, ...] = ()
    body: bytes = b""


NotifyCallback = Callable[[Notification], None]


@dataclass(frozen=True)
class EngineSettings:
    """Protocol limits used when establishing connections. Zero/empty fields mean engine default."""

    max_streams: int = 0
    max_message_size: int = 0
    compression: str = ""


@dataclass(frozen=True)
class DialOptions:
    settings: EngineSettings | None = None
    on_notify: NotifyCallback | None = None
    timeout: float | None = None


@dataclass(frozen=True)
class EngineResponse:
    """Raw result of one exchange as returned by the engine."""

    status: str
    status_details: str = ""
    headers: tuple[Header, ...] = field(default_factory=tuple)
    body: bytes = b""


@runtime_checkable
class Connection(Protocol):
    """A live, authenticated, multiplexed channel to one server."""

    def fetch(
        self,
        method: str,
        path: str,
        body: bytes | None,
        headers: Sequence[Header],
        *,
        timeout: float | None = None,
    ) -> EngineResponse:
        """Perform one exchange; raise EngineTimeoutError or EngineError on failure."""
        ...

    def close(self) -> None: ...


@runtime_checkable
class Engine(Protocol):
    """Port: open connections. Implementations live in infrastructure."""

    @property
    def version(self) -> str: ...

    def dial(self, url: str, keypair: "Keypair", options: DialOptions) -> Connection:
        """Open the transport and perform the identity handshake; raise EngineError on failure."""
        ...

    def close(self) -> None:
        """Release engine-wide resources. No-op allowed if nothing to close."""
        ...
