"""Request value object and fluent builder.

    resp = (
        new("web://node1/items")
        .method(Method.WRITE)
        .header("content-type", "application/json")
        .body(payload)
        .do_with(client)
    )

A builder is single-use and not safe to share between threads.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from nwfetch.constants import Method
from nwfetch.ports.engine import Header

if TYPE_CHECKING:
    from nwfetch.application.client import Client
    from nwfetch.domain.response import Response


@dataclass(frozen=True)
class Request:
    url: str
    method: str = Method.READ
    headers: tuple[Header, ...] = field(default_factory=tuple)
    body: bytes | None = None
    # Seconds; 0 falls back to the client default.
    timeout: float = 0.0


class RequestBuilder:
    def __init__(self, url: str) -> None:
        self._url = url
        self._method = Method.READ
        self._headers: list[Header] = []
        self._body: bytes | None = None
        self._timeout = 0.0
        self._executed = False

    def method(self, method: str) -> "RequestBuilder":
        if method not in Method.ALL:
            raise ValueError(f"unknown method: {method!r}")
        self._method = method
        return self

    def header(self, name: str, value: str) -> "RequestBuilder":
        """Append a header. Repeated names are kept in order."""
        self._headers.append(Header(name=name, value=value))
        return self

    def body(self, body: bytes | None) -> "RequestBuilder":
        self._body = body
        return self

    def timeout(self, seconds: float) -> "RequestBuilder":
        if seconds < 0:
            raise ValueError("timeout must be >= 0")
        self._timeout = float(seconds)
        return self

    def build(self) -> Request:
        return Request(
            url=self._url,
            method=self._method,
            headers=tuple(self._headers),
            body=self._body,
            timeout=self._timeout,
        )

    def do(self) -> "Response":
        """Execute with the default client (see nwfetch.composition.init)."""
        from nwfetch.composition import default

        return self.do_with(default())

    def do_with(self, client: "Client") -> "Response":
        if self._executed:
            raise RuntimeError("request has already been executed")
        self._executed = True
        return client.do(self.build())


def new(url: str) -> RequestBuilder:
    return RequestBuilder(url)
