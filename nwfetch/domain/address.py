"""WEB/1 address handling.

`normalize_url` turns user input into the canonical ``web://[host]:port/path``
form. Hosts may contain ``:`` themselves, which is why the canonical form
always brackets them. Supported input forms::

    web://[addr]:port/path  -> unchanged
    web://addr:port/path    -> web://[addr]:port/path
    web://[addr]/path       -> web://[addr]:6937/path
    web://addr/path         -> web://[addr]:6937/path
    web://addr              -> web://[addr]:6937/

`parse_url` is the strict parser applied after normalization; it is the only
place an address is rejected.
"""
from __future__ import annotations

from dataclasses import dataclass

from nwfetch.constants import DEFAULT_PORT, SCHEME


class AddressError(ValueError):
    """Raised when an address cannot be parsed."""


@dataclass(frozen=True)
class WebURL:
    host: str
    port: int
    path: str = "/"

    @property
    def key(self) -> str:
        """Canonical server key used for connection pooling."""
        return f"[{self.host}]:{self.port}"

    def __str__(self) -> str:
        return f"{SCHEME}{self.key}{self.path}"


def normalize_url(raw: str) -> str:
    rest = raw[len(SCHEME):] if raw.startswith(SCHEME) else raw
    if not rest:
        return raw

    if rest[0] == "[":
        end = rest.find("]")
        if end == -1:
            # Malformed; leave it for parse_url to report.
            return raw
        addr = rest[1:end]
        after = rest[end + 1:]

        if not after:
            host, path = f"[{addr}]:{DEFAULT_PORT}", "/"
        elif after[0] == ":":
            port_part, sep, tail = after.partition("/")
            host = f"[{addr}]{port_part}"
            path = sep + tail if sep else "/"
        elif after[0] == "/":
            host, path = f"[{addr}]:{DEFAULT_PORT}", after
        else:
            return raw
    else:
        host_part, sep, tail = rest.partition("/")
        path = sep + tail if sep else "/"
        if ":" in host_part:
            addr, _, port_part = host_part.partition(":")
            host = f"[{addr}]:{port_part}"
        else:
            host = f"[{host_part}]:{DEFAULT_PORT}"

    return f"{SCHEME}{host}{path}"


def parse_url(url: str) -> WebURL:
    """Parse a canonical address. Raises AddressError on any deviation from ``web://[host]:port/path``."""
    if not url.startswith(SCHEME):
        raise AddressError(f"address must start with {SCHEME}: {url!r}")
    rest = url[len(SCHEME):]

    if not rest.startswith("["):
        raise AddressError(f"host must be bracketed: {url!r}")
    end = rest.find("]")
    if end == -1:
        raise AddressError(f"unterminated '[' in address: {url!r}")
    host = rest[1:end]
    if not host:
        raise AddressError(f"empty host: {url!r}")

    after = rest[end + 1:]
    if not after.startswith(":"):
        raise AddressError(f"missing port: {url!r}")
    port_text, sep, tail = after[1:].partition("/")
    if not sep:
        raise AddressError(f"missing path: {url!r}")
    if not (port_text.isascii() and port_text.isdigit()):
        raise AddressError(f"invalid port {port_text!r}: {url!r}")
    port = int(port_text)
    if not 0 < port < 65536:
        raise AddressError(f"port out of range {port}: {url!r}")

    return WebURL(host=host, port=port, path=sep + tail)
