"""Connection pool: one multiplexed connection per server.

NWEP multiplexes all streams over a single connection, so the pool never holds
more than one connection per canonical key. The map is the only shared state
and is guarded by a single lock. Dialing happens outside the lock; when two
callers race to dial the same server, the one that stores first wins and the
other closes its own connection.
"""
from __future__ import annotations

import threading
from typing import Any

from loguru import logger

from nwfetch.core import SERVICE_NAME
from nwfetch.domain.address import WebURL, normalize_url, parse_url
from nwfetch.domain.identity import Keypair
from nwfetch.ports.engine import Connection, DialOptions, Engine


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).debug("")


def _close_quietly(conn: Connection, key: str) -> None:
    try:
        conn.close()
    except Exception as exc:
        logger.warning("connection close failed for {}: {}", key, exc)


class ConnectionPool:
    def __init__(self, engine: Engine, keypair: Keypair, options: DialOptions | None = None) -> None:
        self._engine = engine
        self._keypair = keypair
        self._options = options or DialOptions()
        self._lock = threading.Lock()
        self._conns: dict[str, Connection] = {}

    def get(self, target: WebURL | str) -> tuple[Connection, str]:
        """Return the stored connection for the target's server, dialing one if needed.

        Raises whatever the engine raises on dial failure; nothing is stored then.
        """
        if isinstance(target, str):
            target = parse_url(normalize_url(target))
        key = target.key

        with self._lock:
            existing = self._conns.get(key)
        if existing is not None:
            _log("connection_reused", key=key)
            return existing, key

        conn = self._engine.dial(str(target), self._keypair, self._options)

        with self._lock:
            # Another caller may have stored a connection while we were dialing.
            existing = self._conns.get(key)
            if existing is None:
                self._conns[key] = conn
        if existing is not None:
            _log("connection_discarded", key=key)
            _close_quietly(conn, key)
            return existing, key

        _log("connection_dialed", key=key)
        return conn, key

    def remove(self, key: str) -> None:
        """Drop and close the connection stored under key. Unknown keys are ignored."""
        with self._lock:
            conn = self._conns.pop(key, None)
        if conn is not None:
            _log("connection_evicted", key=key)
            _close_quietly(conn, key)

    def close_all(self) -> None:
        with self._lock:
            conns, self._conns = self._conns, {}
        for key, conn in conns.items():
            _close_quietly(conn, key)
        _log("pool_closed", closed=len(conns))

    def __len__(self) -> int:
        with self._lock:
            return len(self._conns)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._conns
