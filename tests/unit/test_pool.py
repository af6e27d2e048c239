"""Unit tests for ConnectionPool reuse, eviction, dial races and teardown."""
from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from nwfetch.constants import DEFAULT_PORT
from nwfetch.domain.address import WebURL
from nwfetch.domain.pool import ConnectionPool
from nwfetch.ports.engine import DialOptions, EngineError, EngineSettings
from tests.conftest import FailingCloseConnection, FakeEngine


def test_same_address_reuses_connection(fake_engine, keypair):
    pool = ConnectionPool(fake_engine, keypair)
    first, key1 = pool.get("web://node1/a")
    second, key2 = pool.get(f"web://[node1]:{DEFAULT_PORT}/b")
    assert first is second
    assert key1 == key2 == f"[node1]:{DEFAULT_PORT}"
    assert len(fake_engine.dials) == 1


def test_different_address_gets_distinct_connection(fake_engine, keypair):
    pool = ConnectionPool(fake_engine, keypair)
    a, _ = pool.get(WebURL("node1", DEFAULT_PORT))
    b, _ = pool.get(WebURL("node2", DEFAULT_PORT))
    assert a is not b
    assert len(pool) == 2


def test_dial_uses_pool_identity_and_options(fake_engine, keypair):
    options = DialOptions(settings=EngineSettings(max_streams=4), timeout=1.0)
    pool = ConnectionPool(fake_engine, keypair, options)
    pool.get("web://node1:7000")
    url, used_keypair, used_options = fake_engine.dials[0]
    assert url == "web://[node1]:7000/"
    assert used_keypair is keypair
    assert used_options is options


def test_remove_forces_redial(fake_engine, keypair):
    pool = ConnectionPool(fake_engine, keypair)
    first, key = pool.get("web://node1/")
    pool.remove(key)
    assert first.closed
    assert key not in pool
    second, _ = pool.get("web://node1/")
    assert second is not first
    assert len(fake_engine.dials) == 2


def test_remove_unknown_key_is_noop(fake_engine, keypair):
    pool = ConnectionPool(fake_engine, keypair)
    pool.remove("[nowhere]:1")
    assert len(pool) == 0


def test_dial_failure_stores_nothing(keypair):
    engine = FakeEngine(raise_on_dial=EngineError("refused"))
    pool = ConnectionPool(engine, keypair)
    with pytest.raises(EngineError):
        pool.get("web://node1/")
    assert len(pool) == 0


def test_concurrent_get_stores_exactly_one_connection(keypair):
    workers = 8
    engine = FakeEngine(dial_barrier=threading.Barrier(workers))
    pool = ConnectionPool(engine, keypair)

    with ThreadPoolExecutor(max_workers=workers) as executor:
        results = list(executor.map(lambda _: pool.get("web://fresh/"), range(workers)))

    conns = {id(conn) for conn, _ in results}
    assert len(conns) == 1
    assert len(pool) == 1
    assert len(engine.dials) == workers

    winner = results[0][0]
    losers = [c for c in engine.connections if c is not winner]
    assert len(losers) == workers - 1
    assert all(c.closed for c in losers)
    assert not winner.closed


def test_close_all_closes_everything_and_empties_pool(fake_engine, keypair):
    pool = ConnectionPool(fake_engine, keypair)
    pool.get("web://node1/")
    pool.get("web://node2/")
    pool.close_all()
    assert len(pool) == 0
    assert all(c.closed for c in fake_engine.connections)


def test_close_all_survives_close_failures(keypair):
    class Engine(FakeEngine):
        def dial(self, url, kp, options):
            conn = FailingCloseConnection(url)
            self.connections.append(conn)
            return conn

    engine = Engine()
    pool = ConnectionPool(engine, keypair)
    pool.get("web://node1/")
    pool.get("web://node2/")
    pool.close_all()
    assert all(c.closed for c in engine.connections)
    assert len(pool) == 0
