import pytest

from nwfetch.config.settings import Settings
from nwfetch.infrastructure.engine.factory import create_engine
from nwfetch.infrastructure.engine.loopback.engine import LoopbackEngine
from tests.conftest import FakeEngine


def build_fake_engine(settings: Settings) -> FakeEngine:
    return FakeEngine()


def test_loopback_backend():
    engine = create_engine(Settings(NWFETCH_ENGINE_BACKEND=" Loopback "))
    try:
        assert isinstance(engine, LoopbackEngine)
    finally:
        engine.close()


def test_import_path_backend():
    engine = create_engine(
        Settings(NWFETCH_ENGINE_BACKEND="tests.unit.test_engine_factory:build_fake_engine")
    )
    assert isinstance(engine, FakeEngine)


@pytest.mark.parametrize(
    "backend",
    [
        "quic",
        "no.such.module:factory",
        "tests.unit.test_engine_factory:missing",
        "tests.unit.test_engine_factory:pytest",
        ":factory",
    ],
)
def test_unsupported_backends(backend):
    with pytest.raises(ValueError):
        create_engine(Settings(NWFETCH_ENGINE_BACKEND=backend))
