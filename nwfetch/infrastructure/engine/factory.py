"""Engine factory: selects implementation from config."""
from __future__ import annotations

import importlib
from typing import Callable

from nwfetch.config.settings import Settings
from nwfetch.infrastructure.engine.loopback.engine import LoopbackEngine
from nwfetch.ports.engine import Engine

EngineFactory = Callable[[Settings], Engine]


def _load_factory(spec: str) -> EngineFactory:
    """Resolve ``package.module:attribute`` to an engine factory callable."""
    module_name, _, attr = spec.partition(":")
    if not module_name or not attr:
        raise ValueError(f"Engine backend must look like 'module:attribute', got {spec!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ValueError(f"Cannot import engine module {module_name!r}: {exc}") from exc
    try:
        factory = getattr(module, attr)
    except AttributeError as exc:
        raise ValueError(f"Engine module {module_name!r} has no attribute {attr!r}") from exc
    if not callable(factory):
        raise ValueError(f"Engine factory {spec!r} is not callable")
    return factory


def create_engine(settings: Settings) -> Engine:
    backend = settings.engine_backend.strip()

    if backend.lower() == "loopback":
        return LoopbackEngine(max_workers=settings.max_streams or None)

    if ":" in backend:
        return _load_factory(backend)(settings)

    raise ValueError(f"Unsupported engine backend: {backend}")
