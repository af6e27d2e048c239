"""Front-end constants shared across modules."""
from __future__ import annotations

SERVICE_NAME = "proxy"

DEFAULT_CONTENT_TYPE = "text/plain; charset=utf-8"
MISSING_ADDR_MESSAGE = "missing ?addr= parameter"
