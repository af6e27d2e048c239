"""Error taxonomy.

Two disjoint kinds:

* `FetchError` - transport failure. The exchange never produced a protocol
  response. ``stage`` says where it failed; the engine error is chained as
  ``__cause__`` and kept on ``cause``.
* `StatusError` - the server was reached and answered with an error status.
  Obtained from `Response.status_error` / `Response.raise_for_status`.
"""
from __future__ import annotations

from enum import Enum

from nwfetch.constants import Status


class NwfetchError(Exception):
    """Base for all errors raised by this package."""


class IdentityError(NwfetchError):
    """Raised when a keypair cannot be generated, derived or used."""


class Stage(str, Enum):
    PARSE = "parse"
    CONNECT = "connect"
    FETCH = "fetch"


class FetchError(NwfetchError):
    def __init__(self, stage: Stage, url: str, cause: BaseException) -> None:
        super().__init__(f"nwfetch: {stage.value} {url}: {cause}")
        self.stage = stage
        self.url = url
        self.cause = cause


class StatusError(NwfetchError):
    def __init__(self, status: str, status_details: str = "", body: bytes = b"") -> None:
        if status_details:
            message = f"nwfetch: server returned {status}: {status_details}"
        else:
            message = f"nwfetch: server returned {status}"
        super().__init__(message)
        self.status = status
        self.status_details = status_details
        self.body = body


def _has_status(err: BaseException | None, status: str) -> bool:
    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        if isinstance(err, StatusError):
            return err.status == status
        seen.add(id(err))
        err = err.__cause__ or err.__context__
    return False


def is_bad_request(err: BaseException | None) -> bool:
    return _has_status(err, Status.BAD_REQUEST)


def is_unauthorized(err: BaseException | None) -> bool:
    return _has_status(err, Status.UNAUTHORIZED)


def is_forbidden(err: BaseException | None) -> bool:
    return _has_status(err, Status.FORBIDDEN)


def is_not_found(err: BaseException | None) -> bool:
    return _has_status(err, Status.NOT_FOUND)


def is_conflict(err: BaseException | None) -> bool:
    return _has_status(err, Status.CONFLICT)


def is_rate_limited(err: BaseException | None) -> bool:
    return _has_status(err, Status.RATE_LIMITED)


def is_internal_error(err: BaseException | None) -> bool:
    return _has_status(err, Status.INTERNAL_ERROR)


def is_unavailable(err: BaseException | None) -> bool:
    return _has_status(err, Status.UNAVAILABLE)
