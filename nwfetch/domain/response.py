"""Response value object."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta

from nwfetch.constants import ERROR_STATUSES, SUCCESS_STATUSES, Status
from nwfetch.domain.errors import StatusError
from nwfetch.ports.engine import EngineResponse, Header

RETRY_AFTER_HEADER = "retry-after"


@dataclass(frozen=True)
class Response:
    """A WEB/1 response.

    Error statuses are still responses: use `is_error`, `status_error` or
    `raise_for_status` to turn them into a `StatusError`.
    """

    status: str
    status_details: str = ""
    headers: tuple[Header, ...] = field(default_factory=tuple)
    body: bytes = b""

    @classmethod
    def from_engine(cls, raw: EngineResponse) -> "Response":
        return cls(
            status=raw.status,
            status_details=raw.status_details or "",
            headers=tuple(raw.headers),
            body=raw.body or b"",
        )

    def is_ok(self) -> bool:
        return self.status == Status.OK

    def is_success(self) -> bool:
        return self.status in SUCCESS_STATUSES

    def is_error(self) -> bool:
        return self.status in ERROR_STATUSES

    def header(self, name: str) -> str | None:
        """First header value with exactly this name (case-sensitive), or None."""
        for h in self.headers:
            if h.name == name:
                return h.value
        return None

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def status_error(self) -> StatusError | None:
        if self.is_success():
            return None
        return StatusError(self.status, self.status_details, self.body)

    def raise_for_status(self) -> None:
        err = self.status_error()
        if err is not None:
            raise err

    def retry_after(self) -> timedelta | None:
        """Delay requested by a ``retry-after`` header, or None if absent or malformed.

        The value must be a decimal integer of seconds with an optional sign
        and no surrounding whitespace. Negative or out-of-range values yield None.
        """
        value = self.header(RETRY_AFTER_HEADER)
        if value is None:
            return None
        digits = value[1:] if value[:1] in ("+", "-") else value
        if not (digits.isascii() and digits.isdigit()):
            return None
        seconds = int(value)
        if seconds < 0:
            return None
        try:
            return timedelta(seconds=seconds)
        except OverflowError:
            return None
