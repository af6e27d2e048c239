"""WEB/1 protocol constants shared across modules."""
from __future__ import annotations

SCHEME = "web://"
DEFAULT_PORT = 6937


class Method:
    """Request methods. READ is the default for new requests."""

    READ = "read"  # idempotent, safe for 0-RTT
    WRITE = "write"  # creates, not idempotent
    UPDATE = "update"  # modifies, not idempotent
    DELETE = "delete"  # idempotent

    ALL = frozenset({READ, WRITE, UPDATE, DELETE})


class Status:
    OK = "ok"
    CREATED = "created"
    ACCEPTED = "accepted"
    NO_CONTENT = "no_content"

    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    RATE_LIMITED = "rate_limited"
    INTERNAL_ERROR = "internal_error"
    UNAVAILABLE = "unavailable"


SUCCESS_STATUSES = frozenset(
    {
        Status.OK,
        Status.CREATED,
        Status.ACCEPTED,
        Status.NO_CONTENT,
    }
)

ERROR_STATUSES = frozenset(
    {
        Status.BAD_REQUEST,
        Status.UNAUTHORIZED,
        Status.FORBIDDEN,
        Status.NOT_FOUND,
        Status.CONFLICT,
        Status.RATE_LIMITED,
        Status.INTERNAL_ERROR,
        Status.UNAVAILABLE,
    }
)
