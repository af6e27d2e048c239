"""Unit tests for Response classification, retry-after parsing and status sentinels."""
from __future__ import annotations

from datetime import timedelta

import pytest

from nwfetch.constants import ERROR_STATUSES, SUCCESS_STATUSES, Status
from nwfetch.domain import errors
from nwfetch.domain.errors import FetchError, Stage, StatusError
from nwfetch.domain.response import Response
from nwfetch.ports.engine import EngineResponse, Header


@pytest.mark.parametrize("status", sorted(SUCCESS_STATUSES))
def test_success_statuses(status):
    resp = Response(status=status, body=b"x")
    assert resp.is_success()
    assert not resp.is_error()
    assert resp.status_error() is None
    resp.raise_for_status()


@pytest.mark.parametrize("status", sorted(ERROR_STATUSES))
def test_error_statuses_produce_status_error(status):
    resp = Response(status=status, status_details="details", body=b"payload")
    assert resp.is_error()
    assert not resp.is_success()
    err = resp.status_error()
    assert isinstance(err, StatusError)
    assert (err.status, err.status_details, err.body) == (status, "details", b"payload")
    with pytest.raises(StatusError):
        resp.raise_for_status()


def test_is_ok_only_for_ok():
    assert Response(status=Status.OK).is_ok()
    assert not Response(status=Status.CREATED).is_ok()


def test_header_lookup_is_case_sensitive_first_match():
    resp = Response(
        status=Status.OK,
        headers=(
            Header("content-type", "text/plain"),
            Header("x-tag", "first"),
            Header("x-tag", "second"),
        ),
    )
    assert resp.header("x-tag") == "first"
    assert resp.header("Content-Type") is None
    assert resp.header("missing") is None


def test_from_engine_and_text():
    raw = EngineResponse(status=Status.OK, headers=[Header("a", "1")], body="héllo".encode())
    resp = Response.from_engine(raw)
    assert resp.headers == (Header("a", "1"),)
    assert resp.text == "héllo"


@pytest.mark.parametrize(
    "headers, expected",
    [
        ((Header("retry-after", "5"),), timedelta(seconds=5)),
        ((Header("retry-after", "0"),), timedelta(0)),
        ((), None),
        ((Header("retry-after", "-1"),), None),
        ((Header("retry-after", "abc"),), None),
        ((Header("retry-after", "1.5"),), None),
        ((Header("Retry-After", "5"),), None),
        ((Header("retry-after", "+5"),), timedelta(seconds=5)),
        ((Header("retry-after", " 5"),), None),
        ((Header("retry-after", "+"),), None),
        ((Header("retry-after", "99999999999999999999"),), None),
    ],
)
def test_retry_after(headers, expected):
    resp = Response(status=Status.RATE_LIMITED, headers=headers)
    assert resp.retry_after() == expected


def test_status_error_messages():
    assert str(StatusError("not_found", "no such path")) == "nwfetch: server returned not_found: no such path"
    assert str(StatusError("forbidden")) == "nwfetch: server returned forbidden"


def test_fetch_error_carries_stage_and_cause():
    cause = OSError("refused")
    err = FetchError(Stage.CONNECT, "web://node1/", cause)
    assert err.stage is Stage.CONNECT
    assert err.cause is cause
    assert str(err) == "nwfetch: connect web://node1/: refused"


SENTINELS = {
    Status.BAD_REQUEST: errors.is_bad_request,
    Status.UNAUTHORIZED: errors.is_unauthorized,
    Status.FORBIDDEN: errors.is_forbidden,
    Status.NOT_FOUND: errors.is_not_found,
    Status.CONFLICT: errors.is_conflict,
    Status.RATE_LIMITED: errors.is_rate_limited,
    Status.INTERNAL_ERROR: errors.is_internal_error,
    Status.UNAVAILABLE: errors.is_unavailable,
}


@pytest.mark.parametrize("status", sorted(SENTINELS))
def test_sentinels_match_only_their_status(status):
    err = StatusError(status)
    for other, predicate in SENTINELS.items():
        assert predicate(err) is (other == status)


def test_sentinels_see_wrapped_status_errors():
    try:
        try:
            Response(status=Status.NOT_FOUND).raise_for_status()
        except StatusError as inner:
            raise RuntimeError("lookup failed") from inner
    except RuntimeError as outer:
        assert errors.is_not_found(outer)
        assert not errors.is_forbidden(outer)


def test_sentinels_reject_non_status_errors():
    assert not errors.is_not_found(ValueError("x"))
    assert not errors.is_not_found(None)
