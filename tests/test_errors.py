"""Tests for the error type and exit-code contract."""

from datetime import datetime, timezone

import pytest

from gh_autodelete.errors import (
    EXIT_CODES,
    AppError,
    ErrorKind,
    RateLimitError,
    exit_code_for,
    network_failure,
)


def test_every_kind_has_an_exit_code():
    assert set(EXIT_CODES) == set(ErrorKind)


@pytest.mark.parametrize(
    "kind, code",
    [
        (ErrorKind.INVALID_INPUT, 2),
        (ErrorKind.AUTHENTICATION_FAILED, 3),
        (ErrorKind.NO_TOKEN_FOUND, 3),
        (ErrorKind.INSUFFICIENT_PERMISSIONS, 4),
        (ErrorKind.REPOSITORY_NOT_FOUND, 5),
        (ErrorKind.RATE_LIMITED, 6),
        (ErrorKind.NETWORK_FAILURE, 1),
        (ErrorKind.SERVER_ERROR, 1),
        (ErrorKind.SETTING_NOT_APPLIED, 1),
    ],
)
def test_exit_codes(kind, code):
    assert exit_code_for(kind) == code
    assert AppError(kind, "boom").exit_code == code


def test_default_remedy_and_override():
    assert AppError(ErrorKind.REPOSITORY_NOT_FOUND, "missing").remedy
    assert AppError(ErrorKind.REPOSITORY_NOT_FOUND, "missing", remedy="Try again").remedy == "Try again"


def test_cause_is_chained():
    cause = ConnectionError("refused")
    error = network_failure(cause)
    assert error.cause is cause
    assert error.__cause__ is cause
    assert "refused" in error.message


def test_rate_limit_error_carries_reset_time():
    reset_at = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)
    error = RateLimitError(reset_at)
    assert error.kind is ErrorKind.RATE_LIMITED
    assert error.reset_at == reset_at
    assert "2030-01-01T12:00:00+00:00" in error.message
