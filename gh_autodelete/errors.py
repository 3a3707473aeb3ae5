"""Application error type and exit-code mapping."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from gh_autodelete.models import RepositoryRef


class ErrorKind(Enum):
    INVALID_INPUT = "invalid_input"
    NO_TOKEN_FOUND = "no_token_found"
    AUTHENTICATION_FAILED = "authentication_failed"
    INSUFFICIENT_PERMISSIONS = "insufficient_permissions"
    REPOSITORY_NOT_FOUND = "repository_not_found"
    RATE_LIMITED = "rate_limited"
    NETWORK_FAILURE = "network_failure"
    SERVER_ERROR = "server_error"
    SETTING_NOT_APPLIED = "setting_not_applied"
    API_ERROR = "api_error"
    CONFIG_ERROR = "config_error"
    CANCELLED = "cancelled"


EXIT_SUCCESS = 0
EXIT_GENERAL = 1

EXIT_CODES: dict[ErrorKind, int] = {
    ErrorKind.INVALID_INPUT: 2,
    ErrorKind.NO_TOKEN_FOUND: 3,
    ErrorKind.AUTHENTICATION_FAILED: 3,
    ErrorKind.INSUFFICIENT_PERMISSIONS: 4,
    ErrorKind.REPOSITORY_NOT_FOUND: 5,
    ErrorKind.RATE_LIMITED: 6,
    ErrorKind.NETWORK_FAILURE: EXIT_GENERAL,
    ErrorKind.SERVER_ERROR: EXIT_GENERAL,
    ErrorKind.SETTING_NOT_APPLIED: EXIT_GENERAL,
    ErrorKind.API_ERROR: EXIT_GENERAL,
    ErrorKind.CONFIG_ERROR: EXIT_GENERAL,
    ErrorKind.CANCELLED: EXIT_GENERAL,
}

REMEDIES: dict[ErrorKind, str] = {
    ErrorKind.INVALID_INPUT: "Pass the repository as owner/repo or as a github.com URL.",
    ErrorKind.NO_TOKEN_FOUND: "Export GITHUB_TOKEN, pass --token, or run 'gh auth login'.",
    ErrorKind.AUTHENTICATION_FAILED: "Check that the token is valid and has not expired.",
    ErrorKind.INSUFFICIENT_PERMISSIONS: (
        "Use a token with the 'repo' scope (or 'public_repo' for public repositories) "
        "and admin rights on the repository."
    ),
    ErrorKind.REPOSITORY_NOT_FOUND: "Check the spelling and that the token can see the repository.",
    ErrorKind.RATE_LIMITED: "Wait for the rate limit to reset, or raise --rate-limit-wait.",
    ErrorKind.NETWORK_FAILURE: "Check your internet connection and try again.",
    ErrorKind.SERVER_ERROR: "GitHub is having trouble; try again later.",
    ErrorKind.SETTING_NOT_APPLIED: "Re-run the command, then check the repository settings page.",
    ErrorKind.API_ERROR: "Re-run with --verbose for details.",
    ErrorKind.CONFIG_ERROR: "Fix or remove the GitHub CLI hosts file, or pass --token.",
    ErrorKind.CANCELLED: "",
}


class AppError(Exception):
    """Every failure the tool reports: a kind, a message, an optional cause."""

    def __init__(self, kind: ErrorKind, message: str, cause: BaseException | None = None, remedy: str | None = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.cause = cause
        self.remedy = REMEDIES[kind] if remedy is None else remedy
        if cause is not None:
            self.__cause__ = cause

    @property
    def exit_code(self) -> int:
        return exit_code_for(self.kind)

    def __repr__(self) -> str:
        return f"AppError({self.kind.name}, {self.message!r})"


class RateLimitError(AppError):
    """Rate limit exhausted; carries the time the quota resets."""

    def __init__(self, reset_at: datetime):
        super().__init__(
            ErrorKind.RATE_LIMITED,
            f"API rate limit exceeded. Rate limit resets at: {reset_at.isoformat()}",
        )
        self.reset_at = reset_at


def exit_code_for(kind: ErrorKind) -> int:
    return EXIT_CODES[kind]


# -- Constructors --


def invalid_input(message: str) -> AppError:
    return AppError(ErrorKind.INVALID_INPUT, message)


def authentication_failed(message: str = "Authentication failed", cause: BaseException | None = None) -> AppError:
    return AppError(ErrorKind.AUTHENTICATION_FAILED, message, cause)


def insufficient_permissions(message: str = "Insufficient permissions") -> AppError:
    return AppError(ErrorKind.INSUFFICIENT_PERMISSIONS, message)


def repository_not_found(ref: RepositoryRef) -> AppError:
    return AppError(
        ErrorKind.REPOSITORY_NOT_FOUND,
        f"Repository not found: {ref.full_name}. Ensure the repository exists and you have access to it",
    )


def network_failure(cause: BaseException) -> AppError:
    return AppError(ErrorKind.NETWORK_FAILURE, f"Network error: {cause}", cause)


def server_error(status_code: int, body: str = "", cause: BaseException | None = None) -> AppError:
    return AppError(ErrorKind.SERVER_ERROR, f"GitHub API server error: {status_code} {body}".rstrip(), cause)


def api_error(message: str, cause: BaseException | None = None) -> AppError:
    return AppError(ErrorKind.API_ERROR, message, cause)
