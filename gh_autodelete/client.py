"""GitHub REST API client with retry, backoff and rate-limit handling."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

import requests

from gh_autodelete.deadline import Deadline
from gh_autodelete.errors import (
    AppError,
    ErrorKind,
    RateLimitError,
    api_error,
    authentication_failed,
    insufficient_permissions,
    network_failure,
    repository_not_found,
    server_error,
)
from gh_autodelete.models import (
    API_VERSION,
    DEFAULT_API_URL,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_RATE_LIMIT_WAIT,
    DEFAULT_TIMEOUT,
    RATE_LIMIT_FALLBACK_WAIT,
    RETRY_BACKOFF_FACTOR,
    USER_AGENT,
    RepositoryRef,
    RepositorySettingsPatch,
    RepositorySnapshot,
    TokenCredential,
    TokenInfo,
)


class GitHubClient:
    """Thin wrapper around the GitHub REST API for the calls this tool needs.

    Server errors and network failures are retried with exponential backoff.
    Rate limits are never part of that loop: they fail fast, or wait for the
    reset once when the wait fits in `rate_limit_wait` and the call deadline.
    """

    def __init__(
        self,
        credential: TokenCredential,
        base_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_factor: float = RETRY_BACKOFF_FACTOR,
        rate_limit_wait: float = DEFAULT_RATE_LIMIT_WAIT,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {credential.value}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": API_VERSION,
                "User-Agent": USER_AGENT,
            }
        )
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.backoff_factor = backoff_factor
        self.rate_limit_wait = rate_limit_wait
        self.attempts = 0  # HTTP requests sent by the most recent call
        self.logger = logging.getLogger("gh-autodelete")

    # -- Operations --

    def validate_token(self, deadline: Deadline | None = None) -> TokenInfo:
        """Fetch the authenticated user and the scopes granted to the token."""
        resp = self._request("GET", "/user", deadline)
        data = self._json(resp)
        return TokenInfo(username=data.get("login", ""), scopes=self._parse_scopes(resp))

    def get_repository(self, ref: RepositoryRef, deadline: Deadline | None = None) -> RepositorySnapshot:
        resp = self._request("GET", f"/repos/{ref.owner}/{ref.name}", deadline, ref=ref)
        data = self._json(resp)
        try:
            return RepositorySnapshot.from_api(data)
        except (KeyError, TypeError) as e:
            raise api_error(f"Unexpected repository payload for {ref.full_name}", e) from e

    def update_repository(
        self, ref: RepositoryRef, patch: RepositorySettingsPatch, deadline: Deadline | None = None
    ) -> None:
        self._request("PATCH", f"/repos/{ref.owner}/{ref.name}", deadline, ref=ref, json=patch.to_payload())

    # -- Transport --

    def _request(
        self,
        method: str,
        endpoint: str,
        deadline: Deadline | None = None,
        ref: RepositoryRef | None = None,
        **kwargs,
    ) -> requests.Response:
        """Make an HTTP request, retrying transient failures within the call deadline."""
        url = f"{self.base_url}{endpoint}"
        call_deadline = (deadline or Deadline()).child(self.timeout)
        self.attempts = 0
        attempt = 0
        waited_for_reset = False
        last_error: AppError | None = None

        while True:
            call_deadline.check()
            if call_deadline.expired():
                raise AppError(
                    ErrorKind.NETWORK_FAILURE,
                    f"{method} {url} timed out after {self.timeout:g}s",
                    last_error,
                )

            self.attempts += 1
            self.logger.debug(f"{method} {url} (attempt {attempt + 1}/{self.max_attempts})")
            try:
                # Closing the session on cancel drops the pooled connection the request is blocked on
                with call_deadline.on_cancel(self.session.close):
                    resp = self.session.request(method, url, timeout=call_deadline.remaining(), **kwargs)
            except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
                call_deadline.check()
                last_error = network_failure(e)
            else:
                call_deadline.check()
                if self._is_rate_limited(resp):
                    reset_at, wait_time = self._rate_limit_reset(resp)
                    if waited_for_reset or not self._can_wait(wait_time, call_deadline):
                        raise RateLimitError(reset_at)
                    self.logger.warning(f"Rate limited, waiting {wait_time:.1f}s for reset at {reset_at.isoformat()}")
                    call_deadline.sleep(wait_time)
                    waited_for_reset = True
                    continue

                if resp.status_code >= 500:
                    last_error = server_error(resp.status_code, resp.text[:200])
                elif 200 <= resp.status_code < 300:
                    return resp
                else:
                    self.logger.debug(f"API error {resp.status_code}: {resp.text[:500]}")
                    raise self._error_for(resp, ref)

            attempt += 1
            if attempt >= self.max_attempts:
                raise last_error
            wait_time = self._calculate_backoff(attempt - 1)
            self.logger.warning(f"{last_error.message}; retrying in {wait_time:.1f}s")
            call_deadline.sleep(wait_time)

    def _calculate_backoff(self, attempt: int) -> float:
        return self.backoff_factor * (2**attempt)

    def _can_wait(self, wait_time: float, deadline: Deadline) -> bool:
        if wait_time > self.rate_limit_wait:
            return False
        remaining = deadline.remaining()
        return remaining is None or wait_time < remaining

    @staticmethod
    def _is_rate_limited(resp: requests.Response) -> bool:
        if resp.status_code == 429:
            return True
        if resp.status_code != 403:
            return False
        return resp.headers.get("X-RateLimit-Remaining") == "0" or "Retry-After" in resp.headers

    @staticmethod
    def _rate_limit_reset(resp: requests.Response) -> tuple[datetime, float]:
        """Return (reset time, seconds until then) from the rate-limit headers."""
        now = time.time()
        reset_epoch = None
        reset_header = resp.headers.get("X-RateLimit-Reset")
        retry_after = resp.headers.get("Retry-After")
        if reset_header:
            try:
                reset_epoch = int(reset_header.strip())
            except ValueError:
                pass  # Fall through to Retry-After
        if reset_epoch is None and retry_after:
            try:
                reset_epoch = now + int(retry_after.strip())
            except ValueError:
                pass
        if reset_epoch is not None:
            try:
                return datetime.fromtimestamp(reset_epoch, tz=timezone.utc), max(reset_epoch - now, 0.0)
            except (ValueError, OverflowError, OSError):
                pass  # Out of range for the platform clock
        reset_epoch = now + RATE_LIMIT_FALLBACK_WAIT
        return datetime.fromtimestamp(reset_epoch, tz=timezone.utc), RATE_LIMIT_FALLBACK_WAIT

    @staticmethod
    def _error_for(resp: requests.Response, ref: RepositoryRef | None) -> AppError:
        status = resp.status_code
        if status == 401:
            return authentication_failed("Authentication failed: the token was rejected by GitHub")
        if status == 403:
            accepted = resp.headers.get("X-Accepted-OAuth-Scopes")
            if accepted:
                return insufficient_permissions(f"Token is missing a required scope (accepted: {accepted})")
            target = f" on {ref.full_name}" if ref else ""
            return insufficient_permissions(f"Insufficient permissions{target}: admin access is required")
        if status == 404 and ref is not None:
            return repository_not_found(ref)
        return api_error(f"GitHub API error: {status} {resp.text[:200]}".rstrip())

    @staticmethod
    def _json(resp: requests.Response) -> dict:
        try:
            data = resp.json()
        except ValueError as e:
            raise api_error("Failed to decode GitHub API response", e) from e
        if not isinstance(data, dict):
            raise api_error("Unexpected GitHub API response shape")
        return data

    @staticmethod
    def _parse_scopes(resp: requests.Response) -> frozenset[str]:
        header = resp.headers.get("X-OAuth-Scopes", "")
        return frozenset(s.strip() for s in header.split(",") if s.strip())
