"""Decide-and-apply state machine for the delete-branch-on-merge setting."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from enum import Enum
from typing import TYPE_CHECKING

from gh_autodelete.client import GitHubClient
from gh_autodelete.errors import AppError, ErrorKind, insufficient_permissions
from gh_autodelete.models import (
    REPO_SCOPES,
    ConfigOutcome,
    Mode,
    RepositoryRef,
    RepositorySettingsPatch,
    RepositorySnapshot,
    TokenCredential,
    TokenInfo,
)
from gh_autodelete.credentials import TokenResolver

if TYPE_CHECKING:
    from gh_autodelete.deadline import Deadline


class State(Enum):
    INIT = "init"
    TOKEN_RESOLVED = "token_resolved"
    TOKEN_VALIDATED = "token_validated"
    REPO_FETCHED = "repo_fetched"
    ALREADY_ENABLED = "already_enabled"
    NEEDS_UPDATE = "needs_update"
    UPDATED = "updated"
    VERIFIED = "verified"
    DONE = "done"
    FAILED = "failed"


class ConfigOrchestrator:
    """Fetch the repository, decide whether to write, and verify the write.

    Either call prepare() to resolve and validate a token, or pass an already
    authenticated client. The setting is never written when it is already
    enabled, nor in dry-run mode.
    """

    def __init__(
        self,
        client: GitHubClient | None = None,
        resolver: TokenResolver | None = None,
        client_factory: Callable[[TokenCredential], GitHubClient] | None = None,
    ):
        self.client = client
        self.resolver = resolver or TokenResolver()
        self.client_factory = client_factory
        self.credential: TokenCredential | None = None
        self.token_info: TokenInfo | None = None
        self.state = State.TOKEN_VALIDATED if client is not None else State.INIT
        self.logger = logging.getLogger("gh-autodelete")

    def prepare(self, explicit_token: str | None = None, deadline: Deadline | None = None) -> TokenInfo:
        """Resolve a token, build the client and validate the token against the API."""
        with self._failing():
            self.credential = self.resolver.resolve(explicit_token)
            self._transition(State.TOKEN_RESOLVED)

            if self.client is None:
                factory = self.client_factory or GitHubClient
                self.client = factory(self.credential)

            self._event("validate_token", "Validating token")
            info = self.client.validate_token(deadline)
            # Fine-grained tokens report no OAuth scopes; only classic tokens are checked here
            if info.scopes and not (info.scopes & REPO_SCOPES):
                raise insufficient_permissions(
                    f"Token for {info.username} lacks the 'repo' or 'public_repo' scope "
                    f"(granted: {', '.join(sorted(info.scopes))})"
                )
            self.token_info = info
            self._transition(State.TOKEN_VALIDATED)
            self.logger.debug(f"Authenticated as {info.username} (token from {self.credential.source.value})")
            return info

    def check_status(self, ref: RepositoryRef, deadline: Deadline | None = None) -> ConfigOutcome:
        """Report the current setting without changing anything."""
        with self._failing():
            snapshot = self._fetch(ref, deadline)
            self._transition(State.DONE)
            return self._outcome(snapshot, snapshot.delete_branch_on_merge, snapshot.delete_branch_on_merge)

    def configure(self, ref: RepositoryRef, mode: Mode = Mode.APPLY, deadline: Deadline | None = None) -> ConfigOutcome:
        """Enable delete-branch-on-merge unless it is already on or this is a dry run."""
        dry_run = mode is Mode.DRY_RUN
        with self._failing():
            snapshot = self._fetch(ref, deadline)

            if snapshot.delete_branch_on_merge:
                self._transition(State.ALREADY_ENABLED)
                self._transition(State.DONE)
                return self._outcome(snapshot, True, True, dry_run)

            self._transition(State.NEEDS_UPDATE)
            if dry_run:
                self._transition(State.DONE)
                return self._outcome(snapshot, False, False, dry_run)

            self._event("update_settings", "Updating repository settings")
            self.client.update_repository(ref, RepositorySettingsPatch(delete_branch_on_merge=True), deadline)
            self._transition(State.UPDATED)

            self._event("verify_settings", "Verifying settings applied")
            verified = self.client.get_repository(ref, deadline)
            if not verified.delete_branch_on_merge:
                raise AppError(
                    ErrorKind.SETTING_NOT_APPLIED,
                    f"Update to {ref.full_name} succeeded but delete_branch_on_merge is still disabled",
                )
            self._transition(State.VERIFIED)
            self._transition(State.DONE)
            return self._outcome(verified, False, True)

    # -- Helpers --

    def _fetch(self, ref: RepositoryRef, deadline: Deadline | None) -> RepositorySnapshot:
        if self.client is None:
            raise RuntimeError("prepare() must be called before using the orchestrator")
        self._event("fetch_repository", "Fetching repository information")
        snapshot = self.client.get_repository(ref, deadline)
        self._transition(State.REPO_FETCHED)
        return snapshot

    @staticmethod
    def _outcome(snapshot: RepositorySnapshot, already: bool, now: bool, dry_run: bool = False) -> ConfigOutcome:
        return ConfigOutcome(
            already_enabled=already,
            now_enabled=now,
            default_branch=snapshot.default_branch,
            full_name=snapshot.full_name,
            dry_run=dry_run,
        )

    def _transition(self, state: State) -> None:
        self.logger.debug(f"State {self.state.value} -> {state.value}")
        self.state = state

    def _event(self, event: str, message: str) -> None:
        self.logger.debug(message, extra={"event": event})

    @contextmanager
    def _failing(self) -> Iterator[None]:
        """Move to FAILED when an AppError escapes, then re-raise it."""
        try:
            yield
        except AppError:
            self._transition(State.FAILED)
            raise
