"""Shared test fixtures for gh-autodelete tests."""

import argparse
import sys
from pathlib import Path
from typing import Any

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from gh_autodelete.client import GitHubClient
from gh_autodelete.models import RepositoryRef, RepositorySnapshot, TokenCredential, TokenInfo, TokenSource

# Constants for use in tests - pytest makes conftest.py fixtures available,
# but these constants need to be imported directly from tests
MOCK_API_URL = "https://api.github.com"
REPO_URL = f"{MOCK_API_URL}/repos/octocat/hello-world"


@pytest.fixture
def credential() -> TokenCredential:
    return TokenCredential(value="test-token", source=TokenSource.FLAG)


@pytest.fixture
def mock_client(credential):
    """GitHubClient pointing at the mocked API."""
    return GitHubClient(credential, base_url=MOCK_API_URL)


@pytest.fixture
def ref() -> RepositoryRef:
    return RepositoryRef(owner="octocat", name="hello-world")


def repo_payload(delete_branch_on_merge: bool = False, default_branch: str = "main") -> dict[str, Any]:
    """Sample repository API response."""
    return {
        "id": 1296269,
        "name": "hello-world",
        "full_name": "octocat/hello-world",
        "owner": {"login": "octocat", "id": 1},
        "private": False,
        "default_branch": default_branch,
        "delete_branch_on_merge": delete_branch_on_merge,
    }


def snapshot(enabled: bool, default_branch: str = "main") -> RepositorySnapshot:
    return RepositorySnapshot(
        owner="octocat", name="hello-world", default_branch=default_branch, delete_branch_on_merge=enabled
    )


class FakeClient:
    """In-memory stand-in for GitHubClient that records every call."""

    def __init__(self, snapshots=(), token_info=None, errors=None):
        self.snapshots = list(snapshots)
        self.token_info = token_info or TokenInfo(username="octocat", scopes=frozenset({"repo"}))
        self.errors = dict(errors or {})
        self.calls: list[str] = []
        self.patches: list = []

    def _maybe_fail(self, name):
        self.calls.append(name)
        if name in self.errors:
            raise self.errors[name]

    def validate_token(self, deadline=None):
        self._maybe_fail("validate_token")
        return self.token_info

    def get_repository(self, ref, deadline=None):
        self._maybe_fail("get_repository")
        return self.snapshots.pop(0)

    def update_repository(self, ref, patch, deadline=None):
        self._maybe_fail("update_repository")
        self.patches.append(patch)

    @property
    def writes(self) -> int:
        return self.calls.count("update_repository")


def make_args(**kwargs) -> argparse.Namespace:
    """Helper to create argparse.Namespace with default values."""
    defaults = {
        "repository": "octocat/hello-world",
        "token": None,
        "check": False,
        "dry_run": False,
        "verbose": False,
        "json_output": False,
        "api_url": None,
        "timeout": 30.0,
        "rate_limit_wait": 0.0,
    }
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)
