"""Data models and constants for gh-autodelete."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "https://api.github.com"
GITHUB_HOST = "github.com"
API_VERSION = "2022-11-28"
USER_AGENT = "gh-autodelete"

# Retry configuration
DEFAULT_MAX_ATTEMPTS = 3
RETRY_BACKOFF_FACTOR = 0.5  # seconds
DEFAULT_TIMEOUT = 30.0  # seconds, per API call including retries
DEFAULT_RATE_LIMIT_WAIT = 0.0  # seconds; 0 fails fast on rate limits
RATE_LIMIT_FALLBACK_WAIT = 3600.0  # seconds, used when no reset header is sent

# Scopes that allow changing repository settings with a classic token
REPO_SCOPES = frozenset({"repo", "public_repo"})


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Mode(Enum):
    APPLY = "apply"
    DRY_RUN = "dry-run"


class TokenSource(Enum):
    FLAG = "flag"
    ENV = "env"
    CONFIG_FILE = "config-file"


# ---------------------------------------------------------------------------
# Data Classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RepositoryRef:
    """Parsed owner/name pair identifying a repository."""

    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def __str__(self) -> str:
        return self.full_name


@dataclass(frozen=True)
class RepositorySnapshot:
    """Repository state as returned by a single fetch."""

    owner: str
    name: str
    default_branch: str
    delete_branch_on_merge: bool

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def from_api(cls, data: dict) -> RepositorySnapshot:
        return cls(
            owner=data["owner"]["login"],
            name=data["name"],
            default_branch=data.get("default_branch") or "",
            delete_branch_on_merge=bool(data.get("delete_branch_on_merge", False)),
        )


@dataclass(frozen=True)
class RepositorySettingsPatch:
    delete_branch_on_merge: bool

    def to_payload(self) -> dict:
        return {"delete_branch_on_merge": self.delete_branch_on_merge}


@dataclass(frozen=True)
class TokenCredential:
    """Access token plus where it came from. The value never appears in repr."""

    value: str = field(repr=False)
    source: TokenSource


@dataclass(frozen=True)
class TokenInfo:
    """Identity and granted OAuth scopes reported for a token."""

    username: str
    scopes: frozenset[str] = frozenset()

    def has_scope(self, scope: str) -> bool:
        return scope in self.scopes


@dataclass(frozen=True)
class ConfigOutcome:
    """Result of a check or configure run."""

    already_enabled: bool
    now_enabled: bool
    default_branch: str
    full_name: str
    dry_run: bool = False

    def to_dict(self) -> dict:
        d = {
            "repository": self.full_name,
            "default_branch": self.default_branch,
            "already_enabled": self.already_enabled,
            "now_enabled": self.now_enabled,
        }
        if self.dry_run:
            d["dry_run"] = True
        return d
