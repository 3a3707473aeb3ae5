"""Access token resolution: --token flag, GITHUB_TOKEN, then the GitHub CLI hosts file."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from pathlib import Path

import yaml

from gh_autodelete.errors import AppError, ErrorKind
from gh_autodelete.models import GITHUB_HOST, TokenCredential, TokenSource

TOKEN_ENV_VAR = "GITHUB_TOKEN"
GH_CONFIG_DIR_ENV_VAR = "GH_CONFIG_DIR"
NO_TOKEN_MESSAGE = "No GitHub token found. Set GITHUB_TOKEN or use --token flag"


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


class TokenResolver:
    """Resolve a TokenCredential from ordered sources.

    All process state is injected so tests never touch the real environment or
    home directory. Sources are consulted lazily: once one yields a token, the
    lower-priority ones are not read at all.
    """

    def __init__(
        self,
        env: Mapping[str, str] | None = None,
        read_file: Callable[[Path], str] = _read_text,
        home_dir: Callable[[], Path] = Path.home,
        host: str = GITHUB_HOST,
    ):
        self.env = os.environ if env is None else env
        self.read_file = read_file
        self.home_dir = home_dir
        self.host = host
        self.logger = logging.getLogger("gh-autodelete")

    def resolve(self, explicit_token: str | None = None) -> TokenCredential:
        token = (explicit_token or "").strip()
        if token:
            return self._found(token, TokenSource.FLAG)

        token = (self.env.get(TOKEN_ENV_VAR) or "").strip()
        if token:
            return self._found(token, TokenSource.ENV)

        token = self._token_from_hosts_file()
        if token:
            return self._found(token, TokenSource.CONFIG_FILE)

        raise AppError(ErrorKind.NO_TOKEN_FOUND, NO_TOKEN_MESSAGE)

    def hosts_file_path(self) -> Path:
        config_dir = self.env.get(GH_CONFIG_DIR_ENV_VAR)
        if config_dir:
            return Path(config_dir) / "hosts.yml"
        return self.home_dir() / ".config" / "gh" / "hosts.yml"

    def _found(self, token: str, source: TokenSource) -> TokenCredential:
        self.logger.debug(f"Using token from {source.value}")
        return TokenCredential(value=token, source=source)

    def _token_from_hosts_file(self) -> str:
        """Return the token for the configured host, or "" when there is none.

        A missing file or host entry means "not found". A file that exists but
        cannot be read or parsed is an error.
        """
        path = self.hosts_file_path()
        try:
            content = self.read_file(path)
        except FileNotFoundError:
            self.logger.debug(f"No GitHub CLI hosts file at {path}")
            return ""
        except OSError as e:
            raise AppError(ErrorKind.CONFIG_ERROR, f"Cannot read GitHub CLI config {path}: {e}", e) from e

        try:
            hosts = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise AppError(ErrorKind.CONFIG_ERROR, f"Cannot parse GitHub CLI config {path}: {e}", e) from e

        if hosts is None:
            return ""
        if not isinstance(hosts, dict):
            raise AppError(ErrorKind.CONFIG_ERROR, f"Cannot parse GitHub CLI config {path}: expected a mapping")

        host_config = hosts.get(self.host)
        if not isinstance(host_config, dict):
            return ""

        token = host_config.get("oauth_token")
        if isinstance(token, str) and token.strip():
            return token.strip()

        # Newer gh versions nest credentials per user
        users = host_config.get("users")
        if isinstance(users, dict):
            for user_config in users.values():
                if isinstance(user_config, dict):
                    token = user_config.get("oauth_token")
                    if isinstance(token, str) and token.strip():
                        return token.strip()
        return ""
