"""Repository identifier parsing.

Accepted forms:
    owner/repo
    https://github.com/owner/repo[.git][/]
    git@github.com:owner/repo[.git]
"""

from __future__ import annotations

import re

from gh_autodelete.errors import invalid_input
from gh_autodelete.models import RepositoryRef

HTTPS_PREFIX = "https://github.com/"
SSH_PREFIX = "git@github.com:"

VALID_NAME = re.compile(r"[A-Za-z0-9._-]+")


def parse_repository(raw: str) -> RepositoryRef:
    """Parse a repository identifier into a RepositoryRef.

    Raises AppError(INVALID_INPUT) on any malformed input.
    """
    text = (raw or "").strip()

    if text.lower().startswith(HTTPS_PREFIX):
        path = _strip_git_suffix(text[len(HTTPS_PREFIX) :].rstrip("/"))
        return _split_url_path(path, "Invalid GitHub URL format")

    if text.startswith(SSH_PREFIX):
        path = _strip_git_suffix(text[len(SSH_PREFIX) :])
        return _split_url_path(path, "Invalid git URL format")

    if not text:
        raise invalid_input("Repository identifier is required")
    parts = text.split("/")
    if len(parts) != 2:
        raise invalid_input("Expected format: owner/repo")
    return _validated(parts[0], parts[1])


def _strip_git_suffix(path: str) -> str:
    if path.endswith(".git"):
        return path[: -len(".git")]
    return path


def _split_url_path(path: str, error_message: str) -> RepositoryRef:
    parts = path.split("/")
    if len(parts) != 2 or not all(parts):
        raise invalid_input(error_message)
    return _validated(parts[0], parts[1])


def _validated(owner: str, name: str) -> RepositoryRef:
    for segment in (owner, name):
        if not VALID_NAME.fullmatch(segment):
            raise invalid_input("Invalid repository name characters")
    return RepositoryRef(owner=owner, name=name)
