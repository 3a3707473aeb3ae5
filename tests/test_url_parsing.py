"""Unit tests for repository identifier parsing."""

import pytest

from gh_autodelete.errors import AppError, ErrorKind
from gh_autodelete.models import RepositoryRef
from gh_autodelete.parser import parse_repository


def assert_invalid(raw: str, message: str) -> None:
    with pytest.raises(AppError) as exc_info:
        parse_repository(raw)
    assert exc_info.value.kind is ErrorKind.INVALID_INPUT
    assert exc_info.value.message == message
    assert exc_info.value.exit_code == 2


class TestShorthand:
    """Tests for the owner/repo form."""

    def test_simple(self):
        assert parse_repository("octocat/hello-world") == RepositoryRef("octocat", "hello-world")

    def test_whitespace_trimmed(self):
        assert parse_repository("  octocat/hello-world\n") == parse_repository("octocat/hello-world")

    @pytest.mark.parametrize("raw", ["a/b", "my_org/my.repo", "Org-1/repo_2.js", "x.y/z-z"])
    def test_allowed_charset_returned_unchanged(self, raw):
        ref = parse_repository(raw)
        assert f"{ref.owner}/{ref.name}" == raw
        assert parse_repository(f"\t{raw}  ") == ref

    def test_single_segment(self):
        assert_invalid("hello-world", "Expected format: owner/repo")

    def test_too_many_segments(self):
        assert_invalid("org/team/repo", "Expected format: owner/repo")

    def test_leading_slash_counts_as_segment(self):
        assert_invalid("/octocat/hello-world", "Expected format: owner/repo")

    def test_empty(self):
        assert_invalid("", "Repository identifier is required")

    def test_whitespace_only(self):
        assert_invalid("   ", "Repository identifier is required")

    def test_embedded_space(self):
        assert_invalid("octo cat/hello-world", "Invalid repository name characters")

    def test_empty_name(self):
        assert_invalid("octocat/", "Invalid repository name characters")

    @pytest.mark.parametrize("raw", ["octocat/hello$world", "octo@cat/repo", "octocat/repo!"])
    def test_invalid_characters(self, raw):
        assert_invalid(raw, "Invalid repository name characters")

    def test_trailing_newline_inside_segment_rejected(self):
        assert_invalid("octo\n/hello-world", "Invalid repository name characters")


class TestHttpsUrl:
    """Tests for https://github.com/ URLs."""

    def test_https_url(self):
        assert parse_repository("https://github.com/octocat/hello-world") == RepositoryRef("octocat", "hello-world")

    def test_https_url_with_git_suffix(self):
        assert parse_repository("https://github.com/octocat/hello-world.git") == RepositoryRef(
            "octocat", "hello-world"
        )

    def test_https_url_with_trailing_slash(self):
        assert parse_repository("https://github.com/octocat/hello-world/") == RepositoryRef("octocat", "hello-world")

    def test_scheme_and_host_case_insensitive(self):
        assert parse_repository("HTTPS://GitHub.com/octocat/hello-world") == RepositoryRef("octocat", "hello-world")

    def test_url_and_shorthand_equivalent(self):
        assert parse_repository("https://github.com/octocat/hello-world.git") == parse_repository(
            "octocat/hello-world"
        )

    def test_missing_repo(self):
        assert_invalid("https://github.com/octocat", "Invalid GitHub URL format")

    def test_extra_path(self):
        assert_invalid("https://github.com/octocat/hello-world/tree/main", "Invalid GitHub URL format")

    def test_empty_segment(self):
        assert_invalid("https://github.com//hello-world", "Invalid GitHub URL format")

    def test_other_host_rejected(self):
        assert_invalid("https://gitlab.com/octocat/hello-world", "Expected format: owner/repo")

    def test_http_rejected(self):
        assert_invalid("http://github.com/octocat/hello-world", "Expected format: owner/repo")

    def test_invalid_characters_in_url(self):
        assert_invalid("https://github.com/octo cat/hello-world", "Invalid repository name characters")


class TestSshUrl:
    """Tests for git@github.com: URLs."""

    def test_ssh_url(self):
        assert parse_repository("git@github.com:octocat/hello-world.git") == RepositoryRef("octocat", "hello-world")

    def test_ssh_url_without_suffix(self):
        assert parse_repository("git@github.com:octocat/hello-world") == RepositoryRef("octocat", "hello-world")

    def test_ssh_url_missing_repo(self):
        assert_invalid("git@github.com:octocat", "Invalid git URL format")

    def test_ssh_url_too_many_segments(self):
        assert_invalid("git@github.com:org/team/repo.git", "Invalid git URL format")

    def test_other_ssh_host_rejected(self):
        with pytest.raises(AppError) as exc_info:
            parse_repository("git@gitlab.com:octocat/hello-world.git")
        assert exc_info.value.kind is ErrorKind.INVALID_INPUT


def test_ref_is_immutable():
    ref = parse_repository("octocat/hello-world")
    with pytest.raises(AttributeError):
        ref.owner = "someone-else"
