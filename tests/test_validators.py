"""Tests for repository name validation."""

import pytest

from mirror_sync.validators import format_validation_error, validate_repo_name


def test_format_validation_error():
    assert format_validation_error("Repository name", "cannot be empty") == (
        "Repository name cannot be empty"
    )


@pytest.mark.parametrize(
    "name",
    ["api", "web-frontend", "my.repo", "repo_1", ".github", "UPPER"],
)
def test_valid_names(name):
    assert validate_repo_name(name) == (True, "")


@pytest.mark.parametrize(
    "name, reason",
    [
        ("", "cannot be empty"),
        ("   ", "cannot be empty"),
        (".", "cannot be '.'"),
        ("..", "cannot be '..'"),
        ("../etc", "path separators"),
        ("a/b", "path separators"),
        ("a\\b", "path separators"),
        ("bad\x00name", "NUL bytes"),
    ],
)
def test_invalid_names(name, reason):
    is_valid, message = validate_repo_name(name)
    assert is_valid is False
    assert reason in message
