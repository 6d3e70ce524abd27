"""
Input validation for values received from the remote server.

Repository names become directory names under the output root, so a
name must never be able to point outside it.
"""


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Repository name")
        reason: Description of validation failure (e.g., "cannot be empty")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def validate_repo_name(name: str) -> tuple[bool, str]:
    """
    Validate a repository name before it is joined to the output root.

    Args:
        name: The repository name to validate

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.

    Validation rules:
        - Cannot be empty or whitespace-only
        - Cannot be '.' or '..'
        - Cannot contain '/' or '\\' (path traversal protection)
        - Cannot contain NUL bytes
    """
    if not name or not name.strip():
        return (
            False,
            format_validation_error("Repository name", "cannot be empty"),
        )

    if name in (".", ".."):
        return (
            False,
            format_validation_error(
                "Repository name", f"cannot be '{name}'"
            ),
        )

    if "/" in name or "\\" in name:
        return (
            False,
            format_validation_error(
                "Repository name", "cannot contain path separators"
            ),
        )

    if "\x00" in name:
        return (
            False,
            format_validation_error(
                "Repository name", "cannot contain NUL bytes"
            ),
        )

    return (True, "")
