"""
Input validation functions for qiita-sync.

Provides validation for article headers, sync modes and item ids so
bad input is rejected before any request reaches Qiita.
"""

import re
from typing import Any

ITEM_ID_PATTERN = re.compile(r"\A[0-9a-f]{20}\Z")

VALID_MODES = ("create", "update")

# Qiita rejects items with more than five tags
MAX_TOPICS = 5


# ---------------------------------------------------------------------------
# Error message formatting helpers
# ---------------------------------------------------------------------------


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Title")
        reason: Description of validation failure (e.g., "cannot be empty")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def is_valid_item_id(item_id: Any) -> bool:
    """Return True if *item_id* is exactly 20 lowercase hex characters."""
    return isinstance(item_id, str) and bool(ITEM_ID_PATTERN.match(item_id))


def validate_item_id(item_id: Any) -> tuple[bool, str]:
    """
    Validate a Qiita item id.

    Args:
        item_id: The item id to validate

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.
    """
    if item_id is None or item_id == "":
        return (
            False,
            format_validation_error("Item id", "cannot be empty"),
        )

    if not is_valid_item_id(item_id):
        return (
            False,
            format_validation_error(
                "Item id",
                f"must be 20 lowercase hex characters, got {item_id!r}",
            ),
        )

    return (True, "")


def validate_mode(mode: Any) -> tuple[bool, str]:
    """
    Validate a requested sync mode.

    Args:
        mode: The mode string to validate

    Returns:
        Tuple of (is_valid, error_message).

    Validation rules:
        - Must be one of "create" or "update"
    """
    if mode not in VALID_MODES:
        return (
            False,
            format_validation_error(
                "Mode",
                f"must be one of {', '.join(VALID_MODES)}, got {mode!r}",
            ),
        )
    return (True, "")


def validate_path(path: Any) -> tuple[bool, str]:
    """
    Validate an article path used as a mapping file key.

    Args:
        path: The article path to validate

    Returns:
        Tuple of (is_valid, error_message).

    Validation rules:
        - Must be a non-empty string
        - No whitespace (lines are split on whitespace when read back)
        - Must not end with "," (the field separator)
    """
    if not isinstance(path, str) or not path:
        return (
            False,
            format_validation_error("Article path", "cannot be empty"),
        )

    if any(ch.isspace() for ch in path):
        return (
            False,
            format_validation_error(
                "Article path", f"cannot contain whitespace, got {path!r}"
            ),
        )

    if path.endswith(","):
        return (
            False,
            format_validation_error(
                "Article path", f"cannot end with ',', got {path!r}"
            ),
        )

    return (True, "")


def validate_header(header: Any) -> tuple[bool, str]:
    """
    Validate an article's YAML header.

    Args:
        header: Parsed header mapping

    Returns:
        Tuple of (is_valid, error_message).

    Validation rules:
        - Must be a mapping
        - ``title`` must be a non-empty string
        - ``published`` must be a boolean
        - ``topics`` must be a list of 1-5 non-empty strings
    """
    if not isinstance(header, dict):
        return (
            False,
            format_validation_error("Header", "must be a mapping"),
        )

    title = header.get("title")
    if not isinstance(title, str) or not title.strip():
        return (
            False,
            format_validation_error("Title", "cannot be empty"),
        )

    if not isinstance(header.get("published"), bool):
        return (
            False,
            format_validation_error(
                "Published flag", "must be true or false"
            ),
        )

    topics = header.get("topics")
    if not isinstance(topics, list) or not topics:
        return (
            False,
            format_validation_error(
                "Topics", "must be a non-empty list"
            ),
        )
    if len(topics) > MAX_TOPICS:
        return (
            False,
            format_validation_error(
                "Topics", f"cannot have more than {MAX_TOPICS} entries"
            ),
        )
    for topic in topics:
        if not isinstance(topic, str) or not topic.strip():
            return (
                False,
                format_validation_error(
                    "Topics", "must only contain non-empty strings"
                ),
            )

    return (True, "")

