"""Server-side checks and cleanup for question/response text."""

import re

from feedback_api.core.errors import ValidationAppError

HTML_TAG_PATTERN = re.compile(r"<[^>]*>")
FORBIDDEN_CHARS_PATTERN = re.compile(r"[<>{}\[\]]")


def validate_text(text: str, *, field: str, min_chars: int, max_chars: int) -> None:
    """Reject empty, too short, too long, or markup-bearing text.

    Raises:
        ValidationAppError: With a code naming the failed rule.
    """
    stripped = text.strip()
    if not stripped:
        raise ValidationAppError(
            code=f"{field}_empty",
            message="This field cannot be empty",
        )
    if len(stripped) < min_chars:
        raise ValidationAppError(
            code=f"{field}_too_short",
            message=f"Must be at least {min_chars} characters long",
            details={"min_value": min_chars, "actual_value": len(stripped)},
        )
    if len(stripped) > max_chars:
        raise ValidationAppError(
            code=f"{field}_too_long",
            message=f"Must not exceed {max_chars} characters",
            details={"max_value": max_chars, "actual_value": len(stripped)},
        )
    if HTML_TAG_PATTERN.search(text):
        raise ValidationAppError(
            code=f"{field}_html_not_allowed",
            message="HTML tags are not allowed",
        )
    if FORBIDDEN_CHARS_PATTERN.search(text):
        raise ValidationAppError(
            code=f"{field}_special_chars_not_allowed",
            message="Special characters <>{}[] are not allowed",
        )


def sanitize_text(text: str) -> str:
    """Strip tags and forbidden characters, then collapse whitespace."""
    cleaned = HTML_TAG_PATTERN.sub("", text.strip())
    cleaned = FORBIDDEN_CHARS_PATTERN.sub("", cleaned)
    cleaned = re.sub(r"\s+", " ", cleaned)
    return cleaned.strip()
