"""Helpers shared by the portfolio and professional-details services."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from portfolio_registry.services.errors import StorageError, ValidationError

logger = logging.getLogger(__name__)

LIKE_ESCAPE = "\\"


@contextmanager
def storage_errors(action: str) -> Iterator[None]:
    """Re-raise any SQLAlchemy failure inside the block as :class:`StorageError`.

    Args:
        action: Short description of the operation, used in the log and message.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("Storage failure while trying to %s", action)
        raise StorageError(f"Failed to {action}") from exc


def check_fields(data: Mapping[str, object], allowed: tuple[str, ...], entity: str) -> None:
    """Reject keys that are not updatable fields of ``entity``."""
    unknown = sorted(set(data) - set(allowed))
    if unknown:
        raise ValidationError(f"Unknown {entity} field(s): {', '.join(unknown)}")


def clean_text(
    value: object,
    field: str,
    *,
    required: bool,
    max_length: int | None = None,
) -> str | None:
    """Strip a text field and enforce presence and length.

    Args:
        value: Raw value supplied by the caller.
        field: Field name, used in error messages.
        required: Whether None / blank is rejected.
        max_length: Maximum length after stripping, if bounded.

    Returns:
        The stripped string, or None for an absent optional value.

    Raises:
        ValidationError: If the value is not a string, is blank when required,
            or is longer than ``max_length``.
    """
    if value is None:
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")

    text = value.strip()
    if not text:
        if required:
            raise ValidationError(f"{field} must not be blank")
        return None
    if max_length is not None and len(text) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return text


def clean_keyword(keyword: object, field: str = "keyword") -> str:
    """Return a stripped, non-blank search keyword."""
    if not isinstance(keyword, str) or not keyword.strip():
        raise ValidationError(f"{field} must be a non-empty string")
    return keyword.strip()


def contains_pattern(keyword: str) -> str:
    """Build a LIKE pattern matching ``keyword`` anywhere, with wildcards escaped."""
    escaped = (
        keyword.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped.lower()}%"

