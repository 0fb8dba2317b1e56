"""Exceptions raised by the service layer.

Lookups return None for missing rows; operations that need an existing row
(update, delete, save with an explicit id) raise :class:`NotFoundError`.
"""

from __future__ import annotations


class PortfolioRegistryError(Exception):
    """Base class for all service errors."""


class NotFoundError(PortfolioRegistryError, LookupError):
    """Raised when a required row does not exist."""

    def __init__(self, entity: str, entity_id: object) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class ValidationError(PortfolioRegistryError, ValueError):
    """Raised when input is missing or malformed. Nothing reaches storage."""


class ConflictError(PortfolioRegistryError):
    """Raised when a write would break a uniqueness rule (email, user_id)."""


class StorageError(PortfolioRegistryError):
    """Raised when the backing store fails. The original error is chained."""
