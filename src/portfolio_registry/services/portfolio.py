"""Portfolio service for managing portfolios.

This service provides CRUD operations for Portfolio data, identity lookups
(email, identity-provider user id), search / range filters over the owned
professional details, ownership checks and bulk saves.

Each function opens its own transaction through ``get_session``. Deleting a
portfolio removes its professional details in that same transaction, and a
bulk save either stores every portfolio or none of them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TypedDict

from sqlalchemy import func
from sqlalchemy.orm import Session

from portfolio_registry.data.db import get_session
from portfolio_registry.data.models import Portfolio, ProfessionalDetails
from portfolio_registry.data.models.professional_details import MAX_EXPERIENCE_YEARS
from portfolio_registry.services.common import (
    LIKE_ESCAPE,
    check_fields,
    clean_keyword,
    clean_text,
    contains_pattern,
    storage_errors,
)
from portfolio_registry.services.errors import ConflictError, NotFoundError, ValidationError
from portfolio_registry.services.professional_details import (
    ProfessionalDetailsData,
    clean_details_data,
)

logger = logging.getLogger(__name__)

__all__ = [
    "PortfolioData",
    "save_portfolio",
    "get_all_portfolios",
    "get_portfolio_by_id",
    "update_portfolio",
    "delete_portfolio",
    "get_portfolio_by_email",
    "get_portfolio_by_user_id",
    "search_by_name",
    "search_by_skill",
    "filter_by_experience_range",
    "is_portfolio_owner",
    "exists_by_email",
    "save_multiple_portfolios",
]

# Fields that can be set on Portfolio, with (required, max_length)
_PORTFOLIO_FIELDS: dict[str, tuple[bool, int]] = {
    "full_name": (True, 255),
    "email": (True, 255),
    "user_id": (False, 128),
    "phone": (False, 32),
    "profile_image_url": (False, 512),
}

_ENTITY = "Portfolio"


class PortfolioData(TypedDict, total=False):
    """TypedDict for portfolio input.

    ``professional_details`` is only accepted by the save functions; the
    entries are created under the saved portfolio in the same transaction.
    """

    id: int
    full_name: str
    email: str
    user_id: str
    phone: str
    profile_image_url: str
    professional_details: list[ProfessionalDetailsData]


def _portfolio_to_dict(portfolio: Portfolio) -> dict:
    """Convert a Portfolio model to a dictionary.

    Args:
        portfolio: Portfolio model instance

    Returns:
        Dictionary with portfolio data
    """
    return {
        "id": portfolio.id,
        "full_name": portfolio.full_name,
        "email": portfolio.email,
        "user_id": portfolio.user_id,
        "phone": portfolio.phone,
        "profile_image_url": portfolio.profile_image_url,
        "created_at": portfolio.created_at,
        "updated_at": portfolio.updated_at,
    }


def _clean_portfolio_data(data: Mapping[str, object], *, partial: bool) -> dict:
    """Validate portfolio fields before they reach storage.

    Args:
        data: Field values supplied by the caller.
        partial: Only check the supplied fields (update) instead of requiring
            ``full_name`` and ``email`` (save).

    Returns:
        Dictionary with cleaned values for the supplied fields.
    """
    check_fields(data, tuple(_PORTFOLIO_FIELDS), _ENTITY)

    cleaned: dict = {}
    for field, (required, max_length) in _PORTFOLIO_FIELDS.items():
        if partial and field not in data:
            continue
        cleaned[field] = clean_text(
            data.get(field), field, required=required, max_length=max_length
        )
    return cleaned


class _PreparedPortfolio(TypedDict):
    id: int | None
    fields: dict
    details: list[dict]


def _prepare(portfolio_data: PortfolioData) -> _PreparedPortfolio:
    """Split and validate one save request (portfolio fields plus nested details)."""
    fields = dict(portfolio_data)
    portfolio_id = fields.pop("id", None)
    if portfolio_id is not None and (
        isinstance(portfolio_id, bool) or not isinstance(portfolio_id, int)
    ):
        raise ValidationError("id must be an integer")

    nested = fields.pop("professional_details", None) or []
    details = []
    for details_data in nested:
        if "portfolio_id" in details_data or "id" in details_data:
            raise ValidationError(
                "Nested professional details must not carry id or portfolio_id"
            )
        details.append(clean_details_data(details_data, partial=False, require_portfolio_id=False))

    return {
        "id": portfolio_id,
        "fields": _clean_portfolio_data(fields, partial=False),
        "details": details,
    }


def _check_unique(
    session: Session,
    cleaned: dict,
    exclude_id: int | None = None,
) -> None:
    """Raise ConflictError if another portfolio already uses the email or user id."""
    for field in ("email", "user_id"):
        value = cleaned.get(field)
        if value is None:
            continue
        query = session.query(Portfolio.id).filter(getattr(Portfolio, field) == value)
        if exclude_id is not None:
            query = query.filter(Portfolio.id != exclude_id)
        if query.first() is not None:
            raise ConflictError(f"A portfolio with {field} '{value}' already exists")


def _apply_portfolio_updates(portfolio: Portfolio, cleaned: dict) -> None:
    for field in _PORTFOLIO_FIELDS:
        if field in cleaned:
            setattr(portfolio, field, cleaned[field])


def _store(session: Session, prepared: _PreparedPortfolio) -> Portfolio:
    """Insert the portfolio, or overwrite the row named by ``id``, inside ``session``."""
    portfolio_id = prepared["id"]

    if portfolio_id is None:
        _check_unique(session, prepared["fields"])
        portfolio = Portfolio()
        session.add(portfolio)
    else:
        portfolio = session.get(Portfolio, portfolio_id)
        if portfolio is None:
            raise NotFoundError(_ENTITY, portfolio_id)
        _check_unique(session, prepared["fields"], exclude_id=portfolio_id)

    _apply_portfolio_updates(portfolio, prepared["fields"])
    for details_fields in prepared["details"]:
        portfolio.professional_details.append(ProfessionalDetails(**details_fields))
    return portfolio


def _flush_and_serialize(session: Session, portfolios: list[Portfolio]) -> list[dict]:
    session.flush()
    for portfolio in portfolios:
        session.refresh(portfolio)
    return [_portfolio_to_dict(portfolio) for portfolio in portfolios]


def save_portfolio(portfolio_data: PortfolioData) -> dict:
    """Create a portfolio, or overwrite an existing one when ``id`` is given.

    Args:
        portfolio_data: Must include ``full_name`` and ``email``. May include
            ``professional_details``, which are created under the portfolio.

    Returns:
        Dictionary with the stored portfolio, including its ``id``.

    Raises:
        ValidationError: If required fields are missing or malformed.
        NotFoundError: If ``id`` is given and no such portfolio exists.
        ConflictError: If the email or user id belongs to another portfolio.
        StorageError: If the database operation fails.
    """
    try:
        prepared = _prepare(portfolio_data)
    except ValidationError as exc:
        logger.warning("Validation failed for portfolio: %s", exc)
        raise

    with storage_errors("save portfolio"), get_session() as session:
        portfolio = _store(session, prepared)
        (result,) = _flush_and_serialize(session, [portfolio])

    logger.info("Saved portfolio %d", result["id"])
    return result


def get_all_portfolios() -> list[dict]:
    """Return every portfolio."""
    with storage_errors("list portfolios"), get_session() as session:
        portfolios = session.query(Portfolio).order_by(Portfolio.id).all()
        return [_portfolio_to_dict(p) for p in portfolios]


def get_portfolio_by_id(portfolio_id: int) -> dict | None:
    """Get a portfolio by ID.

    Args:
        portfolio_id: ID of the portfolio

    Returns:
        Dictionary with portfolio data, or None if not found
    """
    with storage_errors(f"get portfolio {portfolio_id}"), get_session() as session:
        portfolio = session.get(Portfolio, portfolio_id)
        if portfolio is None:
            return None
        return _portfolio_to_dict(portfolio)


def update_portfolio(portfolio_id: int, portfolio_data: PortfolioData) -> dict:
    """Update only the supplied fields of an existing portfolio.

    Args:
        portfolio_id: ID of the portfolio to update
        portfolio_data: Fields to change; ``id`` and nested details are not accepted

    Returns:
        Dictionary with the updated portfolio data

    Raises:
        ValidationError: If a supplied field is malformed.
        NotFoundError: If the portfolio does not exist.
        ConflictError: If the new email or user id belongs to another portfolio.
        StorageError: If the database operation fails.
    """
    try:
        cleaned = _clean_portfolio_data(portfolio_data, partial=True)
    except ValidationError as exc:
        logger.warning("Validation failed for portfolio update: %s", exc)
        raise

    with storage_errors(f"update portfolio {portfolio_id}"), get_session() as session:
        portfolio = session.get(Portfolio, portfolio_id)
        if portfolio is None:
            raise NotFoundError(_ENTITY, portfolio_id)
        _check_unique(session, cleaned, exclude_id=portfolio_id)

        _apply_portfolio_updates(portfolio, cleaned)
        (result,) = _flush_and_serialize(session, [portfolio])

    logger.info("Updated portfolio %d", portfolio_id)
    return result


def delete_portfolio(portfolio_id: int) -> None:
    """Delete a portfolio together with all of its professional details.

    Children are deleted first, then the portfolio, in one transaction.

    Raises:
        NotFoundError: If the portfolio does not exist.
        StorageError: If the database operation fails.
    """
    with storage_errors(f"delete portfolio {portfolio_id}"), get_session() as session:
        portfolio = session.get(Portfolio, portfolio_id)
        if portfolio is None:
            raise NotFoundError(_ENTITY, portfolio_id)

        removed = (
            session.query(ProfessionalDetails)
            .filter(ProfessionalDetails.portfolio_id == portfolio_id)
            .delete(synchronize_session=False)
        )
        session.delete(portfolio)

    logger.info("Deleted portfolio %d and %d professional details", portfolio_id, removed)


def get_portfolio_by_email(email: str) -> dict | None:
    """Return the portfolio with exactly this email, or None."""
    value = clean_keyword(email, "email")

    with storage_errors("get portfolio by email"), get_session() as session:
        portfolio = session.query(Portfolio).filter(Portfolio.email == value).first()
        return _portfolio_to_dict(portfolio) if portfolio else None


def get_portfolio_by_user_id(user_id: str) -> dict | None:
    """Return the portfolio linked to this identity-provider user id, or None."""
    value = clean_keyword(user_id, "user_id")

    with storage_errors("get portfolio by user id"), get_session() as session:
        portfolio = session.query(Portfolio).filter(Portfolio.user_id == value).first()
        return _portfolio_to_dict(portfolio) if portfolio else None


def search_by_name(name: str) -> list[dict]:
    """Return portfolios whose full name contains ``name``, ignoring case."""
    keyword = clean_keyword(name, "name")

    with storage_errors("search portfolios by name"), get_session() as session:
        portfolios = (
            session.query(Portfolio)
            .filter(
                func.lower(Portfolio.full_name).like(contains_pattern(keyword), escape=LIKE_ESCAPE)
            )
            .order_by(Portfolio.id)
            .all()
        )
        return [_portfolio_to_dict(p) for p in portfolios]


def search_by_skill(skill_keyword: str) -> list[dict]:
    """Return portfolios with at least one entry whose skills contain the keyword.

    Matching ignores case and every portfolio appears at most once.
    """
    keyword = clean_keyword(skill_keyword, "skill_keyword")

    with storage_errors("search portfolios by skill"), get_session() as session:
        portfolios = (
            session.query(Portfolio)
            .filter(
                Portfolio.professional_details.any(
                    func.lower(ProfessionalDetails.skills).like(
                        contains_pattern(keyword), escape=LIKE_ESCAPE
                    )
                )
            )
            .order_by(Portfolio.id)
            .all()
        )
        return [_portfolio_to_dict(p) for p in portfolios]


def _validate_years(value: object, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be a whole number of years")
    if value < 0:
        raise ValidationError(f"{name} must not be negative")
    if value > MAX_EXPERIENCE_YEARS:
        raise ValidationError(f"{name} must not exceed {MAX_EXPERIENCE_YEARS}")
    return value


def filter_by_experience_range(min_years: int, max_years: int) -> list[dict]:
    """Return portfolios with an entry whose experience lies in ``[min_years, max_years]``.

    Only entries whose experience text starts with a number take part; the
    bounds are inclusive.

    Raises:
        ValidationError: If a bound is not an integer between 0 and
            ``MAX_EXPERIENCE_YEARS``, or ``min_years`` is greater than ``max_years``.
    """
    low = _validate_years(min_years, "min_years")
    high = _validate_years(max_years, "max_years")
    if low > high:
        raise ValidationError("min_years must not be greater than max_years")

    with storage_errors("filter portfolios by experience"), get_session() as session:
        portfolios = (
            session.query(Portfolio)
            .filter(
                Portfolio.professional_details.any(
                    ProfessionalDetails.experience_years.between(low, high)
                )
            )
            .order_by(Portfolio.id)
            .all()
        )
        return [_portfolio_to_dict(p) for p in portfolios]


def is_portfolio_owner(portfolio_id: int, user_email: str | None) -> bool:
    """Return True iff the portfolio exists and its email is ``user_email``."""
    if not isinstance(user_email, str) or not user_email.strip():
        return False

    with storage_errors(f"check owner of portfolio {portfolio_id}"), get_session() as session:
        match = (
            session.query(Portfolio.id)
            .filter(Portfolio.id == portfolio_id, Portfolio.email == user_email.strip())
            .first()
        )
        return match is not None


def exists_by_email(email: str) -> bool:
    """Return True iff a portfolio with this email exists."""
    value = clean_keyword(email, "email")

    with storage_errors("check portfolio email"), get_session() as session:
        return session.query(Portfolio.id).filter(Portfolio.email == value).first() is not None


def _check_batch_unique(prepared: list[_PreparedPortfolio]) -> None:
    for field in ("email", "user_id"):
        seen: set[str] = set()
        for item in prepared:
            value = item["fields"].get(field)
            if value is None:
                continue
            if value in seen:
                raise ConflictError(f"Duplicate {field} '{value}' in batch")
            seen.add(value)


def save_multiple_portfolios(portfolios: Iterable[PortfolioData]) -> list[dict]:
    """Save several portfolios in one transaction.

    Every portfolio is validated before storage is touched. If any one of
    them is invalid, conflicts or fails to store, none are saved.

    Returns:
        The stored portfolios, in input order.
    """
    prepared = []
    for index, portfolio_data in enumerate(portfolios):
        try:
            prepared.append(_prepare(portfolio_data))
        except ValidationError as exc:
            logger.warning("Rejected portfolio batch at item %d: %s", index, exc)
            raise ValidationError(f"Item {index}: {exc}") from exc

    if not prepared:
        return []
    _check_batch_unique(prepared)

    with storage_errors("save portfolio batch"), get_session() as session:
        stored = []
        for item in prepared:
            stored.append(_store(session, item))
            # Later uniqueness checks must see this item's row
            session.flush()
        results = _flush_and_serialize(session, stored)

    logger.info("Saved %d portfolios in one batch", len(results))
    return results
