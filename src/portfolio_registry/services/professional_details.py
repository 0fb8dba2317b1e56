"""Professional details service.

CRUD, portfolio-scoped listing, ownership checks, search and counts for
:class:`ProfessionalDetails` rows. Every function runs in its own
transaction; bulk writes are all-or-nothing.

The owning portfolio is never loaded implicitly: records carry
``portfolio_id`` and callers fetch the parent with
``portfolio_registry.services.portfolio.get_portfolio_by_id``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TypedDict

from sqlalchemy import func
from sqlalchemy.orm import InstrumentedAttribute, Session

from portfolio_registry.data.db import get_session
from portfolio_registry.data.models import Portfolio, ProfessionalDetails
from portfolio_registry.data.models.professional_details import (
    COMPANY_NAME_MAX_LENGTH,
    EXPERIENCE_MAX_LENGTH,
    JOB_ROLE_MAX_LENGTH,
    SKILLS_MAX_LENGTH,
    SUMMARY_MAX_LENGTH,
)
from portfolio_registry.services.common import (
    LIKE_ESCAPE,
    check_fields,
    clean_keyword,
    clean_text,
    contains_pattern,
    storage_errors,
)
from portfolio_registry.services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

__all__ = [
    "ProfessionalDetailsData",
    "save_professional_details",
    "get_all_professional_details",
    "get_professional_details_by_id",
    "update_professional_details",
    "delete_professional_details",
    "get_professional_details_by_portfolio_id",
    "get_by_portfolio_owner_email",
    "is_professional_details_owner",
    "search_by_job_role",
    "filter_by_company",
    "search_by_skill_keyword",
    "delete_all_by_portfolio_id",
    "save_all",
    "count_by_portfolio_id",
    "count_all_professional_entries",
]

# Text fields and their (required, max_length) rules
_TEXT_FIELDS: dict[str, tuple[bool, int]] = {
    "skills": (True, SKILLS_MAX_LENGTH),
    "experience": (True, EXPERIENCE_MAX_LENGTH),
    "job_role": (True, JOB_ROLE_MAX_LENGTH),
    "company_name": (False, COMPANY_NAME_MAX_LENGTH),
    "summary": (False, SUMMARY_MAX_LENGTH),
}

_DETAILS_FIELDS = (*_TEXT_FIELDS, "portfolio_id")

_ENTITY = "ProfessionalDetails"


class ProfessionalDetailsData(TypedDict, total=False):
    """TypedDict for professional details input."""

    id: int
    portfolio_id: int
    skills: str
    experience: str
    job_role: str
    company_name: str
    summary: str


def _details_to_dict(details: ProfessionalDetails) -> dict:
    """Convert a ProfessionalDetails model to a dictionary."""
    return {
        "id": details.id,
        "portfolio_id": details.portfolio_id,
        "skills": details.skills,
        "experience": details.experience,
        "experience_years": details.experience_years,
        "job_role": details.job_role,
        "company_name": details.company_name,
        "summary": details.summary,
        "updated_at": details.updated_at,
    }


def _clean_portfolio_id(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("portfolio_id must be an integer")
    return value


def clean_details_data(
    data: Mapping[str, object],
    *,
    partial: bool,
    require_portfolio_id: bool = True,
) -> dict:
    """Validate professional details input before it reaches storage.

    Args:
        data: Field values supplied by the caller (without ``id``).
        partial: When True only the supplied fields are checked (update);
            otherwise every required field must be present (create / save).
        require_portfolio_id: Whether ``portfolio_id`` must be present on a
            full save. Nested saves through the portfolio service set it later.

    Returns:
        Dictionary with cleaned values for the supplied fields.

    Raises:
        ValidationError: If a field is unknown, missing, blank or too long.
    """
    check_fields(data, _DETAILS_FIELDS, _ENTITY)

    cleaned: dict = {}
    for field, (required, max_length) in _TEXT_FIELDS.items():
        if partial and field not in data:
            continue
        cleaned[field] = clean_text(
            data.get(field), field, required=required, max_length=max_length
        )

    if "portfolio_id" in data:
        cleaned["portfolio_id"] = _clean_portfolio_id(data["portfolio_id"])
    elif not partial and require_portfolio_id:
        raise ValidationError("portfolio_id is required")

    return cleaned


def _split_id(data: Mapping[str, object]) -> tuple[int | None, dict]:
    fields = dict(data)
    details_id = fields.pop("id", None)
    if details_id is not None and (
        isinstance(details_id, bool) or not isinstance(details_id, int)
    ):
        raise ValidationError("id must be an integer")
    return details_id, fields


def _require_portfolio(session: Session, portfolio_id: int) -> None:
    exists = session.query(Portfolio.id).filter(Portfolio.id == portfolio_id).first()
    if exists is None:
        raise NotFoundError("Portfolio", portfolio_id)


def _apply_details_updates(details: ProfessionalDetails, cleaned: dict) -> None:
    for field in _DETAILS_FIELDS:
        if field in cleaned:
            setattr(details, field, cleaned[field])


def _store(session: Session, details_id: int | None, cleaned: dict) -> ProfessionalDetails:
    """Insert, or overwrite the row with ``details_id``, inside ``session``."""
    _require_portfolio(session, cleaned["portfolio_id"])

    if details_id is None:
        details = ProfessionalDetails()
        session.add(details)
    else:
        details = session.get(ProfessionalDetails, details_id)
        if details is None:
            raise NotFoundError(_ENTITY, details_id)

    _apply_details_updates(details, cleaned)
    return details


def _flush_and_serialize(session: Session, rows: list[ProfessionalDetails]) -> list[dict]:
    session.flush()
    for row in rows:
        session.refresh(row)
    return [_details_to_dict(row) for row in rows]


def save_professional_details(details_data: ProfessionalDetailsData) -> dict:
    """Create a professional details entry, or overwrite one when ``id`` is given.

    Args:
        details_data: Must include ``skills``, ``experience``, ``job_role`` and
            ``portfolio_id``; ``company_name`` and ``summary`` are optional.

    Returns:
        Dictionary with the stored record, including its ``id``.

    Raises:
        ValidationError: If required fields are missing or malformed.
        NotFoundError: If the portfolio, or the row named by ``id``, does not exist.
        StorageError: If the database operation fails.
    """
    try:
        details_id, fields = _split_id(details_data)
        cleaned = clean_details_data(fields, partial=False)
    except ValidationError as exc:
        logger.warning("Validation failed for professional details: %s", exc)
        raise

    with storage_errors("save professional details"), get_session() as session:
        details = _store(session, details_id, cleaned)
        (result,) = _flush_and_serialize(session, [details])

    logger.info(
        "Saved professional details %d for portfolio %d", result["id"], result["portfolio_id"]
    )
    return result


def get_all_professional_details() -> list[dict]:
    """Return every professional details entry."""
    with storage_errors("list professional details"), get_session() as session:
        rows = session.query(ProfessionalDetails).order_by(ProfessionalDetails.id).all()
        return [_details_to_dict(row) for row in rows]


def get_professional_details_by_id(details_id: int) -> dict | None:
    """Get a professional details entry by ID.

    Returns:
        Dictionary with the record, or None if it does not exist.
    """
    with storage_errors(f"get professional details {details_id}"), get_session() as session:
        details = session.get(ProfessionalDetails, details_id)
        if details is None:
            return None
        return _details_to_dict(details)


def update_professional_details(details_id: int, details_data: ProfessionalDetailsData) -> dict:
    """Update only the supplied fields of an existing entry.

    Changing ``experience`` re-derives ``experience_years``. Changing
    ``portfolio_id`` moves the entry, and the target portfolio must exist.

    Raises:
        ValidationError: If a supplied field is malformed.
        NotFoundError: If the entry or the target portfolio does not exist.
        StorageError: If the database operation fails.
    """
    fields = {key: value for key, value in details_data.items() if key != "id"}
    try:
        cleaned = clean_details_data(fields, partial=True)
    except ValidationError as exc:
        logger.warning("Validation failed for professional details update: %s", exc)
        raise

    with storage_errors(f"update professional details {details_id}"), get_session() as session:
        details = session.get(ProfessionalDetails, details_id)
        if details is None:
            raise NotFoundError(_ENTITY, details_id)
        if "portfolio_id" in cleaned and cleaned["portfolio_id"] != details.portfolio_id:
            _require_portfolio(session, cleaned["portfolio_id"])

        _apply_details_updates(details, cleaned)
        (result,) = _flush_and_serialize(session, [details])

    logger.info("Updated professional details %d", details_id)
    return result


def delete_professional_details(details_id: int) -> None:
    """Delete a professional details entry.

    Raises:
        NotFoundError: If the entry does not exist.
        StorageError: If the database operation fails.
    """
    with storage_errors(f"delete professional details {details_id}"), get_session() as session:
        details = session.get(ProfessionalDetails, details_id)
        if details is None:
            raise NotFoundError(_ENTITY, details_id)
        session.delete(details)

    logger.info("Deleted professional details %d", details_id)


def get_professional_details_by_portfolio_id(portfolio_id: int) -> list[dict]:
    """Return the entries owned by a portfolio; empty if it has none or does not exist."""
    with (
        storage_errors(f"list professional details of portfolio {portfolio_id}"),
        get_session() as session,
    ):
        rows = (
            session.query(ProfessionalDetails)
            .filter(ProfessionalDetails.portfolio_id == portfolio_id)
            .order_by(ProfessionalDetails.id)
            .all()
        )
        return [_details_to_dict(row) for row in rows]


def get_by_portfolio_owner_email(email: str) -> list[dict]:
    """Return the entries owned by the portfolio with this email."""
    owner_email = clean_keyword(email, "email")

    with storage_errors("list professional details by owner email"), get_session() as session:
        rows = (
            session.query(ProfessionalDetails)
            .join(Portfolio, ProfessionalDetails.portfolio_id == Portfolio.id)
            .filter(Portfolio.email == owner_email)
            .order_by(ProfessionalDetails.id)
            .all()
        )
        return [_details_to_dict(row) for row in rows]


def is_professional_details_owner(details_id: int, user_email: str | None) -> bool:
    """Return True iff the entry exists and its portfolio's email is ``user_email``."""
    if not isinstance(user_email, str) or not user_email.strip():
        return False

    with (
        storage_errors(f"check owner of professional details {details_id}"),
        get_session() as session,
    ):
        match = (
            session.query(ProfessionalDetails.id)
            .join(Portfolio, ProfessionalDetails.portfolio_id == Portfolio.id)
            .filter(
                ProfessionalDetails.id == details_id,
                Portfolio.email == user_email.strip(),
            )
            .first()
        )
        return match is not None


def _search(column: InstrumentedAttribute[str | None], keyword: str, action: str) -> list[dict]:
    with storage_errors(action), get_session() as session:
        rows = (
            session.query(ProfessionalDetails)
            .filter(func.lower(column).like(contains_pattern(keyword), escape=LIKE_ESCAPE))
            .order_by(ProfessionalDetails.id)
            .all()
        )
        return [_details_to_dict(row) for row in rows]


def search_by_job_role(job_role: str) -> list[dict]:
    """Return entries whose job role contains ``job_role``, ignoring case."""
    keyword = clean_keyword(job_role, "job_role")
    return _search(
        ProfessionalDetails.job_role, keyword, "search professional details by job role"
    )


def search_by_skill_keyword(skill_keyword: str) -> list[dict]:
    """Return entries whose skills contain ``skill_keyword``, ignoring case."""
    keyword = clean_keyword(skill_keyword, "skill_keyword")
    return _search(ProfessionalDetails.skills, keyword, "search professional details by skill")


def filter_by_company(company_name: str) -> list[dict]:
    """Return entries whose company name equals ``company_name``, ignoring case."""
    name = clean_keyword(company_name, "company_name")

    with storage_errors("filter professional details by company"), get_session() as session:
        rows = (
            session.query(ProfessionalDetails)
            .filter(func.lower(ProfessionalDetails.company_name) == name.lower())
            .order_by(ProfessionalDetails.id)
            .all()
        )
        return [_details_to_dict(row) for row in rows]


def delete_all_by_portfolio_id(portfolio_id: int) -> int:
    """Delete every entry owned by a portfolio.

    Returns:
        Number of entries deleted; 0 when there were none.
    """
    with (
        storage_errors(f"delete professional details of portfolio {portfolio_id}"),
        get_session() as session,
    ):
        count = (
            session.query(ProfessionalDetails)
            .filter(ProfessionalDetails.portfolio_id == portfolio_id)
            .delete(synchronize_session=False)
        )

    logger.info("Deleted %d professional details of portfolio %d", count, portfolio_id)
    return count


def save_all(details_list: Iterable[ProfessionalDetailsData]) -> list[dict]:
    """Save several entries in one transaction.

    All entries are validated first; if any entry is invalid, references a
    missing portfolio or fails to store, nothing is saved.

    Returns:
        The stored records, in input order.
    """
    prepared = []
    for index, details_data in enumerate(details_list):
        try:
            details_id, fields = _split_id(details_data)
            prepared.append((details_id, clean_details_data(fields, partial=False)))
        except ValidationError as exc:
            logger.warning("Rejected professional details batch at item %d: %s", index, exc)
            raise ValidationError(f"Item {index}: {exc}") from exc

    if not prepared:
        return []

    with storage_errors("save professional details batch"), get_session() as session:
        rows = [_store(session, details_id, cleaned) for details_id, cleaned in prepared]
        results = _flush_and_serialize(session, rows)

    logger.info("Saved %d professional details in one batch", len(results))
    return results


def count_by_portfolio_id(portfolio_id: int) -> int:
    """Return the number of entries owned by a portfolio (0 if none)."""
    with (
        storage_errors(f"count professional details of portfolio {portfolio_id}"),
        get_session() as session,
    ):
        return (
            session.query(ProfessionalDetails)
            .filter(ProfessionalDetails.portfolio_id == portfolio_id)
            .count()
        )


def count_all_professional_entries() -> int:
    """Return the total number of professional details entries."""
    with storage_errors("count professional details"), get_session() as session:
        return session.query(ProfessionalDetails).count()
