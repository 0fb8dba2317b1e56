"""Professional details routes for the API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from portfolio_registry.api.dependencies import get_current_email, require_portfolio_owner
from portfolio_registry.api.errors import to_http_exception
from portfolio_registry.api.schemas.common import CountResponse
from portfolio_registry.api.schemas.professional_details import (
    ProfessionalDetailsCreateRequest,
    ProfessionalDetailsResponse,
    ProfessionalDetailsUpdateRequest,
)
from portfolio_registry.services import professional_details as details_service
from portfolio_registry.services.errors import PortfolioRegistryError

router = APIRouter(prefix="/professional-details", tags=["professional-details"])


def _require_details_owner(details_id: int, current_email: str) -> dict:
    """Return the entry if the caller owns it.

    Raises:
        HTTPException: 404 if the entry does not exist, 403 if the caller does not own it.
    """
    try:
        details = details_service.get_professional_details_by_id(details_id)
        owned = details_service.is_professional_details_owner(details_id, current_email)
    except PortfolioRegistryError as exc:
        raise to_http_exception(exc) from exc
    if details is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Professional details {details_id} not found",
        )
    if not owned:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only modify professional details of your own portfolio",
        )
    return details


@router.post(
    "",
    response_model=ProfessionalDetailsResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add professional details to a portfolio",
)
def create_professional_details(
    data: ProfessionalDetailsCreateRequest,
    current_email: Annotated[str, Depends(get_current_email)],
) -> ProfessionalDetailsResponse:
    require_portfolio_owner(data.portfolio_id, current_email)

    try:
        result = details_service.save_professional_details(data.model_dump())
    except PortfolioRegistryError as exc:
        raise to_http_exception(exc) from exc
    return ProfessionalDetailsResponse(**result)


@router.post(
    "/bulk",
    response_model=list[ProfessionalDetailsResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Add several professional details entries",
    description="All entries are stored in one transaction; if one fails, none are stored.",
)
def create_professional_details_bulk(
    data: list[ProfessionalDetailsCreateRequest],
    current_email: Annotated[str, Depends(get_current_email)],
) -> list[ProfessionalDetailsResponse]:
    for portfolio_id in sorted({item.portfolio_id for item in data}):
        require_portfolio_owner(portfolio_id, current_email)

    try:
        results = details_service.save_all([item.model_dump() for item in data])
    except PortfolioRegistryError as exc:
        raise to_http_exception(exc) from exc
    return [ProfessionalDetailsResponse(**r) for r in results]


@router.get(
    "",
    response_model=list[ProfessionalDetailsResponse],
    summary="List professional details",
    description=(
        "List all entries, or filter them by job role, company or skill. "
        "Only one filter may be used per request."
    ),
)
def list_professional_details(
    job_role: Annotated[str | None, Query(description="Part of the job role")] = None,
    company: Annotated[str | None, Query(description="Exact company name")] = None,
    skill: Annotated[str | None, Query(description="Skill keyword")] = None,
) -> list[ProfessionalDetailsResponse]:
    if sum(value is not None for value in (job_role, company, skill)) > 1:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="Use only one of job_role, company or skill",
        )

    try:
        if job_role is not None:
            results = details_service.search_by_job_role(job_role)
        elif company is not None:
            results = details_service.filter_by_company(company)
        elif skill is not None:
            results = details_service.search_by_skill_keyword(skill)
        else:
            results = details_service.get_all_professional_details()
    except PortfolioRegistryError as exc:
        raise to_http_exception(exc) from exc
    return [ProfessionalDetailsResponse(**r) for r in results]


@router.get("/count", response_model=CountResponse, summary="Count all professional details")
def count_professional_details() -> CountResponse:
    try:
        return CountResponse(count=details_service.count_all_professional_entries())
    except PortfolioRegistryError as exc:
        raise to_http_exception(exc) from exc


@router.get(
    "/mine",
    response_model=list[ProfessionalDetailsResponse],
    summary="List the caller's professional details",
)
def list_my_professional_details(
    current_email: Annotated[str, Depends(get_current_email)],
) -> list[ProfessionalDetailsResponse]:
    try:
        results = details_service.get_by_portfolio_owner_email(current_email)
    except PortfolioRegistryError as exc:
        raise to_http_exception(exc) from exc
    return [ProfessionalDetailsResponse(**r) for r in results]


@router.get(
    "/{details_id}",
    response_model=ProfessionalDetailsResponse,
    summary="Get a professional details entry",
)
def get_professional_details(
    details_id: Annotated[int, Path(description="Professional details ID")],
) -> ProfessionalDetailsResponse:
    try:
        result = details_service.get_professional_details_by_id(details_id)
    except PortfolioRegistryError as exc:
        raise to_http_exception(exc) from exc
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Professional details {details_id} not found",
        )
    return ProfessionalDetailsResponse(**result)


@router.patch(
    "/{details_id}",
    response_model=ProfessionalDetailsResponse,
    summary="Update a professional details entry",
)
def update_professional_details(
    details_id: Annotated[int, Path(description="Professional details ID")],
    data: ProfessionalDetailsUpdateRequest,
    current_email: Annotated[str, Depends(get_current_email)],
) -> ProfessionalDetailsResponse:
    """Update an entry. Only provided fields are updated."""
    existing = _require_details_owner(details_id, current_email)
    update_dict = data.model_dump(exclude_unset=True)

    target_portfolio = update_dict.get("portfolio_id")
    if target_portfolio is not None and target_portfolio != existing["portfolio_id"]:
        require_portfolio_owner(target_portfolio, current_email)

    try:
        result = details_service.update_professional_details(details_id, update_dict)
    except PortfolioRegistryError as exc:
        raise to_http_exception(exc) from exc
    return ProfessionalDetailsResponse(**result)


@router.delete(
    "/{details_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a professional details entry",
)
def delete_professional_details(
    details_id: Annotated[int, Path(description="Professional details ID")],
    current_email: Annotated[str, Depends(get_current_email)],
) -> None:
    _require_details_owner(details_id, current_email)

    try:
        details_service.delete_professional_details(details_id)
    except PortfolioRegistryError as exc:
        raise to_http_exception(exc) from exc
