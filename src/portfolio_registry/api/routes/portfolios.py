"""Portfolio routes for the API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from portfolio_registry.api.dependencies import get_current_email, require_portfolio_owner
from portfolio_registry.api.errors import to_http_exception
from portfolio_registry.api.schemas.common import CountResponse, ExistsResponse
from portfolio_registry.api.schemas.portfolios import (
    PortfolioCreateRequest,
    PortfolioResponse,
    PortfolioUpdateRequest,
)
from portfolio_registry.api.schemas.professional_details import ProfessionalDetailsResponse
from portfolio_registry.data.models.professional_details import MAX_EXPERIENCE_YEARS
from portfolio_registry.services import professional_details as details_service
from portfolio_registry.services import portfolio as portfolio_service
from portfolio_registry.services.errors import PortfolioRegistryError

router = APIRouter(prefix="/portfolios", tags=["portfolios"])


def _not_found(portfolio_id: int | str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Portfolio {portfolio_id} not found",
    )


@router.post(
    "",
    response_model=PortfolioResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a portfolio",
)
def create_portfolio(
    data: PortfolioCreateRequest,
    current_email: Annotated[str, Depends(get_current_email)],
) -> PortfolioResponse:
    """Create the caller's portfolio, optionally with professional details."""
    if data.email.strip() != current_email:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only create a portfolio for your own email",
        )
    try:
        result = portfolio_service.save_portfolio(data.model_dump())
    except PortfolioRegistryError as exc:
        raise to_http_exception(exc) from exc
    return PortfolioResponse(**result)


@router.post(
    "/bulk",
    response_model=list[PortfolioResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create several portfolios",
    description="All portfolios are stored in one transaction; if one fails, none are stored.",
    dependencies=[Depends(get_current_email)],
)
def create_portfolios_bulk(data: list[PortfolioCreateRequest]) -> list[PortfolioResponse]:
    try:
        results = portfolio_service.save_multiple_portfolios([p.model_dump() for p in data])
    except PortfolioRegistryError as exc:
        raise to_http_exception(exc) from exc
    return [PortfolioResponse(**r) for r in results]


@router.get(
    "",
    response_model=list[PortfolioResponse],
    summary="List portfolios",
    description=(
        "List all portfolios, or filter them by name, by skill, or by a range of "
        "years of experience. Only one kind of filter may be used per request."
    ),
)
def list_portfolios(
    name: Annotated[str | None, Query(description="Part of the full name")] = None,
    skill: Annotated[str | None, Query(description="Skill keyword")] = None,
    min_years: Annotated[
        int | None, Query(ge=0, le=MAX_EXPERIENCE_YEARS, description="Minimum years")
    ] = None,
    max_years: Annotated[
        int | None, Query(ge=0, le=MAX_EXPERIENCE_YEARS, description="Maximum years")
    ] = None,
) -> list[PortfolioResponse]:
    use_range = min_years is not None or max_years is not None
    filters_used = sum([name is not None, skill is not None, use_range])
    if filters_used > 1:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="Use only one of name, skill or min_years/max_years",
        )
    if use_range and (min_years is None or max_years is None):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="min_years and max_years must be given together",
        )

    try:
        if name is not None:
            results = portfolio_service.search_by_name(name)
        elif skill is not None:
            results = portfolio_service.search_by_skill(skill)
        elif use_range:
            results = portfolio_service.filter_by_experience_range(min_years, max_years)
        else:
            results = portfolio_service.get_all_portfolios()
    except PortfolioRegistryError as exc:
        raise to_http_exception(exc) from exc
    return [PortfolioResponse(**r) for r in results]


@router.get("/me", response_model=PortfolioResponse, summary="Get the caller's portfolio")
def get_my_portfolio(
    current_email: Annotated[str, Depends(get_current_email)],
) -> PortfolioResponse:
    try:
        result = portfolio_service.get_portfolio_by_email(current_email)
    except PortfolioRegistryError as exc:
        raise to_http_exception(exc) from exc
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="You do not have a portfolio yet",
        )
    return PortfolioResponse(**result)


@router.get("/exists", response_model=ExistsResponse, summary="Check if an email has a portfolio")
def portfolio_exists(
    email: Annotated[str, Query(min_length=1, description="Email to look up")],
) -> ExistsResponse:
    try:
        return ExistsResponse(exists=portfolio_service.exists_by_email(email))
    except PortfolioRegistryError as exc:
        raise to_http_exception(exc) from exc


@router.get(
    "/by-user/{user_id}",
    response_model=PortfolioResponse,
    summary="Get a portfolio by identity provider user id",
)
def get_portfolio_for_user(
    user_id: Annotated[str, Path(description="Identity provider user id")],
) -> PortfolioResponse:
    try:
        result = portfolio_service.get_portfolio_by_user_id(user_id)
    except PortfolioRegistryError as exc:
        raise to_http_exception(exc) from exc
    if result is None:
        raise _not_found(f"for user {user_id}")
    return PortfolioResponse(**result)


@router.get("/{portfolio_id}", response_model=PortfolioResponse, summary="Get a portfolio")
def get_portfolio(
    portfolio_id: Annotated[int, Path(description="Portfolio ID")],
) -> PortfolioResponse:
    try:
        result = portfolio_service.get_portfolio_by_id(portfolio_id)
    except PortfolioRegistryError as exc:
        raise to_http_exception(exc) from exc
    if result is None:
        raise _not_found(portfolio_id)
    return PortfolioResponse(**result)


@router.patch("/{portfolio_id}", response_model=PortfolioResponse, summary="Update a portfolio")
def update_portfolio(
    portfolio_id: Annotated[int, Path(description="Portfolio ID")],
    data: PortfolioUpdateRequest,
    current_email: Annotated[str, Depends(get_current_email)],
) -> PortfolioResponse:
    """Update a portfolio. Only provided fields are updated."""
    require_portfolio_owner(portfolio_id, current_email)

    try:
        result = portfolio_service.update_portfolio(
            portfolio_id, data.model_dump(exclude_unset=True)
        )
    except PortfolioRegistryError as exc:
        raise to_http_exception(exc) from exc
    return PortfolioResponse(**result)


@router.delete(
    "/{portfolio_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a portfolio and all of its professional details",
)
def delete_portfolio(
    portfolio_id: Annotated[int, Path(description="Portfolio ID")],
    current_email: Annotated[str, Depends(get_current_email)],
) -> None:
    require_portfolio_owner(portfolio_id, current_email)

    try:
        portfolio_service.delete_portfolio(portfolio_id)
    except PortfolioRegistryError as exc:
        raise to_http_exception(exc) from exc


@router.get(
    "/{portfolio_id}/professional-details",
    response_model=list[ProfessionalDetailsResponse],
    summary="List a portfolio's professional details",
)
def list_portfolio_professional_details(
    portfolio_id: Annotated[int, Path(description="Portfolio ID")],
) -> list[ProfessionalDetailsResponse]:
    try:
        results = details_service.get_professional_details_by_portfolio_id(portfolio_id)
    except PortfolioRegistryError as exc:
        raise to_http_exception(exc) from exc
    return [ProfessionalDetailsResponse(**r) for r in results]


@router.get(
    "/{portfolio_id}/professional-details/count",
    response_model=CountResponse,
    summary="Count a portfolio's professional details",
)
def count_portfolio_professional_details(
    portfolio_id: Annotated[int, Path(description="Portfolio ID")],
) -> CountResponse:
    try:
        return CountResponse(count=details_service.count_by_portfolio_id(portfolio_id))
    except PortfolioRegistryError as exc:
        raise to_http_exception(exc) from exc


@router.delete(
    "/{portfolio_id}/professional-details",
    response_model=CountResponse,
    summary="Delete all of a portfolio's professional details",
)
def delete_portfolio_professional_details(
    portfolio_id: Annotated[int, Path(description="Portfolio ID")],
    current_email: Annotated[str, Depends(get_current_email)],
) -> CountResponse:
    """Delete every professional details entry of the portfolio; returns how many went."""
    require_portfolio_owner(portfolio_id, current_email)
    try:
        count = details_service.delete_all_by_portfolio_id(portfolio_id)
    except PortfolioRegistryError as exc:
        raise to_http_exception(exc) from exc
    return CountResponse(count=count)
