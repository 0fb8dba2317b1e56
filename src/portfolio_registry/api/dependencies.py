"""Shared dependencies for API routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import Header, HTTPException, status

from portfolio_registry.api.errors import to_http_exception
from portfolio_registry.services.errors import PortfolioRegistryError
from portfolio_registry.services.portfolio import get_portfolio_by_id, is_portfolio_owner


def get_current_email(
    x_user_email: Annotated[
        str | None,
        Header(
            description=(
                "Verified email of the caller, set by the authentication layer "
                "in front of this service."
            )
        ),
    ] = None,
) -> str:
    """Get the caller's verified email from request context.

    Args:
        x_user_email: Email from the X-User-Email header.

    Returns:
        str: The caller's email.

    Raises:
        HTTPException: If authentication is missing (401).
    """
    if not x_user_email or not x_user_email.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication. Please provide X-User-Email header.",
        )
    return x_user_email.strip()


def require_portfolio_owner(portfolio_id: int, current_email: str) -> None:
    """Ensure the portfolio exists and belongs to the caller.

    Raises:
        HTTPException: 404 if the portfolio does not exist, 403 if the caller
            does not own it.
    """
    try:
        portfolio = get_portfolio_by_id(portfolio_id)
        owned = is_portfolio_owner(portfolio_id, current_email)
    except PortfolioRegistryError as exc:
        raise to_http_exception(exc) from exc
    if portfolio is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Portfolio {portfolio_id} not found",
        )
    if not owned:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only modify your own portfolio",
        )
