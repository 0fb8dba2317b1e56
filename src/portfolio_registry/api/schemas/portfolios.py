"""Pydantic schemas for portfolio API endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from portfolio_registry.api.schemas.professional_details import (
    NestedProfessionalDetailsRequest,
)


class PortfolioResponse(BaseModel):
    """Response schema for portfolio data."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    email: str
    user_id: str | None = None
    phone: str | None = None
    profile_image_url: str | None = None
    created_at: datetime
    updated_at: datetime


class PortfolioCreateRequest(BaseModel):
    """Request schema for creating a portfolio."""

    full_name: str = Field(..., description="Full name of the portfolio owner")
    email: str = Field(..., description="Owner email (unique)")
    user_id: str | None = Field(None, description="Identity provider user id")
    phone: str | None = Field(None, description="Phone number")
    profile_image_url: str | None = Field(None, description="Profile image URL")
    professional_details: list[NestedProfessionalDetailsRequest] = Field(
        default_factory=list,
        description="Professional details to create with the portfolio",
    )


class PortfolioUpdateRequest(BaseModel):
    """Request schema for updating a portfolio.

    All fields are optional; only provided fields are updated.
    """

    full_name: str | None = Field(None, description="Full name of the portfolio owner")
    email: str | None = Field(None, description="Owner email (unique)")
    user_id: str | None = Field(None, description="Identity provider user id")
    phone: str | None = Field(None, description="Phone number")
    profile_image_url: str | None = Field(None, description="Profile image URL")
