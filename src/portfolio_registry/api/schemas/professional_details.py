"""Pydantic schemas for professional details API endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ProfessionalDetailsResponse(BaseModel):
    """Response schema for a professional details entry."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    portfolio_id: int
    skills: str
    experience: str
    experience_years: int | None = None
    job_role: str
    company_name: str | None = None
    summary: str | None = None
    updated_at: datetime


class NestedProfessionalDetailsRequest(BaseModel):
    """Professional details created together with their portfolio."""

    skills: str = Field(..., description="Skills, e.g. 'Python, SQL'")
    experience: str = Field(..., description="Experience, e.g. '5 years'")
    job_role: str = Field(..., description="Job title or role")
    company_name: str | None = Field(None, description="Company name")
    summary: str | None = Field(None, description="Short description of the role")


class ProfessionalDetailsCreateRequest(NestedProfessionalDetailsRequest):
    """Request schema for creating a professional details entry."""

    portfolio_id: int = Field(..., description="ID of the owning portfolio")


class ProfessionalDetailsUpdateRequest(BaseModel):
    """Request schema for updating a professional details entry.

    All fields are optional; only provided fields are updated.
    """

    portfolio_id: int | None = Field(None, description="Move the entry to this portfolio")
    skills: str | None = Field(None, description="Skills")
    experience: str | None = Field(None, description="Experience, e.g. '5 years'")
    job_role: str | None = Field(None, description="Job title or role")
    company_name: str | None = Field(None, description="Company name")
    summary: str | None = Field(None, description="Short description of the role")
