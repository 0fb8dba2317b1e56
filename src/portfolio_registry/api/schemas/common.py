"""Shared Pydantic schemas for API responses."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CountResponse(BaseModel):
    """Number of matching records."""

    count: int = Field(description="Number of records")


class ExistsResponse(BaseModel):
    """Whether a matching record exists."""

    exists: bool
