"""ProfessionalDetails model for skill and work entries.

Each row belongs to exactly one :class:`Portfolio`. ``experience`` keeps the
free text the user entered; ``experience_years`` holds the whole number of
years parsed from its leading digits so range filters can run in SQL.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from portfolio_registry.data.db import Base

if TYPE_CHECKING:
    from portfolio_registry.data.models.portfolio import Portfolio

SKILLS_MAX_LENGTH = 500
EXPERIENCE_MAX_LENGTH = 255
JOB_ROLE_MAX_LENGTH = 255
COMPANY_NAME_MAX_LENGTH = 255
SUMMARY_MAX_LENGTH = 1000

# Leading numbers above this are not read as years
MAX_EXPERIENCE_YEARS = 100

_LEADING_YEARS = re.compile(r"^\s*(\d+)")


def parse_experience_years(experience: str | None) -> int | None:
    """Return the whole number of years at the start of ``experience``.

    ``"5"``, ``"5 years"`` and ``"5.5 yrs"`` all give 5; text without a
    leading number (``"senior"``), or a number above
    ``MAX_EXPERIENCE_YEARS``, gives None.
    """
    if not experience:
        return None
    match = _LEADING_YEARS.match(experience)
    if match is None:
        return None
    years = int(match.group(1))
    return years if years <= MAX_EXPERIENCE_YEARS else None


class ProfessionalDetails(Base):
    """Skill / experience entry attached to a portfolio.

    Attributes:
        id: Auto-incrementing primary key.
        portfolio_id: Foreign key to the owning portfolio.
        skills: Comma separated (or free form) list of skills.
        experience: Experience as entered, e.g. "5 years".
        experience_years: Years parsed from ``experience``; None when not numeric.
        job_role: Job title / role.
        company_name: Employer name.
        summary: Short description of the role.
        updated_at: UTC timestamp when the record was last updated.
    """

    __tablename__ = "professional_details"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    portfolio_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("portfolio.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    skills: Mapped[str] = mapped_column(String(SKILLS_MAX_LENGTH), nullable=False)
    experience: Mapped[str] = mapped_column(String(EXPERIENCE_MAX_LENGTH), nullable=False)
    experience_years: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    job_role: Mapped[str] = mapped_column(String(JOB_ROLE_MAX_LENGTH), nullable=False)
    company_name: Mapped[str | None] = mapped_column(
        String(COMPANY_NAME_MAX_LENGTH), nullable=True
    )
    summary: Mapped[str | None] = mapped_column(String(SUMMARY_MAX_LENGTH), nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    # Relationships
    portfolio: Mapped[Portfolio] = relationship("Portfolio", back_populates="professional_details")

    @validates("experience")
    def validate_experience(self, key: str, value: str) -> str:
        """Keep ``experience_years`` in step with ``experience``."""
        self.experience_years = parse_experience_years(value)
        return value

    def __repr__(self) -> str:
        return f"<ProfessionalDetails id={self.id} portfolio_id={self.portfolio_id}>"
