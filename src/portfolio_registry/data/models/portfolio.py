"""ORM model representing a user's portfolio.

A portfolio owns any number of :class:`ProfessionalDetails` rows. Deleting a
portfolio deletes its details (ORM ``delete-orphan`` cascade plus a
``ON DELETE CASCADE`` foreign key on the child table).
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portfolio_registry.data.db import Base

if TYPE_CHECKING:
    from portfolio_registry.data.models.professional_details import ProfessionalDetails


class Portfolio(Base):
    """Public profile of a single person.

    Attributes:
        id: Auto-incrementing primary key.
        full_name: Display name of the portfolio owner.
        email: Owner email, unique across portfolios. Used for ownership checks.
        user_id: Identifier issued by the external identity provider (optional, unique).
        phone: Contact phone number.
        profile_image_url: URL of the profile picture.
        created_at: UTC timestamp when the portfolio was created.
        updated_at: UTC timestamp when the portfolio was last updated.
    """

    __tablename__ = "portfolio"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    user_id: Mapped[str | None] = mapped_column(String(128), nullable=True, unique=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    profile_image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    professional_details: Mapped[list[ProfessionalDetails]] = relationship(
        "ProfessionalDetails",
        back_populates="portfolio",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Portfolio id={self.id} email={self.email!r}>"
