"""ORM models package for database tables.

- Portfolio: one person's public profile (root record)
- ProfessionalDetails: a skill/experience entry owned by exactly one Portfolio

All models inherit from the shared Base declarative class defined in data.db.
"""

from portfolio_registry.data.db import Base
from portfolio_registry.data.models.portfolio import Portfolio
from portfolio_registry.data.models.professional_details import ProfessionalDetails

__all__ = ["Base", "Portfolio", "ProfessionalDetails"]
