"""Route handlers for the API."""

from portfolio_registry.api.routes import health, portfolios, professional_details

__all__ = ["health", "portfolios", "professional_details"]
