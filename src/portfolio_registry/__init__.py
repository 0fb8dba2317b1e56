"""Portfolio registry: portfolios and their professional-detail records."""

__version__ = "0.1.0"
