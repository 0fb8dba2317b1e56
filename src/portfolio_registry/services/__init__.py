"""Service layer: portfolio and professional-details operations."""
