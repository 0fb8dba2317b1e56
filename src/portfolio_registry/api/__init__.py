"""FastAPI application exposing the portfolio registry services."""
