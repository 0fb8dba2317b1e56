"""Persistence layer: engine, sessions and ORM models."""
