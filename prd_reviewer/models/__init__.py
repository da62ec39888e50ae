"""Pydantic schemas and domain value types."""
