"""Logging, correlation and request middleware."""
