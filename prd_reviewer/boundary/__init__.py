"""Adapters to external systems: database, file storage, agent engine."""
