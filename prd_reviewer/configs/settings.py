"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from prd_reviewer.configs.agents import AgentSettings
from prd_reviewer.configs.base import BaseSettings
from prd_reviewer.configs.database import DatabaseSettings
from prd_reviewer.configs.storage import StorageSettings
from prd_reviewer.configs.streaming import StreamingSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    database: DatabaseSettings = DatabaseSettings()
    agents: AgentSettings = AgentSettings()
    streaming: StreamingSettings = StreamingSettings()
    storage: StorageSettings = StorageSettings()


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from prd_reviewer.configs import get_settings
        settings = get_settings()
    """
    return Settings()
