"""
Progress streaming configuration settings.

Timings for the SSE push channel, broadcaster lifecycle and the
inferencer's throttles.

Dependencies: pydantic, pydantic_settings
System role: Real-time progress channel configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from prd_reviewer.configs.base import BaseSettings


class StreamingSettings(BaseSettings):
    """Push channel and progress event timing configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="STREAM_",
        case_sensitive=False,
        extra="ignore",
    )

    keepalive_interval_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Idle interval before a :keepalive comment is sent",
    )
    attach_poll_interval_seconds: float = Field(
        default=0.5,
        gt=0,
        description="How often a waiting client checks for the review's broadcaster",
    )
    attach_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Maximum time a client waits for a pending review to start",
    )
    teardown_delay_seconds: float = Field(
        default=3.0,
        ge=0,
        description="Grace period before a finished review's broadcaster is removed",
    )
    max_listeners: int = Field(
        default=20,
        ge=1,
        description="Listener count above which the broadcaster logs a warning",
    )
    activity_throttle_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Minimum spacing between activity events of one subagent",
    )
    usage_emit_interval_seconds: float = Field(
        default=5.0,
        ge=0,
        description="Minimum spacing between live usage snapshots",
    )
