"""
RunCache — Configuration Schemas

Defines typed configuration models using Pydantic for validation and type safety.
All configuration is read from environment variables and validated on load.
"""

from enum import Enum

from pydantic import BaseModel, Field, field_validator


class Environment(str, Enum):
    """Runtime environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    TEXT = "text"


class EventDispatch(str, Enum):
    """
    How the event bus runs subscriber callbacks.

    AWAIT: each handler is awaited in subscription order before the
        emitting operation continues; handler exceptions propagate.
    BACKGROUND: sync handlers run inline and coroutine handlers are
        scheduled as tasks; the emitting operation continues immediately
        and handler failures of either kind are logged.
    """

    AWAIT = "await"
    BACKGROUND = "background"


class RunCacheConfig(BaseModel):
    """Root configuration for RunCache."""

    environment: Environment = Field(default=Environment.DEVELOPMENT, description="Runtime environment")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_format: LogFormat = Field(default=LogFormat.JSON, description="Log output format")
    event_dispatch: EventDispatch = Field(
        default=EventDispatch.AWAIT,
        description="Event handler dispatch policy ('await' or 'background')",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: object) -> object:
        """Accept log levels in any letter case."""
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("log_format", "event_dispatch", mode="before")
    @classmethod
    def normalize_lowercase(cls, v: object) -> object:
        """Accept enum values in any letter case."""
        if isinstance(v, str):
            return v.lower()
        return v
