"""Configuration contract for permtree.

This module provides the Pydantic-validated configuration model used by the
logging setup, the group helpers and the permissions differ.

Direct os.environ/os.getenv usage is confined to load_config_from_env();
everything else receives a PermissionsConfig instance.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError


class LogLevel(str, Enum):
    """Standard log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class DiffConvention(str, Enum):
    """How a changed table is classified as granted or revoked.

    - NEW_VALUE: revoked when the new value is ``none``, granted otherwise.
    - ENDPOINT_NONE: granted when leaving ``none``, revoked when entering
      ``none``; changes between two non-``none`` values are not reported.
    """

    NEW_VALUE = "new_value"
    ENDPOINT_NONE = "endpoint_none"


class PermissionsConfig(BaseModel):
    """Configuration for a permissions editing session.

    Environment variables:
        LOG_LEVEL                    logging level
        LOG_JSON                     JSON log format (true/false)
        PERMISSIONS_ADMIN_GROUP      name of the fixed, non-editable group
        PERMISSIONS_DEFAULT_GROUP    name of the group every user belongs to
        PERMISSIONS_DIFF_CONVENTION  new_value | endpoint_none
    """

    # Logging
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Use JSON log format (default: plain text)",
    )

    # Groups
    admin_group_name: str = Field(
        default="Administrators",
        description="Group shown in the grid but never editable",
    )
    default_group_name: str = Field(
        default="All Users",
        description="Group whose membership cannot be edited",
    )

    # Diff
    diff_convention: DiffConvention = Field(
        default=DiffConvention.NEW_VALUE,
        description="Granted/revoked classification policy for table changes",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Convert string to LogLevel enum."""
        if isinstance(v, LogLevel):
            return v
        if isinstance(v, str):
            try:
                return LogLevel[v.upper()]
            except KeyError:
                raise ValueError(f"Invalid log level: {v}. Must be one of {[e.value for e in LogLevel]}")
        raise ValueError(f"Log level must be string or LogLevel enum, got {type(v)}")

    @field_validator("diff_convention", mode="before")
    @classmethod
    def validate_diff_convention(cls, v: str | DiffConvention) -> DiffConvention:
        if isinstance(v, DiffConvention):
            return v
        if isinstance(v, str):
            try:
                return DiffConvention(v.lower())
            except ValueError:
                raise ValueError(
                    f"Invalid diff convention: {v}. Must be one of {[e.value for e in DiffConvention]}"
                )
        raise ValueError(f"Diff convention must be string or DiffConvention enum, got {type(v)}")

    model_config = {
        "extra": "forbid",
    }


def load_config_from_env() -> PermissionsConfig:
    """Load configuration from environment variables.

    This is the ONLY place where os.getenv is allowed.

    Environment variables:
    - LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - LOG_JSON: Use JSON log format (true/false, default: false)
    - PERMISSIONS_ADMIN_GROUP: Administrators group name
    - PERMISSIONS_DEFAULT_GROUP: All-users group name
    - PERMISSIONS_DIFF_CONVENTION: new_value | endpoint_none

    Returns:
        PermissionsConfig instance with values from environment or defaults.

    Raises:
        ConfigurationError: An environment variable holds an invalid value.
    """
    import os

    try:
        return PermissionsConfig(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_json=os.getenv("LOG_JSON", "false").lower() in ("true", "1", "yes"),
            admin_group_name=os.getenv("PERMISSIONS_ADMIN_GROUP", "Administrators"),
            default_group_name=os.getenv("PERMISSIONS_DEFAULT_GROUP", "All Users"),
            diff_convention=os.getenv("PERMISSIONS_DIFF_CONVENTION", DiffConvention.NEW_VALUE.value),
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid permissions configuration: {e}") from e


__all__ = [
    "DiffConvention",
    "LogLevel",
    "PermissionsConfig",
    "load_config_from_env",
]
