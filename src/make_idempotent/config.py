"""Configuration module for the request-sending protocol.

This module provides the SenderConfig class for configuring how request senders
reconcile existing markers, how receiver calls are timed out, which marker store
backend is used, and how logging is emitted.

Example:
    Basic usage with defaults:

        >>> config = SenderConfig()
        >>> config.unreceived_policy
        'raise'

    Custom configuration:

        >>> config = SenderConfig(
        ...     unreceived_policy="resend",
        ...     call_timeout_seconds=5,
        ...     marker_store="file",
        ...     marker_storage_path="/var/lib/payouts/markers",
        ... )

    Loading from environment:

        >>> import os
        >>> os.environ['MAKE_IDEMPOTENT_MARKER_STORE'] = 'file'
        >>> os.environ['MAKE_IDEMPOTENT_MARKER_TTL_SECONDS'] = '604800'
        >>> config = SenderConfig.from_env()
"""

import logging
import os
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

# Valid log level names, as understood by the logging module
VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

# One year
MAX_MARKER_TTL_SECONDS = 31536000


class SenderConfig(BaseModel):
    """Configuration for request senders and their marker stores.

    Attributes:
        unreceived_policy: What to do when a marker already exists and the
            receiver reports it has not received the request. "raise"
            re-raises RequestAlreadySendingError to the caller. "resend" keeps
            the existing claim and sends the request again, which lets a caller
            that only retries on InconclusiveRequestError recover from a lost
            request. Default is "raise".
        call_timeout_seconds: If set, receiver calls made by senders from
            RequestSenderFactory are cancelled after this many seconds and
            reported as inconclusive. Must be in (0, 300]. Default is None.
        marker_store: Marker store backend: "memory" or "file". Default is
            "memory".
        marker_storage_path: Directory for the file marker store. Default is
            "/tmp/make_idempotent".
        marker_ttl_seconds: Lifetime of stored markers, or None for markers
            that never expire. Must be between 1 and 31536000 (1 year).
            Default is None.
        cleanup_interval_seconds: Time between marker cleanup runs. Must be
            between 1 and 86400. Default is 300.
        log_level: Log level name. Default is "INFO".
        json_logs: Emit JSON logs if True, console logs otherwise. Default is
            True.

    Note:
        This class is immutable (frozen=True). Create a new instance if you
        need different settings.
    """

    unreceived_policy: Literal["raise", "resend"] = Field(
        default="raise",
        description="Reconciliation policy when a marker exists but the receiver has nothing",
    )
    call_timeout_seconds: float | None = Field(
        default=None,
        description="Timeout for receiver calls, reported as inconclusive (0-300)",
    )
    marker_store: Literal["memory", "file"] = Field(
        default="memory",
        description="Marker store backend",
    )
    marker_storage_path: str = Field(
        default="/tmp/make_idempotent",
        description="Directory path for the file marker store",
    )
    marker_ttl_seconds: int | None = Field(
        default=None,
        description="Lifetime of markers in seconds, None to keep them forever",
    )
    cleanup_interval_seconds: int = Field(
        default=300,
        description="Time in seconds between marker cleanup runs (1-86400)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level name",
    )
    json_logs: bool = Field(
        default=True,
        description="Emit JSON logs instead of console output",
    )

    model_config = {"frozen": True}

    @field_validator("call_timeout_seconds")
    @classmethod
    def validate_call_timeout_seconds(cls, v: float | None) -> float | None:
        """Validate the receiver call timeout.

        Raises:
            ValueError: If the timeout is not in (0, 300].
        """
        if v is not None and not (0 < v <= 300):
            raise ValueError(f"call_timeout_seconds must be in (0, 300], got {v}")
        return v

    @field_validator("marker_ttl_seconds")
    @classmethod
    def validate_marker_ttl_seconds(cls, v: int | None) -> int | None:
        """Validate marker TTL is within acceptable range.

        Raises:
            ValueError: If TTL is not between 1 and 31536000 (1 year).
        """
        if v is not None and not (1 <= v <= MAX_MARKER_TTL_SECONDS):
            raise ValueError(
                f"marker_ttl_seconds must be between 1 and {MAX_MARKER_TTL_SECONDS} (1 year), got {v}"
            )
        return v

    @field_validator("cleanup_interval_seconds")
    @classmethod
    def validate_cleanup_interval_seconds(cls, v: int) -> int:
        """Validate cleanup interval is within acceptable range.

        Raises:
            ValueError: If interval is not between 1 and 86400 (1 day).
        """
        if not (1 <= v <= 86400):
            raise ValueError(f"cleanup_interval_seconds must be between 1 and 86400, got {v}")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: Any) -> str:
        """Normalize and validate the log level name.

        Example:
            >>> SenderConfig(log_level="debug").log_level
            'DEBUG'
        """
        if not isinstance(v, str):
            raise ValueError("log_level must be a string")
        level = v.strip().upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid log level: {v}. Valid levels are: {', '.join(sorted(VALID_LOG_LEVELS))}"
            )
        return level

    @property
    def log_level_number(self) -> int:
        """The numeric logging level for ``log_level``."""
        return getattr(logging, self.log_level)

    @classmethod
    def from_env(cls, prefix: str = "MAKE_IDEMPOTENT_") -> "SenderConfig":
        """Create configuration from environment variables.

        Variable names are uppercase field names with the prefix. The literal
        string "none" (any case) clears an optional field.

        Args:
            prefix: Prefix for environment variable names.

        Returns:
            SenderConfig instance populated from environment variables.

        Example:
            >>> os.environ['MAKE_IDEMPOTENT_UNRECEIVED_POLICY'] = 'resend'
            >>> os.environ['MAKE_IDEMPOTENT_CALL_TIMEOUT_SECONDS'] = '2.5'
            >>> config = SenderConfig.from_env()
            >>> config.call_timeout_seconds
            2.5
        """
        config_dict: dict[str, Any] = {}

        # Map of field names to their types for proper conversion
        field_types: dict[str, type] = {
            "unreceived_policy": str,
            "call_timeout_seconds": float,
            "marker_store": str,
            "marker_storage_path": str,
            "marker_ttl_seconds": int,
            "cleanup_interval_seconds": int,
            "log_level": str,
            "json_logs": bool,
        }
        optional_fields = {"call_timeout_seconds", "marker_ttl_seconds"}

        for field_name, field_type in field_types.items():
            env_var = f"{prefix}{field_name.upper()}"
            env_value = os.environ.get(env_var)

            if env_value is None:
                continue

            if field_name in optional_fields and env_value.strip().lower() == "none":
                config_dict[field_name] = None
            elif field_type is int:
                config_dict[field_name] = int(env_value)
            elif field_type is float:
                config_dict[field_name] = float(env_value)
            elif field_type is bool:
                config_dict[field_name] = env_value.strip().lower() in ("1", "true", "yes", "on")
            else:
                config_dict[field_name] = env_value

        return cls(**config_dict)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> "SenderConfig":
        """Create configuration from a dictionary.

        Raises:
            ValidationError: If the dictionary contains invalid values.
        """
        return cls(**config_dict)
