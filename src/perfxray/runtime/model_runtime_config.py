# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT
"""
perfxray Runtime Configuration Model.

This module provides the application-level configuration for a process
hosting the perfxray engine: event store bounds, the regression threshold,
snapshot storage location and limits, and the log level.

Design Decisions:
    - Uses Pydantic for validation and serialization
    - Supports environment variable interpolation (e.g., ${PERFXRAY_HOME})
    - Supports loading from YAML files
    - Supports loading from environment variables

Example:
    # Load from YAML
    config = ModelPerfXrayConfig.from_yaml("/path/to/perfxray.yaml")

    # Load from environment
    config = ModelPerfXrayConfig.from_environment()

    configure_logging(config)
    engine = PerfXrayEngine(config)
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from perfxray.constants import (
    DEFAULT_COMPRESSION_LEVEL,
    DEFAULT_EVENT_CAPACITY,
    DEFAULT_EVENT_RETENTION_MS,
    DEFAULT_MAX_SNAPSHOT_AGE_DAYS,
    DEFAULT_MAX_SNAPSHOTS,
    DEFAULT_REGRESSION_THRESHOLD_PERCENT,
)
from perfxray.enums import EnumLogLevel

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)\}")


class ModelPerfXrayConfig(BaseModel):
    """
    Configuration for the perfxray engine.

    Attributes:
        log_level: Logging level applied by configure_logging.
        event_capacity: Maximum live events in the event store.
        event_retention_ms: Age beyond which events are evicted on cleanup.
        regression_threshold_percent: Default comparison threshold.
        snapshot_dir: Snapshot storage directory; None disables persistence.
        max_snapshots: Maximum number of stored snapshots.
        max_snapshot_age_days: Snapshots older than this are removed.
        compression_level: gzip level used by the snapshot codec.
    """

    log_level: EnumLogLevel = Field(
        default=EnumLogLevel.INFO,
        description="Logging level for the engine",
    )

    event_capacity: int = Field(
        default=DEFAULT_EVENT_CAPACITY,
        ge=1,
        description="Maximum number of live call events",
    )

    event_retention_ms: float = Field(
        default=DEFAULT_EVENT_RETENTION_MS,
        ge=0,
        description="Retention window applied by event store cleanup",
    )

    regression_threshold_percent: float = Field(
        default=DEFAULT_REGRESSION_THRESHOLD_PERCENT,
        gt=0,
        allow_inf_nan=False,
        description="Minimum percent change classified as improved or regressed",
    )

    snapshot_dir: Path | None = Field(
        default=None,
        description="Directory for snapshot files (None disables persistence)",
        examples=["~/.perfxray/snapshots", "/var/lib/perfxray/snapshots"],
    )

    max_snapshots: int = Field(
        default=DEFAULT_MAX_SNAPSHOTS,
        ge=1,
        description="Maximum number of stored snapshots",
    )

    max_snapshot_age_days: float = Field(
        default=DEFAULT_MAX_SNAPSHOT_AGE_DAYS,
        gt=0,
        description="Maximum snapshot age in days",
    )

    compression_level: int = Field(
        default=DEFAULT_COMPRESSION_LEVEL,
        ge=1,
        le=9,
        description="gzip compression level for snapshots",
    )

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
    )

    @field_validator("snapshot_dir")
    @classmethod
    def expand_snapshot_dir(cls, v: Path | None) -> Path | None:
        """Expand a leading ``~`` in the snapshot directory."""
        return v.expanduser() if v is not None else None

    # ==========================================
    # Environment Variable Interpolation
    # ==========================================

    @staticmethod
    def _interpolate_env_vars(value: Any) -> Any:
        """
        Recursively interpolate environment variables in configuration values.

        Supports ${VAR_NAME} syntax for environment variable references.

        Raises:
            ValueError: If referenced environment variable is not set.
        """
        if isinstance(value, str):
            for var_name in _ENV_VAR_PATTERN.findall(value):
                env_value = os.environ.get(var_name)
                if env_value is None:
                    raise ValueError(
                        f"Environment variable '{var_name}' is not set "
                        f"(referenced in value: {value})"
                    )
                value = value.replace(f"${{{var_name}}}", env_value)
            return value

        if isinstance(value, dict):
            return {
                k: ModelPerfXrayConfig._interpolate_env_vars(v)
                for k, v in value.items()
            }

        if isinstance(value, list):
            return [ModelPerfXrayConfig._interpolate_env_vars(v) for v in value]

        return value

    # ==========================================
    # Factory Methods
    # ==========================================

    @classmethod
    def from_yaml(
        cls,
        path: str | Path,
        *,
        interpolate_env: bool = True,
    ) -> ModelPerfXrayConfig:
        """
        Load configuration from a YAML file.

        Args:
            path: Path to the YAML configuration file.
            interpolate_env: Whether to interpolate environment variables.

        Raises:
            FileNotFoundError: If configuration file does not exist.
            yaml.YAMLError: If YAML parsing fails.
            ValueError: If environment variable interpolation fails.
            pydantic.ValidationError: If configuration validation fails.
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if data is None:
            data = {}

        if interpolate_env:
            data = cls._interpolate_env_vars(data)

        return cls.model_validate(data)

    @classmethod
    def from_environment(
        cls,
        prefix: str = "PERFXRAY_",
    ) -> ModelPerfXrayConfig:
        """
        Load configuration from environment variables.

        Supports environment variables with the given prefix:
        - PERFXRAY_LOG_LEVEL
        - PERFXRAY_EVENT_CAPACITY
        - PERFXRAY_EVENT_RETENTION_MS
        - PERFXRAY_REGRESSION_THRESHOLD_PERCENT
        - PERFXRAY_SNAPSHOT_DIR
        - PERFXRAY_MAX_SNAPSHOTS
        - PERFXRAY_MAX_SNAPSHOT_AGE_DAYS
        - PERFXRAY_COMPRESSION_LEVEL

        Unset variables keep their defaults; values are validated by the
        model, so malformed numbers raise pydantic.ValidationError.
        """
        config_data: dict[str, Any] = {}

        for field_name in cls.model_fields:
            if (value := os.environ.get(f"{prefix}{field_name.upper()}")) is not None:
                config_data[field_name] = value

        return cls.model_validate(config_data)

    def to_yaml(self, path: str | Path) -> None:
        """Save configuration to a YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                self.model_dump(mode="json"),
                f,
                default_flow_style=False,
                sort_keys=False,
            )


def configure_logging(config: ModelPerfXrayConfig) -> None:
    """Apply the configured log level with the project log format."""
    logging.basicConfig(
        level=config.log_level.to_logging_level(),
        format=LOG_FORMAT,
    )


__all__ = ["LOG_FORMAT", "ModelPerfXrayConfig", "configure_logging"]
