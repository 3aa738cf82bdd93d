# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""
perfxray Runtime Package.

Provides configuration, logging setup and the engine that wires the
perfxray components together.

Usage:
    from perfxray.runtime import ModelPerfXrayConfig, PerfXrayEngine

    config = ModelPerfXrayConfig.from_yaml("/path/to/perfxray.yaml")
    with PerfXrayEngine(config) as engine:
        engine.ingest(batch)
        graph = engine.project()
"""

from perfxray.runtime.engine import PerfXrayEngine
from perfxray.runtime.model_runtime_config import (
    LOG_FORMAT,
    ModelPerfXrayConfig,
    configure_logging,
)

__all__ = [
    "LOG_FORMAT",
    "ModelPerfXrayConfig",
    "PerfXrayEngine",
    "configure_logging",
]
