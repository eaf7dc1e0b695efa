"""
Runtime Configuration Module

Provides configuration loading and management for the service.
"""

from .runtime import (
    DEFAULT_CONFIG_PATHS,
    AttestationConfig,
    HealthConfig,
    MetadataConfig,
    RuntimeConfig,
    ServiceConfig,
    load_runtime_config,
)

__all__ = [
    "DEFAULT_CONFIG_PATHS",
    "AttestationConfig",
    "HealthConfig",
    "MetadataConfig",
    "RuntimeConfig",
    "ServiceConfig",
    "load_runtime_config",
]
