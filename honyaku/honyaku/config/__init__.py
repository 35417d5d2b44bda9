"""
Configuration package for Honyaku.

This package provides centralized, type-safe configuration management.
"""

from .manager import (
    ApiConfig,
    ScoutApiConfig,
    TranslationConfig,
    NameScoutConfig,
    PromptsConfig,
    PathsConfig,
    LoggingConfig,
    HonyakuConfig,
    setup_config,
    get_config,
)

__all__ = [
    "ApiConfig",
    "ScoutApiConfig",
    "TranslationConfig",
    "NameScoutConfig",
    "PromptsConfig",
    "PathsConfig",
    "LoggingConfig",
    "HonyakuConfig",
    "setup_config",
    "get_config",
]
