"""
Centralized configuration management for Honyaku.

This module provides type-safe, validated configuration using Pydantic.
Values come from environment variables and the .env file; a JSON file can be
used to persist or share a complete configuration.
"""

import json
from pathlib import Path
from typing import Optional, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..constants import (
    API_KEY_PLACEHOLDER,
    DEFAULT_API_BASE_URL,
    DEFAULT_API_MODEL,
    DEFAULT_API_TIMEOUT,
    TRANSLATION_CHUNK_SIZE_CHARS,
    TRANSLATION_RETRIES,
    TRANSLATION_DELAY_SEC,
    TRANSLATION_HISTORY_LENGTH,
    NAME_SCOUT_CHUNK_SIZE_CHARS,
    NAME_SCOUT_DELAY_SEC,
    NAME_SCOUT_JSON_RETRIES,
    TITLE_TRANSLATION_PROMPT,
    CONTENT_TRANSLATION_PROMPT,
    NAME_SCOUT_PROMPT,
    LOG_FILENAME,
)
from ..logging import ConfigError


class ApiConfig(BaseSettings):
    """Configuration for the OpenAI-compatible translation endpoint"""

    model_config = SettingsConfigDict(
        env_prefix="API_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    key: str = Field(default=API_KEY_PLACEHOLDER, description="API key (bearer token)")
    base_url: str = Field(default=DEFAULT_API_BASE_URL, description="Base URL for the API")
    model: str = Field(default=DEFAULT_API_MODEL, description="Model identifier")
    timeout: int = Field(default=DEFAULT_API_TIMEOUT, description="Request timeout in seconds")

    def is_configured(self) -> bool:
        """True if the key is set to something other than the placeholder."""
        return bool(self.key) and self.key != API_KEY_PLACEHOLDER


class ScoutApiConfig(ApiConfig):
    """Separate endpoint used for name scouting"""

    model_config = SettingsConfigDict(
        env_prefix="SCOUT_API_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )


class TranslationConfig(BaseSettings):
    """Configuration for translation behavior"""

    model_config = SettingsConfigDict(
        env_prefix="TRANSLATION_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    chunk_size_chars: int = Field(default=TRANSLATION_CHUNK_SIZE_CHARS, description="Maximum characters per chunk")
    retries: int = Field(default=TRANSLATION_RETRIES, description="Attempts per chunk")
    delay_between_requests_sec: float = Field(default=TRANSLATION_DELAY_SEC, description="Delay after each request")
    history_length: int = Field(default=TRANSLATION_HISTORY_LENGTH, description="Request/response pairs kept as context")

    @field_validator('retries')
    @classmethod
    def validate_retries(cls, v: int) -> int:
        if v < 1:
            raise ValueError("retries must be at least 1")
        return v

    @field_validator('history_length')
    @classmethod
    def validate_history_length(cls, v: int) -> int:
        if v < 0:
            raise ValueError("history_length must not be negative")
        return v


class NameScoutConfig(BaseSettings):
    """Configuration for the name scout"""

    model_config = SettingsConfigDict(
        env_prefix="NAME_SCOUT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    chunk_size_chars: int = Field(default=NAME_SCOUT_CHUNK_SIZE_CHARS, description="Maximum characters per chunk")
    delay_between_requests_sec: float = Field(default=NAME_SCOUT_DELAY_SEC, description="Delay before each request")
    json_retries: int = Field(default=NAME_SCOUT_JSON_RETRIES, description="Attempts per chunk for a usable JSON answer")

    @field_validator('json_retries')
    @classmethod
    def validate_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("attempt counts must be at least 1")
        return v


class PromptsConfig(BaseSettings):
    """System prompts sent with every request"""

    model_config = SettingsConfigDict(
        env_prefix="PROMPTS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    title_translation: str = Field(default=TITLE_TRANSLATION_PROMPT)
    content_translation: str = Field(default=CONTENT_TRANSLATION_PROMPT)
    name_scout: str = Field(default=NAME_SCOUT_PROMPT)


class PathsConfig(BaseSettings):
    """Where translated works and name mappings live"""

    model_config = SettingsConfigDict(
        env_prefix="PATHS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    output_directory: Path = Field(default=Path("."), description="Directory for translated works")
    names_directory: Optional[Path] = Field(default=None, description="Directory for name mapping files")
    editor_command: Optional[str] = Field(default=None, description="Editor used for name review")


class LoggingConfig(BaseSettings):
    """Configuration for logging behavior"""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    file_level: str = Field(default="INFO", description="File logging level")
    console_level: str = Field(default="WARNING", description="Console logging level")
    log_file: str = Field(default=LOG_FILENAME, description="Log file path")

    @field_validator('file_level', 'console_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log level is one of the allowed values"""
        valid_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()


class HonyakuConfig(BaseSettings):
    """
    Main configuration class for Honyaku.

    This class serves as the single source of truth for all configuration.
    It automatically loads from environment variables and .env files.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore"
    )

    api: ApiConfig = Field(default_factory=ApiConfig, description="Translation API")
    scout_api: Optional[ScoutApiConfig] = Field(default_factory=ScoutApiConfig, description="Name scout API")
    translation: TranslationConfig = Field(default_factory=TranslationConfig)
    name_scout: NameScoutConfig = Field(default_factory=NameScoutConfig)
    prompts: PromptsConfig = Field(default_factory=PromptsConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def validate_for_run(self, require_scout_api: bool = True) -> None:
        """
        Checks the settings a translation run cannot do without.

        Raises:
            ConfigError: naming the first missing or invalid value.
        """
        if not self.api.is_configured():
            raise ConfigError("Missing required config value: api.key (set API_KEY in .env)")

        if require_scout_api:
            self.scout_api_config()

        if self.translation.chunk_size_chars <= 0:
            raise ConfigError("Invalid config value for 'translation.chunk_size_chars': must be greater than 0")
        if self.name_scout.chunk_size_chars <= 0:
            raise ConfigError("Invalid config value for 'name_scout.chunk_size_chars': must be greater than 0")

    def scout_api_config(self) -> ApiConfig:
        """Returns the API settings used for name scouting."""
        if self.scout_api is None or not self.scout_api.is_configured():
            raise ConfigError("Missing required config value: scout_api.key (set SCOUT_API_KEY in .env)")
        return self.scout_api

    def names_dir(self) -> Path:
        """Directory for name mapping files, defaulting to <output>/names."""
        if self.paths.names_directory is not None:
            return self.paths.names_directory.expanduser()
        return self.output_dir() / "names"

    def output_dir(self) -> Path:
        return self.paths.output_directory.expanduser()

    def save_to_file(self, path: Union[str, Path]) -> None:
        """
        Save configuration to a JSON file.

        Args:
            path: Path to save the configuration file
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        config_dict = self.model_dump(mode='json')

        with open(path, "w", encoding="utf-8") as f:
            json.dump(config_dict, f, indent=2, ensure_ascii=False)

    @classmethod
    def load_from_file(cls, path: Union[str, Path]) -> "HonyakuConfig":
        """
        Load configuration from a JSON file.

        Raises:
            ConfigError: If the file is missing or not valid JSON.
        """
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise ConfigError(f"Failed to read configuration file {path}: {e}") from e

        return cls(**data)


# Global configuration instance
_config_instance: Optional[HonyakuConfig] = None


def setup_config(
    config_file: Optional[Union[str, Path]] = None,
    env_file: Optional[Union[str, Path]] = None,
    **kwargs
) -> HonyakuConfig:
    """
    Set up the global configuration.

    Args:
        config_file: Optional JSON file to load instead of the environment
        env_file: Path to .env file
        **kwargs: Additional configuration overrides
    """
    global _config_instance

    if config_file:
        _config_instance = HonyakuConfig.load_from_file(config_file)
        return _config_instance

    config_kwargs = {}
    if env_file:
        config_kwargs["_env_file"] = str(env_file)
    config_kwargs.update(kwargs)

    _config_instance = HonyakuConfig(**config_kwargs)
    return _config_instance


def get_config() -> HonyakuConfig:
    """Get the global configuration instance, creating it from the environment if needed."""
    global _config_instance
    if _config_instance is None:
        _config_instance = HonyakuConfig()
    return _config_instance


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
