"""
Tests for configuration loading and the logging/error helpers.
"""
import io
import logging
from unittest.mock import MagicMock, patch

import pytest
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.logging import RichHandler

from honyaku.honyaku.config import (
    ApiConfig,
    HonyakuConfig,
    LoggingConfig,
    NameScoutConfig,
    TranslationConfig,
    get_config,
    setup_config,
)
from honyaku.honyaku.config import manager
from honyaku.honyaku.logging import (
    APIError,
    ConfigError,
    ConsoleSink,
    ExhaustedError,
    HonyakuError,
    LoggingSink,
    ParseError,
    log_api_call,
    setup_logging,
    temporary_log_level,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("API_KEY", "SCOUT_API_KEY", "TRANSLATION_HISTORY_LENGTH", "PATHS_OUTPUT_DIRECTORY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(manager, "_config_instance", None)


def configured(**kwargs):
    return HonyakuConfig(
        api=ApiConfig(key="sk-main"),
        scout_api=manager.ScoutApiConfig(key="sk-scout"),
        **kwargs
    )


# --- config ---

def test_defaults():
    config = HonyakuConfig()
    assert config.translation.chunk_size_chars == 4000
    assert config.translation.retries == 3
    assert config.translation.delay_between_requests_sec == 1.0
    assert config.translation.history_length == 5
    assert config.name_scout.chunk_size_chars == 2500
    assert config.name_scout.json_retries == 3
    assert not config.api.is_configured()


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("API_KEY", "sk-env")
    monkeypatch.setenv("TRANSLATION_HISTORY_LENGTH", "2")

    config = HonyakuConfig()

    assert config.api.key == "sk-env"
    assert config.api.is_configured()
    assert config.translation.history_length == 2


@pytest.mark.parametrize("kwargs", [{"retries": 0}, {"history_length": -1}])
def test_translation_config_validation(kwargs):
    with pytest.raises(PydanticValidationError):
        TranslationConfig(**kwargs)


def test_log_level_validation():
    assert LoggingConfig(file_level="debug").file_level == "DEBUG"
    with pytest.raises(PydanticValidationError):
        LoggingConfig(console_level="LOUD")


def test_validate_for_run():
    configured().validate_for_run(require_scout_api=True)

    with pytest.raises(ConfigError, match="api.key"):
        HonyakuConfig().validate_for_run()

    no_scout = HonyakuConfig(api=ApiConfig(key="sk-main"))
    with pytest.raises(ConfigError, match="scout_api.key"):
        no_scout.validate_for_run(require_scout_api=True)
    no_scout.validate_for_run(require_scout_api=False)


def test_names_dir_defaults_under_output(tmp_path):
    config = HonyakuConfig(paths=manager.PathsConfig(output_directory=tmp_path))
    assert config.names_dir() == tmp_path / "names"

    config = HonyakuConfig(paths=manager.PathsConfig(output_directory=tmp_path, names_directory=tmp_path / "n"))
    assert config.names_dir() == tmp_path / "n"


def test_save_and_load_file(tmp_path):
    config = configured()
    config.translation.history_length = 2
    path = tmp_path / "config" / "honyaku_config.json"

    config.save_to_file(path)
    loaded = HonyakuConfig.load_from_file(path)

    assert loaded.api.key == "sk-main"
    assert loaded.scout_api_config().key == "sk-scout"
    assert loaded.translation.history_length == 2


def test_load_missing_or_broken_file(tmp_path):
    with pytest.raises(ConfigError):
        HonyakuConfig.load_from_file(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    with pytest.raises(ConfigError):
        HonyakuConfig.load_from_file(broken)


def test_setup_config_sets_global():
    config = setup_config(translation=TranslationConfig(history_length=1))
    assert get_config() is config
    assert get_config().translation.history_length == 1


# --- errors ---

def test_error_hierarchy():
    for exc in (ConfigError("x"), ParseError("x"), APIError("x"), ExhaustedError(1)):
        assert isinstance(exc, HonyakuError)


def test_exhausted_error_message():
    err = ExhaustedError(3, ValueError("last"))
    assert err.attempts == 3
    assert "3 attempts" in str(err)
    assert "last" in str(err)


# --- sinks ---

def test_logging_sink_routes_to_logger():
    logger = MagicMock()
    sink = LoggingSink(logger)

    sink.info("a")
    sink.success("b")
    sink.warning("c")
    sink.error("d")

    assert logger.info.call_count == 2
    logger.warning.assert_called_once_with("c")
    logger.error.assert_called_once_with("d")


def test_console_sink_prints_and_logs():
    buffer = io.StringIO()
    logger = MagicMock()
    sink = ConsoleSink(Console(file=buffer, force_terminal=False, width=120), logger)

    sink.success("Saved: 01 - Title.txt")
    sink.error("Something broke")

    output = buffer.getvalue()
    assert "Saved: 01 - Title.txt" in output
    assert "Something broke" in output
    logger.info.assert_called_once_with("Saved: 01 - Title.txt")
    logger.error.assert_called_once_with("Something broke")


def test_log_api_call_masks_secrets():
    api_logger = MagicMock()
    api_logger.isEnabledFor.return_value = True

    with patch("honyaku.honyaku.logging.logging.getLogger", return_value=api_logger):
        log_api_call("https://x/chat/completions", "POST", {"api_key": "sk-secret", "model": "m"})

    message = api_logger.debug.call_args[0][0]
    assert "sk-secret" not in message
    assert "********" in message
    assert "'model': 'm'" in message


def test_log_api_call_skipped_when_debug_disabled():
    api_logger = MagicMock()
    api_logger.isEnabledFor.return_value = False

    with patch("honyaku.honyaku.logging.logging.getLogger", return_value=api_logger):
        log_api_call("https://x", "POST", {"key": "v"})

    api_logger.debug.assert_not_called()


def test_temporary_log_level_restores_console_level():
    setup_logging()
    handler = next(h for h in logging.getLogger().handlers if isinstance(h, RichHandler))
    before = handler.level

    with temporary_log_level(logging.DEBUG):
        assert handler.level == logging.DEBUG

    assert handler.level == before


def test_name_scout_config_fields():
    assert set(NameScoutConfig.model_fields) == {"chunk_size_chars", "delay_between_requests_sec", "json_retries"}
    with pytest.raises(PydanticValidationError):
        NameScoutConfig(json_retries=0)


def test_global_config_created_once_then_replaced_from_file(tmp_path):
    first = get_config()
    assert get_config() is first

    path = tmp_path / "honyaku_config.json"
    configured().save_to_file(path)
    loaded = setup_config(config_file=path)

    assert get_config() is loaded
    assert loaded.api.key == "sk-main"
