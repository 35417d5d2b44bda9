"""
Centralized logging and error handling for Honyaku.

This module provides consistent logging configuration, the exception
hierarchy shared by the name store, scout, translator and API client, and the
output sinks those components report progress through.
"""

import logging
from contextlib import contextmanager
from typing import Optional, Protocol, Union

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel

from .constants import LOG_FILENAME

# Global console instance for the entire application
console = Console()


class HonyakuError(Exception):
    """Base exception for all Honyaku-specific errors."""
    pass


class ConfigError(HonyakuError):
    """Raised when there's a configuration-related error."""
    pass


class TransportError(HonyakuError):
    """Raised when the HTTP request itself fails (connection, timeout)."""
    pass


class APIError(HonyakuError):
    """Raised when the LLM API answers with a non-2xx status or an error body."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ParseError(HonyakuError):
    """Raised when JSON from the model or from a name mapping file is malformed."""
    pass


class RefusedError(HonyakuError):
    """Raised when the model declines the task or returns nothing."""
    pass


class ExhaustedError(HonyakuError):
    """Raised when the retries for a request have all failed."""

    def __init__(self, attempts: int, last_error: Optional[Exception] = None):
        message = f"All retries exhausted after {attempts} attempts"
        if last_error is not None:
            message += f": {last_error}"
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


class FileError(HonyakuError):
    """Raised when a file operation fails."""
    pass


class ValidationError(HonyakuError):
    """Raised when data validation fails."""
    pass


class OutputSink(Protocol):
    """Where components report what they are doing."""

    def info(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LoggingSink:
    """Sink that forwards everything to a standard logger. Used when no sink is injected."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("honyaku")

    def info(self, message: str) -> None:
        self.logger.info(message)

    def success(self, message: str) -> None:
        self.logger.info(message)

    def warning(self, message: str) -> None:
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.logger.error(message)


class ConsoleSink:
    """
    Sink for interactive runs: styled lines on the rich console, plain text in the log file.
    """

    def __init__(self, output: Optional[Console] = None, logger: Optional[logging.Logger] = None):
        self.console = output or console
        self.logger = logger or logging.getLogger("honyaku.console")

    def info(self, message: str) -> None:
        self.console.print(f"[cyan]ℹ[/cyan] {escape(message)}", highlight=False)
        self.logger.info(message)

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {escape(message)}", highlight=False)
        self.logger.info(message)

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠ {escape(message)}[/yellow]", highlight=False)
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.console.print(f"[bold red]✗ {escape(message)}[/bold red]", highlight=False)
        self.logger.error(message)


class HonyakuLogger:
    """
    Centralized logging configuration for Honyaku.

    Log file gets full detail, the console only warnings and errors unless
    the level is lowered with set_console_level.
    """

    def __init__(self, log_file: str = LOG_FILENAME):
        self.log_file = log_file
        self.console = console
        self._setup_root_logger()

    def _setup_root_logger(self) -> None:
        """Configure the root logger with file and console handlers."""
        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        # File handler (full detail) - UTF-8 because the text is Japanese
        file_handler = logging.FileHandler(self.log_file, encoding='utf-8')
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(file_formatter)

        console_handler = RichHandler(
            console=self.console,
            show_path=False,
            show_time=True,
            show_level=True,
            markup=False,
            keywords=[]
        )
        console_handler.setLevel(logging.WARNING)

        root_logger = logging.getLogger()
        root_logger.setLevel(logging.INFO)

        # Clear existing handlers to avoid duplicates
        root_logger.handlers = []
        root_logger.addHandler(file_handler)
        root_logger.addHandler(console_handler)

    def get_logger(self, name: str) -> logging.Logger:
        return logging.getLogger(name)

    def set_console_level(self, level: Union[str, int], clean: bool = False) -> None:
        """
        Set the console logging level.

        Args:
            level: Logging level (e.g., 'DEBUG', 'INFO', 'WARNING')
            clean: If True, hides time and level for a cleaner UI-like look
        """
        root_logger = logging.getLogger()
        numeric_level = _to_numeric_level(level)

        if numeric_level < root_logger.level:
            root_logger.setLevel(numeric_level)

        for handler in root_logger.handlers:
            if isinstance(handler, RichHandler):
                handler.setLevel(numeric_level)
                handler._log_render.show_time = not clean
                handler._log_render.show_level = not clean
                break

    def set_file_level(self, level: Union[str, int]) -> None:
        """Set the file logging level."""
        root_logger = logging.getLogger()
        numeric_level = _to_numeric_level(level)

        if numeric_level < root_logger.level:
            root_logger.setLevel(numeric_level)

        for handler in root_logger.handlers:
            if isinstance(handler, logging.FileHandler):
                handler.setLevel(numeric_level)
                break


def _to_numeric_level(level: Union[str, int]) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return level


# Global logger instance
_logger_instance: Optional[HonyakuLogger] = None


def setup_logging(log_file: str = LOG_FILENAME) -> HonyakuLogger:
    """
    Set up the global logging configuration.

    Args:
        log_file: Path to the log file

    Returns:
        The configured HonyakuLogger instance
    """
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = HonyakuLogger(log_file)
    return _logger_instance


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger instance.

    This should be called in CLI modules as:
        from honyaku.honyaku.logging import get_logger
        logger = get_logger(__name__)
    """
    if _logger_instance is None:
        setup_logging()
    return logging.getLogger(name)


def set_log_level(level: Union[str, int], handler_type: str = "both", clean: bool = False) -> None:
    """
    Set the logging level for console, file, or both handlers.

    Args:
        level: Logging level (e.g., 'DEBUG', 'INFO', 'WARNING', 'ERROR')
        handler_type: 'console', 'file', or 'both'
        clean: If True, hides time and level for console handler
    """
    if _logger_instance is None:
        setup_logging()

    if handler_type in ("console", "both"):
        _logger_instance.set_console_level(level, clean=clean)
    if handler_type in ("file", "both"):
        _logger_instance.set_file_level(level)


@contextmanager
def temporary_log_level(level: Union[str, int], handler_type: str = "console"):
    """
    Temporarily change the log level.

    Usage:
        with temporary_log_level("DEBUG"):
            ...
    """
    if _logger_instance is None:
        setup_logging()

    root_logger = logging.getLogger()
    handler_cls = RichHandler if handler_type == "console" else logging.FileHandler
    target = next((h for h in root_logger.handlers if isinstance(h, handler_cls)), None)
    previous_level = target.level if target is not None else None

    if target is not None:
        target.setLevel(level)
    try:
        yield
    finally:
        if target is not None:
            target.setLevel(previous_level)


def log_step(message: str) -> None:
    """
    Log a major step with a visual panel.
    Logs to file as INFO, prints to console as Panel if level <= INFO.
    """
    if _logger_instance is None:
        setup_logging()

    logging.getLogger("honyaku.step").info(f"STEP: {message}")

    for handler in logging.getLogger().handlers:
        if isinstance(handler, RichHandler):
            if handler.level <= logging.INFO:
                _logger_instance.console.print(Panel(message, style="bold magenta"))
            break


def log_substep(message: str) -> None:
    """Log a sub-step with indentation."""
    logger = get_logger("honyaku.substep")
    logger.info(f"  -> {message}")


def log_api_call(url: str, method: str, params: Optional[dict] = None) -> None:
    """
    Log an API call with sensitive data masking.
    Logs at DEBUG level.
    """
    logger = logging.getLogger("honyaku.api")
    if not logger.isEnabledFor(logging.DEBUG):
        return

    safe_params = "None"
    if params:
        masked = dict(params)
        keys_to_mask = ['api_key', 'token', 'password', 'secret', 'key', 'authorization']
        for k in masked:
            if isinstance(k, str) and any(m in k.lower() for m in keys_to_mask):
                masked[k] = "********"
        safe_params = str(masked)

    logger.debug(f"API CALL: {method} {url} | Params: {safe_params}")


__all__ = [
    "HonyakuError",
    "ConfigError",
    "TransportError",
    "APIError",
    "ParseError",
    "RefusedError",
    "ExhaustedError",
    "FileError",
    "ValidationError",
    "OutputSink",
    "LoggingSink",
    "ConsoleSink",
    "HonyakuLogger",
    "console",
    "setup_logging",
    "get_logger",
    "set_log_level",
    "temporary_log_level",
    "log_step",
    "log_substep",
    "log_api_call",
]
