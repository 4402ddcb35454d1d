from __future__ import annotations

import atexit
import logging
import logging.handlers
import os
import pathlib
import sys
from typing import Any, Dict, List, Optional

import structlog
from pythonjsonlogger import jsonlogger

from cogmd.core.base import CogmdManager
from cogmd.utils.exceptions import ManagerInitializationError, ManagerShutdownError


class LoggingManager(CogmdManager):
    """Manages application logging configuration and access.

    The Logging Manager configures Python's logging module with console and
    file handlers based on configuration and routes structlog through it, so
    that components can log structured key/value events with either a JSON
    or a plain text rendering.
    """

    # Mapping from string log levels to logging module constants
    LOG_LEVELS = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warning": logging.WARNING,
        "error": logging.ERROR,
        "critical": logging.CRITICAL,
    }

    def __init__(self, config_manager: Any, stream: Any = None) -> None:
        """Initialize the Logging Manager.

        Args:
            config_manager: The Configuration Manager to use for logging settings.
            stream: Stream for the console handler (defaults to stderr so that
                command output on stdout stays machine readable).
        """
        super().__init__(name="logging_manager")
        self._config_manager = config_manager
        self._stream = stream
        self._root_logger: Optional[logging.Logger] = None
        self._file_handler: Optional[logging.Handler] = None
        self._console_handler: Optional[logging.Handler] = None
        self._log_directory: Optional[pathlib.Path] = None
        self._json_format = False
        self._handlers: List[logging.Handler] = []

    def initialize(self) -> None:
        """Initialize the Logging Manager.

        Raises:
            ManagerInitializationError: If initialization fails.
        """
        try:
            logging_config = self._config_manager.get("logging", {}) or {}
            log_level = self._parse_level(logging_config.get("level", "INFO"))
            self._json_format = str(logging_config.get("format", "text")).lower() == "json"
            file_config = logging_config.get("file", {}) or {}
            console_config = logging_config.get("console", {}) or {}

            self._root_logger = logging.getLogger()
            self._root_logger.setLevel(log_level)

            # Remove any existing handlers
            for handler in list(self._root_logger.handlers):
                self._root_logger.removeHandler(handler)

            formatter = self._create_formatter()

            if console_config.get("enabled", True):
                self._console_handler = logging.StreamHandler(self._stream or sys.stderr)
                self._console_handler.setLevel(
                    self._parse_level(console_config.get("level", "INFO"))
                )
                self._console_handler.setFormatter(formatter)
                self._root_logger.addHandler(self._console_handler)
                self._handlers.append(self._console_handler)

            if file_config.get("enabled", False):
                file_path = file_config.get("path", "logs/cogmd.log")
                self._log_directory = pathlib.Path(file_path).parent
                os.makedirs(self._log_directory, exist_ok=True)

                self._file_handler = logging.handlers.RotatingFileHandler(
                    file_path,
                    maxBytes=self._parse_rotation(file_config.get("rotation", "10 MB")),
                    backupCount=self._parse_retention(file_config.get("retention", "30 days")),
                    encoding="utf-8",
                )
                self._file_handler.setLevel(log_level)
                self._file_handler.setFormatter(formatter)
                self._root_logger.addHandler(self._file_handler)
                self._handlers.append(self._file_handler)

            self._configure_structlog()

            self._config_manager.register_listener("logging", self._on_config_changed)

            # Make sure handlers are closed on exit
            atexit.register(self.shutdown)

            self._initialized = True
            self._healthy = True

            self.get_logger(__name__).debug(
                "Logging Manager initialized", manager="LoggingManager"
            )

        except Exception as e:
            raise ManagerInitializationError(
                f"Failed to initialize LoggingManager: {str(e)}",
                manager_name=self.name,
            ) from e

    def _parse_level(self, value: Any) -> int:
        level_str = value.lower() if isinstance(value, str) else "info"
        return self.LOG_LEVELS.get(level_str, logging.INFO)

    @staticmethod
    def _parse_rotation(rotation: Any) -> int:
        # e.g. "10 MB"
        if isinstance(rotation, str) and "MB" in rotation:
            return int(rotation.split()[0]) * 1024 * 1024
        return 10 * 1024 * 1024

    @staticmethod
    def _parse_retention(retention: Any) -> int:
        # e.g. "30 days"
        if isinstance(retention, str) and "days" in retention:
            return int(retention.split()[0])
        return 30

    def _create_formatter(self) -> logging.Formatter:
        """Create the formatter shared by all handlers.

        Returns:
            logging.Formatter: JSON formatter or structlog console renderer.
        """
        if self._json_format:
            return jsonlogger.JsonFormatter(
                fmt="%(asctime)s %(name)s %(levelname)s %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S%z",
                json_ensure_ascii=False,
            )
        return structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=False),
            foreign_pre_chain=[
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
            ],
        )

    def _configure_structlog(self) -> None:
        """Configure structlog to hand events to the stdlib handlers."""
        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.UnicodeDecoder(),
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

    def get_logger(self, name: str) -> Any:
        """Get a structured logger for a specific component.

        Args:
            name: The name of the component requesting a logger.

        Returns:
            A structlog bound logger accepting key/value event fields.
        """
        return structlog.get_logger(name)

    def _on_config_changed(self, key: str, value: Any) -> None:
        """Handle configuration changes for logging.

        Args:
            key: The configuration key that changed.
            value: The new value.
        """
        if not key.startswith("logging.") or self._root_logger is None:
            return

        sub_key = key.split(".", 1)[1]

        if sub_key == "level":
            log_level = self._parse_level(value)
            self._root_logger.setLevel(log_level)
            if self._file_handler:
                self._file_handler.setLevel(log_level)

        elif sub_key.startswith("console.") and self._console_handler:
            if sub_key.endswith(".level"):
                self._console_handler.setLevel(self._parse_level(value))
            elif sub_key.endswith(".enabled"):
                self._toggle_handler(self._console_handler, bool(value))

        elif sub_key.startswith("file.") and self._file_handler:
            if sub_key.endswith(".level"):
                self._file_handler.setLevel(self._parse_level(value))
            elif sub_key.endswith(".enabled"):
                self._toggle_handler(self._file_handler, bool(value))

    def _toggle_handler(self, handler: logging.Handler, enabled: bool) -> None:
        if not enabled and handler in self._root_logger.handlers:
            self._root_logger.removeHandler(handler)
        elif enabled and handler not in self._root_logger.handlers:
            self._root_logger.addHandler(handler)

    def shutdown(self) -> None:
        """Shut down the Logging Manager.

        Closes all log handlers and performs any necessary cleanup.

        Raises:
            ManagerShutdownError: If shutdown fails.
        """
        if not self._initialized:
            return

        try:
            for handler in self._handlers:
                if self._root_logger and handler in self._root_logger.handlers:
                    self._root_logger.removeHandler(handler)
                handler.flush()
                handler.close()
            self._handlers.clear()

            self._config_manager.unregister_listener("logging", self._on_config_changed)
            atexit.unregister(self.shutdown)
            structlog.reset_defaults()

            self._initialized = False
            self._healthy = False

        except Exception as e:
            raise ManagerShutdownError(
                f"Failed to shut down LoggingManager: {str(e)}",
                manager_name=self.name,
            ) from e

    def status(self) -> Dict[str, Any]:
        """Get the status of the Logging Manager.

        Returns:
            Dict[str, Any]: Status information about the Logging Manager.
        """
        status = super().status()

        if self._initialized and self._root_logger:
            status.update(
                {
                    "log_directory": str(self._log_directory)
                    if self._log_directory
                    else None,
                    "handlers": {
                        "console": self._console_handler is not None
                        and self._console_handler in self._root_logger.handlers,
                        "file": self._file_handler is not None
                        and self._file_handler in self._root_logger.handlers,
                    },
                    "format": "json" if self._json_format else "text",
                }
            )

        return status
