"""
Centralized logging setup for the signal relay server.
"""
import logging
import datetime
import json
import os
import sys
import tempfile
from typing import Any, Optional


def _resolve_log_dir() -> str:
    """Determine a writable log directory."""
    candidates = []

    env_dir = os.environ.get("SR_LOG_DIR")
    if env_dir:
        candidates.append(env_dir)

    candidates.append(os.path.join(tempfile.gettempdir(), "signal-relay-logs"))
    candidates.append(os.getcwd())

    for directory in candidates:
        try:
            os.makedirs(directory, exist_ok=True)
            if os.access(directory, os.W_OK):
                return directory
        except OSError:
            continue

    return candidates[0]


def setup_logging(level: str = "INFO", log_file: Optional[str] = "signal_relay.log") -> logging.Logger:
    """Setup logging configuration with optional file output."""
    handlers = [logging.StreamHandler()]
    log_path = None

    if log_file:
        log_path = os.path.join(_resolve_log_dir(), log_file)
        try:
            handlers.append(logging.FileHandler(log_path, mode='a', encoding='utf-8'))
        except OSError as e:
            print(f"WARNING: Cannot write to log file {log_path}: {e}", file=sys.stderr)
            print("Logging to console only", file=sys.stderr)
            log_path = None

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%H:%M:%S',
        handlers=handlers,
        force=True
    )

    logger = logging.getLogger("signal_relay")
    logger.info(f"Logging initialized - output will be written to: {log_path or 'console only'}")

    return logger


def debug_log(message: str, data: Optional[Any] = None, level: str = "INFO",
              logger: Optional[logging.Logger] = None) -> None:
    """
    Enhanced debug logging with structured data.

    Args:
        message: The log message
        data: Optional data to log
        level: Log level (INFO, DEBUG, WARNING, ERROR)
        logger: Logger to write to, the "signal_relay" logger by default
    """
    log_level = getattr(logging, level.upper())
    logger = logger or logging.getLogger("signal_relay")
    if not logger.isEnabledFor(log_level):
        return

    timestamp = datetime.datetime.now().strftime("%H:%M:%S.%f")[:-3]

    if data:
        if isinstance(data, dict):
            data_str = json.dumps(data, indent=2, default=str)
            logger.log(log_level, f"[{timestamp}] {message}\nData: {data_str}")
        else:
            logger.log(log_level, f"[{timestamp}] {message} - {data}")
    else:
        logger.log(log_level, f"[{timestamp}] {message}")


class LoggerMixin:
    """Gives a component its own child of the "signal_relay" logger."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.logger = logging.getLogger(f"signal_relay.{self.__class__.__name__}")

    def log_debug(self, message: str, data: Optional[Any] = None):
        debug_log(message, data, "DEBUG", self.logger)

    def log_info(self, message: str, data: Optional[Any] = None):
        debug_log(message, data, "INFO", self.logger)

    def log_warning(self, message: str, data: Optional[Any] = None):
        debug_log(message, data, "WARNING", self.logger)

    def log_error(self, message: str, data: Optional[Any] = None):
        debug_log(message, data, "ERROR", self.logger)
