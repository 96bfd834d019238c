# src/stark_consolidator/utils/logging_config.py
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Union

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _level(log_level: Union[str, int, None]) -> int:
    if isinstance(log_level, int):
        return log_level
    numeric_level = getattr(logging, str(log_level or "INFO").upper(), None)
    return numeric_level if isinstance(numeric_level, int) else logging.INFO


def setup_logging(
    log_level: str = "INFO",
    log_dir: Optional[Union[str, Path]] = "./logs",
    log_file: Optional[str] = None,
    component_name: str = "stark_consolidator",
    console_output: bool = True,
    rotating_logs: bool = True,
    max_bytes: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 5,
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> logging.Logger:
    """Set up standardized logging for a component (file + console)."""
    numeric_level = _level(log_level)

    logger = logging.getLogger(component_name)

    # Clear any existing handlers to prevent duplicates
    if logger.hasHandlers():
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()

    logger.setLevel(numeric_level)
    logger.propagate = False

    formatter = logging.Formatter(log_format, date_format)

    log_file_path = None
    if log_dir:
        log_dir_path = Path(log_dir)
        log_dir_path.mkdir(parents=True, exist_ok=True)

        if log_file is None:
            log_file = f"{component_name}.log"
        log_file_path = log_dir_path / log_file

        if rotating_logs:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file_path,
                maxBytes=max_bytes,
                backupCount=backup_count
            )
        else:
            file_handler = logging.FileHandler(log_file_path)

        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    logger.debug(f"Logger initialized for {component_name} - level: {logging.getLevelName(numeric_level)}")
    if log_file_path:
        logger.debug(f"Log file: {log_file_path}")

    return logger


def get_logger(component_name: str, log_config: Optional[Dict[str, Any]] = None,
               output_manager: Optional[Any] = None, reconfigure: bool = False) -> logging.Logger:
    """
    Get or create a logger with standardized configuration.

    Args:
        component_name: Name of the component requesting the logger
        log_config: Optional logging configuration ("level", "log_dir", "log_file", "console_output")
        output_manager: Optional output manager for the log directory
        reconfigure: Replace the handlers of an already configured logger

    Returns:
        Configured logger instance

    An explicit "log_dir" in log_config wins over the output manager's
    logs directory.
    """
    logger = logging.getLogger(component_name)

    # If this logger is already configured, return it
    if logger.handlers and not reconfigure:
        return logger

    if log_config is None:
        # Imported here to avoid a circular import with config_manager
        from .config_manager import get_config_manager

        full_config = get_config_manager().get_logging_config()
        log_config = dict(full_config["components"].get(component_name, {}))
        if output_manager is None and not log_config.get("log_dir"):
            log_config["log_dir"] = full_config["log_dir"]

    log_dir = log_config.get("log_dir")
    if not log_dir and output_manager is not None:
        log_dir = output_manager.get_path("logs")

    return setup_logging(
        log_level=log_config.get("level", "INFO"),
        log_dir=log_dir,
        log_file=log_config.get("log_file", f"{component_name}.log"),
        component_name=component_name,
        console_output=log_config.get("console_output", True),
    )
