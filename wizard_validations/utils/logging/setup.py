"""Setup logging configuration."""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from wizard_validations.config import get_config

DEFAULT_LOG_FILE = "logs/wizard_validations.log"


def _resolve_log_path(log_file: Optional[str]) -> Path:
    # Relative paths resolve against the package root
    path = Path(log_file or DEFAULT_LOG_FILE)
    if not path.is_absolute():
        path = Path(__file__).parent.parent.parent / path
    return path


def clear_log_file(log_file: Optional[str] = None) -> None:
    """
    Clear the log file if it exists.
    
    Args:
        log_file: Path to log file (relative to the package root). If None, uses default.
    """
    log_path = _resolve_log_path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    
    if log_path.exists():
        try:
            log_path.unlink()
        except PermissionError:
            # File is locked - skip clearing
            logging.getLogger(__name__).warning(
                f"Cannot clear log file {log_path} - file is locked. Continuing without clearing."
            )


def setup_logging(
    level: str = "INFO",
    format_type: str = "detailed",
    log_to_file: bool = False,
    log_file: Optional[str] = None,
    clear_existing: bool = False,
) -> None:
    """
    Setup logging configuration.
    
    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: "simple" or "detailed"
        log_to_file: Whether to log to file
        log_file: Path to log file (relative to the package root)
        clear_existing: Whether to clear the log file before setting up logging
    """
    if clear_existing and log_to_file:
        clear_log_file(log_file)
    
    log_level = getattr(logging, level.upper(), logging.INFO)
    
    if format_type == "detailed":
        formatter = logging.Formatter(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
    else:
        formatter = logging.Formatter(
            fmt="%(levelname)s | %(name)s | %(message)s"
        )
    
    # Configures the package logger, not the root logger
    package_logger = logging.getLogger("wizard_validations")
    package_logger.setLevel(log_level)
    package_logger.handlers.clear()
    
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)
    
    if log_to_file:
        log_path = _resolve_log_path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.
    
    Args:
        name: Logger name (typically __name__)
        
    Returns:
        logging.Logger: Logger instance
    """
    return logging.getLogger(name)


def setup_logging_from_config(section: Optional[Dict[str, Any]] = None) -> None:
    """
    Apply the ``logging`` section of config.yaml through ``setup_logging``.
    
    Args:
        section: Explicit settings; defaults to ``get_config("logging")``
    """
    if section is None:
        section = get_config("logging")
    
    setup_logging(
        level=section.get("level", "INFO"),
        format_type=section.get("format", "detailed"),
        log_to_file=bool(section.get("log_to_file", False)),
        log_file=section.get("log_file"),
        clear_existing=bool(section.get("clear_existing", False)),
    )
