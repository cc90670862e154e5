"""Structured logging setup for blockmark."""

import structlog
from pathlib import Path
from typing import Any, Optional
import os


VALID_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def resolve_log_level(verbose: bool = False) -> str:
    """Pick the log level from BLOCKMARK_LOG_LEVEL (or DEBUG when verbose).

    Unknown values fall back to INFO.
    """
    if verbose:
        return "DEBUG"

    log_level = os.environ.get("BLOCKMARK_LOG_LEVEL", "INFO").upper()
    if log_level not in VALID_LEVELS:
        log_level = "INFO"
    return log_level


def configure_logging(verbose: bool = False, log_dir: Optional[Path] = None) -> Path:
    """
    Configure structlog for JSON logging to ~/.cache/blockmark/logs/blockmark.log.

    Log level can be controlled via BLOCKMARK_LOG_LEVEL environment variable:
    - Set to "DEBUG" to see every editing transition and cursor restoration
    - Defaults to "INFO" if not set

    Log levels:
    - DEBUG: cursor mapping, ignored events, restoration details
    - INFO: document load, structural edits (split, merge, delete)
    - WARNING: renderer/serializer fallbacks
    - ERROR: CLI failures

    Example:
        # Enable debug logging
        export BLOCKMARK_LOG_LEVEL=DEBUG
        blockmark render notes.md

        # View logs with jq for readability:
        tail -f ~/.cache/blockmark/logs/blockmark.log | jq .

    Args:
        verbose: Force DEBUG level regardless of the environment
        log_dir: Directory for the log file (default: ~/.cache/blockmark/logs)

    Returns:
        Path of the log file being written
    """
    if log_dir is None:
        log_dir = Path.home() / ".cache" / "blockmark" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "blockmark.log"

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(resolve_log_level(verbose)),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=open(log_file, "a")),
        cache_logger_on_first_use=True,
    )
    return log_file


def get_logger(name: str) -> Any:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of calling module)

    Returns:
        Structured logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("block_split", block_id="a1", new_blocks=2)
    """
    return structlog.get_logger(name)
