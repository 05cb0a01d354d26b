"""Structured logging configuration using structlog."""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timedelta
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog

MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5
RETENTION_DAYS = 14
CONSOLE_HANDLER_NAME = "idler-console"


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _cleanup_old_logs(log_file: Path) -> None:
    """Delete rotated siblings of ``log_file`` older than RETENTION_DAYS."""
    if not log_file.parent.exists():
        return
    cutoff = datetime.now() - timedelta(days=RETENTION_DAYS)
    for rotated in log_file.parent.glob(f"{log_file.name}.*"):
        try:
            if datetime.fromtimestamp(rotated.stat().st_mtime) < cutoff:
                rotated.unlink()
        except OSError:
            pass  # another process may have rotated it away


def _setup_file_logging(log_file: Path) -> None:
    """Attach a rotating JSON file handler to the root logger."""
    log_file.parent.mkdir(parents=True, exist_ok=True)
    _cleanup_old_logs(log_file)

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=MAX_LOG_SIZE,
        backupCount=BACKUP_COUNT,
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=_shared_processors(),
        )
    )

    logging.getLogger().addHandler(file_handler)


def configure_logging(
    verbose: bool = False,
    debug: bool = False,
    json_output: bool = False,
    log_file: Path | None = None,
) -> None:
    """Configure structured logging for the idler.

    Console output is human readable unless ``json_output`` is set, which is
    what the controller uses when running inside a cluster so that log
    shippers can parse each idling decision. An optional rotating JSON log
    file can be added for long-running hosts.

    Args:
        verbose: Enable verbose (INFO level) output.
        debug: Enable debug mode (DEBUG level).
        json_output: Output logs in JSON format.
        log_file: Optional path of a rotating JSON log file.
    """
    if debug:
        log_level = logging.DEBUG
    elif verbose:
        log_level = logging.INFO
    else:
        log_level = logging.WARNING

    shared_processors = _shared_processors()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.set_name(CONSOLE_HANDLER_NAME)
    console_handler.setLevel(log_level)
    if json_output:
        console_formatter = structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=shared_processors,
        )
    else:
        console_formatter = structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.RichTracebackFormatter(
                    show_locals=debug,
                ),
            ),
            foreign_pre_chain=shared_processors,
        )
    console_handler.setFormatter(console_formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # handlers filter
    for handler in list(root_logger.handlers):
        if handler.get_name() == CONSOLE_HANDLER_NAME:
            root_logger.removeHandler(handler)
    root_logger.addHandler(console_handler)

    # the kubernetes client logs every request at DEBUG
    logging.getLogger("kubernetes").setLevel(max(log_level, logging.INFO))

    if log_file is not None:
        _setup_file_logging(log_file)


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """Get a configured logger with optional initial context.

    Args:
        name: Logger name. If None, uses the calling module's name.
        **initial_context: Initial context variables to bind to the logger.

    Returns:
        A bound structlog logger.
    """
    logger: structlog.BoundLogger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger
