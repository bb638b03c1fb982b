"""Logging configuration for command_framework.

Provides subsystem-level log file routing, input truncation,
and structlog + stdlib integration.

Subsystem hierarchy (stdlib dotted names, structlog wraps them):
    root                        → ConsoleHandler (terminal)
      └─ command_framework      → RotatingFileHandler → command_framework.log
           ├─ command_framework.registry → RFH → registry.log
           ├─ command_framework.parser   → RFH → parser.log
           └─ command_framework.config   → RFH → config.log

File handlers are only attached when a log directory is configured.
The library never calls setup_logging() itself; applications do.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import structlog

# Subsystem names, one RotatingFileHandler each
SUBSYSTEMS = ("registry", "parser", "config")

# stdlib logger name prefix for hierarchy-based propagation
LOGGER_PREFIX = "command_framework"

# Event keys that carry raw user input
_INPUT_KEYS = ("input", "typed")

DEFAULT_INPUT_MAX_LENGTH = 200


def make_input_truncator(max_length: int = DEFAULT_INPUT_MAX_LENGTH):
    """Build a structlog processor that clips raw user input.

    Input lines are logged on misses and handler failures; a user can
    paste arbitrarily long text, so the logged copy is capped at
    ``max_length`` characters with a marker giving the original length.
    """

    def truncate_input(
        logger: Any, method_name: str, event_dict: Dict[str, Any]
    ) -> Dict[str, Any]:
        for key in _INPUT_KEYS:
            value = event_dict.get(key)
            if isinstance(value, str) and len(value) > max_length:
                event_dict[key] = f"{value[:max_length]}...[{len(value)} chars]"
        return event_dict

    return truncate_input


def setup_logging(config=None, log_dir: Optional[Path] = None) -> None:
    """Configure structured logging with optional subsystem file handlers.

    Sets up:
    1. Root logger: ConsoleHandler on stderr
    2. "command_framework" logger: RotatingFileHandler → command_framework.log
    3. "command_framework.<subsystem>" loggers: individual RotatingFileHandlers

    All subsystem loggers propagate up the hierarchy, so every event
    appears in: its subsystem file + combined log + console.

    Args:
        config: Optional Config instance. Without one, defaults are used
                and cache_logger_on_first_use stays False so a later
                call with real config takes effect.
        log_dir: Overrides config.log_dir.
    """
    if config is not None:
        log_dir = log_dir or config.log_dir
        root_level_name = str(config.logging_level).upper()
        subsystem_levels = config.logging_subsystem_levels
        max_bytes = config.logging_max_file_size_mb * 1024 * 1024
        backup_count = config.logging_backup_count
        input_max_length = config.log_input_max_length
        cache_loggers = True
    else:
        root_level_name = "INFO"
        subsystem_levels = {}
        max_bytes = 10 * 1024 * 1024  # 10 MB
        backup_count = 5
        input_max_length = DEFAULT_INPUT_MAX_LENGTH
        cache_loggers = False

    root_level = getattr(logging, root_level_name, logging.INFO)

    # --- File handler setup (may fail on permissions/disk) ---
    file_handlers_ok = False
    if log_dir is not None:
        log_dir = Path(log_dir)
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handlers_ok = True
        except OSError as exc:
            print(
                f"WARNING: Cannot create log directory {log_dir}: {exc}. "
                "Falling back to console-only logging.",
                file=sys.stderr,
            )

    file_formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
    )

    def configure(name: str, level: int, filename: str) -> None:
        target = logging.getLogger(name)
        target.setLevel(level)
        target.handlers.clear()
        target.propagate = True
        if file_handlers_ok:
            handler = logging.handlers.RotatingFileHandler(
                log_dir / filename,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            handler.setLevel(level)
            handler.setFormatter(file_formatter)
            target.addHandler(handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Handlers filter by level
    root_logger.handlers.clear()
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(root_level)
    console_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
    root_logger.addHandler(console_handler)

    configure(LOGGER_PREFIX, root_level, f"{LOGGER_PREFIX}.log")
    # The package logger passes everything; its file handler filters
    logging.getLogger(LOGGER_PREFIX).setLevel(logging.DEBUG)
    for subsystem in SUBSYSTEMS:
        level_name = str(subsystem_levels.get(subsystem, "")).upper()
        configure(
            f"{LOGGER_PREFIX}.{subsystem}",
            getattr(logging, level_name, root_level) if level_name else root_level,
            f"{subsystem}.log",
        )

    # --- structlog configuration ---
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            make_input_truncator(input_max_length),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=cache_loggers,
    )
