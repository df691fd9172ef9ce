"""Logging setup for chatcmd.

Events from each routing stage land in their own rotating file as well
as the combined chatcmd.log and the console:

    root                      console
      chatcmd                 chatcmd.log
        chatcmd.config        config.log
        chatcmd.registry      registry.log
        chatcmd.resolver      resolver.log
        chatcmd.modules       modules.log

Handler arguments are user input, so every event passes through
sanitize_secrets() before it is rendered.
"""

import logging
import logging.handlers
import re
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import structlog

SUBSYSTEMS = ("config", "registry", "resolver", "modules")

LOGGER_PREFIX = "chatcmd"

_SECRET_PATTERNS = [
    # Discord bot token: id.timestamp.hmac
    re.compile(r"[MNO][a-zA-Z\d_-]{23,25}\.[a-zA-Z\d_-]{6}\.[a-zA-Z\d_-]{27,}"),
    re.compile(r"xox[abprs]-[a-zA-Z0-9-]{10,}"),
    re.compile(r"Bearer\s+[a-zA-Z0-9_./-]{20,}"),
]

_REDACTED = "***REDACTED***"


def _scrub_value(value: str) -> str:
    for pattern in _SECRET_PATTERNS:
        value = pattern.sub(_REDACTED, value)
    return value


def sanitize_secrets(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """structlog processor that redacts chat tokens and bearer headers.

    Looks one level into lists, tuples and dicts, which covers the
    ``args`` lists handlers tend to log.
    """
    for key, value in event_dict.items():
        if isinstance(value, str):
            event_dict[key] = _scrub_value(value)
        elif isinstance(value, (list, tuple)):
            event_dict[key] = type(value)(
                _scrub_value(v) if isinstance(v, str) else v
                for v in value
            )
        elif isinstance(value, dict):
            event_dict[key] = {
                k: _scrub_value(v) if isinstance(v, str) else v
                for k, v in value.items()
            }
    return event_dict


def _level(name: str, default: int) -> int:
    if not name:
        return default
    return getattr(logging, name.upper(), default)


def _rotating_handler(
    path: Path, level: int, max_bytes: int, backup_count: int, formatter: logging.Formatter
) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(config=None, cache_loggers: Optional[bool] = None) -> None:
    """Route structlog through stdlib logging with one file per subsystem.

    Safe to call twice: once early with no config so import-time
    warnings are visible, and again once the Config has loaded.

    Args:
        config: Config instance; built-in defaults are used without one.
        cache_loggers: structlog's cache_logger_on_first_use. Left
            unset, it is enabled only when a config is given.
    """
    if config is not None:
        log_dir = Path(config.log_dir)
        root_level = _level(config.logging_level, logging.INFO)
        subsystem_levels = config.logging_subsystem_levels
        max_bytes = config.logging_max_file_size_mb * 1024 * 1024
        backup_count = config.logging_backup_count
    else:
        log_dir = Path(__file__).parent.parent / "logs"
        root_level = logging.INFO
        subsystem_levels = {}
        max_bytes = 10 * 1024 * 1024
        backup_count = 5
    if cache_loggers is None:
        cache_loggers = config is not None

    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        write_files = True
    except OSError as exc:
        print(
            f"WARNING: Cannot create log directory {log_dir}: {exc}. "
            "Falling back to console-only logging.",
            file=sys.stderr,
        )
        write_files = False

    file_formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(root_level)
    console_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
    root_logger.addHandler(console_handler)

    pkg_logger = logging.getLogger(LOGGER_PREFIX)
    pkg_logger.setLevel(logging.DEBUG)
    pkg_logger.handlers.clear()
    pkg_logger.propagate = True
    if write_files:
        pkg_logger.addHandler(_rotating_handler(
            log_dir / "chatcmd.log", root_level, max_bytes, backup_count, file_formatter
        ))

    for subsystem in SUBSYSTEMS:
        level = _level(subsystem_levels.get(subsystem, ""), root_level)
        sub_logger = logging.getLogger(f"{LOGGER_PREFIX}.{subsystem}")
        sub_logger.setLevel(level)
        sub_logger.handlers.clear()
        sub_logger.propagate = True
        if write_files:
            sub_logger.addHandler(_rotating_handler(
                log_dir / f"{subsystem}.log", level, max_bytes, backup_count, file_formatter
            ))

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
            sanitize_secrets,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=cache_loggers,
    )
