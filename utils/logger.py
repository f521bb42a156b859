"""
Structured logging module using structlog

Features
--------
• Structured logging with automatic context
• Console colour support
• Optional file logging with rotation
• Per-library log levels (LiteLLM, httpx, httpcore)
"""
from __future__ import annotations
import logging
import os
import sys
import tomllib
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Any, Dict

import structlog


def _supports_colour() -> bool:
    """True if stdout seems to handle ANSI colour codes."""
    if os.getenv("NO_COLOR"):
        return False
    if sys.platform == "win32" and os.getenv("TERM") != "xterm":
        return False
    return sys.stdout.isatty()


def _read_cfg(path: str | Path | None) -> Dict[str, Any]:
    if not path:
        return {}
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"Logging config file not found: {p}")
    try:
        return tomllib.loads(p.read_text(encoding="utf-8")).get("logging", {})
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in logging config: {e}") from e


def _level(name: str | None, default: int) -> int:
    return getattr(logging, str(name or "").upper(), default)


def init_logger(config_path: str | Path | None = None) -> None:
    """Configure structlog with console and optional file output."""
    cfg = _read_cfg(config_path)
    console_cfg = cfg.get("console", {})

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    if console_cfg.get("enabled", True):
        stream = logging.StreamHandler(sys.stdout)
        stream.setLevel(_level(console_cfg.get("level"), logging.INFO))
        stream.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(stream)

    colour = console_cfg.get("colour_enabled", True) and _supports_colour()

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.dev.ConsoleRenderer(colors=colour),
    ]

    structlog.configure(
        processors=processors,  # type: ignore[arg-type]
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Setup file logging if enabled
    file_cfg = cfg.get("file", {})
    if file_cfg.get("enabled", False):
        path = Path(file_cfg.get("path", "logs/thinking_frameworks.log"))
        path.parent.mkdir(parents=True, exist_ok=True)

        if file_cfg.get("file_rotation", True):
            handler = RotatingFileHandler(
                path,
                maxBytes=file_cfg.get("max_bytes", 10_000_000),
                backupCount=file_cfg.get("backup_count", 5),
            )
        else:
            handler = logging.FileHandler(path)  # type: ignore[assignment]

        handler.setLevel(_level(file_cfg.get("level"), logging.DEBUG))
        handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
        root.addHandler(handler)

    for library, level in cfg.get("libraries", {}).items():
        logging.getLogger(library).setLevel(_level(level, logging.WARNING))


def get_logger(name: str):
    """Get a structlog logger instance."""
    return structlog.get_logger(name)
