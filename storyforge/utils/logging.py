"""
Logging configuration for StoryForge.

Console and file output under the `storyforge` logger tree. Records emitted
inside `log_context(...)` are tagged with the running pass and artifact, so a
line reads like:

    [2025-01-01 10:00:00] WARNING  [refinement.quality_gate ] (refinement STORY-002) ...
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from pathlib import Path
from typing import Literal

ROOT_LOGGER_NAME = "storyforge"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]

_current_pass: ContextVar[str | None] = ContextVar("storyforge_pass", default=None)
_current_artifact: ContextVar[str | None] = ContextVar("storyforge_artifact", default=None)


# ============================================================================
# Pass / artifact context
# ============================================================================


@contextmanager
def log_context(pass_name: str | None = None, artifact_id: str | None = None) -> Iterator[None]:
    """Tag log records emitted in this block with a pass and/or artifact.

    Only the values given are changed; an enclosing pass stays in effect
    while an inner block sets the artifact.
    """
    tokens = []
    if pass_name is not None:
        tokens.append((_current_pass, _current_pass.set(pass_name)))
    if artifact_id is not None:
        tokens.append((_current_artifact, _current_artifact.set(artifact_id)))
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


class PassContextFilter(logging.Filter):
    """Copies the current pass and artifact onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.sf_pass = _current_pass.get()
        record.sf_artifact = _current_artifact.get()
        return True


# ============================================================================
# Formatter
# ============================================================================


class StoryForgeFormatter(logging.Formatter):
    """Single-line formatter: timestamp, colored level, short logger name, context."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True, include_timestamp: bool = True):
        super().__init__()
        self.use_colors = use_colors
        self.include_timestamp = include_timestamp

    def format(self, record: logging.LogRecord) -> str:
        parts: list[str] = []

        if self.include_timestamp:
            created = datetime.fromtimestamp(record.created, UTC)
            parts.append(created.strftime("[%Y-%m-%d %H:%M:%S]"))

        level = f"{record.levelname:8}"
        if self.use_colors and record.levelname in self.LEVEL_COLORS:
            level = f"{self.LEVEL_COLORS[record.levelname]}{level}{self.RESET}"
        parts.append(level)

        parts.append(f"[{short_name(record.name):24}]")

        context = [
            value for value in (getattr(record, "sf_pass", None), getattr(record, "sf_artifact", None))
            if value
        ]
        if context:
            parts.append(f"({' '.join(context)})")

        parts.append(record.getMessage())
        if record.exc_info:
            parts.append(self.formatException(record.exc_info))
        return " ".join(parts)


def short_name(name: str) -> str:
    """Logger name without the `storyforge.` prefix."""
    prefix = f"{ROOT_LOGGER_NAME}."
    return name[len(prefix):] if name.startswith(prefix) else name


# ============================================================================
# Setup
# ============================================================================


def setup_logging(
    level: LogLevel = "INFO",
    log_dir: str | Path | None = None,
    console_output: bool = True,
    file_output: bool = True,
    log_filename: str = "storyforge.log",
) -> None:
    """Configure the `storyforge` logger tree.

    Existing handlers are replaced, so calling this twice does not duplicate
    output. The file handler is only added when `log_dir` is given.

    Usage:
        setup_logging(level="DEBUG", log_dir=config.data_dir / "logs")
    """
    numeric_level = getattr(logging, level)
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers:
        handler.close()
    root_logger.handlers = []

    handlers: list[logging.Handler] = []
    if console_output:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(StoryForgeFormatter(use_colors=sys.stdout.isatty()))
        handlers.append(console)

    if file_output and log_dir is not None:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path / log_filename, encoding="utf-8")
        file_handler.setFormatter(StoryForgeFormatter(use_colors=False))
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.addFilter(PassContextFilter())
        root_logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Logger under the `storyforge` tree (`"refinement"` -> `storyforge.refinement`)."""
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def log_error(
    logger: logging.Logger,
    operation: str,
    error: Exception,
    context: dict | None = None,
) -> None:
    """Log a failed operation with its exception and optional context.

    Args:
        logger: Logger to use
        operation: Name of the failed operation
        error: The exception
        context: Optional key/value details appended to the line
    """
    msg = f"FAILED {operation}: {type(error).__name__}: {error}"
    if context:
        msg += " | " + ", ".join(f"{k}={v}" for k, v in context.items())
    logger.error(msg, exc_info=error)
