"""Logging utilities for compmigrate commands."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict, Literal, Optional

_LOGGER_NAME = "compmigrate"

LogStatus = Literal["success", "failure", "partial"]

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the compmigrate hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the compmigrate logger with console output and optional file sink."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers to avoid duplicate output when the CLI is invoked multiple times.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("[compmigrate] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


@dataclass
class LogEntry:
    """Structured record of one pipeline operation for external log sinks."""

    level: str
    component: str
    operation: str
    duration_ms: float
    status: LogStatus
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: _utc_now())

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if data["error"] is None:
            data.pop("error")
        if not data["metadata"]:
            data.pop("metadata")
        return data


def log_operation(logger: logging.Logger, entry: LogEntry) -> None:
    """Emit ``entry`` on ``logger``; handlers decide how it is rendered."""
    level = _LEVELS.get(entry.level, logging.INFO)
    message = "%s %s %s (%.0fms)"
    args: tuple[object, ...] = (entry.component, entry.operation, entry.status, entry.duration_ms)
    if entry.error:
        message += ": %s"
        args = args + (entry.error,)
    logger.log(level, message, *args, extra={"entry": entry.to_dict()})


def _utc_now() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


__all__ = ["LogEntry", "configure_logging", "get_logger", "log_operation"]
