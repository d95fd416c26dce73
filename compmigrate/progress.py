"""Progress tracking for batch runs."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Literal, Optional, Protocol

from .logging import get_logger

OutcomeStatus = Literal["success", "failure", "skipped"]


@dataclass(frozen=True)
class ProgressSnapshot:
    """Point-in-time view of a batch; counters cover components already finished."""

    current: int
    total: int
    component_name: str
    elapsed_ms: int
    estimated_remaining_ms: Optional[int]
    success_count: int
    failure_count: int
    skip_count: int

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 100
        return int(self.current * 100 / self.total)


class ProgressReporter(Protocol):
    """Receives one snapshot per component."""

    def report(self, snapshot: ProgressSnapshot) -> None:
        """Handle a progress update."""


class ProgressTracker:
    """Maintains batch counters; owned by the orchestrating thread."""

    def __init__(self, total: int, *, clock: Callable[[], float] | None = None) -> None:
        self.total = total
        self._clock = clock or time.monotonic
        self._started = self._clock()
        self.success_count = 0
        self.failure_count = 0
        self.skip_count = 0

    @property
    def completed(self) -> int:
        return self.success_count + self.failure_count + self.skip_count

    def elapsed_ms(self) -> int:
        return int((self._clock() - self._started) * 1000)

    def snapshot(self, component_name: str) -> ProgressSnapshot:
        elapsed = self.elapsed_ms()
        # Skips cost no time, so only processed components feed the estimate.
        processed = self.success_count + self.failure_count
        remaining: Optional[int] = None
        if processed:
            remaining = int(elapsed / processed * max(0, self.total - self.completed))
        return ProgressSnapshot(
            current=self.completed + 1,
            total=self.total,
            component_name=component_name,
            elapsed_ms=elapsed,
            estimated_remaining_ms=remaining,
            success_count=self.success_count,
            failure_count=self.failure_count,
            skip_count=self.skip_count,
        )

    def record(self, status: OutcomeStatus) -> None:
        if status == "success":
            self.success_count += 1
        elif status == "failure":
            self.failure_count += 1
        elif status == "skipped":
            self.skip_count += 1
        else:
            raise ValueError(f"Unknown outcome status: {status}")


class LoggingProgressReporter:
    """Writes progress lines to the ``compmigrate.progress`` logger."""

    def __init__(self) -> None:
        self.logger = get_logger("progress")

    def report(self, snapshot: ProgressSnapshot) -> None:
        remaining = (
            format_duration(snapshot.estimated_remaining_ms)
            if snapshot.estimated_remaining_ms is not None
            else "?"
        )
        self.logger.info(
            "[%d/%d] %s (%s elapsed, %s remaining) ok=%d failed=%d skipped=%d",
            snapshot.current,
            snapshot.total,
            snapshot.component_name,
            format_duration(snapshot.elapsed_ms),
            remaining,
            snapshot.success_count,
            snapshot.failure_count,
            snapshot.skip_count,
        )


def format_duration(milliseconds: int) -> str:
    if milliseconds < 1000:
        return f"{milliseconds}ms"
    seconds = milliseconds // 1000
    if seconds < 60:
        return f"{seconds}s"
    minutes, seconds = divmod(seconds, 60)
    return f"{minutes}m {seconds}s"


__all__ = [
    "LoggingProgressReporter",
    "OutcomeStatus",
    "ProgressReporter",
    "ProgressSnapshot",
    "ProgressTracker",
    "format_duration",
]
