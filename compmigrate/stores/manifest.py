"""Crash-recoverable manifest of batch progress."""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from ..config import DEFAULT_MANIFEST_PATH
from ..errors import ManifestStoreError
from ..logging import get_logger

MANIFEST_VERSION = "1.0.0"

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class FailureRecord:
    """Why and when a component failed."""

    component: str
    error: str
    timestamp: str
    stack: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "component": self.component,
            "error": self.error,
            "timestamp": self.timestamp,
        }
        if self.stack:
            data["stack"] = self.stack
        return data


@dataclass(frozen=True)
class Manifest:
    """Immutable snapshot of a batch run's progress."""

    successful: Tuple[str, ...] = ()
    failed: Tuple[FailureRecord, ...] = ()
    config: Mapping[str, Any] = field(default_factory=dict)
    start_time: str = ""
    end_time: Optional[str] = None
    duration: Optional[int] = None
    version: str = MANIFEST_VERSION

    @property
    def failed_names(self) -> Tuple[str, ...]:
        return tuple(record.component for record in self.failed)

    def is_successful(self, name: str) -> bool:
        return name in self.successful

    def is_failed(self, name: str) -> bool:
        return any(record.component == name for record in self.failed)

    def failure_for(self, name: str) -> Optional[FailureRecord]:
        for record in self.failed:
            if record.component == name:
                return record
        return None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "successful": list(self.successful),
            "failed": [record.to_dict() for record in self.failed],
            "config": dict(self.config),
            "startTime": self.start_time,
        }
        if self.end_time is not None:
            data["endTime"] = self.end_time
        if self.duration is not None:
            data["duration"] = self.duration
        data["version"] = self.version
        return data


class ManifestStore:
    """Creates, updates, loads and atomically saves manifests."""

    def __init__(self, path: Path | None = None, *, clock: Clock | None = None) -> None:
        self.path = path or DEFAULT_MANIFEST_PATH
        self._clock = clock or (lambda: datetime.now(UTC))
        self.logger = get_logger("manifest")

    def create(self, config: Mapping[str, Any] | None = None) -> Manifest:
        return Manifest(config=dict(config or {}), start_time=_isoformat(self._clock()))

    def record_success(self, manifest: Manifest, name: str) -> Manifest:
        failed = tuple(record for record in manifest.failed if record.component != name)
        successful = manifest.successful if name in manifest.successful else manifest.successful + (name,)
        return replace(manifest, successful=successful, failed=failed)

    def record_failure(
        self,
        manifest: Manifest,
        name: str,
        error: str | BaseException,
        *,
        stack: str | None = None,
    ) -> Manifest:
        if isinstance(error, BaseException):
            message = str(error) or type(error).__name__
        else:
            message = error or "unknown error"
        record = FailureRecord(
            component=name,
            error=message,
            timestamp=_isoformat(self._clock()),
            stack=stack,
        )
        successful = tuple(item for item in manifest.successful if item != name)
        failed = tuple(existing for existing in manifest.failed if existing.component != name) + (record,)
        return replace(manifest, successful=successful, failed=failed)

    def load(self, path: Path | None = None) -> Optional[Manifest]:
        """Return the persisted manifest, or ``None`` when none exists yet."""
        target = path or self.path
        try:
            text = target.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise ManifestStoreError(f"Unable to read manifest {target}: {exc}") from exc
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ManifestStoreError(f"Manifest {target} is not valid JSON: {exc}") from exc
        manifest = _manifest_from_dict(data)
        if manifest is None:
            raise ManifestStoreError(f"Manifest {target} does not match the expected schema")
        return manifest

    def save(self, manifest: Manifest, path: Path | None = None) -> Manifest:
        """Stamp ``endTime``/``duration`` and write the manifest atomically.

        Returns the stamped manifest that was written.
        """
        target = path or self.path
        now = self._clock()
        stamped = replace(manifest, end_time=_isoformat(now), duration=_duration_ms(manifest.start_time, now))
        payload = json.dumps(stamped.to_dict(), indent=2) + "\n"
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            _atomic_write(target, payload)
        except OSError as exc:
            raise ManifestStoreError(f"Unable to write manifest {target}: {exc}") from exc
        self.logger.debug(
            "Saved manifest %s (%d successful, %d failed)",
            target,
            len(stamped.successful),
            len(stamped.failed),
        )
        return stamped

    def delete(self, path: Path | None = None) -> bool:
        """Remove the persisted manifest. Returns False when there was none."""
        target = path or self.path
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise ManifestStoreError(f"Unable to delete manifest {target}: {exc}") from exc
        self.logger.info("Deleted manifest %s", target)
        return True


def _atomic_write(target: Path, payload: str) -> None:
    handle = tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=target.parent,
        prefix=f".{target.name}.",
        suffix=".tmp",
        delete=False,
    )
    temp_path = Path(handle.name)
    try:
        with handle:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_path, target)
    except OSError:
        temp_path.unlink(missing_ok=True)
        raise


def _manifest_from_dict(data: object) -> Optional[Manifest]:
    if not isinstance(data, dict):
        return None
    successful = data.get("successful")
    failed = data.get("failed")
    start_time = data.get("startTime")
    if not isinstance(successful, list) or not all(isinstance(name, str) for name in successful):
        return None
    if not isinstance(failed, list) or not isinstance(start_time, str):
        return None
    records = []
    for payload in failed:
        record = _failure_from_dict(payload)
        if record is None:
            return None
        records.append(record)
    config = data.get("config")
    duration = data.get("duration")
    end_time = data.get("endTime")
    return Manifest(
        successful=tuple(dict.fromkeys(successful)),
        failed=tuple(records),
        config=config if isinstance(config, dict) else {},
        start_time=start_time,
        end_time=end_time if isinstance(end_time, str) else None,
        duration=int(duration) if isinstance(duration, (int, float)) and not isinstance(duration, bool) else None,
        version=str(data.get("version") or MANIFEST_VERSION),
    )


def _failure_from_dict(payload: object) -> Optional[FailureRecord]:
    if not isinstance(payload, dict):
        return None
    component = payload.get("component")
    error = payload.get("error")
    timestamp = payload.get("timestamp")
    stack = payload.get("stack")
    if not isinstance(component, str) or not isinstance(error, str) or not isinstance(timestamp, str):
        return None
    return FailureRecord(
        component=component,
        error=error,
        timestamp=timestamp,
        stack=stack if isinstance(stack, str) else None,
    )


def _isoformat(moment: datetime) -> str:
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _duration_ms(start_time: str, now: datetime) -> Optional[int]:
    if not start_time:
        return None
    try:
        started = datetime.fromisoformat(start_time.replace("Z", "+00:00"))
    except ValueError:
        return None
    if started.tzinfo is None:
        started = started.replace(tzinfo=UTC)
    return max(0, int((now - started).total_seconds() * 1000))


__all__ = ["FailureRecord", "MANIFEST_VERSION", "Manifest", "ManifestStore"]
