"""Baseline discovery: find component source files to migrate."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List

from .logging import get_logger

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    "dist",
    "build",
    "coverage",
    "__tests__",
    "__mocks__",
    ".compmigrate",
}

_SOURCE_SUFFIXES = {".ts", ".tsx", ".js", ".jsx"}
_SKIPPED_MARKERS = (".test.", ".spec.", ".stories.", ".story.")
_GENERIC_STEMS = {"index", "page", "route", "layout"}

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
_NAME_MIN_LENGTH = 2
_NAME_MAX_LENGTH = 64


def sanitize_component_name(name: str) -> str:
    """Return ``name`` if it is safe to use as a directory and manifest key.

    Raises ``ValueError`` describing the first rule the name breaks.
    """
    if not _NAME_PATTERN.match(name):
        raise ValueError("Component name must contain only alphanumeric characters, hyphens, and underscores")
    if len(name) < _NAME_MIN_LENGTH:
        raise ValueError(f"Component name must be at least {_NAME_MIN_LENGTH} characters long")
    if len(name) > _NAME_MAX_LENGTH:
        raise ValueError(f"Component name must be {_NAME_MAX_LENGTH} characters or less")
    if not name[0].isalpha():
        raise ValueError("Component name must start with a letter")
    return name


@dataclass(frozen=True)
class WorkItem:
    """One baseline scheduled for migration."""

    name: str
    path: Path


@dataclass
class DiscoveryResult:
    items: List[WorkItem] = field(default_factory=list)
    skipped: List[Path] = field(default_factory=list)


def is_baseline_file(path: Path) -> bool:
    name = path.name
    if path.suffix.lower() not in _SOURCE_SUFFIXES:
        return False
    if name.endswith(".d.ts"):
        return False
    return not any(marker in name for marker in _SKIPPED_MARKERS)


def component_name_for(path: Path) -> str:
    """Derive the work-item name; generic file stems defer to their directory."""
    stem = path.stem
    if stem.lower() in _GENERIC_STEMS and path.parent.name:
        return path.parent.name
    return stem


class BaselineScanner:
    """Walks a baseline directory and yields migratable components in path order."""

    def __init__(self) -> None:
        self.logger = get_logger("discovery")

    def scan(self, root: Path) -> DiscoveryResult:
        root_path = root.expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Baseline path not found: {root}")
        if root_path.is_file():
            return self._collect([root_path])
        return self._collect(sorted(_iter_sources(root_path)))

    def _collect(self, paths: List[Path]) -> DiscoveryResult:
        result = DiscoveryResult()
        seen: dict[str, Path] = {}
        for path in paths:
            name = component_name_for(path)
            try:
                sanitize_component_name(name)
            except ValueError as exc:
                self.logger.warning("Skipping %s: %s", path, exc)
                result.skipped.append(path)
                continue
            if name in seen:
                self.logger.warning("Skipping %s: component name %s already used by %s", path, name, seen[name])
                result.skipped.append(path)
                continue
            seen[name] = path
            result.items.append(WorkItem(name=name, path=path))
        return result


def _iter_sources(root: Path) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [name for name in dirnames if name not in _EXCLUDED_DIRS and not name.startswith(".")]
        current_dir = Path(dirpath)
        for filename in filenames:
            path = current_dir / filename
            if is_baseline_file(path):
                yield path


__all__ = [
    "BaselineScanner",
    "DiscoveryResult",
    "WorkItem",
    "component_name_for",
    "is_baseline_file",
    "sanitize_component_name",
]
