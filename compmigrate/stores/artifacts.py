"""Writes generated artifacts to disk and maintains the output directory."""

from __future__ import annotations

import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from ..errors import GenerationError
from ..generation.artifact import GeneratedArtifact
from ..logging import get_logger
from .manifest import Manifest

README_NAME = "README.md"


@dataclass(frozen=True)
class WrittenArtifact:
    """Files written for one component."""

    name: str
    directory: Path
    files: Tuple[Path, ...]


class ArtifactWriter:
    """Persists artifacts under ``<output_root>/<Name>/``.

    All files of one component are staged as temp files first and only
    renamed into place once every write succeeded.
    """

    def __init__(self, output_root: Path) -> None:
        self.output_root = output_root
        self.logger = get_logger("artifacts")

    def component_dir(self, name: str) -> Path:
        return self.output_root / name

    def write(self, artifact: GeneratedArtifact) -> WrittenArtifact:
        directory = self.component_dir(artifact.name)
        files: List[Tuple[Path, str]] = [
            (directory / f"{artifact.name}.tsx", artifact.source_code),
            (directory / README_NAME, artifact.readme),
        ]
        if artifact.test_scaffold is not None:
            files.append((directory / f"{artifact.name}.test.tsx", artifact.test_scaffold))

        staged: List[Tuple[Path, Path]] = []
        try:
            directory.mkdir(parents=True, exist_ok=True)
            for target, content in files:
                staged.append((_stage(target, content), target))
            for temp_path, target in staged:
                os.replace(temp_path, target)
        except (OSError, UnicodeError) as exc:
            for temp_path, _ in staged:
                temp_path.unlink(missing_ok=True)
            raise GenerationError(f"Unable to write artifacts for {artifact.name}: {exc}", component=artifact.name) from exc

        written = tuple(target for target, _ in files)
        self.logger.debug("Wrote %d file(s) for %s", len(written), artifact.name)
        return WrittenArtifact(name=artifact.name, directory=directory, files=written)

    def cleanup_orphans(self, manifest: Optional[Manifest]) -> List[str]:
        """Remove incomplete output directories unknown to ``manifest``."""
        if not self.output_root.is_dir():
            return []
        expected = set()
        if manifest is not None:
            expected.update(manifest.successful)
            expected.update(manifest.failed_names)
        cleaned: List[str] = []
        for entry in sorted(self.output_root.iterdir()):
            if not entry.is_dir() or entry.name in expected:
                continue
            has_component = (entry / f"{entry.name}.tsx").is_file()
            has_readme = (entry / README_NAME).is_file()
            if has_component and has_readme:
                continue
            shutil.rmtree(entry)
            cleaned.append(entry.name)
            self.logger.info("Removed orphaned output directory %s", entry)
        return cleaned

    def rollback(self, manifest: Manifest) -> List[str]:
        """Delete the output directories of every successful component."""
        deleted: List[str] = []
        for name in manifest.successful:
            directory = self.component_dir(name)
            if not directory.is_dir():
                continue
            shutil.rmtree(directory)
            deleted.append(name)
        if deleted:
            self.logger.info("Rolled back %d component(s)", len(deleted))
        return deleted


def _stage(target: Path, content: str) -> Path:
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
            handle.write(content)
    except (OSError, UnicodeError):
        temp_path.unlink(missing_ok=True)
        raise
    return temp_path


__all__ = ["ArtifactWriter", "README_NAME", "WrittenArtifact"]
