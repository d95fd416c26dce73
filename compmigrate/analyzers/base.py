"""Base classes for source analyzers."""

from abc import ABC, abstractmethod
from pathlib import Path

from ..errors import AnalysisError
from ..models import ComponentDescriptor


class SourceAnalyzer(ABC):
    """Contract for analyzers that turn one baseline file into a descriptor."""

    @abstractmethod
    def analyze(self, source: str, file_path: str) -> ComponentDescriptor:
        """Return the descriptor for ``source`` or raise ``AnalysisError``."""

    def analyze_file(self, path: Path) -> ComponentDescriptor:
        """Read ``path`` from disk and analyze its contents."""
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise AnalysisError(f"Unable to read baseline {path}: {exc}") from exc
        return self.analyze(source, str(path))
