"""Error taxonomy for the migration pipeline."""

from __future__ import annotations

from typing import Optional


class MigrationError(RuntimeError):
    """Base class for component-scoped pipeline failures."""

    phase = "migration"

    def __init__(self, message: str, *, component: Optional[str] = None) -> None:
        super().__init__(message)
        self.component = component


class AnalysisError(MigrationError):
    """Raised when a baseline cannot be parsed or no component is exported."""

    phase = "analysis"


class TransformationError(MigrationError):
    """Raised when no valid transformation plan can be constructed."""

    phase = "transformation"


class GenerationError(MigrationError):
    """Raised when the artifact set cannot be emitted."""

    phase = "generation"


class CompilationError(MigrationError):
    """Raised when the compiler reports diagnostics for emitted code."""

    phase = "compilation"

    def __init__(
        self,
        message: str,
        diagnostics: Optional[list[str]] = None,
        *,
        component: Optional[str] = None,
    ) -> None:
        super().__init__(message, component=component)
        self.diagnostics = list(diagnostics or [])


class ValidationError(MigrationError):
    """Raised when post-hoc scoring finds disqualifying issues."""

    phase = "validation"

    def __init__(self, message: str, codes: Optional[list[str]] = None, *, component: Optional[str] = None) -> None:
        super().__init__(message, component=component)
        self.codes = list(codes or [])


class ManifestStoreError(RuntimeError):
    """Raised when the manifest cannot be read or written. Always fatal for a run."""


__all__ = [
    "AnalysisError",
    "CompilationError",
    "GenerationError",
    "ManifestStoreError",
    "MigrationError",
    "TransformationError",
    "ValidationError",
]
