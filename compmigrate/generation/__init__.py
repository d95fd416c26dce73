"""Code generation for migrated components."""

from .artifact import (
    DocumentationBlock,
    GeneratedArtifact,
    GenerationFailure,
    GenerationResult,
    GenerationSuccess,
    with_compilation_result,
)
from .generator import CodeGenerator

__all__ = [
    "CodeGenerator",
    "DocumentationBlock",
    "GeneratedArtifact",
    "GenerationFailure",
    "GenerationResult",
    "GenerationSuccess",
    "with_compilation_result",
]
