"""Generated artifact value objects and the generation result variants."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, ClassVar, Dict, Literal, Optional, Sequence, Tuple, Union

CompilationStatus = Literal["pending", "success", "error"]
FailurePhase = Literal["analysis", "transformation", "generation", "compilation", "validation"]


@dataclass(frozen=True)
class DocumentationBlock:
    """Reviewer-facing notes for one mapped unit of behaviour."""

    subject: str
    rationale: str = ""
    actions: Tuple[str, ...] = ()
    calls: Tuple[str, ...] = ()
    data_flow: str = ""
    dependencies: Tuple[str, ...] = ()
    edge_cases: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject": self.subject,
            "rationale": self.rationale,
            "actions": list(self.actions),
            "calls": list(self.calls),
            "dataFlow": self.data_flow,
            "dependencies": list(self.dependencies),
            "edgeCases": list(self.edge_cases),
        }


@dataclass(frozen=True)
class GeneratedArtifact:
    """Everything emitted for one migrated component."""

    name: str
    file_path: str
    source_code: str
    props_interface: str
    export_name: str = ""
    state_interface: Optional[str] = None
    api_response_interface: Optional[str] = None
    documentation: Tuple[DocumentationBlock, ...] = ()
    test_scaffold: Optional[str] = None
    readme: str = ""
    compilation_status: CompilationStatus = "pending"
    compilation_errors: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "filePath": self.file_path,
            "exportName": self.export_name or self.name,
            "sourceCode": self.source_code,
            "propsInterface": self.props_interface,
            "documentation": [block.to_dict() for block in self.documentation],
            "readme": self.readme,
            "compilationStatus": self.compilation_status,
        }
        if self.state_interface is not None:
            data["stateInterface"] = self.state_interface
        if self.api_response_interface is not None:
            data["apiResponseInterface"] = self.api_response_interface
        if self.test_scaffold is not None:
            data["testScaffold"] = self.test_scaffold
        if self.compilation_errors:
            data["compilationErrors"] = list(self.compilation_errors)
        return data


def with_compilation_result(artifact: GeneratedArtifact, errors: Sequence[str]) -> GeneratedArtifact:
    """Return a copy of ``artifact`` carrying a compiler verdict.

    This is the only way an artifact leaves the ``pending`` state; the
    generator itself never claims success.
    """
    status: CompilationStatus = "error" if errors else "success"
    return replace(artifact, compilation_status=status, compilation_errors=tuple(errors))


@dataclass(frozen=True)
class GenerationSuccess:
    artifact: GeneratedArtifact

    success: ClassVar[bool] = True

    def to_dict(self) -> Dict[str, Any]:
        return {"success": True, "component": self.artifact.to_dict()}


@dataclass(frozen=True)
class GenerationFailure:
    phase: FailurePhase
    message: str
    stack: Optional[str] = None

    success: ClassVar[bool] = False

    def to_dict(self) -> Dict[str, Any]:
        details: Dict[str, Any] = {"phase": self.phase, "message": self.message}
        if self.stack:
            details["stack"] = self.stack
        return {"success": False, "error": self.message, "errorDetails": details}


GenerationResult = Union[GenerationSuccess, GenerationFailure]


__all__ = [
    "CompilationStatus",
    "DocumentationBlock",
    "FailurePhase",
    "GeneratedArtifact",
    "GenerationFailure",
    "GenerationResult",
    "GenerationSuccess",
    "with_compilation_result",
]
