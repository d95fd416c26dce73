"""Core validation data structures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Tuple

from ..generation.artifact import GenerationResult
from ..transform.plan import TransformationPlan


@dataclass(frozen=True)
class ValidationIssue:
    """A disqualifying problem found in a migration result."""

    code: str
    message: str
    path: str = ""
    value: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"code": self.code, "message": self.message, "path": self.path}
        if self.value is not None:
            data["value"] = self.value
        return data


@dataclass(frozen=True)
class ValidationWarning:
    """A non-blocking observation about a migration result."""

    code: str
    message: str
    path: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "path": self.path}


@dataclass(frozen=True)
class ValidationOutcome:
    """Scored verdict for one migrated component."""

    component_name: str
    valid: bool
    errors: Tuple[ValidationIssue, ...]
    warnings: Tuple[ValidationWarning, ...]
    score: int
    business_logic_preserved: bool
    types_safe: bool
    tests_pass: bool

    @property
    def error_codes(self) -> List[str]:
        return [issue.code for issue in self.errors]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "componentName": self.component_name,
            "valid": self.valid,
            "errors": [issue.to_dict() for issue in self.errors],
            "warnings": [warning.to_dict() for warning in self.warnings],
            "score": self.score,
            "businessLogicPreserved": self.business_logic_preserved,
            "typesSafe": self.types_safe,
            "testsPass": self.tests_pass,
        }


class Validator(Protocol):
    """Protocol implemented by migration validators."""

    def validate(self, plan: TransformationPlan, result: GenerationResult) -> ValidationOutcome:
        """Score ``result`` against ``plan`` without side effects."""


__all__ = ["ValidationIssue", "ValidationOutcome", "ValidationWarning", "Validator"]
