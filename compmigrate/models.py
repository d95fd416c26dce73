"""Core data models shared across compmigrate components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional, Tuple

PatternKind = Literal["validation", "transformation", "conditional", "external-call", "state-transition"]
ComponentKind = Literal["function", "class", "hook"]

# Kinds whose loss changes correctness rather than presentation.
CRITICAL_PATTERN_KINDS = frozenset({"validation", "state-transition"})


@dataclass(frozen=True)
class SourceSpan:
    """1-based inclusive line range inside a baseline file."""

    file: str
    start_line: int
    end_line: int


@dataclass(frozen=True)
class BusinessLogicPattern:
    """A detected unit of business logic inside a baseline."""

    kind: str
    description: str
    location: SourceSpan
    confidence: float
    code: Optional[str] = None
    low_confidence: bool = False


@dataclass(frozen=True)
class HookUsage:
    """State or effect hook call found in a baseline."""

    name: str
    variables: Tuple[str, ...] = ()
    dependencies: Tuple[str, ...] = ()
    initializer: Optional[str] = None


@dataclass(frozen=True)
class PropDefinition:
    """Declared input parameter of a component."""

    name: str
    type: str
    required: bool
    default: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class ComponentDescriptor:
    """Structural and behavioural model of one baseline component."""

    name: str
    file_path: str
    kind: str
    hooks: Tuple[HookUsage, ...] = ()
    props: Tuple[PropDefinition, ...] = ()
    patterns: Tuple[BusinessLogicPattern, ...] = ()
    dependencies: Tuple[str, ...] = ()
    loc: int = 0
    complexity: int = 1
    comments: Tuple[str, ...] = field(default_factory=tuple)

    def patterns_of(self, kind: str) -> Tuple[BusinessLogicPattern, ...]:
        return tuple(pattern for pattern in self.patterns if pattern.kind == kind)

    def state_hooks(self) -> Tuple[HookUsage, ...]:
        return tuple(hook for hook in self.hooks if hook.name in {"useState", "useReducer"})


__all__ = [
    "BusinessLogicPattern",
    "ComponentDescriptor",
    "ComponentKind",
    "CRITICAL_PATTERN_KINDS",
    "HookUsage",
    "PatternKind",
    "PropDefinition",
    "SourceSpan",
]
