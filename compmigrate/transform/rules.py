"""Mapping rules from detected business-logic patterns to new-generation constructs.

Each rule receives a pattern and its owning descriptor and returns a
``BehaviorMapping`` or ``None`` when the pattern cannot be mapped. Rules are
plain functions so callers can swap or extend the registry without
subclassing.
"""

from __future__ import annotations

import re
from typing import Callable, Dict, List, Optional, Tuple

from ..models import BusinessLogicPattern, ComponentDescriptor
from .plan import BehaviorMapping

MappingRule = Callable[[BusinessLogicPattern, ComponentDescriptor], Optional[BehaviorMapping]]

_CALLEE = re.compile(r"^\s*(?:await\s+)?([A-Za-z_$][\w$]*(?:\s*\.\s*[A-Za-z_$][\w$]*)*)\s*(?:<[^>]*>)?\s*\(")
_WORD = re.compile(r"[A-Za-z][A-Za-z0-9]*")


def subject_for(pattern: BusinessLogicPattern) -> str:
    """Derive a camelCase subject name from a pattern description."""
    head = pattern.description.split(":", 1)[0]
    words = _WORD.findall(head)[:4] or [pattern.kind.replace("-", " ")]
    parts: List[str] = []
    for index, word in enumerate(words):
        lowered = word.lower()
        parts.append(lowered if index == 0 else lowered[:1].upper() + lowered[1:])
    return "".join(parts)


def called_collaborator(pattern: BusinessLogicPattern) -> Tuple[str, ...]:
    if not pattern.code:
        return ()
    match = _CALLEE.match(pattern.code)
    if not match:
        return ()
    return (re.sub(r"\s+", "", match.group(1)),)


def _edge_cases(pattern: BusinessLogicPattern, *extra: str) -> Tuple[str, ...]:
    notes = list(extra)
    if pattern.low_confidence:
        notes.append(f"Detected with low confidence ({pattern.confidence:.2f}); confirm the behaviour by hand")
    return tuple(notes)


def _line(pattern: BusinessLogicPattern) -> str:
    location = pattern.location
    if location.start_line == location.end_line:
        return f"line {location.start_line}"
    return f"lines {location.start_line}-{location.end_line}"


def map_validation(pattern: BusinessLogicPattern, descriptor: ComponentDescriptor) -> Optional[BehaviorMapping]:
    if not pattern.code:
        return None
    return BehaviorMapping(
        subject=subject_for(pattern),
        target="validation-schema",
        pattern=pattern,
        calls=called_collaborator(pattern),
        rationale=f"Keeps the input rule from {_line(pattern)}: {pattern.description}",
        actions=(
            "Express the rule as a schema entry",
            "Report a field error when the rule rejects the value",
        ),
        data_flow="user input -> schema check -> field error state",
        edge_cases=_edge_cases(pattern, "Empty values are checked against the same rule"),
    )


def map_transformation(pattern: BusinessLogicPattern, descriptor: ComponentDescriptor) -> Optional[BehaviorMapping]:
    return BehaviorMapping(
        subject=subject_for(pattern),
        target="selector",
        pattern=pattern,
        calls=called_collaborator(pattern),
        rationale=f"Moves the data shaping at {_line(pattern)} into a pure selector: {pattern.description}",
        actions=("Compute the derived value in a memoised selector",),
        data_flow="props/state -> selector -> rendered value",
        edge_cases=_edge_cases(pattern, "Empty collections yield an empty result"),
    )


def map_conditional(pattern: BusinessLogicPattern, descriptor: ComponentDescriptor) -> Optional[BehaviorMapping]:
    return BehaviorMapping(
        subject=subject_for(pattern),
        target="render-guard",
        pattern=pattern,
        rationale=f"Preserves the rendering condition at {_line(pattern)}: {pattern.description}",
        actions=("Evaluate the condition before rendering the guarded branch",),
        data_flow="props/state -> guard -> branch markup",
        edge_cases=_edge_cases(pattern),
    )


def map_external_call(pattern: BusinessLogicPattern, descriptor: ComponentDescriptor) -> Optional[BehaviorMapping]:
    return BehaviorMapping(
        subject=subject_for(pattern),
        target="service-adapter",
        pattern=pattern,
        calls=called_collaborator(pattern) or ("fetch",),
        rationale=f"Wraps the remote call at {_line(pattern)} in a service adapter: {pattern.description}",
        actions=(
            "Issue the request through the adapter",
            "Track loading and error state",
            "Type the response payload",
        ),
        data_flow="event -> adapter request -> response state",
        edge_cases=_edge_cases(pattern, "Network failures surface as an error state"),
    )


def map_state_transition(pattern: BusinessLogicPattern, descriptor: ComponentDescriptor) -> Optional[BehaviorMapping]:
    if not pattern.code:
        return None
    return BehaviorMapping(
        subject=subject_for(pattern),
        target="state-reducer",
        pattern=pattern,
        rationale=f"Keeps the state machine from {_line(pattern)} as an explicit reducer: {pattern.description}",
        actions=(
            "Enumerate the states",
            "Dispatch transitions through a reducer",
        ),
        data_flow="action -> reducer -> next state",
        edge_cases=_edge_cases(pattern, "Unknown actions leave the state unchanged"),
    )


DEFAULT_RULES: Dict[str, MappingRule] = {
    "validation": map_validation,
    "transformation": map_transformation,
    "conditional": map_conditional,
    "external-call": map_external_call,
    "state-transition": map_state_transition,
}


__all__ = [
    "DEFAULT_RULES",
    "MappingRule",
    "called_collaborator",
    "map_conditional",
    "map_external_call",
    "map_state_transition",
    "map_transformation",
    "map_validation",
    "subject_for",
]
