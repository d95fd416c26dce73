"""Value objects describing how a baseline maps onto the new generation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from ..models import BusinessLogicPattern, ComponentDescriptor

RENDER_SUBJECT = "render"

MAPPING_TARGETS: Tuple[str, ...] = (
    "validation-schema",
    "selector",
    "render-guard",
    "service-adapter",
    "state-reducer",
    "render",
)


@dataclass(frozen=True)
class BehaviorMapping:
    """One unit of behaviour and the construct it becomes after migration."""

    subject: str
    target: str
    pattern: Optional[BusinessLogicPattern] = None
    calls: Tuple[str, ...] = ()
    rationale: str = ""
    actions: Tuple[str, ...] = ()
    data_flow: str = ""
    edge_cases: Tuple[str, ...] = ()

    @property
    def is_structural(self) -> bool:
        return self.pattern is None


@dataclass(frozen=True)
class TransformationPlan:
    """Transformer output for exactly one component descriptor."""

    descriptor: ComponentDescriptor
    component_name: str
    units: Tuple[BehaviorMapping, ...]
    unmapped: Tuple[BusinessLogicPattern, ...] = ()
    business_logic_preserved: bool = True
    requires_manual_review: bool = False
    review_reasons: Tuple[str, ...] = ()

    @property
    def subjects(self) -> Tuple[str, ...]:
        return tuple(unit.subject for unit in self.units)

    def unit(self, subject: str) -> Optional[BehaviorMapping]:
        for candidate in self.units:
            if candidate.subject == subject:
                return candidate
        return None


__all__ = ["BehaviorMapping", "MAPPING_TARGETS", "RENDER_SUBJECT", "TransformationPlan"]
