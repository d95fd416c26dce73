"""Logic transformer: descriptor in, transformation plan out."""

from __future__ import annotations

from dataclasses import replace
from typing import List, Mapping, Optional, Set

from ..config import TransformSettings
from ..errors import TransformationError
from ..logging import get_logger
from ..models import BusinessLogicPattern, ComponentDescriptor
from .plan import MAPPING_TARGETS, RENDER_SUBJECT, BehaviorMapping, TransformationPlan
from .rules import DEFAULT_RULES, MappingRule

_MAX_SUBJECT_ATTEMPTS = 1000


class LogicTransformer:
    """Maps every detected pattern through the rule registered for its kind.

    The transformer holds no state between calls, so a failed transform can be
    retried with the same descriptor.
    """

    def __init__(
        self,
        settings: TransformSettings | None = None,
        *,
        rules: Optional[Mapping[str, MappingRule]] = None,
    ) -> None:
        self.settings = settings or TransformSettings()
        self._rules = dict(rules) if rules is not None else dict(DEFAULT_RULES)
        self.logger = get_logger("transformer")

    def transform(self, descriptor: ComponentDescriptor) -> TransformationPlan:
        name = descriptor.name.strip()
        if not name:
            raise TransformationError(f"Descriptor for {descriptor.file_path} has no component name")

        used: Set[str] = {RENDER_SUBJECT}
        units: List[BehaviorMapping] = []
        unmapped: List[BusinessLogicPattern] = []
        for pattern in descriptor.patterns:
            mapping = self._map(pattern, descriptor)
            if mapping is None:
                unmapped.append(pattern)
                continue
            subject = _unique_subject(mapping.subject, pattern, used)
            used.add(subject)
            units.append(replace(mapping, subject=subject))
        units.append(_render_unit(descriptor))

        # Any unmapped pattern, critical kinds included, breaks preservation.
        preserved = not unmapped

        reasons = self._review_reasons(descriptor)
        plan = TransformationPlan(
            descriptor=descriptor,
            component_name=name,
            units=tuple(units),
            unmapped=tuple(unmapped),
            business_logic_preserved=preserved,
            requires_manual_review=bool(reasons),
            review_reasons=tuple(reasons),
        )
        self.logger.debug(
            "Planned %s: %d units, %d unmapped, preserved=%s, review=%s",
            name,
            len(plan.units),
            len(plan.unmapped),
            plan.business_logic_preserved,
            plan.requires_manual_review,
        )
        return plan

    def _map(self, pattern: BusinessLogicPattern, descriptor: ComponentDescriptor) -> Optional[BehaviorMapping]:
        rule = self._rules.get(pattern.kind)
        if rule is None:
            return None
        try:
            mapping = rule(pattern, descriptor)
        except Exception as exc:
            raise TransformationError(
                f"Mapping rule for {pattern.kind} failed on {descriptor.name}: {exc}",
                component=descriptor.name,
            ) from exc
        if mapping is not None and mapping.target not in MAPPING_TARGETS:
            raise TransformationError(
                f"Mapping rule for {pattern.kind} produced unknown target '{mapping.target}'",
                component=descriptor.name,
            )
        return mapping

    def _review_reasons(self, descriptor: ComponentDescriptor) -> List[str]:
        reasons: List[str] = []
        for pattern in descriptor.patterns:
            if pattern.low_confidence:
                reasons.append(
                    f"{pattern.kind} pattern at line {pattern.location.start_line} "
                    f"has low confidence ({pattern.confidence:.2f})"
                )
        threshold = self.settings.manual_review_complexity
        if descriptor.complexity >= threshold:
            reasons.append(f"complexity {descriptor.complexity} is at or above {threshold}")
        return reasons


def _unique_subject(base: str, pattern: BusinessLogicPattern, used: Set[str]) -> str:
    if not base:
        raise TransformationError(f"Mapping for {pattern.kind} pattern produced an empty subject")
    if base not in used:
        return base
    candidate = f"{base}L{pattern.location.start_line}"
    if candidate not in used:
        return candidate
    for counter in range(2, _MAX_SUBJECT_ATTEMPTS):
        numbered = f"{candidate}_{counter}"
        if numbered not in used:
            return numbered
    raise TransformationError(f"Unable to find a unique subject for {base}")


def _render_unit(descriptor: ComponentDescriptor) -> BehaviorMapping:
    actions: List[str] = []
    if descriptor.props:
        actions.append("Accept props: " + ", ".join(prop.name for prop in descriptor.props))
    state = [hook.variables[0] for hook in descriptor.state_hooks() if hook.variables]
    if state:
        actions.append("Hold local state: " + ", ".join(state))
    actions.append("Render markup for the current props and state")
    calls = tuple(dict.fromkeys(hook.name for hook in descriptor.hooks))
    return BehaviorMapping(
        subject=RENDER_SUBJECT,
        target="render",
        calls=calls,
        rationale=f"Structural entry point of {descriptor.name}",
        actions=tuple(actions),
        data_flow="props -> state -> markup",
    )


__all__ = ["LogicTransformer"]
