"""Tests for compmigrate.transform."""

from __future__ import annotations

from dataclasses import replace

import pytest

from compmigrate.config import TransformSettings
from compmigrate.errors import TransformationError
from compmigrate.models import HookUsage, PropDefinition
from compmigrate.transform import RENDER_SUBJECT, BehaviorMapping, LogicTransformer
from compmigrate.transform.rules import called_collaborator, subject_for
from tests._fixtures.baselines import make_descriptor, make_pattern


def test_every_pattern_maps_to_one_unit_plus_render() -> None:
    descriptor = make_descriptor(
        "Checkout",
        [
            make_pattern("validation", 0.9, description="Email validation: /@/", code="/@/"),
            make_pattern("external-call", 0.9, description="API call to '/x' using GET", code="fetch('/x')"),
            make_pattern("conditional", 0.85, description="Ternary conditional rendering: a ? ... : ..."),
        ],
    )

    plan = LogicTransformer().transform(descriptor)

    assert plan.component_name == "Checkout"
    assert plan.business_logic_preserved is True
    assert plan.unmapped == ()
    assert [unit.target for unit in plan.units] == [
        "validation-schema",
        "service-adapter",
        "render-guard",
        "render",
    ]
    assert plan.subjects[-1] == RENDER_SUBJECT
    assert plan.unit("emailValidation") is not None
    assert plan.unit("apiCallToX") is not None
    assert plan.unit("apiCallToX").calls == ("fetch",)
    assert len(set(plan.subjects)) == len(plan.subjects)


def test_plan_for_component_without_patterns_has_only_render_unit() -> None:
    descriptor = replace(
        make_descriptor("Gamma"),
        props=(PropDefinition(name="label", type="string", required=True),),
        hooks=(HookUsage(name="useState", variables=("open", "setOpen")),),
    )

    plan = LogicTransformer().transform(descriptor)

    assert plan.subjects == (RENDER_SUBJECT,)
    render = plan.units[0]
    assert render.is_structural
    assert render.calls == ("useState",)
    assert render.actions[0] == "Accept props: label"
    assert render.actions[1] == "Hold local state: open"
    assert plan.business_logic_preserved is True


def test_colliding_subjects_are_suffixed_with_line_numbers() -> None:
    descriptor = make_descriptor(
        "Form",
        [
            make_pattern("validation", 0.9, description="Email validation: a", line=3),
            make_pattern("validation", 0.9, description="Email validation: b", line=7),
            make_pattern("validation", 0.9, description="Email validation: c", line=7),
        ],
    )

    plan = LogicTransformer().transform(descriptor)

    assert plan.subjects == (
        "emailValidation",
        "emailValidationL7",
        "emailValidationL7_2",
        RENDER_SUBJECT,
    )


def test_pattern_named_render_does_not_collide_with_structural_unit() -> None:
    descriptor = make_descriptor("Panel", [make_pattern("conditional", 0.9, description="Render", line=4)])

    plan = LogicTransformer().transform(descriptor)

    assert plan.subjects == ("renderL4", RENDER_SUBJECT)


def test_unmappable_pattern_breaks_preservation() -> None:
    descriptor = make_descriptor(
        "Beta",
        [make_pattern("state-transition", 0.2, code=None, description="State transition logic: switch(x)")],
    )

    plan = LogicTransformer().transform(descriptor)

    assert plan.business_logic_preserved is False
    assert [pattern.kind for pattern in plan.unmapped] == ["state-transition"]
    assert plan.subjects == (RENDER_SUBJECT,)
    assert plan.requires_manual_review is True
    assert "low confidence" in plan.review_reasons[0]


def test_unknown_kind_without_rule_is_unmapped() -> None:
    descriptor = make_descriptor("Odd", [make_pattern("telemetry", 0.9)])

    plan = LogicTransformer().transform(descriptor)

    assert plan.business_logic_preserved is False
    assert len(plan.unmapped) == 1


def test_complexity_at_threshold_requires_review() -> None:
    transformer = LogicTransformer(TransformSettings(manual_review_complexity=3))

    below = transformer.transform(make_descriptor("Calm", complexity=2))
    at = transformer.transform(make_descriptor("Busy", complexity=3))

    assert below.requires_manual_review is False
    assert at.requires_manual_review is True
    assert at.review_reasons == ("complexity 3 is at or above 3",)


def test_transform_rejects_blank_component_name() -> None:
    with pytest.raises(TransformationError):
        LogicTransformer().transform(make_descriptor("   "))


def test_failing_rule_is_reported_as_transformation_error() -> None:
    def explode(pattern, descriptor):
        raise KeyError("boom")

    transformer = LogicTransformer(rules={"validation": explode})

    with pytest.raises(TransformationError) as excinfo:
        transformer.transform(make_descriptor("Alpha", [make_pattern("validation", 0.9)]))

    assert excinfo.value.component == "Alpha"
    assert excinfo.value.phase == "transformation"


def test_transform_is_pure() -> None:
    descriptor = make_descriptor("Alpha", [make_pattern("transformation", 0.9, code="items.map(f)")])
    transformer = LogicTransformer()

    assert transformer.transform(descriptor) == transformer.transform(descriptor)


def test_subject_and_collaborator_helpers() -> None:
    pattern = make_pattern(
        "transformation",
        0.9,
        description="Transform order items with map operation",
        code="order.items.map((item) => item.id)",
    )

    assert subject_for(pattern) == "transformOrderItemsWith"
    assert called_collaborator(pattern) == ("order.items.map",)
    assert called_collaborator(make_pattern("conditional", 0.9, code="a && b")) == ()


def test_rule_with_unknown_target_is_rejected() -> None:
    def widget(pattern, descriptor):
        return BehaviorMapping(subject="emailWidget", target="widget", pattern=pattern)

    transformer = LogicTransformer(rules={"validation": widget})

    with pytest.raises(TransformationError, match="unknown target 'widget'"):
        transformer.transform(make_descriptor("Alpha", [make_pattern("validation", 0.9)]))
