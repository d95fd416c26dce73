"""Tests for the migration validator and its scoring."""

from __future__ import annotations

import textwrap
from dataclasses import replace
from pathlib import Path

import pytest

from compmigrate.analyzers import TreeSitterSourceAnalyzer
from compmigrate.config import GenerationOptions, ScoringConfig
from compmigrate.generation import CodeGenerator, GenerationFailure, GenerationSuccess, with_compilation_result
from compmigrate.transform import LogicTransformer
from compmigrate.validators import (
    BUSINESS_LOGIC_NOT_PRESERVED,
    COMPILATION_FAILED,
    DOCUMENTATION_MISMATCH,
    GENERATION_FAILED,
    MANUAL_REVIEW_REQUIRED,
    MigrationValidator,
    compute_score,
)
from tests._fixtures.baselines import ALPHA_SOURCE, make_descriptor, make_pattern


def _generate(plan, tmp_path: Path) -> GenerationSuccess:
    options = GenerationOptions(baseline_path=f"{plan.component_name}.tsx", output_path=str(tmp_path))
    result = CodeGenerator().generate(plan, options)
    assert isinstance(result, GenerationSuccess)
    return result


def test_clean_migration_scores_full_marks(tmp_path: Path) -> None:
    descriptor = TreeSitterSourceAnalyzer().analyze(textwrap.dedent(ALPHA_SOURCE).lstrip("\n"), "Alpha.tsx")
    plan = LogicTransformer().transform(descriptor)

    outcome = MigrationValidator().validate(plan, _generate(plan, tmp_path))

    assert outcome.valid is True
    assert outcome.score == 100
    assert outcome.errors == ()
    assert outcome.warnings == ()
    assert outcome.business_logic_preserved is True
    assert outcome.types_safe is True
    assert outcome.tests_pass is True
    assert outcome.component_name == "Alpha"


def test_unmapped_critical_pattern_fails_preservation(tmp_path: Path) -> None:
    descriptor = make_descriptor(
        "Beta",
        [make_pattern("state-transition", 0.2, code=None, description="State transition logic: switch(x)")],
    )
    plan = LogicTransformer().transform(descriptor)

    outcome = MigrationValidator().validate(plan, _generate(plan, tmp_path))

    assert outcome.valid is False
    assert outcome.business_logic_preserved is False
    assert outcome.error_codes == [BUSINESS_LOGIC_NOT_PRESERVED]
    assert [warning.code for warning in outcome.warnings] == [MANUAL_REVIEW_REQUIRED]
    assert "state-transition" in outcome.errors[0].message
    assert outcome.errors[0].value == ["State transition logic: switch(x)"]
    # 100 - 20 (error) - 5 (warning) - 30 (not preserved) - 10 (manual review)
    assert outcome.score == 35


def test_generation_failure_is_an_error(tmp_path: Path) -> None:
    plan = LogicTransformer().transform(make_descriptor("Gamma"))
    failure = GenerationFailure(phase="generation", message="template exploded")

    outcome = MigrationValidator().validate(plan, failure)

    assert outcome.valid is False
    assert outcome.error_codes == [GENERATION_FAILED]
    assert outcome.score == 80
    assert outcome.component_name == "Gamma"


def test_compilation_errors_mark_types_unsafe(tmp_path: Path) -> None:
    plan = LogicTransformer().transform(make_descriptor("Gamma"))
    success = _generate(plan, tmp_path)
    compiled = GenerationSuccess(with_compilation_result(success.artifact, ["TS1005: ';' expected"]))

    outcome = MigrationValidator().validate(plan, compiled)

    assert outcome.types_safe is False
    assert outcome.error_codes == [COMPILATION_FAILED]
    assert outcome.errors[0].value == ["TS1005: ';' expected"]


def test_documentation_must_match_plan_units(tmp_path: Path) -> None:
    plan = LogicTransformer().transform(make_descriptor("Form", [make_pattern("conditional", 0.9)]))
    success = _generate(plan, tmp_path)
    trimmed = GenerationSuccess(replace(success.artifact, documentation=success.artifact.documentation[:1]))

    outcome = MigrationValidator().validate(plan, trimmed)

    assert outcome.error_codes == [DOCUMENTATION_MISMATCH]


def test_custom_scoring_weights_are_applied(tmp_path: Path) -> None:
    plan = LogicTransformer().transform(make_descriptor("Busy", complexity=5))
    validator = MigrationValidator(ScoringConfig(warning_penalty=1, manual_review_penalty=2))

    outcome = validator.validate(plan, _generate(plan, tmp_path))

    assert outcome.valid is True
    assert outcome.score == 97


def test_validation_outcome_serialises_camel_case(tmp_path: Path) -> None:
    plan = LogicTransformer().transform(make_descriptor("Gamma"))

    payload = MigrationValidator().validate(plan, _generate(plan, tmp_path)).to_dict()

    assert payload["componentName"] == "Gamma"
    assert payload["businessLogicPreserved"] is True
    assert payload["typesSafe"] is True
    assert payload["testsPass"] is True


@pytest.mark.parametrize(
    ("kwargs", "expected"),
    [
        ({"errors": 0, "warnings": 0, "preserved": True, "manual_review": False}, 100),
        ({"errors": 1, "warnings": 2, "preserved": True, "manual_review": False}, 70),
        ({"errors": 4, "warnings": 4, "preserved": False, "manual_review": True}, 0),
    ],
)
def test_compute_score_is_clamped(kwargs, expected) -> None:
    assert compute_score(**kwargs) == expected
