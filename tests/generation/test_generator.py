"""Tests for compmigrate.generation."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from compmigrate.analyzers import TreeSitterSourceAnalyzer
from compmigrate.config import GenerationOptions
from compmigrate.generation import (
    CodeGenerator,
    GenerationFailure,
    GenerationSuccess,
    with_compilation_result,
)
from compmigrate.generation.generator import infer_type, kebab_case, pascal_case, sample_value, scope_to_props
from compmigrate.models import PropDefinition
from compmigrate.transform import LogicTransformer, TransformationPlan
from tests._fixtures.baselines import ALPHA_SOURCE, WIZARD_SOURCE, make_descriptor, make_pattern


def _plan(source: str, file_path: str) -> TransformationPlan:
    descriptor = TreeSitterSourceAnalyzer().analyze(textwrap.dedent(source).lstrip("\n"), file_path)
    return LogicTransformer().transform(descriptor)


def _options(tmp_path: Path, **overrides) -> GenerationOptions:
    values = {"baseline_path": "Alpha.tsx", "output_path": str(tmp_path / "out")}
    values.update(overrides)
    return GenerationOptions(**values)


def test_generate_renders_component_readme_and_tests(tmp_path: Path) -> None:
    plan = _plan(ALPHA_SOURCE, "Alpha.tsx")

    result = CodeGenerator().generate(plan, _options(tmp_path))

    assert isinstance(result, GenerationSuccess)
    artifact = result.artifact
    assert artifact.name == "Alpha"
    assert artifact.file_path == str(tmp_path / "out" / "Alpha" / "Alpha.tsx")
    assert artifact.compilation_status == "pending"
    assert [block.subject for block in artifact.documentation] == list(plan.subjects)

    source = artifact.source_code
    assert "export interface AlphaProps {" in source
    assert "  initialEmail?: string;" in source
    assert "  onSubmit: (email: string) => void;" in source
    assert "const [email, setEmail] = React.useState(props.initialEmail ?? '');" in source
    assert 'data-component="alpha"' in source
    assert source.rstrip().endswith("export default Alpha;")
    assert source.index("@behavior emailValidation") < source.index("@behavior render")

    assert "| `onSubmit` | `(email: string) => void` | yes |" in artifact.readme
    assert "### emailValidation" in artifact.readme
    assert artifact.test_scaffold is not None
    assert "it.todo('preserves emailValidation');" in artifact.test_scaffold
    assert "onSubmit: () => undefined," in artifact.test_scaffold
    assert "preserves render" not in artifact.test_scaffold


def test_generate_emits_state_and_api_interfaces_when_needed(tmp_path: Path) -> None:
    alpha = CodeGenerator().build(_plan(ALPHA_SOURCE, "Alpha.tsx"), _options(tmp_path))
    wizard = CodeGenerator().build(
        _plan(WIZARD_SOURCE, "Wizard.tsx"),
        _options(tmp_path, baseline_path="Wizard.tsx"),
    )

    assert alpha.state_interface == "export interface AlphaState {\n  email: unknown;\n}"
    assert alpha.api_response_interface is None
    assert wizard.api_response_interface is not None
    assert "export interface WizardApiResponse<T = unknown> {" in wizard.source_code
    assert "Baseline dependencies: react, axios" in wizard.source_code


def test_generate_is_deterministic(tmp_path: Path) -> None:
    plan = _plan(WIZARD_SOURCE, "Wizard.tsx")
    generator = CodeGenerator()

    assert generator.build(plan, _options(tmp_path)) == generator.build(plan, _options(tmp_path))


def test_component_name_option_overrides_plan_name(tmp_path: Path) -> None:
    artifact = CodeGenerator().build(
        _plan(ALPHA_SOURCE, "Alpha.tsx"),
        _options(tmp_path, component_name="EmailForm"),
    )

    assert artifact.name == "EmailForm"
    assert artifact.file_path.endswith(str(Path("EmailForm") / "EmailForm.tsx"))
    assert "export function EmailForm(props: EmailFormProps)" in artifact.source_code


def test_skip_tests_omits_scaffold(tmp_path: Path) -> None:
    artifact = CodeGenerator().build(_plan(ALPHA_SOURCE, "Alpha.tsx"), _options(tmp_path, skip_tests=True))

    assert artifact.test_scaffold is None
    assert "testScaffold" not in artifact.to_dict()


@pytest.mark.parametrize(
    "overrides",
    [{"component_name": "1Broken"}, {"output_path": ""}],
    ids=["bad-identifier", "missing-output"],
)
def test_generate_reports_failures_instead_of_raising(tmp_path: Path, overrides) -> None:
    result = CodeGenerator().generate(_plan(ALPHA_SOURCE, "Alpha.tsx"), _options(tmp_path, **overrides))

    assert isinstance(result, GenerationFailure)
    assert result.phase == "generation"
    payload = result.to_dict()
    assert payload["success"] is False
    assert payload["errorDetails"]["phase"] == "generation"
    assert payload["error"] == result.message


def test_user_templates_take_precedence(tmp_path: Path) -> None:
    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "component.tsx.j2").write_text("// custom {{ name }}\n", encoding="utf-8")

    artifact = CodeGenerator(templates).build(_plan(ALPHA_SOURCE, "Alpha.tsx"), _options(tmp_path))

    assert artifact.source_code == "// custom Alpha\n"
    assert artifact.readme.startswith("# Alpha")


def test_broken_user_template_becomes_generation_failure(tmp_path: Path) -> None:
    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "readme.md.j2").write_text("{% for x in %}\n", encoding="utf-8")

    result = CodeGenerator(templates).generate(_plan(ALPHA_SOURCE, "Alpha.tsx"), _options(tmp_path))

    assert isinstance(result, GenerationFailure)
    assert "readme.md.j2" in result.message


def test_compilation_result_is_attached_by_copy(tmp_path: Path) -> None:
    artifact = CodeGenerator().build(_plan(ALPHA_SOURCE, "Alpha.tsx"), _options(tmp_path))

    failed = with_compilation_result(artifact, ["TS2322: Type 'number' is not assignable"])
    passed = with_compilation_result(artifact, [])

    assert artifact.compilation_status == "pending"
    assert failed.compilation_status == "error"
    assert failed.to_dict()["compilationErrors"] == ["TS2322: Type 'number' is not assignable"]
    assert passed.compilation_status == "success"


@pytest.mark.parametrize(
    ("initializer", "expected"),
    [
        ("true", "boolean"),
        ("42", "number"),
        ("'idle'", "string"),
        ("[]", "unknown[]"),
        ("{ a: 1 }", "Record<string, unknown>"),
        ("null", "unknown"),
        (None, "unknown"),
    ],
)
def test_infer_type(initializer, expected) -> None:
    assert infer_type(initializer) == expected


def test_naming_and_sample_helpers() -> None:
    assert kebab_case("UserProfileCard") == "user-profile-card"
    assert kebab_case("Form_v2") == "form-v2"
    assert sample_value("string") == "''"
    assert sample_value("Item[]") == "[]"
    assert sample_value("(id: string) => void") == "() => undefined"
    assert sample_value("Customer") == "undefined as never"


def test_comment_terminators_in_pattern_text_are_escaped(tmp_path: Path) -> None:
    descriptor = make_descriptor(
        "Digits",
        [make_pattern("validation", 0.9, description="Format validation: /\\d*/", code="/\\d*/", line=3)],
    )
    plan = LogicTransformer().transform(descriptor)

    source = CodeGenerator().build(plan, _options(tmp_path, baseline_path="src/*/Digits.tsx")).source_code

    assert "Format validation: /\\d*\\/" in source
    assert "/\\d*/" not in source
    assert "Migrated from src/*\\/Digits.tsx." in source
    header, _, rest = source.partition("import React")
    assert header.count("*/") == 1
    block = rest[rest.index("/**") : rest.index("export function")]
    assert block.count("*/") == 2


def test_file_key_that_is_not_an_identifier_is_exported_in_pascal_case(tmp_path: Path) -> None:
    artifact = CodeGenerator().build(
        _plan(ALPHA_SOURCE, "Alpha.tsx"),
        _options(tmp_path, component_name="radio-group"),
    )

    assert artifact.name == "radio-group"
    assert artifact.export_name == "RadioGroup"
    assert artifact.file_path.endswith(str(Path("radio-group") / "radio-group.tsx"))
    assert "export function RadioGroup(props: RadioGroupProps)" in artifact.source_code
    assert "import { RadioGroup } from './radio-group';" in artifact.test_scaffold
    assert artifact.to_dict()["exportName"] == "RadioGroup"


@pytest.mark.parametrize(
    ("expression", "expected"),
    [
        ("initialEmail", "props.initialEmail ?? ''"),
        ("count", "props.count"),
        ("count + 1", "props.count + 1"),
        ("() => initialEmail.trim()", "() => (props.initialEmail ?? '').trim()"),
        ("'initialEmail'", "'initialEmail'"),
        ("state.count", "state.count"),
        ("{ count: 0 }", "{ count: 0 }"),
        ("counter", "counter"),
    ],
)
def test_scope_to_props_rewrites_prop_references(expression: str, expected: str) -> None:
    props = [
        PropDefinition(name="initialEmail", type="string", required=False, default="''"),
        PropDefinition(name="count", type="number", required=True),
    ]

    assert scope_to_props(expression, props) == expected


def test_pascal_case() -> None:
    assert pascal_case("not-found") == "NotFound"
    assert pascal_case("radio-group.v2") == "RadioGroupV2"
