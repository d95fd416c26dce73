"""Code generator that renders migrated components from transformation plans."""

from __future__ import annotations

import re
import traceback
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from jinja2 import Environment, FileSystemLoader, TemplateError

from ..config import GenerationOptions
from ..errors import GenerationError
from ..logging import get_logger
from ..models import ComponentDescriptor, HookUsage, PropDefinition
from ..transform.plan import BehaviorMapping, TransformationPlan
from .artifact import (
    DocumentationBlock,
    GeneratedArtifact,
    GenerationFailure,
    GenerationResult,
    GenerationSuccess,
)

_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_NUMBER = re.compile(r"^-?\d+(?:\.\d+)?$")
_KEBAB_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_WORD_SEPARATOR = re.compile(r"[^A-Za-z0-9_$]+")
_STRING_LITERAL = re.compile(r"""('(?:\\.|[^'\\])*'|"(?:\\.|[^"\\])*"|`(?:\\.|[^`\\])*`)""")

COMPONENT_TEMPLATE = "component.tsx.j2"
README_TEMPLATE = "readme.md.j2"
TEST_TEMPLATE = "test.tsx.j2"


class CodeGenerator:
    """Renders the component source, README and test scaffold for a plan."""

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir
        self._env = self._create_env(templates_dir)
        self.logger = get_logger("generator")

    def generate(self, plan: TransformationPlan, options: GenerationOptions) -> GenerationResult:
        """Return a tagged success or failure instead of raising."""
        try:
            artifact = self.build(plan, options)
        except GenerationError as exc:
            self.logger.debug("Generation failed for %s: %s", plan.component_name, exc)
            return GenerationFailure(phase="generation", message=str(exc), stack=traceback.format_exc())
        return GenerationSuccess(artifact)

    def build(self, plan: TransformationPlan, options: GenerationOptions) -> GeneratedArtifact:
        key = (options.component_name or plan.component_name).strip()
        name = key if _IDENTIFIER.match(key) else pascal_case(key)
        if not _IDENTIFIER.match(name):
            raise GenerationError(f"'{key}' is not a valid component identifier", component=key or None)
        if not options.output_path:
            raise GenerationError("An output path is required", component=key)

        descriptor = plan.descriptor
        documentation = tuple(_document(unit, descriptor) for unit in plan.units)
        if [block.subject for block in documentation] != list(plan.subjects):
            raise GenerationError(f"Documentation for {name} does not cover every plan unit", component=key)

        props_interface = render_props_interface(name, descriptor.props)
        state_interface = render_state_interface(name, descriptor.state_hooks())
        api_interface = render_api_interface(name) if descriptor.patterns_of("external-call") else None

        context: Dict[str, Any] = {
            "name": name,
            "file_stem": key,
            "kebab_name": kebab_case(name),
            "baseline_path": options.baseline_path,
            "props": descriptor.props,
            "props_interface": props_interface,
            "state_interface": state_interface,
            "api_response_interface": api_interface,
            "state_fields": _state_fields(descriptor.state_hooks(), descriptor.props),
            "documentation": sorted(documentation, key=lambda block: block.subject),
            "plan_documentation": documentation,
            "dependencies": descriptor.dependencies,
            "review_reasons": plan.review_reasons,
            "unmapped": plan.unmapped,
            "sample_props": [(prop.name, sample_value(prop.type)) for prop in descriptor.props if prop.required],
        }
        source_code = self._render(COMPONENT_TEMPLATE, context)
        readme = self._render(README_TEMPLATE, context)
        test_scaffold = None if options.skip_tests else self._render(TEST_TEMPLATE, context)

        artifact = GeneratedArtifact(
            name=key,
            file_path=str(Path(options.output_path) / key / f"{key}.tsx"),
            export_name=name,
            source_code=source_code,
            props_interface=props_interface,
            state_interface=state_interface,
            api_response_interface=api_interface,
            documentation=documentation,
            test_scaffold=test_scaffold,
            readme=readme,
        )
        self.logger.debug(
            "Generated %s (%d documentation blocks%s)",
            name,
            len(documentation),
            ", dry run" if options.dry_run else "",
        )
        return artifact

    def _render(self, template_name: str, context: Dict[str, Any]) -> str:
        try:
            template = self._env.get_template(template_name)
            return template.render(**context).rstrip() + "\n"
        except TemplateError as exc:
            raise GenerationError(f"Failed to render {template_name}: {exc}", component=context.get("name")) from exc

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories: List[str] = []
        if templates_dir:
            directories.append(str(templates_dir))
        default_dir = str(Path(__file__).with_name("templates"))
        if default_dir not in directories:
            directories.append(default_dir)
        env = Environment(
            loader=FileSystemLoader(directories),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        env.filters["kebab"] = kebab_case
        env.filters["comment"] = comment_safe
        return env


def kebab_case(name: str) -> str:
    return _KEBAB_BOUNDARY.sub("-", name).replace("_", "-").lower()


def pascal_case(key: str) -> str:
    """``not-found`` -> ``NotFound``; used when a file key is not an identifier."""
    return "".join(part[:1].upper() + part[1:] for part in _WORD_SEPARATOR.split(key) if part)


def comment_safe(value: object) -> str:
    """Neutralise ``*/`` so text cannot terminate the block comment it sits in."""
    return str(value).replace("*/", "*\\/")


def render_props_interface(name: str, props: Sequence[PropDefinition]) -> str:
    if not props:
        return f"export interface {name}Props {{}}"
    lines = [f"export interface {name}Props {{"]
    for prop in props:
        if prop.description:
            lines.append(f"  /** {comment_safe(prop.description)} */")
        optional = "" if prop.required else "?"
        lines.append(f"  {prop.name}{optional}: {prop.type};")
    lines.append("}")
    return "\n".join(lines)


def render_state_interface(name: str, hooks: Sequence[HookUsage]) -> Optional[str]:
    fields = [(hook.variables[0], infer_type(hook.initializer)) for hook in hooks if hook.variables]
    if not fields:
        return None
    lines = [f"export interface {name}State {{"]
    lines.extend(f"  {field}: {annotation};" for field, annotation in fields)
    lines.append("}")
    return "\n".join(lines)


def render_api_interface(name: str) -> str:
    return "\n".join(
        [
            f"export interface {name}ApiResponse<T = unknown> {{",
            "  data: T;",
            "  status: number;",
            "  error?: string;",
            "}",
        ]
    )


def infer_type(initializer: Optional[str]) -> str:
    """Best-effort TypeScript type for a hook initializer expression."""
    if initializer is None:
        return "unknown"
    text = initializer.strip()
    if text in {"true", "false"}:
        return "boolean"
    if _NUMBER.match(text):
        return "number"
    if text[:1] in {"'", '"', "`"}:
        return "string"
    if text.startswith("["):
        return "unknown[]"
    if text in {"null", "undefined"}:
        return "unknown"
    if text.startswith("{"):
        return "Record<string, unknown>"
    return "unknown"


def sample_value(annotation: str) -> str:
    lowered = annotation.strip().lower()
    if lowered == "string":
        return "''"
    if lowered == "number":
        return "0"
    if lowered == "boolean":
        return "false"
    if lowered.endswith("[]") or lowered.startswith("array<"):
        return "[]"
    if "=>" in lowered:
        return "() => undefined"
    return "undefined as never"


def _state_fields(hooks: Sequence[HookUsage], props: Sequence[PropDefinition]) -> List[Tuple[str, str, str]]:
    fields: List[Tuple[str, str, str]] = []
    for hook in hooks:
        if hook.name != "useState" or not hook.variables:
            continue
        value = hook.variables[0]
        setter = hook.variables[1] if len(hook.variables) > 1 else f"set{value[:1].upper()}{value[1:]}"
        initial = scope_to_props(hook.initializer, props) if hook.initializer else "undefined"
        fields.append((value, setter, initial))
    return fields


def scope_to_props(expression: str, props: Sequence[PropDefinition]) -> str:
    """Rewrite bare prop names in ``expression`` as ``props.<name>`` reads.

    The migrated component receives a single ``props`` argument, so names the
    baseline destructured from its parameters are out of scope. Optional
    props fall back to their destructuring default. String literals, member
    accesses and object keys are left alone.
    """
    text = expression.strip()
    by_name = {prop.name: prop for prop in props if _IDENTIFIER.match(prop.name)}
    if not by_name:
        return text
    if text in by_name:
        return _prop_read(by_name[text])

    names = "|".join(re.escape(name) for name in sorted(by_name, key=len, reverse=True))
    reference = re.compile(rf"(?<![\w$.])({names})(?![\w$])(?!\s*:)")

    def substitute(match: re.Match[str]) -> str:
        read = _prop_read(by_name[match.group(1)])
        return f"({read})" if " " in read else read

    pieces = _STRING_LITERAL.split(text)
    # split() keeps the captured literals at odd indexes.
    return "".join(piece if index % 2 else reference.sub(substitute, piece) for index, piece in enumerate(pieces))


def _prop_read(prop: PropDefinition) -> str:
    if prop.default is not None:
        return f"props.{prop.name} ?? {prop.default}"
    return f"props.{prop.name}"


def _document(unit: BehaviorMapping, descriptor: ComponentDescriptor) -> DocumentationBlock:
    if unit.pattern is None:
        dependencies = descriptor.dependencies
    else:
        code = unit.pattern.code or ""
        dependencies = tuple(dep for dep in descriptor.dependencies if dep.split("/")[-1] in code)
    return DocumentationBlock(
        subject=unit.subject,
        rationale=unit.rationale,
        actions=unit.actions,
        calls=unit.calls,
        data_flow=unit.data_flow,
        dependencies=dependencies,
        edge_cases=unit.edge_cases,
    )


__all__ = [
    "CodeGenerator",
    "infer_type",
    "comment_safe",
    "kebab_case",
    "pascal_case",
    "render_api_interface",
    "render_props_interface",
    "render_state_interface",
    "sample_value",
    "scope_to_props",
]
