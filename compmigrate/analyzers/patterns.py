"""Business-logic pattern detection over a parsed baseline."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Sequence

from tree_sitter import Node

from ..models import BusinessLogicPattern, SourceSpan
from .tree_sitter import call_arguments, end_line, has_ancestor, iter_type, node_text, start_line

_POSTCODE_SHAPE = re.compile(r"[A-Z]{1,2}\d{1,2}[A-Z]?\s*\d[A-Z]{2}", re.IGNORECASE)
_VALIDATION_CALLEES = ("validate", "check", "verify", "isvalid")
_STRING_NORMALISERS = {"toLowerCase", "toUpperCase", "trim", "replace", "normalize"}
_STATE_WORDS = ("state", "status", "step")
_WORKFLOW_WORDS = ("step", "page", "stage", "phase")

_CODE_LIMITS = {
    "validation": 100,
    "transformation": 150,
    "conditional": 150,
    "state-transition": 300,
    "external-call": 200,
}


@dataclass
class _Context:
    root: Node
    source: bytes
    file_path: str
    threshold: float

    def pattern(self, kind: str, description: str, node: Node, confidence: float, code: str | None = None) -> BusinessLogicPattern:
        excerpt = code if code is not None else node_text(node, self.source)
        limit = _CODE_LIMITS.get(kind, 200)
        return BusinessLogicPattern(
            kind=kind,
            description=description,
            location=SourceSpan(file=self.file_path, start_line=start_line(node), end_line=end_line(node)),
            confidence=confidence,
            code=excerpt[:limit] if excerpt else None,
            low_confidence=confidence < self.threshold,
        )

    def text(self, node: Node | None) -> str:
        return node_text(node, self.source)


Detector = Callable[[_Context], List[BusinessLogicPattern]]


def detect_patterns(
    root: Node,
    source: bytes,
    file_path: str,
    *,
    threshold: float,
    detectors: Sequence[Detector] | None = None,
) -> List[BusinessLogicPattern]:
    """Run every detector and return patterns in detector order.

    Patterns whose confidence is below ``threshold`` are kept and flagged
    with ``low_confidence``.
    """
    context = _Context(root=root, source=source, file_path=file_path, threshold=threshold)
    patterns: List[BusinessLogicPattern] = []
    for detector in detectors or DEFAULT_DETECTORS:
        patterns.extend(detector(context))
    return patterns


def detect_validation(ctx: _Context) -> List[BusinessLogicPattern]:
    patterns: List[BusinessLogicPattern] = []
    for regex in iter_type(ctx.root, "regex"):
        text = ctx.text(regex)
        lowered = text.lower()
        if "postcode" in lowered or _POSTCODE_SHAPE.search(text):
            patterns.append(ctx.pattern("validation", f"UK postcode validation: {text}", regex, 0.95))
        elif "@" in text or "email" in lowered:
            patterns.append(ctx.pattern("validation", f"Email validation: {text}", regex, 0.9))
        elif "phone" in lowered or ("\\d" in text and ("+" in text or re.search(r"\d{3,}", text))):
            patterns.append(ctx.pattern("validation", f"Phone number validation: {text}", regex, 0.85))
        else:
            patterns.append(ctx.pattern("validation", f"Format validation: {text}", regex, 0.7))

    for call in iter_type(ctx.root, "call_expression"):
        callee = ctx.text(call.child_by_field_name("function"))
        lowered = callee.lower()
        if any(marker in lowered for marker in _VALIDATION_CALLEES):
            patterns.append(ctx.pattern("validation", f"Validation function: {callee}", call, 0.8))
    return patterns


def detect_transformations(ctx: _Context) -> List[BusinessLogicPattern]:
    patterns: List[BusinessLogicPattern] = []
    for call in iter_type(ctx.root, "call_expression"):
        function = call.child_by_field_name("function")
        if function is None or function.type != "member_expression":
            continue
        method = ctx.text(function.child_by_field_name("property"))
        target = ctx.text(function.child_by_field_name("object"))
        if method == "map":
            patterns.append(ctx.pattern("transformation", f"Transform {target} with map operation", call, 0.9))
        elif method == "filter":
            patterns.append(ctx.pattern("transformation", f"Filter {target} with filter operation", call, 0.9))
        elif method == "reduce":
            patterns.append(ctx.pattern("transformation", f"Aggregate {target} with reduce operation", call, 0.85))
        elif method in {"flatMap", "flat"}:
            patterns.append(ctx.pattern("transformation", f"Flatten {target} with {method} operation", call, 0.85))
        elif method in _STRING_NORMALISERS:
            patterns.append(
                ctx.pattern("transformation", f"String normalization: {target}.{method}()", call, 0.8)
            )

    for spread in iter_type(ctx.root, "spread_element"):
        if spread.parent is not None and spread.parent.type == "object":
            patterns.append(ctx.pattern("transformation", "Property mapping with spread operator", spread, 0.7))
    return patterns


def detect_conditionals(ctx: _Context) -> List[BusinessLogicPattern]:
    patterns: List[BusinessLogicPattern] = []
    for if_stmt in iter_type(ctx.root, "if_statement"):
        if has_ancestor(if_stmt, "jsx_element", "jsx_fragment", "jsx_expression"):
            condition = ctx.text(if_stmt.child_by_field_name("condition"))
            patterns.append(ctx.pattern("conditional", f"Conditional UI rendering: if {condition}", if_stmt, 0.9))

    for ternary in iter_type(ctx.root, "ternary_expression"):
        if ternary.parent is not None and ternary.parent.type in {"jsx_expression", "jsx_element"}:
            condition = ctx.text(ternary.child_by_field_name("condition"))
            patterns.append(
                ctx.pattern("conditional", f"Ternary conditional rendering: {condition} ? ... : ...", ternary, 0.85)
            )

    for binary in iter_type(ctx.root, "binary_expression"):
        operator = binary.child_by_field_name("operator")
        if operator is None or operator.type != "&&":
            continue
        if binary.parent is not None and binary.parent.type == "jsx_expression":
            condition = ctx.text(binary.child_by_field_name("left"))
            patterns.append(
                ctx.pattern("conditional", f"Short-circuit conditional rendering: {condition} && ...", binary, 0.9)
            )
    return patterns


def detect_state_transitions(ctx: _Context) -> List[BusinessLogicPattern]:
    patterns: List[BusinessLogicPattern] = []
    for enum_decl in iter_type(ctx.root, "enum_declaration"):
        name = ctx.text(enum_decl.child_by_field_name("name"))
        if not any(word in name.lower() for word in _STATE_WORDS):
            continue
        members = _enum_members(ctx, enum_decl)
        patterns.append(
            ctx.pattern(
                "state-transition",
                f"State machine: {name} with states: {', '.join(members)}",
                enum_decl,
                0.95,
            )
        )

    for switch in iter_type(ctx.root, "switch_statement"):
        expression = ctx.text(switch.child_by_field_name("value")).strip("() ")
        body = switch.child_by_field_name("body")
        cases = 0
        if body is not None:
            cases = sum(1 for child in body.named_children if child.type in {"switch_case", "switch_default"})
        lowered = expression.lower()
        if any(word in lowered for word in _STATE_WORDS) or cases >= 3:
            patterns.append(
                ctx.pattern(
                    "state-transition",
                    f"State transition logic: switch({expression}) with {cases} cases",
                    switch,
                    0.85,
                )
            )

    for declarator in iter_type(ctx.root, "variable_declarator"):
        name = ctx.text(declarator.child_by_field_name("name"))
        if not any(word in name.lower() for word in _WORKFLOW_WORDS):
            continue
        value = declarator.child_by_field_name("value")
        if value is None or value.type != "call_expression":
            continue
        callee = ctx.text(value.child_by_field_name("function"))
        if callee in {"useState", "React.useState"}:
            patterns.append(ctx.pattern("state-transition", f"Multi-step workflow state: {name}", declarator, 0.8))
    return patterns


def detect_external_calls(ctx: _Context) -> List[BusinessLogicPattern]:
    patterns: List[BusinessLogicPattern] = []
    for call in iter_type(ctx.root, "call_expression"):
        callee = ctx.text(call.child_by_field_name("function"))
        args = call_arguments(call)
        url = ctx.text(args[0]) if args else "unknown"
        if callee == "fetch" or callee.endswith(".fetch"):
            method = _fetch_method(ctx, args[1] if len(args) > 1 else None)
            patterns.append(ctx.pattern("external-call", f"API call to {url} using {method}", call, 0.9))
        elif callee == "axios" or callee.startswith("axios."):
            parts = callee.split(".")
            method = parts[1] if len(parts) > 1 else "request"
            patterns.append(ctx.pattern("external-call", f"Axios {method.upper()} request to {url}", call, 0.95))
    return patterns


def _fetch_method(ctx: _Context, options: Node | None) -> str:
    if options is None or options.type != "object":
        return "GET"
    for pair in options.named_children:
        if pair.type != "pair":
            continue
        key = ctx.text(pair.child_by_field_name("key")).strip("'\"")
        if key == "method":
            value = ctx.text(pair.child_by_field_name("value"))
            return value.replace("'", "").replace('"', "").replace("`", "").upper()
    return "GET"


def _enum_members(ctx: _Context, enum_decl: Node) -> List[str]:
    body = enum_decl.child_by_field_name("body")
    if body is None:
        return []
    members: List[str] = []
    for child in body.named_children:
        if child.type == "enum_assignment":
            members.append(ctx.text(child.child_by_field_name("name")))
        elif child.type in {"property_identifier", "string"}:
            members.append(ctx.text(child))
    return members


DEFAULT_DETECTORS: tuple[Detector, ...] = (
    detect_validation,
    detect_transformations,
    detect_conditionals,
    detect_state_transitions,
    detect_external_calls,
)


__all__ = [
    "DEFAULT_DETECTORS",
    "Detector",
    "detect_conditionals",
    "detect_external_calls",
    "detect_patterns",
    "detect_state_transitions",
    "detect_transformations",
    "detect_validation",
]
