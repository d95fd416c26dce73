"""Tree-sitter backed analyzer that builds component descriptors."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePath
from typing import Dict, List, Optional, Sequence, Tuple

from tree_sitter import Node

from ..errors import AnalysisError
from ..logging import get_logger
from ..models import ComponentDescriptor, HookUsage, PropDefinition
from .base import SourceAnalyzer
from .patterns import DEFAULT_DETECTORS, Detector, detect_patterns
from .tree_sitter import call_arguments, first_error, iter_type, node_text, parse, start_line

HOOK_NAMES = frozenset(
    {
        "useState",
        "useEffect",
        "useLayoutEffect",
        "useCallback",
        "useMemo",
        "useRef",
        "useContext",
        "useReducer",
    }
)
_DEPENDENCY_HOOKS = frozenset({"useEffect", "useLayoutEffect", "useCallback", "useMemo"})
_BRANCH_TYPES = frozenset(
    {
        "if_statement",
        "switch_statement",
        "ternary_expression",
        "for_statement",
        "for_in_statement",
        "while_statement",
        "do_statement",
    }
)
_CLASS_TYPES = frozenset({"class_declaration", "abstract_class_declaration"})
_FUNCTION_TYPES = frozenset({"function_declaration", "generator_function_declaration"})
_COMMENT_PREFIX_SKIP = ("@", "TODO", "FIXME", "eslint", "ts-")
_COMPONENT_NAME = re.compile(r"^(?:[A-Z][A-Za-z0-9_]*|use[A-Z0-9_][A-Za-z0-9_]*)$")


def complexity_score(branch_depth: int, external_calls: int, pattern_count: int) -> int:
    """Map structural signals onto the 1-5 complexity scale.

    Non-decreasing in each argument.
    """
    raw = branch_depth + (external_calls + 1) // 2 + pattern_count // 4
    return max(1, min(5, 1 + raw // 2))


@dataclass
class _Export:
    name: str
    declaration_type: str
    is_default: bool


class TreeSitterSourceAnalyzer(SourceAnalyzer):
    """Extracts hooks, props, patterns and metadata from TS/TSX baselines."""

    def __init__(
        self,
        *,
        confidence_threshold: float = 0.5,
        detectors: Optional[Sequence[Detector]] = None,
    ) -> None:
        self.confidence_threshold = confidence_threshold
        self._detectors = tuple(detectors) if detectors is not None else DEFAULT_DETECTORS
        self.logger = get_logger("analyzer")

    def analyze(self, source: str, file_path: str) -> ComponentDescriptor:
        if not source.strip():
            raise AnalysisError(f"Baseline {file_path} is empty")
        source_bytes = source.encode("utf-8")
        tree = parse(source_bytes, file_path)
        root = tree.root_node
        if root.has_error:
            error = first_error(root)
            line = start_line(error) if error is not None else 1
            raise AnalysisError(f"Unable to parse {file_path}: syntax error near line {line}")

        exports = self._collect_exports(root, source_bytes)
        if not exports:
            raise AnalysisError(f"No exported component found in {file_path}")
        name, declaration_type = self._select_component(exports, file_path)

        patterns = detect_patterns(
            root,
            source_bytes,
            file_path,
            threshold=self.confidence_threshold,
            detectors=self._detectors,
        )
        external_calls = sum(1 for pattern in patterns if pattern.kind == "external-call")
        complexity = complexity_score(_branch_depth(root), external_calls, len(patterns))

        descriptor = ComponentDescriptor(
            name=name,
            file_path=file_path,
            kind=_component_kind(name, declaration_type),
            hooks=tuple(self._extract_hooks(root, source_bytes)),
            props=tuple(self._extract_props(root, source_bytes)),
            patterns=tuple(patterns),
            dependencies=tuple(_extract_dependencies(root, source_bytes)),
            loc=len(source.splitlines()),
            complexity=complexity,
            comments=tuple(_extract_comments(root, source_bytes)),
        )
        self.logger.debug(
            "Analyzed %s: %d hooks, %d props, %d patterns, complexity %d",
            name,
            len(descriptor.hooks),
            len(descriptor.props),
            len(descriptor.patterns),
            complexity,
        )
        return descriptor

    # ------------------------------------------------------------------
    # Component identity

    @staticmethod
    def _collect_exports(root: Node, source: bytes) -> List[_Export]:
        exports: List[_Export] = []
        local_types: Dict[str, str] = {}
        for child in root.named_children:
            for name, declaration_type in _declared_names(child, source):
                local_types.setdefault(name, declaration_type)

        for statement in root.named_children:
            if statement.type != "export_statement":
                continue
            is_default = any(child.type == "default" for child in statement.children)
            declaration = statement.child_by_field_name("declaration")
            value = statement.child_by_field_name("value")
            if declaration is not None:
                for name, declaration_type in _declared_names(declaration, source):
                    exports.append(_Export(name, declaration_type, is_default))
            elif value is not None and value.type == "identifier":
                name = node_text(value, source)
                exports.append(_Export(name, local_types.get(name, "function"), True))
            elif is_default:
                exports.append(_Export("", "function", True))
            for clause in statement.named_children:
                if clause.type != "export_clause":
                    continue
                for specifier in clause.named_children:
                    if specifier.type != "export_specifier":
                        continue
                    name = node_text(specifier.child_by_field_name("name"), source)
                    if name:
                        exports.append(_Export(name, local_types.get(name, "function"), False))
        return exports

    @staticmethod
    def _select_component(exports: Sequence[_Export], file_path: str) -> Tuple[str, str]:
        for export in exports:
            if export.is_default and export.name:
                return export.name, export.declaration_type
        for export in exports:
            if _COMPONENT_NAME.match(export.name):
                return export.name, export.declaration_type
        stem = PurePath(file_path).stem
        return stem, exports[0].declaration_type if exports else "function"

    # ------------------------------------------------------------------
    # Hooks and props

    @staticmethod
    def _extract_hooks(root: Node, source: bytes) -> List[HookUsage]:
        hooks: List[HookUsage] = []
        for call in iter_type(root, "call_expression"):
            callee = node_text(call.child_by_field_name("function"), source)
            name = callee[len("React."):] if callee.startswith("React.") else callee
            if name not in HOOK_NAMES:
                continue
            variables: Tuple[str, ...] = ()
            parent = call.parent
            if parent is not None and parent.type == "variable_declarator":
                variables = _binding_names(parent.child_by_field_name("name"), source)
            args = call_arguments(call)
            dependencies: Tuple[str, ...] = ()
            if name in _DEPENDENCY_HOOKS and len(args) > 1 and args[1].type == "array":
                dependencies = tuple(
                    node_text(element, source) for element in args[1].named_children if element.type != "comment"
                )
            initializer = node_text(args[0], source) if args else None
            hooks.append(
                HookUsage(name=name, variables=variables, dependencies=dependencies, initializer=initializer)
            )
        return hooks

    @staticmethod
    def _extract_props(root: Node, source: bytes) -> List[PropDefinition]:
        body = _props_body(root, source)
        if body is None:
            return []
        defaults = _parameter_defaults(root, source)
        props: List[PropDefinition] = []
        for member in body.named_children:
            if member.type != "property_signature":
                continue
            name = node_text(member.child_by_field_name("name"), source)
            annotation = node_text(member.child_by_field_name("type"), source).lstrip(":").strip()
            optional = any(child.type == "?" for child in member.children)
            props.append(
                PropDefinition(
                    name=name,
                    type=annotation or "unknown",
                    required=not optional,
                    default=defaults.get(name),
                    description=_jsdoc_description(member, source),
                )
            )
        return props


def _declared_names(node: Node, source: bytes) -> List[Tuple[str, str]]:
    if node.type in _CLASS_TYPES:
        return [(node_text(node.child_by_field_name("name"), source), "class")]
    if node.type in _FUNCTION_TYPES:
        return [(node_text(node.child_by_field_name("name"), source), "function")]
    if node.type in {"lexical_declaration", "variable_declaration"}:
        names: List[Tuple[str, str]] = []
        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            name_node = declarator.child_by_field_name("name")
            if name_node is not None and name_node.type == "identifier":
                names.append((node_text(name_node, source), "function"))
        return names
    return []


def _component_kind(name: str, declaration_type: str) -> str:
    if declaration_type == "class":
        return "class"
    if name.startswith("use"):
        return "hook"
    return "function"


def _binding_names(pattern: Optional[Node], source: bytes) -> Tuple[str, ...]:
    if pattern is None:
        return ()
    if pattern.type == "identifier":
        return (node_text(pattern, source),)
    names: List[str] = []
    for element in pattern.named_children:
        if element.type in {"identifier", "shorthand_property_identifier_pattern"}:
            names.append(node_text(element, source))
        elif element.type in {"assignment_pattern", "object_assignment_pattern"}:
            names.append(node_text(element.child_by_field_name("left"), source))
    return tuple(names)


def _props_body(root: Node, source: bytes) -> Optional[Node]:
    for node in iter_type(root, "interface_declaration", "type_alias_declaration"):
        name = node_text(node.child_by_field_name("name"), source)
        if not name.endswith("Props"):
            continue
        if node.type == "interface_declaration":
            return node.child_by_field_name("body")
        value = node.child_by_field_name("value")
        if value is not None and value.type == "object_type":
            return value
    return None


def _parameter_defaults(root: Node, source: bytes) -> Dict[str, str]:
    defaults: Dict[str, str] = {}
    for parameters in iter_type(root, "formal_parameters"):
        for node in iter_type(parameters, "object_assignment_pattern"):
            name = node_text(node.child_by_field_name("left"), source)
            defaults.setdefault(name, node_text(node.child_by_field_name("right"), source))
    return defaults


def _jsdoc_description(member: Node, source: bytes) -> Optional[str]:
    previous = member.prev_named_sibling
    if previous is None or previous.type != "comment":
        return None
    text = node_text(previous, source)
    if not text.startswith("/**"):
        return None
    if previous.end_point[0] + 1 < member.start_point[0]:
        return None
    cleaned = _clean_comment(text)
    return cleaned or None


def _extract_dependencies(root: Node, source: bytes) -> List[str]:
    seen: Dict[str, None] = {}
    for statement in root.named_children:
        if statement.type != "import_statement":
            continue
        specifier = node_text(statement.child_by_field_name("source"), source).strip("'\"`")
        if specifier and not specifier.startswith((".", "/")):
            seen.setdefault(specifier, None)
    return list(seen)


def _extract_comments(root: Node, source: bytes) -> List[str]:
    seen: Dict[str, None] = {}
    for comment in iter_type(root, "comment"):
        cleaned = _clean_comment(node_text(comment, source))
        if len(cleaned) > 15 and not cleaned.startswith(_COMMENT_PREFIX_SKIP):
            seen.setdefault(cleaned, None)
    return list(seen)


def _clean_comment(text: str) -> str:
    if text.startswith("//"):
        return text[2:].strip()
    body = text
    if body.startswith("/*"):
        body = body[3:] if body.startswith("/**") else body[2:]
    if body.endswith("*/"):
        body = body[:-2]
    lines = [re.sub(r"^\s*\*\s?", "", line).strip() for line in body.splitlines()]
    return " ".join(line for line in lines if line).strip()


def _branch_depth(root: Node) -> int:
    deepest = 0
    stack: List[Tuple[Node, int]] = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        if node.type in _BRANCH_TYPES:
            depth += 1
            deepest = max(deepest, depth)
        for child in node.children:
            stack.append((child, depth))
    return deepest


__all__ = ["HOOK_NAMES", "TreeSitterSourceAnalyzer", "complexity_score"]
