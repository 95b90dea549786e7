"""Tree-sitter based import extraction for TypeScript and JavaScript.

Collects string-literal specifiers from ``import`` declarations,
``export ... from``, dynamic ``import()``, ``require()`` and TypeScript
``import x = require()``, with the source range of each statement.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Literal

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from archctl.models.graph import ExtractionResult, ImportRef, ImportStyle
from archctl.models.violations import PositionRange
from archctl.parse.capabilities import CapabilityCollector

if TYPE_CHECKING:
    from collections.abc import Sequence

    from archctl.rules.config import CapabilityPattern

Dialect = Literal["typescript", "tsx", "javascript"]

_LANGUAGE_FACTORIES = {
    "typescript": tree_sitter_typescript.language_typescript,
    "tsx": tree_sitter_typescript.language_tsx,
    "javascript": tree_sitter_javascript.language,
}

# Parsers are not shared across threads.
_LOCAL = threading.local()


def _get_parser(dialect: Dialect) -> Parser:
    parsers: dict[str, Parser] | None = getattr(_LOCAL, "parsers", None)
    if parsers is None:
        parsers = {}
        _LOCAL.parsers = parsers
    parser = parsers.get(dialect)
    if parser is None:
        parser = Parser(Language(_LANGUAGE_FACTORIES[dialect]()))
        parsers[dialect] = parser
    return parser


def dialect_for_path(path: str) -> Dialect:
    if path.endswith(".tsx"):
        return "tsx"
    if path.endswith((".ts", ".mts", ".cts")):
        return "typescript"
    return "javascript"


def _node_text(source: bytes, node: Node) -> str:
    return source[node.start_byte : node.end_byte].decode("utf8", errors="ignore")


def _string_value(source: bytes, node: Node | None) -> str | None:
    if node is None or node.type != "string":
        return None
    text = _node_text(source, node)
    if len(text) >= 2 and text[0] in "'\"" and text[-1] == text[0]:
        return text[1:-1]
    return None


def _node_range(node: Node) -> PositionRange:
    return PositionRange(
        start_line=node.start_point[0] + 1,
        start_col=node.start_point[1],
        end_line=node.end_point[0] + 1,
        end_col=node.end_point[1],
    )


def _first_string_argument(source: bytes, call: Node) -> str | None:
    arguments = call.child_by_field_name("arguments")
    if arguments is None:
        return None
    for child in arguments.named_children:
        return _string_value(source, child)
    return None


def _import_from_node(source: bytes, node: Node) -> tuple[str, ImportStyle] | None:
    node_type = node.type
    if node_type == "import_statement":
        if any(child.type == "import_require_clause" for child in node.named_children):
            return None
        value = _string_value(source, node.child_by_field_name("source"))
        if value is not None:
            return value, "import"
        return None
    if node_type == "export_statement":
        value = _string_value(source, node.child_by_field_name("source"))
        return (value, "export") if value is not None else None
    if node_type == "import_require_clause":
        value = _string_value(source, node.child_by_field_name("source"))
        if value is None:
            for child in node.named_children:
                value = _string_value(source, child)
                if value is not None:
                    break
        return (value, "require") if value is not None else None
    if node_type == "call_expression":
        function = node.child_by_field_name("function")
        if function is None:
            return None
        if function.type == "import":
            value = _first_string_argument(source, node)
            return (value, "dynamic-import") if value is not None else None
        if function.type == "identifier" and _node_text(source, function) == "require":
            value = _first_string_argument(source, node)
            return (value, "require") if value is not None else None
    return None


def _statement_node(node: Node) -> Node:
    # Report ``import x = require(...)`` against the whole statement.
    if node.type == "import_require_clause" and node.parent is not None:
        return node.parent
    return node


def _walk(root: Node):
    """Pre-order traversal with an explicit stack."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def extract_tsjs(
    contents: str | bytes,
    path: str,
    capability_patterns: Sequence[CapabilityPattern] | None = None,
) -> ExtractionResult:
    """Extract imports (and optionally capabilities) from a TS/JS source."""
    source = contents.encode("utf8") if isinstance(contents, str) else contents
    dialect = dialect_for_path(path)
    tree = _get_parser(dialect).parse(source)

    collector = CapabilityCollector(capability_patterns)
    imports: list[ImportRef] = []
    for node in _walk(tree.root_node):
        found = _import_from_node(source, node)
        if found is not None:
            specifier, style = found
            statement = _statement_node(node)
            imports.append(
                ImportRef(specifier=specifier, style=style, range=_node_range(statement))
            )
            if collector.enabled:
                collector.add_import(
                    specifier, statement.start_point[0] + 1, separator="/"
                )

        if not collector.enabled:
            continue
        if node.type == "call_expression":
            function = node.child_by_field_name("function")
            if function is not None and function.type in ("identifier", "member_expression"):
                callee = "".join(_node_text(source, function).split())
                collector.add_call(callee, node.start_point[0] + 1)
        elif node.type == "member_expression":
            text = "".join(_node_text(source, node).split())
            collector.add_member_access(text, node.start_point[0] + 1)

    return ExtractionResult(
        language="javascript" if dialect == "javascript" else "typescript",
        imports=imports,
        capabilities=collector.results(),
    )


__all__ = ["dialect_for_path", "extract_tsjs"]
