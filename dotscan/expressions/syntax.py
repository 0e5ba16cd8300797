"""
JavaScript parsing with tree-sitter.

Tag expressions are parsed as a single parenthesized expression so that
trailing input is rejected; compile-time code is parsed as a script.
Positions reported in syntax errors are character offsets into the text
as written, not into the wrapped source handed to the parser.
"""

from __future__ import annotations

import re
from typing import Iterator, List, Optional, Tuple, Union

import tree_sitter_javascript as tsjs
from tree_sitter import Language, Node, Parser, Tree

_language: Optional[Language] = None

_ESCAPE = re.compile(r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|[\s\S])")
_SINGLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}
_LINE_CONTINUATIONS = {"\n", "\r", "\r\n", "\u2028", "\u2029"}


def get_language() -> Language:
    """JavaScript grammar, loaded once."""
    global _language
    if _language is None:
        _language = Language(tsjs.language())
    return _language


class ExpressionSyntaxError(Exception):
    """
    JavaScript source could not be parsed.

    Attributes:
        message: Description of the problem
        position: Character offset of the problem in the source text
    """

    def __init__(self, message: str, position: int):
        self.message = message
        self.position = position
        super().__init__(f"{message} at position {position}")


class ScriptDocument:
    """
    Parsed JavaScript source.

    Args:
        text: Source text as written
        prefix: Text parsed before the source, not counted in positions
        suffix: Text parsed after the source
    """

    def __init__(self, text: str, prefix: str = "", suffix: str = ""):
        self.text = text
        self._prefix_bytes = len(prefix.encode("utf-8"))
        self._source_bytes = (prefix + text + suffix).encode("utf-8")
        self.tree: Tree = Parser(get_language()).parse(self._source_bytes)

    @property
    def root_node(self) -> Node:
        return self.tree.root_node

    @property
    def source_length(self) -> int:
        """Length of the parsed source in bytes."""
        return len(self._source_bytes)

    def has_error(self) -> bool:
        return self.root_node.has_error

    def get_node_text(self, node: Node) -> str:
        return self._source_bytes[node.start_byte:node.end_byte].decode("utf-8")

    def position(self, node: Node) -> int:
        """Character offset of a node in the text as written."""
        text_bytes = self.text.encode("utf-8")
        offset = min(max(node.start_byte - self._prefix_bytes, 0), len(text_bytes))
        return len(text_bytes[:offset].decode("utf-8", errors="ignore"))

    def find_error(self) -> Optional[Node]:
        """First ERROR or missing node in document order."""
        return next(_iter_errors(self.root_node), None)

    def check(self) -> None:
        """
        Raises:
            ExpressionSyntaxError: When the source has a syntax error
        """
        if not self.has_error():
            return
        node = self.find_error()
        if node is None:
            raise ExpressionSyntaxError("Invalid syntax", 0)
        raise ExpressionSyntaxError(self._describe_error(node), self.position(node))

    def _describe_error(self, node: Node) -> str:
        if node.is_missing:
            return f"Missing '{node.type}'"
        leaf = node
        while leaf.child_count:
            leaf = leaf.children[0]
        token = self.get_node_text(leaf).strip()
        if not token:
            return "Unexpected end of input"
        return f"Unexpected token '{token}'"


def _iter_errors(node: Node) -> Iterator[Node]:
    if node.type == "ERROR" or node.is_missing:
        yield node
        return
    for child in node.children:
        if child.has_error or child.is_missing or child.type == "ERROR":
            yield from _iter_errors(child)


def significant_children(node: Node) -> List[Node]:
    """Named children without comments."""
    return [child for child in node.named_children if child.type != "comment"]


def node_text(node: Node) -> str:
    text = node.text
    return text.decode("utf-8") if text is not None else ""


def parse_expression(text: str) -> Tuple[ScriptDocument, Node]:
    """
    Parse a single JavaScript expression.

    Returns:
        The document and the expression node

    Raises:
        ExpressionSyntaxError: When the text is not exactly one expression
    """
    if not text.strip():
        raise ExpressionSyntaxError("Empty expression", 0)

    doc = ScriptDocument(text, "(", "\n)")
    doc.check()

    statements = significant_children(doc.root_node)
    if len(statements) == 1 and statements[0].type == "expression_statement":
        inner = significant_children(statements[0])
        if (
            len(inner) == 1
            and inner[0].type == "parenthesized_expression"
            and inner[0].start_byte == 0
            and inner[0].end_byte == doc.source_length
        ):
            body = significant_children(inner[0])
            if len(body) == 1:
                return doc, body[0]

    raise ExpressionSyntaxError("Expected a single expression", 0)


def parse_script(code: str) -> ScriptDocument:
    """
    Parse compile-time code as a script.

    Raises:
        ExpressionSyntaxError: On syntax errors
    """
    doc = ScriptDocument(code)
    doc.check()
    return doc


def decode_escapes(raw: str) -> str:
    """Resolve JavaScript escape sequences in string literal content."""

    def replace(match: re.Match) -> str:
        escape = match.group(1)
        if escape in _LINE_CONTINUATIONS:
            return ""
        if escape.startswith("u{"):
            return chr(int(escape[2:-1], 16))
        if escape[0] in "ux" and len(escape) > 1:
            return chr(int(escape[1:], 16))
        return _SINGLE_ESCAPES.get(escape, escape)

    return _ESCAPE.sub(replace, raw)


def string_value(node: Node) -> str:
    """Value of a `string` node."""
    return decode_escapes(node_text(node)[1:-1])


def template_parts(node: Node) -> List[Union[str, Node]]:
    """
    Literal chunks and substitution expressions of a `template_string`, in order.
    """
    raw = node.text or b""
    base = node.start_byte
    parts: List[Union[str, Node]] = []
    cursor = base + 1
    for child in node.named_children:
        if child.type != "template_substitution":
            continue
        parts.append(decode_escapes(raw[cursor - base:child.start_byte - base].decode("utf-8")))
        expressions = significant_children(child)
        if expressions:
            parts.append(expressions[0])
        cursor = child.end_byte
    parts.append(decode_escapes(raw[cursor - base:node.end_byte - base - 1].decode("utf-8")))
    return parts


def parse_number(text: str) -> float:
    """Value of a `number` node."""
    literal = text.replace("_", "")
    if literal.endswith("n"):
        literal = literal[:-1]
    prefix = literal[:2].lower()
    if prefix == "0x":
        return float(int(literal[2:], 16))
    if prefix == "0o":
        return float(int(literal[2:], 8))
    if prefix == "0b":
        return float(int(literal[2:], 2))
    return float(literal)


def flatten_sequence(node: Node) -> List[Node]:
    """Operands of a (possibly nested) sequence expression."""
    result: List[Node] = []
    for child in significant_children(node):
        if child.type == "sequence_expression":
            result.extend(flatten_sequence(child))
        else:
            result.append(child)
    return result


def has_optional_chain(node: Node) -> bool:
    return any(child.type == "optional_chain" for child in node.children)


__all__ = [
    "ExpressionSyntaxError",
    "ScriptDocument",
    "decode_escapes",
    "flatten_sequence",
    "get_language",
    "has_optional_chain",
    "node_text",
    "parse_expression",
    "parse_number",
    "parse_script",
    "significant_children",
    "string_value",
    "template_parts",
]
