"""
Tests for tree-sitter parsing of expressions and scripts.
"""

import pytest

from dotscan.expressions.syntax import (
    ExpressionSyntaxError,
    ScriptDocument,
    decode_escapes,
    flatten_sequence,
    node_text,
    parse_expression,
    parse_number,
    parse_script,
    string_value,
    template_parts,
)


class TestParseExpression:

    def test_returns_expression_node(self):
        _doc, node = parse_expression("it.user.name")

        assert node.type == "member_expression"
        assert node_text(node) == "it.user.name"

    @pytest.mark.parametrize("expr, node_type", [
        ("it.items.map(x => x.name).join(', ')", "call_expression"),
        ("`Hello ${it.user}`", "template_string"),
        ("/^a/.test(it.name)", "call_expression"),
        ("[...it.list].length", "member_expression"),
        ("new Date(it.when).getFullYear()", "call_expression"),
        ("a ? b : c", "ternary_expression"),
        ("a, b", "sequence_expression"),
        ("{a: 1}", "object"),
    ])
    def test_javascript_expressions(self, expr, node_type):
        _doc, node = parse_expression(expr)

        assert node.type == node_type

    def test_surrounding_whitespace_and_comments(self):
        _doc, node = parse_expression("  it.a /* note */ ")

        assert node.type == "member_expression"

    def test_line_comment_at_end(self):
        _doc, node = parse_expression("it.a // note")

        assert node_text(node) == "it.a"

    def test_empty_expression(self):
        with pytest.raises(ExpressionSyntaxError, match="Empty expression"):
            parse_expression("   ")

    def test_trailing_tokens_rejected(self):
        with pytest.raises(ExpressionSyntaxError):
            parse_expression("it.a it.b")

    def test_breaking_out_of_parentheses_rejected(self):
        with pytest.raises(ExpressionSyntaxError, match="Expected a single expression"):
            parse_expression("a) + (b")

    def test_statements_rejected(self):
        with pytest.raises(ExpressionSyntaxError):
            parse_expression("var x = 1")

    def test_error_position_within_text(self):
        with pytest.raises(ExpressionSyntaxError) as e:
            parse_expression("a + + + ) b")

        assert 0 <= e.value.position <= len("a + + + ) b")
        assert str(e.value).endswith(f"at position {e.value.position}")


class TestParseScript:

    def test_statements(self):
        doc = parse_script("const a = 1; a + 1")

        types = [child.type for child in doc.root_node.named_children]
        assert types == ["lexical_declaration", "expression_statement"]

    def test_syntax_error(self):
        with pytest.raises(ExpressionSyntaxError):
            parse_script("1 +")

    def test_error_is_located(self):
        doc = ScriptDocument("a + ) ")

        assert doc.has_error()
        assert doc.find_error() is not None

    def test_position_in_characters(self):
        doc = ScriptDocument("'é' + x")

        statement = doc.root_node.named_children[0]
        binary = statement.named_children[0]
        right = binary.child_by_field_name("right")
        assert doc.get_node_text(right) == "x"
        assert doc.position(right) == 6

    def test_position_excludes_prefix(self):
        doc = ScriptDocument("x", prefix="(", suffix=")")

        statement = doc.root_node.named_children[0]
        identifier = statement.named_children[0].named_children[0]
        assert doc.position(identifier) == 0


class TestLiterals:

    def test_string_value(self):
        _doc, node = parse_expression(r"'a\'b\n\x41B\u{43}'")

        assert string_value(node) == "a'b\nABC"

    def test_decode_escapes(self):
        assert decode_escapes(r"\t\\\"") == "\t\\\""
        assert decode_escapes("a\\\nb") == "ab"
        assert decode_escapes(r"\q") == "q"

    def test_template_parts(self):
        _doc, node = parse_expression("`a${x}b\\n${y}`")

        parts = template_parts(node)
        assert parts[0] == "a"
        assert node_text(parts[1]) == "x"
        assert parts[2] == "b\n"
        assert node_text(parts[3]) == "y"
        assert parts[4] == ""

    @pytest.mark.parametrize("text, value", [
        ("42", 42.0),
        ("1.5e3", 1500.0),
        ("0x1F", 31.0),
        ("0o17", 15.0),
        ("0b101", 5.0),
        ("1_000", 1000.0),
        (".5", 0.5),
    ])
    def test_parse_number(self, text, value):
        assert parse_number(text) == value

    def test_flatten_sequence(self):
        _doc, node = parse_expression("a, b, c")

        assert [node_text(child) for child in flatten_sequence(node)] == ["a", "b", "c"]
