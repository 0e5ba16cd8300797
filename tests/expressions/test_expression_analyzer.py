"""
Tests for expression type and usage analysis.
"""

import pytest

from dotscan.analysis.scope import Scope, VariableInfo
from dotscan.analysis.types import ARRAY, NUMBER, OBJECT, STRING, UNKNOWN, array_of
from dotscan.expressions.analyzer import ExpressionAnalyzer, analyze_expression
from dotscan.expressions.syntax import ExpressionSyntaxError
from dotscan.protocols import ExpressionAnalyzerProtocol


class TestExpressionAnalyzer:

    def setup_method(self):
        self.analyzer = ExpressionAnalyzer()
        self.scope = Scope()

    def analyze(self, expr, scope=None):
        return self.analyzer.analyze(expr, scope or self.scope)

    def test_satisfies_protocol(self):
        assert isinstance(self.analyzer, ExpressionAnalyzerProtocol)

    def test_identifier_created_in_scope(self):
        info = self.analyze("x")

        assert self.scope.members["x"] is info
        assert info.name == "x"
        assert info.type == UNKNOWN

    def test_unresolved_name_created_in_root(self):
        nested = self.scope.create_nested()

        info = self.analyze("y", nested)

        assert "y" in self.scope
        assert "y" not in nested
        assert self.scope.members["y"] is info

    def test_nested_binding_resolved_first(self):
        nested = self.scope.create_nested()
        item = nested.add_own_member("item")

        member = self.analyze("item.title", nested)

        assert "item" not in self.scope
        assert item.type == OBJECT
        assert item.members["title"] is member

    def test_member_access_makes_object(self):
        info = self.analyze("it.a.b")

        it = self.scope.members["it"]
        assert it.type == OBJECT
        assert it.members["a"].type == OBJECT
        assert it.members["a"].members["b"] is info

    def test_string_index_is_member_access(self):
        info = self.analyze("it['a']")

        assert self.scope.members["it"].members["a"] is info

    def test_numeric_index_makes_array(self):
        info = self.analyze("list[0]")

        assert self.scope.members["list"].type == ARRAY
        assert info is self.scope.members["list"].elements
        assert info.type == UNKNOWN

    def test_index_member_recorded_on_elements(self):
        self.analyze("it.rows[0].title")
        self.analyze("it.rows[i].id")

        rows = self.scope.members["it"].members["rows"]
        assert rows.type == ARRAY
        assert set(rows.elements.members) == {"title", "id"}
        assert rows.to_dict()["elements"] == {"members": {"title": {"name": "title"}, "id": {"name": "id"}}}

    def test_index_of_typed_array(self):
        self.scope.add_own_member("names", VariableInfo(name="names", type=array_of(STRING)))

        assert self.analyze("names[i]").type == STRING
        assert "i" in self.scope

    def test_literals(self):
        assert self.analyze("'x'").type == STRING
        assert self.analyze("1.5").type == NUMBER
        assert self.analyze("null").type == UNKNOWN

    def test_plus(self):
        assert self.analyze("a + 'x'").type == STRING
        assert self.analyze("1 + 2").type == NUMBER
        assert self.analyze("a + b").type == UNKNOWN
        assert self.scope.members["a"].type == UNKNOWN

    def test_arithmetic_infers_number_operands(self):
        assert self.analyze("count - 1").type == NUMBER
        assert self.scope.members["count"].type == NUMBER

    def test_arithmetic_keeps_known_operand_type(self):
        self.analyze("label + ''")
        self.analyze("label = 'x'")
        self.analyze("label * 2")

        assert self.scope.members["label"].type == STRING

    def test_unary(self):
        assert self.analyze("-a").type == NUMBER
        assert self.analyze("typeof a").type == STRING
        assert self.analyze("!a").type == UNKNOWN

    def test_logical_and_conditional_join(self):
        result = self.analyze("it.title || 'untitled'")

        assert result.type == STRING
        assert self.scope.members["it"].members["title"].type == UNKNOWN
        assert self.analyze("a ? 1 : 2").type == NUMBER

    def test_assignment(self):
        result = self.analyze("a = 'x'")

        assert result is self.scope.members["a"]
        assert result.type == STRING
        assert self.analyze("n -= b").type == NUMBER

    def test_array_and_object_literals(self):
        assert self.analyze("[1, 2]").type == array_of(NUMBER)
        assert self.analyze("[]").type == ARRAY
        assert self.analyze("{a: b}").type == OBJECT
        assert "b" in self.scope

    def test_call_references_callee_and_arguments(self):
        result = self.analyze("format(it.date)")

        assert result.type == UNKNOWN
        assert "format" in self.scope
        assert "date" in self.scope.members["it"].members

    def test_sequence_returns_last(self):
        assert self.analyze("(a, 'x')").type == STRING

    def test_trailing_input_rejected(self):
        with pytest.raises(ExpressionSyntaxError):
            self.analyze("it.a trailing")

        with pytest.raises(ExpressionSyntaxError, match="Expected a single expression"):
            self.analyze("a) + (b")

    def test_syntax_error(self):
        with pytest.raises(ExpressionSyntaxError):
            self.analyze("@")

    def test_type_only_moves_up(self):
        self.analyze("a = 'x'")
        self.analyze("a = 1")

        assert self.scope.members["a"].type == STRING


class TestJavaScriptConstructs:

    def setup_method(self):
        self.analyzer = ExpressionAnalyzer()
        self.scope = Scope()

    def analyze(self, expr):
        return self.analyzer.analyze(expr, self.scope)

    def test_array_callback_binds_elements(self):
        result = self.analyze("it.items.map(x => x.name).join(', ')")

        items = self.scope.members["it"].members["items"]
        assert result.type == STRING
        assert items.type == ARRAY
        assert "name" in items.elements.members
        assert "map" not in (items.members or {})
        assert "x" not in self.scope

    def test_callback_index_parameter_is_local(self):
        self.analyze("it.rows.filter(function (row, i) { return i > 0 && row.visible; })")

        rows = self.scope.members["it"].members["rows"]
        assert "visible" in rows.elements.members
        assert "i" not in self.scope
        assert "row" not in self.scope

    def test_destructured_callback_parameter(self):
        self.analyze("it.users.map(({name, age = 0}) => name + age)")

        elements = self.scope.members["it"].members["users"].elements
        assert set(elements.members) == {"name", "age"}
        assert elements.members["age"].type == NUMBER

    def test_template_literal(self):
        result = self.analyze("`Hello ${it.user}`")

        assert result.type == STRING
        assert "user" in self.scope.members["it"].members

    def test_regex_method_call(self):
        result = self.analyze("/^a/.test(it.name)")

        assert result.type == UNKNOWN
        assert "name" in self.scope.members["it"].members
        assert list(self.scope) == ["it"]

    def test_spread_into_array(self):
        result = self.analyze("[...it.list].length")

        it = self.scope.members["it"]
        assert "list" in it.members
        assert result.name == "length"

    def test_new_and_globals_are_not_variables(self):
        result = self.analyze("new Date(it.when).getFullYear()")

        assert list(self.scope) == ["it"]
        assert "when" in self.scope.members["it"].members
        assert result.type == UNKNOWN

    def test_this_is_not_a_variable(self):
        self.analyze("this.title + it.title")

        assert list(self.scope) == ["it"]

    def test_function_locals(self):
        self.analyze("(function () { const total = it.a + 1; return total * 2; })()")

        assert list(self.scope) == ["it"]
        assert "a" in self.scope.members["it"].members

    def test_global_functions(self):
        assert self.analyze("JSON.stringify(it.data)").type == UNKNOWN
        assert self.analyze("Math.max(it.a, 1)").type == UNKNOWN
        assert list(self.scope) == ["it"]

    def test_string_method_infers_string(self):
        assert self.analyze("it.title.toUpperCase()").type == STRING
        assert self.scope.members["it"].members["title"].type == STRING

    def test_split_gives_string_array(self):
        assert self.analyze("it.tags.split(',')").type == array_of(STRING)

    def test_shared_method_does_not_infer(self):
        self.analyze("it.value.indexOf('x')")

        value = self.scope.members["it"].members["value"]
        assert value.type == UNKNOWN
        assert value.members is None

    def test_unknown_method_is_member(self):
        self.analyze("it.format(it.date)")

        it = self.scope.members["it"]
        assert set(it.members) == {"format", "date"}

    def test_find_returns_elements_record(self):
        self.analyze("it.rows.find(r => r.id === 1).title")

        elements = self.scope.members["it"].members["rows"].elements
        assert set(elements.members) == {"id", "title"}

    def test_update_expression(self):
        assert self.analyze("count++").type == NUMBER
        assert self.scope.members["count"].type == NUMBER

    def test_reserved_words_rejected(self):
        with pytest.raises(ExpressionSyntaxError):
            self.analyze("new")

    def test_syntax_error_position(self):
        with pytest.raises(ExpressionSyntaxError) as e:
            self.analyze("it.a + * 2")

        assert 0 <= e.value.position <= len("it.a + * 2")


def test_analyze_expression_wrapper():
    scope = Scope()

    assert analyze_expression("x.y", scope) is scope.members["x"].members["y"]
