"""
Tests for variable usage analysis of tag trees.
"""

import pytest

from dotscan.analysis.scope import Scope, VariableInfo, variables_to_dict
from dotscan.analysis.types import ARRAY, NUMBER, array_of
from dotscan.analysis.variables import scan_variables
from dotscan.errors import TemplateExpressionError
from dotscan.options import ScanOptions
from dotscan.template.scanner import scan_dot
from dotscan.template.tree import parse_dot


def analyze(template: str, options=None, scope=None):
    tree = parse_dot(scan_dot(template, ignore_text=True))
    return variables_to_dict(scan_variables(tree, options, scope))


class FakeAnalyzer:
    """Records expressions and returns a fresh root member per expression."""

    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def analyze(self, expr, scope):
        self.calls.append(expr)
        if self.error is not None:
            raise self.error
        return scope.get_root().add_own_member(expr.strip())


class TestScanVariables:

    def test_interpolation_flags(self):
        result = analyze("{{= a }}{{! b }}")

        assert result["a"] == {"name": "a", "interpolated": True, "unescaped": True}
        assert result["b"] == {"name": "b", "interpolated": True, "escaped": True}

    def test_evaluation_tags_skipped(self):
        assert analyze("{{ foo }}") == {}

    def test_conditional_flags_and_body(self):
        result = analyze("{{? it.show }}{{= it.title }}{{?}}")

        members = result["it"]["members"]
        assert members["show"] == {"name": "show", "conditional": True, "section": True}
        assert members["title"] == {"name": "title", "interpolated": True, "unescaped": True}

    def test_else_with_expression(self):
        result = analyze("{{? a }}{{?? b }}{{= c }}{{?}}")

        assert result["b"] == {"name": "b", "conditional": True, "section": True}
        assert result["c"]["interpolated"]

    def test_plain_else_body_analyzed(self):
        result = analyze("{{? a }}{{??}}{{= c }}{{?}}")

        assert result["c"] == {"name": "c", "interpolated": True, "unescaped": True}

    def test_iteration_elements(self):
        result = analyze("{{~ it.names :name}}{{!name}}{{~}}")

        names = result["it"]["members"]["names"]
        assert names == {
            "name": "names",
            "type": "array",
            "iteration": True,
            "section": True,
            "elements": {"interpolated": True, "escaped": True},
        }
        assert "name" not in result

    def test_iteration_value_type_becomes_element_type(self):
        result = analyze("{{~ it.rows :row}}{{= row - 1 }}{{~}}")

        assert result["it"]["members"]["rows"]["type"] == "array<number>"

    def test_iteration_value_members(self):
        result = analyze("{{~ users :user}}{{? user.active }}{{! user.name }}{{?}}{{~}}")

        elements = result["users"]["elements"]
        assert elements["members"]["active"] == {"name": "active", "conditional": True, "section": True}
        assert elements["members"]["name"] == {"name": "name", "interpolated": True, "escaped": True}

    def test_nested_iterations(self):
        result = analyze("{{~ it.m :row}}{{~ row :cell}}{{!cell}}{{~}}{{~}}")

        assert result["it"]["members"]["m"] == {
            "name": "m",
            "type": "array<array>",
            "iteration": True,
            "section": True,
            "elements": {
                "iteration": True,
                "section": True,
                "elements": {"interpolated": True, "escaped": True},
            },
        }

    def test_index_bound_as_number(self):
        scope = Scope()
        result = analyze("{{~ it.xs :x:i}}{{= i }}{{~}}", scope=scope)

        assert "i" not in result
        assert "x" not in result

    def test_outer_names_inside_loop(self):
        result = analyze("{{~ it.xs :x}}{{= it.title }}{{~}}")

        assert result["it"]["members"]["title"]["unescaped"]

    def test_iteration_forces_array(self):
        result = analyze("{{= it.list.size }}{{~ it.list :x}}{{~}}")

        assert result["it"]["members"]["list"]["type"] == "array"
        assert result["it"]["members"]["list"]["members"]["size"]["interpolated"]

    def test_seeded_element_type(self):
        scope = Scope()
        scope.add_own_member("rows", VariableInfo(name="rows", type=array_of(NUMBER)))

        scan_variables(parse_dot(scan_dot("{{~ rows :r}}{{= r + 1 }}{{~}}", ignore_text=True)), scope=scope)

        assert scope.members["rows"].type == array_of(NUMBER)

    def test_iteration_without_body_tags(self):
        scope = Scope()

        scan_variables(parse_dot(scan_dot("{{~ xs :x}}text{{~}}")), scope=scope)

        assert scope.members["xs"].type == ARRAY
        assert scope.members["xs"].elements.to_dict() == {}

    def test_expression_error(self):
        with pytest.raises(TemplateExpressionError) as exc:
            analyze("{{= a @ b }}")

        err = exc.value
        assert (err.expr, err.tag, err.offset) == ("a @ b ", "=", 0)
        assert str(err).startswith("Error analyzing expression 'a @ b ' in = tag at 0: ")
        assert "at position" in str(err)

    def test_injected_analyzer(self):
        fake = FakeAnalyzer()

        result = analyze("{{? flag }}{{= value }}{{?}}{{ skipped }}", ScanOptions(analyzer=fake))

        assert fake.calls == ["flag ", "value "]
        assert result["flag"]["conditional"]
        assert result["value"]["unescaped"]

    def test_analyzer_failure_wrapped(self):
        fake = FakeAnalyzer(error=RuntimeError("boom"))

        with pytest.raises(TemplateExpressionError, match="boom") as exc:
            analyze("x{{! v }}", ScanOptions(analyzer=fake))

        assert exc.value.offset == 1
        assert isinstance(exc.value.__cause__, RuntimeError)

    def test_number_index_type(self):
        scope = Scope()

        analyze("{{~ xs :x:i}}{{= x[i] }}{{~}}", scope=scope)

        assert scope.members["xs"].type == array_of(ARRAY)
        assert "i" not in scope

    def test_array_callback_parameter_is_element(self):
        result = analyze("{{= it.items.map(x => x.name).join(', ') }}")

        items = result["it"]["members"]["items"]
        assert items["elements"]["members"] == {"name": {"name": "name"}}
        assert "x" not in result

    def test_template_regex_and_spread(self):
        result = analyze("{{= `Hi ${it.user}` }}{{? /^a/.test(it.name) }}{{?}}{{= [...it.list].length }}")

        assert list(result) == ["it"]
        assert set(result["it"]["members"]) == {"user", "name", "list"}

    def test_constructor_call_is_not_a_variable(self):
        result = analyze("{{= new Date(it.when).getFullYear() }}")

        assert result == {"it": {"name": "it", "type": "object", "members": {"when": {"name": "when"}}}}

    def test_index_then_member_records_on_elements(self):
        result = analyze("{{= it.rows[0].title }}")

        rows = result["it"]["members"]["rows"]
        assert rows["type"].startswith("array")
        assert rows["elements"] == {
            "members": {"title": {"name": "title", "interpolated": True, "unescaped": True}},
        }
