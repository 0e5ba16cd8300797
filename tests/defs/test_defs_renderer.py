"""
Tests for compile-time expansion.
"""

import logging

from dotscan.analysis.scope import Scope, VariableInfo
from dotscan.analysis.types import OBJECT, STRING
from dotscan.defs.renderer import (
    ExpansionDepthError,
    get_scope_values,
    render_defs,
    substitute_param,
)
from dotscan.options import ScanOptions


class RecordingHandler:
    """Evaluate-error handler returning a fixed marker."""

    def __init__(self, marker: str = "<error>"):
        self.marker = marker
        self.calls = []

    def __call__(self, code, values, error):
        self.calls.append((code, dict(values), error))
        return self.marker


class TestRenderDefs:

    def setup_method(self):
        self.scope = Scope()

    def render(self, template: str, **options) -> str:
        return render_defs(template, ScanOptions(**options), self.scope)

    def test_text_without_tags_unchanged(self):
        assert self.render("plain {{= it.x }} text") == "plain {{= it.x }} text"

    def test_first_define_wins(self):
        assert self.render("{{##x:1#}}{{##x:2#}}{{#def.x}}") == "1"

    def test_parameterized_define(self):
        template = '{{##def.img:filename:<img src="filename">#}}{{#def.img:user.jpg}}'

        assert self.render(template) == '<img src="user.jpg">'

    def test_param_replaced_as_whole_word(self):
        template = "{{##def.greet:who:hello who, whoever#}}{{#def.greet:bob}}"

        assert self.render(template) == "hello bob, whoever"

    def test_code_define_evaluated_immediately(self):
        assert self.render("{{##def.total= 1 + 2 #}}[{{#def.total}}]") == "[3]"

        total = self.scope.members["def"].members["total"]
        assert total.value == "3"
        assert total.type == STRING

    def test_defines_recorded_in_scope(self):
        self.render('{{##def.img:filename:<img src="filename">#}}')

        def_info = self.scope.members["def"]
        assert def_info.type == OBJECT
        img = def_info.members["img"]
        assert img.to_dict() == {
            "name": "img",
            "type": "string",
            "value": '<img src="filename">',
            "param": "filename",
        }

    def test_unresolved_reference_reads_undefined(self):
        assert self.render("{{# def.missing:1 }}") == "undefined"

    def test_evaluation_output_expanded_again(self):
        template = "{{##def.inner:X#}}{{##def.outer:{{#def.inner}}#}}<{{#def.outer}}>"

        assert self.render(template) == "<X>"

    def test_evaluation_error_routed_to_handler(self):
        handler = RecordingHandler()

        result = self.render("{{##a:1#}}a{{# nope }}b", on_evaluate_error=handler)

        assert result == "a<error>b"
        code, values, error = handler.calls[0]
        assert code == " nope "
        assert values == {"a": "1"}
        assert "nope is not defined" in str(error)

    def test_default_handler_substitutes_message(self):
        assert self.render("{{# nope }}") == "nope is not defined"

    def test_evaluation_error_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="dotscan.defs.renderer"):
            self.render("{{# nope }}")

        assert "Compile-time evaluation" in caplog.text

    def test_injected_evaluator_receives_assembled_code(self):
        calls = []

        def evaluate(code, values):
            calls.append((code, dict(values)))
            return "ok"

        result = self.render("{{##def.a:v:v+1#}}{{# def.a:1 }}", evaluate=evaluate)

        assert result == "ok"
        assert calls == [(' "1+1" ', {"a": "v+1"})]

    def test_recursive_define_stopped_by_max_depth(self):
        handler = RecordingHandler("<cut>")
        template = "{{##def.loop:{{#def.loop}}#}}[{{#def.loop}}]"

        result = self.render(template, max_depth=3, on_evaluate_error=handler)

        assert result == "[<cut>]"
        assert len(handler.calls) == 1
        assert isinstance(handler.calls[0][2], ExpansionDepthError)
        assert handler.calls[0][2].max_depth == 3

    def test_recursive_define_with_default_handler(self):
        result = self.render("{{##def.loop:{{#def.loop}}#}}{{#def.loop}}", max_depth=2)

        assert result == "Maximum compile-time expansion depth (2) exceeded"

    def test_scope_shared_between_calls(self):
        self.render("{{##def.x:shared#}}")

        assert self.render("{{#def.x}}") == "shared"

    def test_evaluation_cannot_change_defines(self):
        self.render("{{##def.x:1#}}{{# def.x = 'changed' }}")

        assert self.scope.members["def"].members["x"].value == "1"

    def test_code_define_with_string_method(self):
        assert self.render("{{##def.x='ab'.toUpperCase()#}}{{#def.x}}") == "AB"

    def test_evaluation_with_callbacks(self):
        template = "{{##def.tags:a,b#}}{{# def.tags.split(',').map(t => `<${t}>`).join('') }}"

        assert self.render(template) == "<a><b>"


class TestHelpers:

    def test_substitute_param(self):
        assert substitute_param("a filename filenames $filename", "filename", "x") == "a x filenames $filename"

    def test_substitute_param_keeps_replacement_literal(self):
        assert substitute_param("p", "p", r"\1") == r"\1"

    def test_substitute_param_ascii_word_boundary(self):
        assert substitute_param("éa a", "a", "x") == "éx x"

    def test_scope_values_nested(self):
        members = {
            "a": VariableInfo(name="a", value="1"),
            "empty": VariableInfo(name="empty"),
            "obj": VariableInfo(name="obj", members={"b": VariableInfo(name="b", value="2")}),
        }

        assert get_scope_values(members) == {"a": "1", "obj": {"b": "2"}}

    def test_render_defs_defaults(self):
        assert render_defs("{{##x:1#}}{{#def.x}}") == "1"
