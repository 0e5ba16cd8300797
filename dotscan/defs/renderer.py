"""
Compile-time expansion of define and evaluation tags.

Processes `{{##...#}}` and `{{#...}}` tags and produces a template that
only contains runtime tags. Defines are recorded as members of a `def`
object in the root scope; each define has `name`, `type` (always
string), `value` and, for parameterized defines, `param`.

Evaluation goes through the injected evaluator with `def` bound to the
current define values. Its output is expanded again, since it may
contain further compile-time tags. A failed evaluation is replaced by
the text returned from the evaluate-error handler and expansion goes on.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Mapping, Optional

from ..analysis.scope import Scope, VariableInfo
from ..analysis.types import OBJECT, STRING
from ..expressions.values import EvaluationError, to_js_string
from ..options import ScanOptions
from .scanner import SCAN_PATTERN, scan_defs
from .tokens import DefTag, DefToken

logger = logging.getLogger(__name__)

# Name of the define object, fixed by the dialect
DEF_NAME = "def"


class ExpansionDepthError(EvaluationError):
    """Compile-time output kept producing compile-time tags."""

    def __init__(self, max_depth: int):
        self.max_depth = max_depth
        super().__init__(f"Maximum compile-time expansion depth ({max_depth}) exceeded")


def get_def_scope(scope: Scope) -> Scope:
    """
    Scope viewing the members of the root `def` object, created on demand.
    """
    root = scope.get_root()
    def_info = root.get_own_member(DEF_NAME)
    if def_info is None:
        def_info = root.add_own_member(DEF_NAME)
    if def_info.members is None:
        def_info.type = OBJECT
        def_info.members = {}
    return Scope.with_members(def_info.members)


def get_scope_values(members: Mapping[str, VariableInfo]) -> Dict[str, Any]:
    """Value bag passed to the evaluator: define values, nested objects for members."""
    result: Dict[str, Any] = {}
    for name, info in members.items():
        if info.value:
            result[name] = info.value
        elif info.members is not None:
            result[name] = get_scope_values(info.members)
    return result


def substitute_param(value: str, param: str, arg: str) -> str:
    """Replace whole-word occurrences of param in a define value."""
    pattern = re.compile(r"(?<![\w$])" + re.escape(param) + r"(?![\w$])", re.ASCII)
    return pattern.sub(lambda _match: arg, value)


class DefineExpander:
    """
    Expands compile-time tags against a define scope.

    Args:
        options: Evaluator, error handler and expansion depth limit
        scope: Scope whose root receives the `def` object
    """

    def __init__(self, options: ScanOptions, scope: Scope):
        self.options = options
        self.def_scope = get_def_scope(scope)
        self._evaluate = options.get_evaluator()

    def render(self, template: str) -> str:
        return self._render(template, depth=0)

    def _render(self, template: str, depth: int) -> str:
        tokens = scan_defs(template)
        self._bind_defines(tokens)

        output: List[str] = []
        for token in tokens:
            if token.tag is DefTag.EVALUATE:
                output.append(self._render_evaluation(token.nodes or [], depth))
            elif token.tag is DefTag.TEXT:
                output.append(token.text or "")
        return "".join(output)

    def _bind_defines(self, tokens: List[DefToken]) -> None:
        for token in tokens:
            if token.tag is not DefTag.DEFINE or token.name is None:
                continue

            # duplicate defines are ignored, the first one wins
            if self.def_scope.get_own_member(token.name) is not None:
                logger.debug("Ignoring duplicate define '%s' at %s", token.name, token.i)
                continue

            info = self.def_scope.add_own_member(token.name)
            if token.value:
                info.type = STRING
                info.value = token.value
                if token.param:
                    info.param = token.param
            elif token.code:
                info.type = STRING
                info.value = self._evaluate_code(token.code)

    def _render_evaluation(self, nodes: List[DefToken], depth: int) -> str:
        code = self._assemble_code(nodes)
        output = self._evaluate_code(code)

        if output and SCAN_PATTERN.search(output):
            if depth >= self.options.max_depth:
                values = get_scope_values(self.def_scope.members)
                return self._handle_error(code, values, ExpansionDepthError(self.options.max_depth))
            output = self._render(output, depth + 1)
        return output

    def _assemble_code(self, nodes: List[DefToken]) -> str:
        """Concatenate code fragments, quoting the values of parameterized references."""
        parts: List[str] = []
        for node in nodes:
            if node.tag is DefTag.CODE:
                parts.append(node.code or "")
            elif node.tag is DefTag.PARAM:
                info = self.def_scope.find_member(node.def_name or "")
                if info is not None and info.value:
                    value = info.value
                    if info.param is not None and node.arg is not None:
                        value = substitute_param(value, info.param, node.arg)
                    parts.append(json.dumps(value, ensure_ascii=False))
                else:
                    # unresolved references read as undefined
                    parts.append("undefined")
        return "".join(parts)

    def _evaluate_code(self, code: str) -> str:
        values = get_scope_values(self.def_scope.members)
        try:
            return to_js_string(self._evaluate(code, values))
        except Exception as e:
            return self._handle_error(code, values, e)

    def _handle_error(self, code: str, values: Mapping[str, Any], error: Exception) -> str:
        logger.warning("Compile-time evaluation of %r failed: %s", code, error)
        return to_js_string(self.options.on_evaluate_error(code, values, error))


def render_defs(template: str, options: Optional[ScanOptions] = None, scope: Optional[Scope] = None) -> str:
    """
    Expand the compile-time tags of a template.

    Args:
        template: Template possibly containing compile-time tags
        options: Evaluation options; defaults when omitted
        scope: Root scope receiving the `def` object; a fresh one when omitted

    Returns:
        Template text with no compile-time tags
    """
    return DefineExpander(options or ScanOptions(), scope if scope is not None else Scope()).render(template)


__all__ = [
    "DEF_NAME",
    "DefineExpander",
    "ExpansionDepthError",
    "get_def_scope",
    "get_scope_values",
    "render_defs",
    "substitute_param",
]
