"""
Variable usage analysis of a runtime tag tree.

Walks the tree built by parse_dot and records, for every variable and
member path referenced by a tag, the contexts it is used in:

- interpolated: used for interpolation, `{{!v}}` or `{{=v}}`
- escaped: used in an escaped interpolation, `{{!v}}`
- unescaped: used in an unescaped interpolation, `{{=v}}`
- section: used by a conditional or iteration section
- conditional: used by a conditional, `{{?v}}` or `{{??v}}`
- iteration: iterated over, `{{~v:x}}`

Iteration targets are arrays. The usage of the iteration value inside
the loop body is recorded as the array's `elements`, and a type
inferred for the value becomes the array's element type.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from ..errors import DotScanError, TemplateExpressionError
from ..options import ScanOptions
from ..protocols import ExpressionAnalyzerProtocol
from ..template.tokens import DotTag, DotToken
from .scope import Scope, VariableInfo
from .types import ARRAY, NUMBER, array_of

logger = logging.getLogger(__name__)

# Usage flags contributed by each tag kind; evaluation tags contribute none
TAG_USAGE: Dict[DotTag, Dict[str, bool]] = {
    DotTag.ESCAPE: {"interpolated": True, "escaped": True},
    DotTag.INTERPOLATE: {"interpolated": True, "unescaped": True},
    DotTag.CONDITIONAL: {"conditional": True, "section": True},
    DotTag.ELSE: {"conditional": True, "section": True},
    DotTag.ITERATE: {"iteration": True, "section": True},
}


class VariableAnalyzer:
    """
    Merges per-tag usage into a scope tree.

    Args:
        analyzer: Expression analysis capability
    """

    def __init__(self, analyzer: ExpressionAnalyzerProtocol):
        self.analyzer = analyzer

    def scan(self, tokens: Sequence[DotToken], scope: Scope) -> Dict[str, VariableInfo]:
        """
        Analyze tokens and their nested tokens.

        Returns:
            Member mapping of the given scope

        Raises:
            TemplateExpressionError: An expression cannot be parsed or analyzed
        """
        for token in tokens:
            usage = TAG_USAGE.get(token.tag)
            if usage is None:
                continue

            info: Optional[VariableInfo] = None
            if token.expr:
                info = self._analyze_expression(token, scope)
                # iteration targets are always arrays
                if token.tag is DotTag.ITERATE and not info.type.is_array:
                    info.type = ARRAY
                info.set_flags(**usage)

            if token.nodes is not None:
                if token.tag is DotTag.ITERATE and info is not None:
                    self._scan_iteration(token, token.nodes, info, scope)
                else:
                    self.scan(token.nodes, scope)
        return scope.members

    def _analyze_expression(self, token: DotToken, scope: Scope) -> VariableInfo:
        expr = token.expr or ""
        try:
            return self.analyzer.analyze(expr, scope)
        except DotScanError:
            raise
        except Exception as e:
            raise TemplateExpressionError(expr, token.tag.value, token.i, str(e)) from e

    def _scan_iteration(
        self,
        token: DotToken,
        nodes: List[DotToken],
        array_info: VariableInfo,
        scope: Scope,
    ) -> None:
        nested = scope.create_nested()
        value_info = VariableInfo(name=token.value, type=array_info.type.element_type)
        if token.value:
            nested.add_own_member(token.value, value_info)
        if token.index:
            nested.add_own_member(token.index, VariableInfo(name=token.index, type=NUMBER))

        self.scan(nodes, nested)

        # the value's type becomes the element type
        if not value_info.type.is_unknown and array_info.type.element_type.is_unknown:
            array_info.type = array_of(value_info.type)

        if array_info.elements is None:
            array_info.elements = VariableInfo()
        array_info.elements.merge_usage(value_info)
        logger.debug("Merged usage of iteration value '%s' into its array", token.value)


def scan_variables(
    tokens: Sequence[DotToken],
    options: Optional[ScanOptions] = None,
    scope: Optional[Scope] = None,
) -> Dict[str, VariableInfo]:
    """
    Scan a runtime tag tree for variables used in tags.

    Args:
        tokens: Tree produced by parse_dot
        options: Options selecting the expression analyzer
        scope: Root scope for name resolution; a fresh one when omitted

    Returns:
        Mapping of root scope names to their analyses
    """
    options = options or ScanOptions()
    scope = scope if scope is not None else Scope()
    return VariableAnalyzer(options.get_analyzer()).scan(tokens, scope)


__all__ = ["TAG_USAGE", "VariableAnalyzer", "scan_variables"]
