"""
Capability interfaces injected into the pipeline.

The core never parses expressions or executes code itself; it calls
objects satisfying these protocols. Default implementations live in
dotscan.expressions, tests can pass deterministic fakes.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

from .analysis.scope import Scope, VariableInfo


@runtime_checkable
class ExpressionAnalyzerProtocol(Protocol):
    """Parses one expression string and analyzes it against a scope."""

    def analyze(self, expr: str, scope: Scope) -> VariableInfo:
        """
        Analyze an expression.

        Args:
            expr: Expression text from a tag
            scope: Scope for name resolution; referenced paths are created in it

        Returns:
            The record of the referenced variable or member path,
            or a detached record carrying the inferred type

        Raises:
            Exception: Any parse or analysis failure; the caller reports
                it together with the tag kind and offset
        """
        ...


class Evaluator(Protocol):
    """Sandboxed evaluation of compile-time code."""

    def __call__(self, code: str, values: Mapping[str, Any]) -> Any:
        """
        Evaluate code with `def` bound to the value bag.

        Must not modify anything outside the bag and must give up after
        its time budget by raising.
        """
        ...


class EvaluateErrorHandler(Protocol):
    """Produces the text that replaces a failed evaluation."""

    def __call__(self, code: str, values: Mapping[str, Any], error: Exception) -> str:
        ...


__all__ = ["ExpressionAnalyzerProtocol", "Evaluator", "EvaluateErrorHandler"]
