"""
Default expression capabilities: tree-sitter parsing of JavaScript, type
analysis against a Scope and sandboxed evaluation of compile-time code.
"""

from __future__ import annotations

from .analyzer import ExpressionAnalysisError, ExpressionAnalyzer, analyze_expression
from .evaluator import SandboxEvaluator
from .syntax import ExpressionSyntaxError, ScriptDocument, parse_expression, parse_script
from .values import UNDEFINED, EvaluationError, EvaluationTimeoutError, to_js_string

__all__ = [
    "ExpressionSyntaxError",
    "ScriptDocument",
    "ExpressionAnalyzer",
    "ExpressionAnalysisError",
    "SandboxEvaluator",
    "EvaluationError",
    "EvaluationTimeoutError",
    "UNDEFINED",
    "analyze_expression",
    "parse_expression",
    "parse_script",
    "to_js_string",
]
