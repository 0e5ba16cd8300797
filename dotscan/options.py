from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigError
from .expressions.analyzer import ExpressionAnalyzer
from .expressions.evaluator import SandboxEvaluator
from .protocols import EvaluateErrorHandler, Evaluator, ExpressionAnalyzerProtocol

DEFAULT_MAX_DEPTH = 32
DEFAULT_EVALUATION_TIMEOUT = 1.0


def default_error_handler(code: str, values: Mapping[str, Any], error: Exception) -> str:
    """Substitute the error message for the failed evaluation."""
    return str(error)


@dataclass(frozen=True)
class ScanOptions:
    """
    Options shared by the scanners, the expander and the analyzer.

    The plain fields can be read from an option file; the capabilities
    (evaluate, on_evaluate_error, analyzer) are set in code only.
    """
    # Omit literal text tokens from scan_dot / scan_defs output
    ignore_text: bool = False
    ignore_def_text: bool = False
    # Nesting limit for re-expanding macro output
    max_depth: int = DEFAULT_MAX_DEPTH
    # Seconds allowed per sandboxed evaluation
    evaluation_timeout: float = DEFAULT_EVALUATION_TIMEOUT
    # Injected capabilities; None selects the defaults from dotscan.expressions
    evaluate: Optional[Evaluator] = None
    on_evaluate_error: EvaluateErrorHandler = default_error_handler
    analyzer: Optional[ExpressionAnalyzerProtocol] = None

    def get_evaluator(self) -> Evaluator:
        if self.evaluate is not None:
            return self.evaluate
        return SandboxEvaluator(timeout=self.evaluation_timeout)

    def get_analyzer(self) -> ExpressionAnalyzerProtocol:
        if self.analyzer is not None:
            return self.analyzer
        return ExpressionAnalyzer()

    def replace(self, **changes: Any) -> ScanOptions:
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], base: Optional[ScanOptions] = None) -> ScanOptions:
        """
        Create options from a YAML mapping.

        Args:
            data: Mapping with any of the plain option keys
            base: Options to start from (defaults otherwise)

        Raises:
            ConfigError: On unknown keys or values of the wrong type
        """
        allowed = {"ignore_text", "ignore_def_text", "max_depth", "evaluation_timeout"}
        extras = set(data.keys()) - allowed
        if extras:
            raise ConfigError(f"unexpected keys: {sorted(extras)!r}")

        changes: Dict[str, Any] = {}
        for key in ("ignore_text", "ignore_def_text"):
            if key in data:
                if not isinstance(data[key], bool):
                    raise ConfigError(f"{key}: expected a boolean, got {type(data[key]).__name__}")
                changes[key] = data[key]

        if "max_depth" in data:
            max_depth = data["max_depth"]
            if isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 1:
                raise ConfigError(f"max_depth: expected a positive integer, got {max_depth!r}")
            changes["max_depth"] = max_depth

        if "evaluation_timeout" in data:
            timeout = data["evaluation_timeout"]
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
                raise ConfigError(f"evaluation_timeout: expected a positive number, got {timeout!r}")
            changes["evaluation_timeout"] = float(timeout)

        return (base or cls()).replace(**changes)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the plain fields for YAML/JSON."""
        return {
            "ignore_text": self.ignore_text,
            "ignore_def_text": self.ignore_def_text,
            "max_depth": self.max_depth,
            "evaluation_timeout": self.evaluation_timeout,
        }


__all__ = ["ScanOptions", "default_error_handler", "DEFAULT_MAX_DEPTH", "DEFAULT_EVALUATION_TIMEOUT"]
