"""
dotscan: static variable analysis for doT templates.

Typical use:

    from dotscan import scan_template, variables_to_dict

    variables = scan_template(template_text)
    print(variables_to_dict(variables))
"""

from __future__ import annotations

from .analysis.scope import Scope, VariableInfo, variables_to_dict
from .analysis.types import InferredType, TypeKind
from .analysis.variables import scan_variables
from .defs.renderer import render_defs
from .defs.scanner import scan_defs
from .errors import (
    ConfigError,
    DotScanError,
    MismatchedTagError,
    MissingCloserError,
    TemplateExpressionError,
    TemplateStructureError,
    UnmatchedCloserError,
)
from .options import ScanOptions, default_error_handler
from .pipeline import scan_template
from .template.scanner import scan_dot
from .template.tree import parse_dot
from .version import tool_version

__all__ = [
    "scan_template",
    "scan_dot",
    "parse_dot",
    "scan_defs",
    "render_defs",
    "scan_variables",
    "Scope",
    "VariableInfo",
    "variables_to_dict",
    "InferredType",
    "TypeKind",
    "ScanOptions",
    "default_error_handler",
    "DotScanError",
    "TemplateStructureError",
    "UnmatchedCloserError",
    "MismatchedTagError",
    "MissingCloserError",
    "TemplateExpressionError",
    "ConfigError",
    "tool_version",
]
