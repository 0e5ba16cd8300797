from __future__ import annotations

import logging
from typing import Dict, Optional

from .analysis.scope import Scope, VariableInfo
from .analysis.variables import scan_variables
from .defs.renderer import render_defs
from .options import ScanOptions
from .template.scanner import scan_dot
from .template.tree import parse_dot

logger = logging.getLogger(__name__)


def scan_template(
    template: str,
    options: Optional[ScanOptions] = None,
    scope: Optional[Scope] = None,
) -> Dict[str, VariableInfo]:
    """
    Scan a doT template for variables used in tags.

    Steps:
    1. Expand compile-time defines and evaluations (render_defs)
    2. Scan runtime tags (scan_dot)
    3. Build the tag tree (parse_dot)
    4. Analyze variable usage (scan_variables)

    Args:
        template: Template text
        options: Options for all steps; by default literal text is not tokenized
        scope: Root scope; reuse it to share defines between templates

    Returns:
        Mapping of root scope names to their analyses, including the `def`
        object holding the compile-time defines

    Raises:
        TemplateStructureError: Tags are not strictly matched
        TemplateExpressionError: A tag expression cannot be analyzed
    """
    options = options or ScanOptions(ignore_text=True)
    scope = scope if scope is not None else Scope()

    runtime_template = render_defs(template, options, scope)
    tokens = parse_dot(scan_dot(runtime_template, ignore_text=options.ignore_text))
    logger.debug("Analyzing %d top-level runtime tokens", len(tokens))
    return scan_variables(tokens, options, scope)


__all__ = ["scan_template"]
