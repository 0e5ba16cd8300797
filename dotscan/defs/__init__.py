"""
Compile-time dialect: define scanning and expansion.
"""

from __future__ import annotations

from .renderer import DEF_NAME, DefineExpander, ExpansionDepthError, render_defs
from .scanner import scan_defs, scan_params
from .tokens import DefTag, DefToken

__all__ = [
    "DefTag",
    "DefToken",
    "scan_defs",
    "scan_params",
    "render_defs",
    "DefineExpander",
    "ExpansionDepthError",
    "DEF_NAME",
]
