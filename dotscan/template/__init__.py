"""
Runtime dialect: tag scanning and tree building.
"""

from __future__ import annotations

from .scanner import scan_dot
from .tokens import DotTag, DotToken
from .tree import TreeBuilder, parse_dot

__all__ = ["DotTag", "DotToken", "scan_dot", "parse_dot", "TreeBuilder"]
