"""
User-facing errors for dotscan.

All expected errors that should be displayed to the user as clean
messages (without stack traces) inherit from DotScanError. Structural
and expression errors abort an analysis; evaluation errors never reach
the caller directly and are routed through the evaluate-error handler.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class DotScanError(Exception):
    """
    Base class for all user-facing errors in dotscan.

    These errors indicate problems in the analyzed template or in the
    configuration that the user can fix.
    """
    pass


class TemplateStructureError(DotScanError):
    """Opening and closing tags are not strictly matched."""
    pass


@dataclass
class UnmatchedCloserError(TemplateStructureError):
    """A closing tag appeared with no open tag to close."""
    tag: str
    offset: int

    def __str__(self) -> str:
        return f"Closing {self.tag} tag without opening tag at {self.offset}"


@dataclass
class MismatchedTagError(TemplateStructureError):
    """A closing tag belongs to a different family than the innermost open tag."""
    tag: str
    offset: int
    opener_tag: str
    opener_offset: int

    def __str__(self) -> str:
        return (
            f"Closing {self.tag} tag at {self.offset} does not match "
            f"opening tag {self.opener_tag} at {self.opener_offset}"
        )


@dataclass
class MissingCloserError(TemplateStructureError):
    """The input ended while a tag was still open."""
    tag: str
    offset: int

    def __str__(self) -> str:
        return f"Missing closing tag for opening tag {self.tag} at {self.offset}"


@dataclass
class TemplateExpressionError(DotScanError):
    """A tag expression could not be parsed or analyzed."""
    expr: str
    tag: str
    offset: Optional[int]
    reason: str

    def __str__(self) -> str:
        return f"Error analyzing expression '{self.expr}' in {self.tag} tag at {self.offset}: {self.reason}"


class ConfigError(DotScanError):
    """Invalid or unreadable option file."""
    pass


__all__ = [
    "DotScanError",
    "TemplateStructureError",
    "UnmatchedCloserError",
    "MismatchedTagError",
    "MissingCloserError",
    "TemplateExpressionError",
    "ConfigError",
]
