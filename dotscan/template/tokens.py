"""
Runtime template tokens.

A DotToken is one runtime tag or one run of literal text. Opening tags
(conditionals, else branches and iterations with an expression) receive
their nested tokens and closing offset from the tree builder.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


class DotTag(enum.Enum):
    """Runtime tag kinds, valued by their sigil."""
    EVALUATE = ""
    INTERPOLATE = "="
    ESCAPE = "!"
    CONDITIONAL = "?"
    ELSE = "??"
    ITERATE = "~"
    TEXT = "_t"

    @property
    def is_block(self) -> bool:
        """Tags that open and close nested sections."""
        return self in (DotTag.CONDITIONAL, DotTag.ELSE, DotTag.ITERATE)

    @property
    def family(self) -> str:
        """Leading character shared by tags that close each other."""
        return self.value[:1]


@dataclass
class DotToken:
    """
    Runtime token.

    Attributes:
        tag: Kind of the token
        i: Offset of the tag in the input (None for literal text)
        expr: Tag expression; block tags without one are closers
        value: Iteration value name (iteration only)
        index: Iteration index name (iteration only)
        text: Literal text (literal text only)
        nodes: Tokens nested within an opening tag
        end: Offset of the tag that closed this one
    """
    tag: DotTag
    i: Optional[int] = None
    expr: Optional[str] = None
    value: Optional[str] = None
    index: Optional[str] = None
    text: Optional[str] = None
    nodes: Optional[List[DotToken]] = None
    end: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"tag": self.tag.value}
        for key in ("expr", "value", "index", "text"):
            attr = getattr(self, key)
            if attr is not None:
                result[key] = attr
        if self.i is not None:
            result["i"] = self.i
        if self.nodes is not None:
            result["nodes"] = [node.to_dict() for node in self.nodes]
        if self.end is not None:
            result["end"] = self.end
        return result

    def __repr__(self) -> str:
        if self.tag is DotTag.TEXT:
            return f"DotToken(_t, {self.text!r})"
        return f"DotToken({self.tag.value!r}, {self.expr!r}, i={self.i})"


__all__ = ["DotTag", "DotToken"]
