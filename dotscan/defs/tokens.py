"""
Compile-time (define) tokens.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


class DefTag(enum.Enum):
    """Compile-time token kinds."""
    DEFINE = "##"
    EVALUATE = "#"
    CODE = "#c"
    PARAM = "#p"
    TEXT = "_t"


@dataclass
class DefToken:
    """
    Compile-time token.

    Attributes:
        tag: Kind of the token
        i: Offset in the input (None for literal text)
        name: Define name without a leading `def.` (define only)
        assign: ":" for template string defines, "=" for code defines (define only)
        param: Substitution parameter of a template string define (define only)
        value: Template string define value (define only)
        code: Code of a code define or code fragment (define, code fragment)
        nodes: Code fragments and parameter references of an evaluation tag
        def_name: Referenced define (parameter reference only)
        arg: Argument substituted for the define parameter (parameter reference only)
        text: Literal text (literal text only)
    """
    tag: DefTag
    i: Optional[int] = None
    name: Optional[str] = None
    assign: Optional[str] = None
    param: Optional[str] = None
    value: Optional[str] = None
    code: Optional[str] = None
    nodes: Optional[List[DefToken]] = None
    def_name: Optional[str] = None
    arg: Optional[str] = None
    text: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"tag": self.tag.value}
        for key in ("name", "assign", "param", "value", "code", "arg", "text"):
            attr = getattr(self, key)
            if attr is not None:
                result[key] = attr
        if self.def_name is not None:
            result["def"] = self.def_name
        if self.nodes is not None:
            result["nodes"] = [node.to_dict() for node in self.nodes]
        if self.i is not None:
            result["i"] = self.i
        return result


__all__ = ["DefTag", "DefToken"]
