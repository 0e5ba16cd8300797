"""
Static analysis of variable usage in runtime templates.
"""

from __future__ import annotations

from .scope import USAGE_FLAGS, Scope, VariableInfo, variables_to_dict
from .types import ARRAY, NUMBER, OBJECT, STRING, UNKNOWN, InferredType, TypeKind, array_of

__all__ = [
    "Scope",
    "VariableInfo",
    "USAGE_FLAGS",
    "variables_to_dict",
    "InferredType",
    "TypeKind",
    "UNKNOWN",
    "STRING",
    "NUMBER",
    "ARRAY",
    "OBJECT",
    "array_of",
]
