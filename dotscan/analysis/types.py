"""
Inferred type lattice.

Unknown is the bottom element; string, number, array and object sit
directly above it. Arrays carry an element type which is joined
recursively. The lattice has no top: joining two different known kinds
keeps the type that was established first.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional


class TypeKind(enum.Enum):
    """Kinds of inferred types."""
    UNKNOWN = "unknown"
    STRING = "string"
    NUMBER = "number"
    ARRAY = "array"
    OBJECT = "object"


@dataclass(frozen=True)
class InferredType:
    """
    A point in the type lattice.

    Attributes:
        kind: Kind of the type
        element: Element type, only meaningful for arrays
    """
    kind: TypeKind
    element: Optional[InferredType] = None

    @property
    def is_unknown(self) -> bool:
        return self.kind is TypeKind.UNKNOWN

    @property
    def is_array(self) -> bool:
        return self.kind is TypeKind.ARRAY

    @property
    def element_type(self) -> InferredType:
        """Element type of an array, unknown for everything else."""
        if self.kind is TypeKind.ARRAY and self.element is not None:
            return self.element
        return UNKNOWN

    def join(self, other: InferredType) -> InferredType:
        """Least upper bound, keeping self on conflicting kinds."""
        if other.is_unknown:
            return self
        if self.is_unknown:
            return other
        if self.is_array and other.is_array:
            element = self.element_type.join(other.element_type)
            return array_of(element)
        return self

    def describe(self) -> str:
        """Name used in reports: "string", "array", "array<number>" and so on."""
        if self.is_array and not self.element_type.is_unknown:
            return f"array<{self.element_type.describe()}>"
        return self.kind.value

    def __str__(self) -> str:
        return self.describe()


UNKNOWN = InferredType(TypeKind.UNKNOWN)
STRING = InferredType(TypeKind.STRING)
NUMBER = InferredType(TypeKind.NUMBER)
OBJECT = InferredType(TypeKind.OBJECT)
ARRAY = InferredType(TypeKind.ARRAY)


def array_of(element: InferredType) -> InferredType:
    if element.is_unknown:
        return ARRAY
    return InferredType(TypeKind.ARRAY, element)


__all__ = [
    "TypeKind",
    "InferredType",
    "UNKNOWN",
    "STRING",
    "NUMBER",
    "OBJECT",
    "ARRAY",
    "array_of",
]
