"""
Symbol tables for variable analysis.

A Scope maps names to VariableInfo records. Scopes form a tree: the
parent link is used for name resolution only, nested scopes are created
for iteration bindings and discarded once the iteration tag has been
analyzed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

from .types import InferredType, UNKNOWN

# Usage flags in report order
USAGE_FLAGS = ("interpolated", "escaped", "unescaped", "conditional", "iteration", "section")


@dataclass
class VariableInfo:
    """
    Analysis of one variable or member path.

    Flags only accumulate and types only move up the lattice as more
    tags reference the same path.
    """
    name: Optional[str] = None
    type: InferredType = UNKNOWN
    # Compile-time defines only
    value: Optional[str] = None
    param: Optional[str] = None
    # Usage flags
    interpolated: bool = False
    escaped: bool = False
    unescaped: bool = False
    conditional: bool = False
    iteration: bool = False
    section: bool = False
    members: Optional[Dict[str, VariableInfo]] = None
    elements: Optional[VariableInfo] = None

    def merge_type(self, other: InferredType) -> None:
        self.type = self.type.join(other)

    def set_flags(self, **flags: bool) -> None:
        """Turn on the given usage flags; false values never clear a flag."""
        for flag, enabled in flags.items():
            if flag not in USAGE_FLAGS:
                raise ValueError(f"Unknown usage flag '{flag}'")
            if enabled:
                setattr(self, flag, True)

    def used_flags(self) -> Dict[str, bool]:
        return {flag: True for flag in USAGE_FLAGS if getattr(self, flag)}

    def get_member(self, name: str) -> Optional[VariableInfo]:
        if self.members is None:
            return None
        return self.members.get(name)

    def ensure_member(self, name: str) -> VariableInfo:
        """Return the member record, creating it when missing."""
        if self.members is None:
            self.members = {}
        member = self.members.get(name)
        if member is None:
            member = VariableInfo(name=name)
            self.members[name] = member
        return member

    def merge_usage(self, other: VariableInfo) -> None:
        """
        Merge the non-type usage of another record into this one.

        Flags are accumulated and members are merged recursively,
        including their types.
        """
        self.set_flags(**other.used_flags())
        if other.members:
            for name, member in other.members.items():
                own = self.ensure_member(name)
                own.merge_type(member.type)
                own.merge_usage(member)
        if other.elements is not None:
            if self.elements is None:
                self.elements = VariableInfo()
            self.elements.merge_usage(other.elements)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the JSON shape used by reports and the CLI."""
        result: Dict[str, Any] = {}
        if self.name is not None:
            result["name"] = self.name
        if not self.type.is_unknown:
            result["type"] = self.type.describe()
        if self.value is not None:
            result["value"] = self.value
        if self.param is not None:
            result["param"] = self.param
        result.update(self.used_flags())
        if self.members:
            result["members"] = {name: info.to_dict() for name, info in self.members.items()}
        if self.elements is not None:
            elements = self.elements.to_dict()
            elements.pop("name", None)
            elements.pop("type", None)
            result["elements"] = elements
        return result


class Scope:
    """
    Symbol table node.

    Args:
        parent: Enclosing scope used for name resolution
        members: Existing member mapping to view (shared, not copied)
    """

    def __init__(self, parent: Optional[Scope] = None, members: Optional[Dict[str, VariableInfo]] = None):
        self.parent = parent
        self.members: Dict[str, VariableInfo] = members if members is not None else {}

    @classmethod
    def with_members(cls, members: Dict[str, VariableInfo]) -> Scope:
        """Create a root scope operating on an existing member mapping."""
        return cls(members=members)

    def get_root(self) -> Scope:
        scope = self
        while scope.parent is not None:
            scope = scope.parent
        return scope

    def get_own_member(self, name: str) -> Optional[VariableInfo]:
        return self.members.get(name)

    def add_own_member(self, name: str, info: Optional[VariableInfo] = None) -> VariableInfo:
        if info is None:
            info = VariableInfo(name=name)
        self.members[name] = info
        return info

    def find_member(self, name: str) -> Optional[VariableInfo]:
        """Resolve a name through this scope and its ancestors."""
        scope: Optional[Scope] = self
        while scope is not None:
            info = scope.members.get(name)
            if info is not None:
                return info
            scope = scope.parent
        return None

    def create_nested(self) -> Scope:
        return Scope(parent=self)

    def __iter__(self) -> Iterator[str]:
        return iter(self.members)

    def __contains__(self, name: object) -> bool:
        return name in self.members

    def to_dict(self) -> Dict[str, Any]:
        return {name: info.to_dict() for name, info in self.members.items()}

    def __repr__(self) -> str:
        return f"Scope({sorted(self.members)!r}, nested={self.parent is not None})"


def variables_to_dict(members: Dict[str, VariableInfo]) -> Dict[str, Any]:
    """Serialize a member mapping as returned by scan_template."""
    return {name: info.to_dict() for name, info in members.items()}


__all__ = ["USAGE_FLAGS", "VariableInfo", "Scope", "variables_to_dict"]
