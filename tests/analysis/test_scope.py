"""
Tests for scopes and variable records.
"""

import pytest

from dotscan.analysis.scope import Scope, VariableInfo, variables_to_dict
from dotscan.analysis.types import NUMBER, OBJECT, STRING, array_of


class TestScope:

    def setup_method(self):
        self.root = Scope()

    def test_find_member_walks_parents(self):
        it = self.root.add_own_member("it")
        nested = self.root.create_nested().create_nested()

        assert nested.find_member("it") is it
        assert nested.get_own_member("it") is None
        assert nested.get_root() is self.root

    def test_nested_member_shadows_parent(self):
        self.root.add_own_member("x")
        nested = self.root.create_nested()
        inner = nested.add_own_member("x")

        assert nested.find_member("x") is inner
        assert self.root.find_member("x") is not inner

    def test_find_missing(self):
        assert self.root.find_member("nope") is None

    def test_with_members_shares_mapping(self):
        members = {}
        scope = Scope.with_members(members)
        scope.add_own_member("a")

        assert "a" in members
        assert scope.parent is None

    def test_iteration_and_membership(self):
        self.root.add_own_member("a")
        self.root.add_own_member("b", VariableInfo(name="b", type=STRING))

        assert list(self.root) == ["a", "b"]
        assert "b" in self.root
        assert self.root.to_dict() == {"a": {"name": "a"}, "b": {"name": "b", "type": "string"}}


class TestVariableInfo:

    def test_flags_only_accumulate(self):
        info = VariableInfo(name="v")
        info.set_flags(interpolated=True, escaped=True)
        info.set_flags(interpolated=False, section=True)

        assert info.used_flags() == {"interpolated": True, "escaped": True, "section": True}

    def test_unknown_flag(self):
        with pytest.raises(ValueError, match="Unknown usage flag 'rendered'"):
            VariableInfo().set_flags(rendered=True)

    def test_ensure_member_is_idempotent(self):
        info = VariableInfo(name="it")
        first = info.ensure_member("a")

        assert info.ensure_member("a") is first
        assert info.get_member("a") is first
        assert info.get_member("b") is None

    def test_merge_usage(self):
        target = VariableInfo()
        source = VariableInfo(name="x", type=OBJECT, interpolated=True)
        source.ensure_member("n").type = NUMBER
        source.members["n"].set_flags(conditional=True)
        source.elements = VariableInfo(escaped=True)

        target.merge_usage(source)

        assert target.type.is_unknown
        assert target.interpolated
        assert target.members["n"].type == NUMBER
        assert target.members["n"].conditional
        assert target.elements.escaped

    def test_to_dict_omits_unset(self):
        info = VariableInfo(name="names", type=array_of(STRING), iteration=True)
        info.elements = VariableInfo(name="name", type=STRING, escaped=True)

        assert info.to_dict() == {
            "name": "names",
            "type": "array<string>",
            "iteration": True,
            "elements": {"escaped": True},
        }

    def test_variables_to_dict(self):
        members = {"a": VariableInfo(name="a", unescaped=True)}

        assert variables_to_dict(members) == {"a": {"name": "a", "unescaped": True}}
