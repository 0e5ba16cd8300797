"""
Tests for the runtime tag tree builder.
"""

import pytest

from dotscan.errors import MismatchedTagError, MissingCloserError, TemplateStructureError, UnmatchedCloserError
from dotscan.template.scanner import scan_dot
from dotscan.template.tokens import DotTag
from dotscan.template.tree import TreeBuilder, parse_dot


def build(text: str, ignore_text: bool = False):
    return parse_dot(scan_dot(text, ignore_text=ignore_text))


class TestTreeBuilder:

    def test_flat_tokens_unchanged(self):
        tree = build("a{{= x }}b")

        assert [t.tag for t in tree] == [DotTag.TEXT, DotTag.INTERPOLATE, DotTag.TEXT]
        assert all(t.nodes is None for t in tree)

    def test_conditional_nodes_and_end(self):
        tree = build("{{? a }}x{{= b }}{{?}}y")

        assert len(tree) == 2
        cond = tree[0]
        assert cond.tag is DotTag.CONDITIONAL
        assert [t.tag for t in cond.nodes] == [DotTag.TEXT, DotTag.INTERPOLATE]
        assert cond.end == 17
        assert tree[1].text == "y"

    def test_nodes_are_tokens_between_opener_and_closer(self):
        tokens = scan_dot("{{? a }}{{~ xs :x}}{{! x }}{{~}}{{= c }}{{?}}")
        tree = parse_dot(tokens)

        cond = tree[0]
        loop = cond.nodes[0]
        assert loop.tag is DotTag.ITERATE
        assert loop.nodes == [tokens[2]]
        assert cond.nodes[1] == tokens[4]
        assert loop.end == tokens[3].i
        assert cond.end == tokens[5].i

    def test_else_chain_gives_sibling_openers(self):
        tree = build("{{? a}}A{{?? b}}B{{??}}C{{?}}")

        assert [(t.tag, t.expr) for t in tree] == [
            (DotTag.CONDITIONAL, "a"),
            (DotTag.ELSE, "b"),
            (DotTag.ELSE, None),
        ]
        assert [[n.text for n in t.nodes] for t in tree] == [["A"], ["B"], ["C"]]
        assert tree[0].end == tree[1].i
        assert tree[1].end == tree[2].i
        assert tree[2].end == 24

    def test_input_tokens_not_modified(self):
        tokens = scan_dot("{{? a}}{{= b }}{{?}}")
        parse_dot(tokens)

        assert all(t.nodes is None and t.end is None for t in tokens)

    def test_builder_can_build_twice(self):
        builder = TreeBuilder(scan_dot("{{? a}}{{??}}{{?}}"))

        assert builder.build() == builder.build()

    def test_stray_closer(self):
        with pytest.raises(UnmatchedCloserError) as exc:
            build("text {{?}}")

        assert exc.value.offset == 5
        assert exc.value.tag == "?"
        assert str(exc.value) == "Closing ? tag without opening tag at 5"

    def test_leading_else_fails_at_offset_zero(self):
        with pytest.raises(UnmatchedCloserError) as exc:
            build("{{??}}x{{?}}")

        assert exc.value.offset == 0
        assert exc.value.tag == "??"

    def test_missing_closer_points_at_opener(self):
        with pytest.raises(MissingCloserError) as exc:
            build("{{? a}}{{~ xs :x}}{{~}}")

        assert exc.value.offset == 0
        assert str(exc.value) == "Missing closing tag for opening tag ? at 0"

    def test_missing_closer_reports_innermost_opener(self):
        with pytest.raises(MissingCloserError) as exc:
            build("{{? a}}{{~ xs :x}}")

        assert exc.value.tag == "~"
        assert exc.value.offset == 7

    def test_mismatched_family(self):
        with pytest.raises(MismatchedTagError) as exc:
            build("{{? a}}{{~}}")

        err = exc.value
        assert (err.tag, err.offset, err.opener_tag, err.opener_offset) == ("~", 7, "?", 0)

    def test_else_directly_inside_iteration(self):
        with pytest.raises(MismatchedTagError) as exc:
            build("{{~ xs:x}}{{??}}{{~}}")

        assert exc.value.tag == "??"
        assert exc.value.offset == 10
        assert exc.value.opener_tag == "~"

    def test_structure_errors_share_base(self):
        with pytest.raises(TemplateStructureError):
            build("{{~}}")
