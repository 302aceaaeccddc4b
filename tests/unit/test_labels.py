"""Tests for label expression parsing and evaluation."""

import pytest

from dockpool.errors import LabelSyntaxError
from dockpool.labels import (
    And,
    Iff,
    Implies,
    LabelAtom,
    Not,
    Or,
    Paren,
    parse_label,
    parse_label_set,
)


def atoms(*names):
    return frozenset(LabelAtom(name) for name in names)


class TestLabelAtom:
    def test_equality_and_hash(self):
        assert LabelAtom("linux") == LabelAtom("linux")
        assert len({LabelAtom("linux"), LabelAtom("linux")}) == 1

    def test_matches_membership(self):
        assert LabelAtom("linux").matches(atoms("linux", "x64"))
        assert not LabelAtom("linux").matches(atoms("windows"))

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError):
            LabelAtom("")

    def test_has_no_children(self):
        assert LabelAtom("linux").children() == ()

    def test_quoted_rendering(self):
        assert str(LabelAtom("has space")) == '"has space"'
        assert str(LabelAtom("docker/ubuntu:14.04")) == "docker/ubuntu:14.04"


class TestParseLabel:
    def test_blank_is_none(self):
        assert parse_label(None) is None
        assert parse_label("   ") is None

    def test_single_atom(self):
        assert parse_label("docker/ubuntu:14.04") == LabelAtom("docker/ubuntu:14.04")

    def test_and_binds_tighter_than_or(self):
        label = parse_label("a || b && c")
        assert label == Or(LabelAtom("a"), And(LabelAtom("b"), LabelAtom("c")))

    def test_not_and_parens(self):
        label = parse_label("!(a || b)")
        assert label == Not(Paren(Or(LabelAtom("a"), LabelAtom("b"))))

    def test_implies_and_iff(self):
        label = parse_label("a -> b <-> c")
        assert label == Iff(Implies(LabelAtom("a"), LabelAtom("b")), LabelAtom("c"))

    def test_dash_inside_atom(self):
        assert parse_label("build-node->x") == Implies(LabelAtom("build-node"), LabelAtom("x"))

    def test_quoted_atom(self):
        assert parse_label('"my label" && x') == And(LabelAtom("my label"), LabelAtom("x"))

    def test_rendering_round_trips(self):
        text = "docker/ubuntu&&(linux||!windows)"
        assert str(parse_label(text)) == text
        assert parse_label(str(parse_label(text))) == parse_label(text)

    @pytest.mark.parametrize("text", ["a &&", "(a", "a b", "a & b", '"open', ")"])
    def test_syntax_errors(self, text):
        with pytest.raises(LabelSyntaxError):
            parse_label(text)


class TestMatches:
    def test_and(self):
        label = parse_label("docker/ubuntu && linux")
        assert label.matches(atoms("docker/ubuntu", "linux"))
        assert not label.matches(atoms("docker/ubuntu"))

    def test_or(self):
        assert parse_label("a || b").matches(atoms("b"))

    def test_not(self):
        assert parse_label("!windows").matches(atoms("linux"))
        assert not parse_label("!windows").matches(atoms("windows"))

    def test_implies(self):
        label = parse_label("gpu -> cuda")
        assert label.matches(atoms())
        assert label.matches(atoms("gpu", "cuda"))
        assert not label.matches(atoms("gpu"))

    def test_iff(self):
        label = parse_label("a <-> b")
        assert label.matches(atoms())
        assert label.matches(atoms("a", "b"))
        assert not label.matches(atoms("a"))

    def test_operator_overloads(self):
        label = LabelAtom("a") & ~LabelAtom("b")
        assert label == And(LabelAtom("a"), Not(LabelAtom("b")))


class TestParseLabelSet:
    def test_whitespace_separated(self):
        assert parse_label_set("linux  x64\tdocker") == atoms("linux", "x64", "docker")

    def test_empty(self):
        assert parse_label_set("") == frozenset()
        assert parse_label_set(None) == frozenset()

    def test_quotes(self):
        assert parse_label_set('linux "big disk"') == atoms("linux", "big disk")

    def test_unbalanced_quote(self):
        with pytest.raises(LabelSyntaxError):
            parse_label_set('linux "big')
