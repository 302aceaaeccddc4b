"""
Label Expression Tree

Jobs restrict where they may run with a boolean expression over labels, for
example ``docker/ubuntu && (linux || bsd)``. Every node can evaluate itself
against a set of atoms and report its direct sub-expressions, which is all the
image resolver needs to walk arbitrary trees.
"""

from abc import ABC, abstractmethod
from typing import AbstractSet, Tuple

# Characters that force an atom to be quoted when rendered.
_SPECIAL_CHARS = set(" \t\r\n&|!()\"<>")


class Label(ABC):
    """A node of a label expression."""

    @abstractmethod
    def matches(self, labels: AbstractSet["LabelAtom"]) -> bool:
        """Evaluate the expression with ``labels`` as the true atoms."""

    def children(self) -> Tuple["Label", ...]:
        """Direct sub-expressions, left to right."""
        return ()


class LabelAtom(Label):
    """A single label name such as ``linux`` or ``docker/ubuntu:14.04``."""

    __slots__ = ("name",)

    def __init__(self, name: str):
        if not name:
            raise ValueError("label name cannot be empty")
        self.name = name

    def matches(self, labels: AbstractSet["LabelAtom"]) -> bool:
        return self in labels

    def __eq__(self, other) -> bool:
        if isinstance(other, LabelAtom):
            return self.name == other.name
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.name)

    def __repr__(self) -> str:
        return f"LabelAtom({self.name!r})"

    def __str__(self) -> str:
        if any(c in _SPECIAL_CHARS for c in self.name) or "->" in self.name:
            escaped = self.name.replace("\\", "\\\\").replace('"', '\\"')
            return f'"{escaped}"'
        return self.name


class BinaryOperator(Label):
    """Base class for two-operand operators."""

    symbol = ""

    def __init__(self, lhs: Label, rhs: Label):
        self.lhs = lhs
        self.rhs = rhs

    def children(self) -> Tuple[Label, ...]:
        return (self.lhs, self.rhs)

    def __eq__(self, other) -> bool:
        if type(other) is type(self):
            return self.lhs == other.lhs and self.rhs == other.rhs
        return NotImplemented

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.lhs, self.rhs))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.lhs!r}, {self.rhs!r})"

    def __str__(self) -> str:
        return f"{self.lhs}{self.symbol}{self.rhs}"


class And(BinaryOperator):
    symbol = "&&"

    def matches(self, labels: AbstractSet[LabelAtom]) -> bool:
        return self.lhs.matches(labels) and self.rhs.matches(labels)


class Or(BinaryOperator):
    symbol = "||"

    def matches(self, labels: AbstractSet[LabelAtom]) -> bool:
        return self.lhs.matches(labels) or self.rhs.matches(labels)


class Implies(BinaryOperator):
    symbol = "->"

    def matches(self, labels: AbstractSet[LabelAtom]) -> bool:
        return not self.lhs.matches(labels) or self.rhs.matches(labels)


class Iff(BinaryOperator):
    symbol = "<->"

    def matches(self, labels: AbstractSet[LabelAtom]) -> bool:
        return self.lhs.matches(labels) == self.rhs.matches(labels)


class Not(Label):
    """Negation of a sub-expression."""

    def __init__(self, base: Label):
        self.base = base

    def matches(self, labels: AbstractSet[LabelAtom]) -> bool:
        return not self.base.matches(labels)

    def children(self) -> Tuple[Label, ...]:
        return (self.base,)

    def __eq__(self, other) -> bool:
        if isinstance(other, Not):
            return self.base == other.base
        return NotImplemented

    def __hash__(self) -> int:
        return hash(("Not", self.base))

    def __repr__(self) -> str:
        return f"Not({self.base!r})"

    def __str__(self) -> str:
        return f"!{self.base}"


class Paren(Label):
    """Explicit grouping, kept so expressions render the way they were written."""

    def __init__(self, base: Label):
        self.base = base

    def matches(self, labels: AbstractSet[LabelAtom]) -> bool:
        return self.base.matches(labels)

    def children(self) -> Tuple[Label, ...]:
        return (self.base,)

    def __eq__(self, other) -> bool:
        if isinstance(other, Paren):
            return self.base == other.base
        return NotImplemented

    def __hash__(self) -> int:
        return hash(("Paren", self.base))

    def __repr__(self) -> str:
        return f"Paren({self.base!r})"

    def __str__(self) -> str:
        return f"({self.base})"
