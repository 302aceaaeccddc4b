"""
Label expression parsing.

Grammar, loosest binding first::

    expr    := implies ( "<->" implies )*
    implies := or ( "->" or )*
    or      := and ( "||" and )*
    and     := unary ( "&&" unary )*
    unary   := "!" unary | "(" expr ")" | atom
    atom    := bare-word | "quoted string"

A bare word runs until whitespace, an operator character or a parenthesis;
``-`` is part of a word unless it starts ``->``.
"""

import shlex
from typing import FrozenSet, List, NamedTuple, Optional

from ..errors import LabelSyntaxError
from .expression import And, Iff, Implies, Label, LabelAtom, Not, Or, Paren

_OPERATORS = ("<->", "->", "&&", "||", "!", "(", ")")
_WORD_STOP = set(" \t\r\n&|!()\"")


class _Token(NamedTuple):
    kind: str  # "op", "atom" or "end"
    value: str
    position: int


def _tokenize(text: str) -> List[_Token]:
    tokens = []
    i = 0
    length = len(text)

    while i < length:
        char = text[i]

        if char.isspace():
            i += 1
            continue

        op = next((o for o in _OPERATORS if text.startswith(o, i)), None)
        if op is not None:
            tokens.append(_Token("op", op, i))
            i += len(op)
            continue

        if char == '"':
            start = i
            i += 1
            chars = []
            while i < length and text[i] != '"':
                if text[i] == "\\" and i + 1 < length:
                    i += 1
                chars.append(text[i])
                i += 1
            if i >= length:
                raise LabelSyntaxError(text, start, "unterminated quoted label")
            i += 1
            tokens.append(_Token("atom", "".join(chars), start))
            continue

        if char in "&|<":
            raise LabelSyntaxError(text, i, f"unexpected character {char!r}")

        start = i
        while i < length and text[i] not in _WORD_STOP:
            if text.startswith("->", i) or text.startswith("<->", i):
                break
            i += 1
        tokens.append(_Token("atom", text[start:i], start))

    tokens.append(_Token("end", "", length))
    return tokens


class _Parser:
    def __init__(self, text: str):
        self.text = text
        self.tokens = _tokenize(text)
        self.index = 0

    def _peek(self) -> _Token:
        return self.tokens[self.index]

    def _accept(self, op: str) -> bool:
        token = self._peek()
        if token.kind == "op" and token.value == op:
            self.index += 1
            return True
        return False

    def _fail(self, reason: str):
        raise LabelSyntaxError(self.text, self._peek().position, reason)

    def parse(self) -> Label:
        label = self._iff()
        if self._peek().kind != "end":
            self._fail(f"unexpected {self._peek().value!r}")
        return label

    def _iff(self) -> Label:
        label = self._implies()
        while self._accept("<->"):
            label = Iff(label, self._implies())
        return label

    def _implies(self) -> Label:
        label = self._or()
        while self._accept("->"):
            label = Implies(label, self._or())
        return label

    def _or(self) -> Label:
        label = self._and()
        while self._accept("||"):
            label = Or(label, self._and())
        return label

    def _and(self) -> Label:
        label = self._unary()
        while self._accept("&&"):
            label = And(label, self._unary())
        return label

    def _unary(self) -> Label:
        if self._accept("!"):
            return Not(self._unary())

        if self._accept("("):
            inner = self._iff()
            if not self._accept(")"):
                self._fail("missing closing parenthesis")
            return Paren(inner)

        token = self._peek()
        if token.kind != "atom":
            self._fail("expected a label" if token.kind == "end" else f"unexpected {token.value!r}")
        self.index += 1
        return LabelAtom(token.value)


def parse_label(expression: Optional[str]) -> Optional[Label]:
    """Parse a label expression; blank input means "no restriction" (None)."""
    if expression is None or not expression.strip():
        return None
    return _Parser(expression).parse()


def parse_label_set(label_string: Optional[str]) -> FrozenSet[LabelAtom]:
    """Parse a whitespace separated list of labels offered by a pool or image."""
    if not label_string:
        return frozenset()

    try:
        names = shlex.split(label_string)
    except ValueError as e:
        raise LabelSyntaxError(label_string, 0, str(e)) from e

    return frozenset(LabelAtom(name) for name in names if name)
