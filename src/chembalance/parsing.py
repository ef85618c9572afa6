"""Formula and equation parsing.

Formulas are read by a small recursive-descent parser over a regex
tokenizer::

    equation  := side ARROW side END
    side      := formula (PLUS formula)*
    formula   := (group | ELEM [NUM])+
    group     := LPAREN formula RPAREN [NUM]

Element symbols become the atom keys of the resulting :class:`Compound`.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass
from typing import Iterator, List, Tuple

from chembalance.constants import TOKEN_PATTERNS
from chembalance.elements import is_element
from chembalance.errors import FormulaParseError
from chembalance.models import Compound

logger = logging.getLogger(__name__)

_MATCHER = re.compile("|".join(f"(?P<{name}>{pattern})" for name, pattern in TOKEN_PATTERNS))


@dataclass(frozen=True)
class Token:
    type: str
    text: str
    start: int
    end: int


class Tokenizer:
    """Token stream with a single token of lookahead."""

    def __init__(self, text: str):
        self._matches: Iterator[re.Match] = _MATCHER.finditer(text)
        self._end = Token("END", "", len(text), len(text))
        self._peeked: Token | None = None

    def __iter__(self) -> Tokenizer:
        return self

    def __next__(self) -> Token:
        token = self.peek()
        self._peeked = None
        return token

    def peek(self) -> Token:
        if self._peeked is None:
            match = next(self._matches, None)
            if match is None:
                self._peeked = self._end
            else:
                group = match.lastgroup
                self._peeked = Token(group, match.group(group), *match.span())
        return self._peeked


class Parser:
    def __init__(self, text: str, validate_elements: bool = True):
        self.text = text
        self.validate_elements = validate_elements
        self._tokens = Tokenizer(text)

    def equation(self) -> Tuple[List[Compound], List[Compound]]:
        reagents = self.side()
        self.expect("ARROW")
        products = self.side()
        self.expect("END")
        return reagents, products

    def side(self) -> List[Compound]:
        compounds = []
        while True:
            self.skip_space()
            compounds.append(self.compound())
            self.skip_space()
            if not self.test("PLUS"):
                return compounds
            self.expect("PLUS")

    def compound(self) -> Compound:
        start = self._tokens.peek().start
        atoms, end = self.formula()
        return Compound(self.text[start:end], dict(atoms))

    def formula(self) -> Tuple[Counter, int]:
        atoms: Counter = Counter()
        start = end = self._tokens.peek().start
        while True:
            if self.test("LPAREN"):
                opening = self.expect("LPAREN")
                group, _ = self.formula()
                if not self.test("RPAREN"):
                    raise FormulaParseError(
                        "Unclosed bracket", self.text, opening.start
                    )
                end = self.expect("RPAREN").end
                count, end = self.multiplier(end)
                for element, n in group.items():
                    atoms[element] += n * count
            elif self.test("ELEM"):
                token = self.expect("ELEM")
                if self.validate_elements and not is_element(token.text):
                    raise FormulaParseError(
                        f"Unknown element symbol {token.text!r}", self.text, token.start
                    )
                count, end = self.multiplier(token.end)
                atoms[token.text] += count
            else:
                break

        if start == end:
            token = self._tokens.peek()
            raise FormulaParseError(
                f"Expected an element or '(' but found {token.text!r} ({token.type})",
                self.text,
                token.start,
            )
        return atoms, end

    def multiplier(self, end: int) -> Tuple[int, int]:
        if self.test("NUM"):
            token = self.expect("NUM")
            return int(token.text), token.end
        return 1, end

    def skip_space(self) -> None:
        if self.test("SPACE"):
            self.expect("SPACE")

    def expect(self, token_type: str) -> Token:
        token = next(self._tokens)
        if token.type != token_type:
            raise FormulaParseError(
                f"Expected {token_type} but found {token.text!r} ({token.type})",
                self.text,
                token.start,
            )
        return token

    def test(self, token_type: str) -> bool:
        return self._tokens.peek().type == token_type


def parse_formula(text: str, validate_elements: bool = True) -> Compound:
    """Parse a single formula such as ``"Ca(OH)2"`` into a :class:`Compound`.

    Args:
        text: The formula. Surrounding whitespace is ignored.
        validate_elements: Reject symbols that are not in the periodic table.

    Raises:
        FormulaParseError: If the formula is malformed.
    """
    stripped = text.strip()
    parser = Parser(stripped, validate_elements)
    compound = parser.compound()
    parser.expect("END")
    logger.debug("Parsed %s as %s", stripped, dict(compound.atoms))
    return compound


def parse_equation(
    text: str, validate_elements: bool = True
) -> Tuple[List[Compound], List[Compound]]:
    """Parse ``"Al + Cl2 = AlCl3"`` (or ``->``) into reagent and product lists."""
    stripped = text.strip()
    reagents, products = Parser(stripped, validate_elements).equation()
    logger.debug(
        "Parsed equation with reagents %s and products %s",
        [c.formula for c in reagents],
        [c.formula for c in products],
    )
    return reagents, products
