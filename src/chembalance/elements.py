"""Periodic table registry and molecular weights."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Hashable, Mapping

from chempy.util.periodic import names, relative_atomic_masses, symbols


@dataclass(frozen=True, order=True)
class Element:
    atomic_number: int
    symbol: str = field(compare=False)
    name: str = field(compare=False)
    atomic_weight: float = field(compare=False)  # g/mol

    def __str__(self) -> str:
        return self.symbol


ELEMENTS: Mapping[str, Element] = {
    symbol: Element(number, symbol, name, float(weight))
    for number, (symbol, name, weight) in enumerate(
        zip(symbols, names, relative_atomic_masses), start=1
    )
}


def is_element(symbol: str) -> bool:
    return symbol in ELEMENTS


def lookup(symbol: str | Element) -> Element:
    """Return the registry entry for a symbol.

    Raises:
        KeyError: If the symbol is not a known element.
    """
    if isinstance(symbol, Element):
        return symbol
    try:
        return ELEMENTS[symbol]
    except KeyError:
        raise KeyError(f"Unknown element symbol: {symbol!r}") from None


def molecular_weight(atoms: Mapping[Hashable, int]) -> float:
    """Sum of atomic weights (g/mol) for a symbol or Element keyed mapping."""
    return sum(lookup(element).atomic_weight * count for element, count in atoms.items())
