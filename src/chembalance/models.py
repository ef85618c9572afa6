"""Data structures for compounds and balanced reactions."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Hashable, List, Mapping, Tuple

from chembalance.elements import molecular_weight


@dataclass(frozen=True, eq=False)
class Compound:
    """A chemical formula and its element -> atom count composition.

    Compounds compare by identity, so the same formula used as a reagent and
    as a product gives two distinct compounds.
    """

    formula: str
    atoms: Mapping[Hashable, int]

    def __post_init__(self) -> None:
        for element, count in self.atoms.items():
            if isinstance(count, bool) or not isinstance(count, int) or count < 1:
                raise ValueError(
                    f"Atom count for {element} in {self.formula!r} must be a positive integer, "
                    f"got {count!r}"
                )
        object.__setattr__(self, "atoms", MappingProxyType(dict(self.atoms)))

    @property
    def elements(self) -> frozenset:
        return frozenset(self.atoms)

    def count(self, element: Hashable) -> int:
        return self.atoms.get(element, 0)

    @property
    def molecular_weight(self) -> float:
        """Molar mass in g/mol, looked up through the element registry."""
        return molecular_weight(self.atoms)

    def __str__(self) -> str:
        return self.formula

    def __repr__(self) -> str:
        return f"Compound({self.formula!r}, {dict(self.atoms)!r})"


@dataclass(frozen=True)
class Reactant:
    compound: Compound
    coefficient: int

    def __post_init__(self) -> None:
        if isinstance(self.coefficient, bool) or not isinstance(self.coefficient, int):
            raise ValueError(f"Molar coefficient must be an integer, got {self.coefficient!r}")
        if self.coefficient < 1:
            raise ValueError(f"Molar coefficient must be >= 1, got {self.coefficient}")

    def __str__(self) -> str:
        if self.coefficient == 1:
            return self.compound.formula
        return f"{self.coefficient} {self.compound.formula}"


@dataclass(frozen=True)
class BalancedReaction:
    """Reagents and products with their integer molar coefficients.

    Both sides keep the order the compounds were given in. Equality is
    element-wise and order-sensitive.
    """

    reagents: Tuple[Reactant, ...]
    products: Tuple[Reactant, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "reagents", tuple(self.reagents))
        object.__setattr__(self, "products", tuple(self.products))

    def coefficients(self) -> List[int]:
        """Coefficients in column order (reagents then products)."""
        return [r.coefficient for r in self.reagents + self.products]

    def element_totals(self) -> Tuple[Counter, Counter]:
        return _side_totals(self.reagents), _side_totals(self.products)

    def find(self, formula: str) -> Reactant:
        """Return the first reactant on either side with the given formula."""
        for reactant in self.reagents + self.products:
            if reactant.compound.formula == formula:
                return reactant
        raise KeyError(f"{formula!r} does not take part in {self}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "equation": str(self),
            "reagents": [
                {"formula": r.compound.formula, "coefficient": r.coefficient} for r in self.reagents
            ],
            "products": [
                {"formula": p.compound.formula, "coefficient": p.coefficient} for p in self.products
            ],
        }

    def __str__(self) -> str:
        return (
            " + ".join(str(r) for r in self.reagents)
            + " = "
            + " + ".join(str(p) for p in self.products)
        )


def _side_totals(side: Tuple[Reactant, ...]) -> Counter:
    totals: Counter = Counter()
    for reactant in side:
        for element, count in reactant.compound.atoms.items():
            totals[element] += count * reactant.coefficient
    return totals


@dataclass(frozen=True)
class Substance:
    """A weighed sample of a compound."""

    compound: Compound
    mass: float  # g

    def __post_init__(self) -> None:
        if self.mass < 0:
            raise ValueError(f"Sample mass must be non-negative, got {self.mass}")

    @property
    def moles(self) -> float:
        return self.mass / self.compound.molecular_weight


@dataclass(frozen=True)
class YieldReport:
    """Theoretical and actual product amounts for one reagent/product pair.

    Attributes:
        theoretical_moles: Product moles expected from the reagent sample (mol).
        theoretical_mass: Product mass expected from the reagent sample (g).
        actual_mass: Product mass recovered (g).
        percent_yield: ``100 * actual_mass / theoretical_mass``.
    """

    theoretical_moles: float
    theoretical_mass: float
    actual_mass: float
    percent_yield: float


def percent_yield(
    reaction: BalancedReaction, reagent: Substance, product: Substance
) -> YieldReport:
    """Compare a recovered product sample with the reagent sample's theoretical yield.

    The reagent and product are matched against the reaction by formula and
    converted through the ratio of their balanced coefficients.
    """
    reagent_coefficient = reaction.find(reagent.compound.formula).coefficient
    product_coefficient = reaction.find(product.compound.formula).coefficient

    theoretical_moles = reagent.moles * product_coefficient / reagent_coefficient
    theoretical_mass = theoretical_moles * product.compound.molecular_weight
    if theoretical_mass == 0:
        raise ValueError("Reagent sample has no mass; theoretical yield is zero")
    return YieldReport(
        theoretical_moles=theoretical_moles,
        theoretical_mass=theoretical_mass,
        actual_mass=product.mass,
        percent_yield=100.0 * product.mass / theoretical_mass,
    )
