"""Stoichiometric balancing of chemical equations.

A reaction with ``N`` compounds is balanced by building the element/compound
matrix ``M`` (one row per element, one column per compound, reagents first),
pinning the last compound's coefficient to one and solving the remaining
``N - 1`` coefficients in the least-squares sense:

    M[:, :N-1] @ x ~= M[:, N-1]

The floating-point solution is snapped to fractions with small denominators,
scaled to integers by their least common denominator and finally checked for
element conservation.

Because the pinned compound is a product, every other product comes out of
the solve with a negative coefficient and every reagent with a positive one.
Coefficients whose sign contradicts their side are rejected unless
``BalancerConfiguration.strict_signs`` is disabled.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from fractions import Fraction
from typing import Hashable, List, Sequence, Tuple

import numpy as np
from scipy.linalg import LinAlgError, lstsq

from chembalance.constants import MAX_DENOMINATOR
from chembalance.errors import SolverFailure, UnbalanceableFormula, VerificationFailure
from chembalance.models import BalancedReaction, Compound, Reactant
from chembalance.parsing import parse_equation
from chembalance.rationals import common_denominator, reconstruct, scale_to_integers

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalancerConfiguration:
    """Tuning knobs for :func:`balance`.

    Attributes:
        max_denominator: Largest denominator kept when snapping solver output
            to fractions.
        strict_signs: Reject solutions where a compound's raw coefficient has
            the sign of the opposite side of the equation.
    """

    max_denominator: int = MAX_DENOMINATOR
    strict_signs: bool = True

    def __post_init__(self) -> None:
        if self.max_denominator < 1:
            raise ValueError(f"max_denominator must be at least 1, got {self.max_denominator}")


@dataclass(frozen=True)
class StoichiometricMatrix:
    values: np.ndarray
    elements: Tuple[Hashable, ...]
    compounds: Tuple[Compound, ...]
    reagent_count: int

    @property
    def pinned(self) -> Compound:
        """The compound whose coefficient is fixed to one while solving."""
        return self.compounds[-1]

    def is_reagent(self, column: int) -> bool:
        return column < self.reagent_count


def resolve_elements(
    reagents: Sequence[Compound], products: Sequence[Compound]
) -> List[Hashable]:
    """Return the elements shared by both sides in a stable order.

    Raises:
        UnbalanceableFormula: If an element appears on only one side.
    """
    reagent_elements = set().union(*(c.elements for c in reagents))
    product_elements = set().union(*(c.elements for c in products))
    if reagent_elements != product_elements:
        raise UnbalanceableFormula(
            missing_from_products=reagent_elements - product_elements,
            missing_from_reagents=product_elements - reagent_elements,
        )
    try:
        return sorted(reagent_elements)
    except TypeError:
        return sorted(reagent_elements, key=str)


def build_matrix(
    elements: Sequence[Hashable],
    reagents: Sequence[Compound],
    products: Sequence[Compound],
) -> StoichiometricMatrix:
    """Lay out atom counts with one row per element and one column per compound."""
    compounds = tuple(reagents) + tuple(products)
    values = np.array(
        [[compound.count(element) for compound in compounds] for element in elements],
        dtype=float,
    ).reshape(len(elements), len(compounds))
    logger.debug("Built %dx%d stoichiometric matrix", *values.shape)
    return StoichiometricMatrix(
        values=values,
        elements=tuple(elements),
        compounds=compounds,
        reagent_count=len(reagents),
    )


def solve_coefficients(matrix: StoichiometricMatrix) -> np.ndarray:
    """Solve for ``N - 1`` coefficients with the ``N``-th compound fixed at one.

    The system is solved through the SVD least-squares driver without
    discarding any singular value as noise.

    Raises:
        SolverFailure: If the system is empty or the solve does not succeed.
    """
    rows, columns = matrix.values.shape
    if rows == 0 or columns < 2:
        raise SolverFailure(f"cannot solve a {rows}x{columns} system")

    a = matrix.values[:, :-1]
    b = matrix.values[:, -1]
    logger.debug("Solving for %d coefficients relative to %s", columns - 1, matrix.pinned)
    try:
        solution, _residues, rank, _singular = lstsq(a, b, cond=0.0, lapack_driver="gelsd")
    except (LinAlgError, ValueError) as exc:
        raise SolverFailure(str(exc)) from exc
    logger.debug("Raw solution %s (rank %d)", solution, rank)
    return solution


def check_signs(
    matrix: StoichiometricMatrix,
    raw: Sequence[float],
    rationals: Sequence[Fraction],
    strict: bool = True,
) -> None:
    """Reject coefficients that vanish or point to the wrong side of the equation.

    Raises:
        VerificationFailure: Naming the first offending compound.
    """
    pinned_is_reagent = matrix.is_reagent(len(matrix.compounds) - 1)
    for column, (value, rational) in enumerate(zip(raw, rationals)):
        compound = matrix.compounds[column]
        if rational == 0:
            raise VerificationFailure(f"{compound} does not take part in the reaction", compound)
        if not strict:
            continue
        same_side = matrix.is_reagent(column) == pinned_is_reagent
        if (value < 0) != same_side:
            side = "reagent" if matrix.is_reagent(column) else "product"
            raise VerificationFailure(
                f"{compound} solved to {value:.6g}, which places the {side} on the wrong side",
                compound,
            )


def element_totals(side: Sequence[Tuple[Compound, int]]) -> Counter:
    totals: Counter = Counter()
    for compound, coefficient in side:
        for element, count in compound.atoms.items():
            totals[element] += count * coefficient
    return totals


def verify_balance(
    reagents: Sequence[Tuple[Compound, int]], products: Sequence[Tuple[Compound, int]]
) -> bool:
    """True when every element has the same total on both sides."""
    return element_totals(reagents) == element_totals(products)


def is_balanced(reaction: BalancedReaction) -> bool:
    reagent_totals, product_totals = reaction.element_totals()
    return reagent_totals == product_totals


def balance(
    reagents: Sequence[Compound],
    products: Sequence[Compound],
    configuration: BalancerConfiguration | None = None,
) -> BalancedReaction:
    """Find the integer coefficients that balance ``reagents = products``.

    Args:
        reagents: Compounds on the left-hand side, in display order.
        products: Compounds on the right-hand side, in display order.
        configuration: Solver options; defaults to :class:`BalancerConfiguration`.

    Returns:
        The balanced reaction with coefficients in input order.

    Raises:
        UnbalanceableFormula: If the sides do not share the same elements.
        SolverFailure: If the least-squares solve fails.
        RationalConversionFailure: If the solve produced a non-finite value.
        ScalingFailure: If scaling leaves a fractional coefficient.
        VerificationFailure: If the result does not conserve every element.
    """
    configuration = configuration or BalancerConfiguration()

    elements = resolve_elements(reagents, products)
    matrix = build_matrix(elements, reagents, products)
    raw = solve_coefficients(matrix)
    rationals = reconstruct(raw, configuration.max_denominator)
    check_signs(matrix, raw, rationals, strict=configuration.strict_signs)

    scale = common_denominator(r.denominator for r in rationals)
    coefficients = scale_to_integers(rationals, scale)

    pairs = list(zip(matrix.compounds, coefficients))
    reagent_pairs = pairs[: matrix.reagent_count]
    product_pairs = pairs[matrix.reagent_count :]
    if not verify_balance(reagent_pairs, product_pairs):
        raise VerificationFailure(
            "coefficients "
            + ", ".join(f"{c} {compound}" for compound, c in pairs)
            + " do not conserve every element"
        )

    reaction = BalancedReaction(
        reagents=tuple(Reactant(compound, c) for compound, c in reagent_pairs),
        products=tuple(Reactant(compound, c) for compound, c in product_pairs),
    )
    logger.debug("Balanced: %s", reaction)
    return reaction


def balance_equation(
    text: str, configuration: BalancerConfiguration | None = None
) -> BalancedReaction:
    """Parse and balance an equation such as ``"Al + Cl2 = AlCl3"``."""
    reagents, products = parse_equation(text)
    return balance(reagents, products, configuration)
