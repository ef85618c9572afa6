"""Exact rational reconstruction and integer scaling of solver output."""

from __future__ import annotations

import logging
import math
from fractions import Fraction
from itertools import combinations
from typing import Iterable, List, Sequence

from chembalance.constants import MAX_DENOMINATOR
from chembalance.errors import RationalConversionFailure, ScalingFailure

logger = logging.getLogger(__name__)


def to_rational(value: float) -> Fraction:
    """Return the exact binary value of ``value`` as a fraction.

    Raises:
        RationalConversionFailure: If ``value`` is nan or infinite.
    """
    value = float(value)
    if not math.isfinite(value):
        raise RationalConversionFailure(value)
    return Fraction(value)


def limit_denominator(value: Fraction, max_denominator: int = MAX_DENOMINATOR) -> Fraction:
    """Closest fraction to ``|value|`` whose denominator is at most ``max_denominator``.

    Walks the continued-fraction convergents of ``|value|`` smallest
    denominator first and stops before the first convergent whose denominator
    would exceed the bound. The answer is then either the last convergent or
    the best semiconvergent below the bound; on a tie the semiconvergent wins.

    Values whose denominator is already within the bound are returned as is,
    so the function is idempotent.
    """
    if max_denominator < 1:
        raise ValueError(f"max_denominator must be at least 1, got {max_denominator}")

    value = abs(Fraction(value))
    if value.denominator <= max_denominator:
        return value

    p0, q0, p1, q1 = 0, 1, 1, 0
    n, d = value.numerator, value.denominator
    while True:
        a = n // d
        q2 = q0 + a * q1
        if q2 > max_denominator:
            break
        p0, q0, p1, q1 = p1, q1, p0 + a * p1, q2
        n, d = d, n - a * d

    k = (max_denominator - q0) // q1
    bound1 = Fraction(p0 + k * p1, q0 + k * q1)
    bound2 = Fraction(p1, q1)
    if abs(bound1 - value) <= abs(bound2 - value):
        return bound1
    return bound2


def reconstruct(values: Iterable[float], max_denominator: int = MAX_DENOMINATOR) -> List[Fraction]:
    """Convert solver floats to fractions with denominators within the bound."""
    rationals = [limit_denominator(to_rational(v), max_denominator) for v in values]
    logger.debug("Reconstructed rationals: %s", [str(r) for r in rationals])
    return rationals


def common_denominator(denominators: Iterable[int]) -> int:
    """Least common multiple of all denominators (1 for an empty input)."""
    return math.lcm(1, *denominators)


def pairwise_lcm_scale(denominators: Sequence[int]) -> int:
    """Largest least common multiple over every pair of denominators.

    A single denominator is its own scale and an empty sequence scales by 1.
    """
    if len(denominators) == 1:
        return denominators[0]
    scale = 1
    for first, second in combinations(denominators, 2):
        scale = max(scale, math.lcm(first, second))
    return scale


def scale_to_integers(rationals: Sequence[Fraction], scale: int) -> List[int]:
    """Multiply every fraction by ``scale`` and append ``scale`` itself.

    The appended value is the coefficient of the compound that was pinned to
    one while solving.

    Raises:
        ScalingFailure: If a scaled fraction is not a whole number.
    """
    integers = []
    for rational in rationals:
        scaled = rational * scale
        if scaled.denominator != 1:
            raise ScalingFailure(scaled)
        integers.append(scaled.numerator)
    integers.append(scale)
    logger.debug("Scaled by %d to %s", scale, integers)
    return integers
