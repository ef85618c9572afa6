"""Exceptions raised while parsing and balancing equations."""

from __future__ import annotations

from typing import AbstractSet, Any, Hashable


class BalanceError(RuntimeError):
    """Base class for every failure of a balancing call."""


class UnbalanceableFormula(BalanceError):
    """Reagents and products do not contain the same elements."""

    def __init__(
        self,
        missing_from_products: AbstractSet[Hashable],
        missing_from_reagents: AbstractSet[Hashable],
    ) -> None:
        self.missing_from_products = frozenset(missing_from_products)
        self.missing_from_reagents = frozenset(missing_from_reagents)
        parts = []
        if self.missing_from_products:
            parts.append(f"missing from products: {_names(self.missing_from_products)}")
        if self.missing_from_reagents:
            parts.append(f"missing from reagents: {_names(self.missing_from_reagents)}")
        super().__init__("Unbalanceable formula (" + "; ".join(parts) + ")")


class SolverFailure(BalanceError):
    """The least-squares solve produced no usable solution."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Could not solve the stoichiometric system: {detail}")


class RationalConversionFailure(BalanceError):
    """A solver coefficient has no exact rational value (nan or inf)."""

    def __init__(self, value: float) -> None:
        self.value = value
        super().__init__(f"Could not convert {value!r} to a rational")


class ScalingFailure(BalanceError):
    """A coefficient stayed fractional after scaling by the common denominator."""

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(f"Scaled coefficient {value} is not an integer")


class VerificationFailure(BalanceError):
    """The integer coefficients do not conserve every element."""

    def __init__(self, detail: str, compound: Any = None) -> None:
        self.detail = detail
        self.compound = compound
        super().__init__(f"Balance verification failed: {detail}")


class FormulaParseError(ValueError):
    """A formula or equation string is malformed."""

    def __init__(self, message: str, text: str, position: int) -> None:
        self.text = text
        self.position = position
        super().__init__(f"{message} at position {position} in {text!r}")


def _names(elements: AbstractSet[Hashable]) -> str:
    return ", ".join(sorted(str(element) for element in elements))
