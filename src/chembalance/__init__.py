"""chembalance core package."""

from chembalance.balancer import BalancerConfiguration, balance, balance_equation, is_balanced
from chembalance.errors import (
    BalanceError,
    FormulaParseError,
    RationalConversionFailure,
    ScalingFailure,
    SolverFailure,
    UnbalanceableFormula,
    VerificationFailure,
)
from chembalance.models import BalancedReaction, Compound, Reactant, Substance, percent_yield
from chembalance.parsing import parse_equation, parse_formula

__all__ = [
    "BalancerConfiguration",
    "balance",
    "balance_equation",
    "is_balanced",
    "BalanceError",
    "FormulaParseError",
    "RationalConversionFailure",
    "ScalingFailure",
    "SolverFailure",
    "UnbalanceableFormula",
    "VerificationFailure",
    "BalancedReaction",
    "Compound",
    "Reactant",
    "Substance",
    "percent_yield",
    "parse_equation",
    "parse_formula",
]
