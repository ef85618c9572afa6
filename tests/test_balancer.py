import unittest
from fractions import Fraction

import numpy as np

from chembalance.balancer import (
    BalancerConfiguration,
    StoichiometricMatrix,
    balance,
    balance_equation,
    build_matrix,
    check_signs,
    is_balanced,
    resolve_elements,
    solve_coefficients,
    verify_balance,
)
from chembalance.elements import lookup
from chembalance.errors import (
    SolverFailure,
    UnbalanceableFormula,
    VerificationFailure,
)
from chembalance.models import Compound
from chembalance.parsing import parse_formula
from chembalance.rationals import limit_denominator


def compounds(*formulas):
    return [parse_formula(f) for f in formulas]


class TestScenarios(unittest.TestCase):
    def assertBalanced(self, reaction):
        reagent_totals, product_totals = reaction.element_totals()
        self.assertEqual(reagent_totals, product_totals)
        for coefficient in reaction.coefficients():
            self.assertIsInstance(coefficient, int)
            self.assertGreaterEqual(coefficient, 1)
            self.assertEqual(limit_denominator(Fraction(coefficient)), coefficient)

    def test_aluminium_chloride(self):
        reaction = balance(compounds("Al", "Cl2"), compounds("AlCl3"))
        self.assertEqual(reaction.coefficients(), [2, 3, 2])
        self.assertEqual(str(reaction), "2 Al + 3 Cl2 = 2 AlCl3")
        self.assertBalanced(reaction)

    def test_benzoic_acid_combustion(self):
        reaction = balance(compounds("C6H5COOH", "O2"), compounds("CO2", "H2O"))
        self.assertEqual(reaction.coefficients(), [2, 15, 14, 6])
        self.assertEqual(str(reaction), "2 C6H5COOH + 15 O2 = 14 CO2 + 6 H2O")
        self.assertBalanced(reaction)

    def test_permanganate_redox(self):
        reaction = balance(
            compounds("KMnO4", "HCl"), compounds("KCl", "MnCl2", "H2O", "Cl2")
        )
        self.assertEqual(reaction.coefficients(), [2, 16, 2, 2, 8, 5])
        self.assertBalanced(reaction)

    def test_more_equations(self):
        cases = {
            "C3H8 + O2 = CO2 + H2O": [1, 5, 3, 4],
            "Fe + O2 = Fe2O3": [4, 3, 2],
            "N2 + H2 = NH3": [1, 3, 2],
            "Ca(OH)2 + H3PO4 = Ca3(PO4)2 + H2O": [3, 2, 1, 6],
            "H2O = H2 + O2": [2, 2, 1],
        }
        for equation, expected in cases.items():
            with self.subTest(equation=equation):
                reaction = balance_equation(equation)
                self.assertEqual(reaction.coefficients(), expected)
                self.assertBalanced(reaction)
                self.assertTrue(is_balanced(reaction))

    def test_element_mismatch(self):
        with self.assertRaises(UnbalanceableFormula) as ctx:
            balance(compounds("Fe3", "Cl5"), compounds("Cl2Fe5H2O"))
        self.assertEqual(ctx.exception.missing_from_reagents, frozenset({"H", "O"}))
        self.assertEqual(ctx.exception.missing_from_products, frozenset())
        self.assertIn("H, O", str(ctx.exception))

    def test_unsatisfiable_with_matching_elements(self):
        with self.assertRaises((SolverFailure, VerificationFailure)):
            balance(compounds("H2O", "NO2"), compounds("HNO3"))

    def test_same_formula_on_both_sides(self):
        reagents = compounds("H2O")
        products = compounds("H2O")
        reaction = balance(reagents, products)
        self.assertEqual(reaction.coefficients(), [1, 1])
        self.assertIsNot(reaction.reagents[0].compound, reaction.products[0].compound)

    def test_registry_elements_as_keys(self):
        na, cl = lookup("Na"), lookup("Cl")
        reaction = balance(
            [Compound("Na", {na: 1}), Compound("Cl2", {cl: 2})],
            [Compound("NaCl", {na: 1, cl: 1})],
        )
        self.assertEqual(reaction.coefficients(), [2, 1, 2])

    def test_empty_side(self):
        with self.assertRaises(UnbalanceableFormula) as ctx:
            balance([], compounds("H2"))
        self.assertEqual(ctx.exception.missing_from_reagents, frozenset({"H"}))
        self.assertEqual(ctx.exception.missing_from_products, frozenset())

        with self.assertRaises(UnbalanceableFormula) as ctx:
            balance(compounds("H2"), [])
        self.assertEqual(ctx.exception.missing_from_products, frozenset({"H"}))

    def test_both_sides_empty(self):
        with self.assertRaises(SolverFailure):
            balance([], [])

    def test_logs_stages(self):
        with self.assertLogs("chembalance.balancer", level="DEBUG") as logs:
            balance_equation("Al + Cl2 = AlCl3")
        self.assertTrue(any("Balanced" in line for line in logs.output))


class TestSigns(unittest.TestCase):
    def test_reagent_on_wrong_side(self):
        # Solving gives H2 a negative coefficient: it is really a product
        with self.assertRaises(VerificationFailure) as ctx:
            balance_equation("H2O + H2 = H2O2")
        self.assertEqual(ctx.exception.compound.formula, "H2")

    def test_relaxed_signs_still_verify(self):
        configuration = BalancerConfiguration(strict_signs=False)
        with self.assertRaises(VerificationFailure) as ctx:
            balance_equation("H2O + H2 = H2O2", configuration)
        self.assertIsNone(ctx.exception.compound)

    def test_vanishing_coefficient(self):
        reagents = compounds("H2", "O2")
        products = compounds("H2O")
        matrix = build_matrix(["H", "O"], reagents, products)
        with self.assertRaises(VerificationFailure) as ctx:
            check_signs(matrix, [1.0, 0.0], [Fraction(1), Fraction(0)])
        self.assertIs(ctx.exception.compound, reagents[1])

    def test_configuration_validation(self):
        with self.assertRaises(ValueError):
            BalancerConfiguration(max_denominator=0)


class TestStages(unittest.TestCase):
    def setUp(self):
        self.reagents = compounds("Al", "Cl2")
        self.products = compounds("AlCl3")

    def test_resolve_elements(self):
        self.assertEqual(resolve_elements(self.reagents, self.products), ["Al", "Cl"])

    def test_build_matrix(self):
        matrix = build_matrix(["Cl", "Al"], self.reagents, self.products)
        np.testing.assert_array_equal(matrix.values, [[0.0, 2.0, 3.0], [1.0, 0.0, 1.0]])
        self.assertEqual(matrix.elements, ("Cl", "Al"))
        self.assertEqual(matrix.compounds, tuple(self.reagents + self.products))
        self.assertEqual(matrix.reagent_count, 2)
        self.assertIs(matrix.pinned, self.products[0])

    def test_solve_coefficients(self):
        matrix = build_matrix(["Al", "Cl"], self.reagents, self.products)
        solution = solve_coefficients(matrix)
        self.assertEqual(solution.shape, (2,))
        self.assertAlmostEqual(solution[0], 1.0)
        self.assertAlmostEqual(solution[1], 1.5)

    def test_solver_rejects_empty_system(self):
        matrix = StoichiometricMatrix(
            values=np.zeros((0, 3)),
            elements=(),
            compounds=tuple(self.reagents + self.products),
            reagent_count=2,
        )
        with self.assertRaises(SolverFailure):
            solve_coefficients(matrix)

    def test_verify_balance(self):
        al, cl2 = self.reagents
        (alcl3,) = self.products
        self.assertTrue(verify_balance([(al, 2), (cl2, 3)], [(alcl3, 2)]))
        self.assertFalse(verify_balance([(al, 1), (cl2, 3)], [(alcl3, 2)]))


if __name__ == '__main__':
    unittest.main()
