import logging
import unittest

from utils.economics import (
    amortize_year,
    calculate_pmt,
    compute_npv,
    degradation_curve,
    degradation_factor,
    equity_amount,
    inflated_price,
    loan_amount,
    solar_revenue,
    solve_irr,
)


class AmortizationTests(unittest.TestCase):
    def test_zero_rate_payment_is_straight_division(self) -> None:
        for term in (1, 2, 7, 15, 35):
            self.assertEqual(calculate_pmt(0.0, term, 1_000_000.0), 1_000_000.0 / term)

    def test_level_payment_matches_annuity_formula(self) -> None:
        self.assertAlmostEqual(calculate_pmt(0.035, 15, 1_000_000.0), 86_825.0693660331, places=6)

    def test_payment_fully_amortizes_balance(self) -> None:
        rate, term, principal = 0.05, 10, 250_000.0
        payment = calculate_pmt(rate, term, principal)
        balance = principal
        for year in range(1, term + 1):
            interest, paid, balance = amortize_year(balance, year, rate, term, payment, True)
            self.assertAlmostEqual(interest + paid, payment)
        self.assertAlmostEqual(balance, 0.0, places=6)

    def test_no_split_outside_term_or_when_unlevered(self) -> None:
        self.assertEqual(amortize_year(500.0, 3, 0.05, 2, 100.0, True), (0.0, 0.0, 500.0))
        self.assertEqual(amortize_year(500.0, 1, 0.05, 2, 100.0, False), (0.0, 0.0, 500.0))

    def test_first_year_split(self) -> None:
        interest, principal, balance = amortize_year(1_000.0, 1, 0.10, 5, 300.0, True)
        self.assertAlmostEqual(interest, 100.0)
        self.assertAlmostEqual(principal, 200.0)
        self.assertAlmostEqual(balance, 800.0)

    def test_loan_and_equity_split_investment(self) -> None:
        self.assertAlmostEqual(loan_amount(1_000.0, 0.7), 700.0)
        self.assertAlmostEqual(equity_amount(1_000.0, 0.7), 300.0)


class DegradationAndRevenueTests(unittest.TestCase):
    def test_first_year_degradation_is_exact(self) -> None:
        self.assertEqual(degradation_factor(1, 0.01, 0.004), 1 - 0.01)

    def test_later_years_compound(self) -> None:
        self.assertAlmostEqual(degradation_factor(3, 0.01, 0.004), 0.99 * 0.996**2)

    def test_curve_strictly_decreasing(self) -> None:
        curve = degradation_curve(35, 0.01, 0.004)
        self.assertEqual(len(curve), 35)
        self.assertTrue(all(later < earlier for earlier, later in zip(curve, curve[1:])))

    def test_price_escalates_after_first_year(self) -> None:
        self.assertEqual(inflated_price(0.07, 0.04, 1), 0.07)
        self.assertAlmostEqual(inflated_price(0.07, 0.04, 3), 0.07 * 1.04**2)

    def test_solar_revenue_converts_mwh_to_kwh(self) -> None:
        revenue = solar_revenue(174_547.0, 0.99, 1, 0.07, 0.04)
        self.assertAlmostEqual(revenue, 174_547.0 * 1000 * 0.99 * 0.07)

    def test_revenue_escalates_price_on_top_of_degradation(self) -> None:
        revenue = solar_revenue(10.0, 0.95, 3, 0.10, 0.05)
        self.assertAlmostEqual(revenue, 10.0 * 1000 * 0.95 * 0.10 * 1.05**2)

    def test_curve_matches_yearly_factors(self) -> None:
        curve = degradation_curve(5, 0.02, 0.005)
        for year in range(1, 6):
            self.assertEqual(curve[year - 1], degradation_factor(year, 0.02, 0.005))


class ReturnMetricTests(unittest.TestCase):
    def test_npv_leaves_first_flow_undiscounted(self) -> None:
        self.assertAlmostEqual(compute_npv([-100.0, 110.0], 0.10), 0.0)
        self.assertAlmostEqual(compute_npv([-100.0, 50.0, 50.0], 0.0), 0.0)

    def test_irr_single_period(self) -> None:
        irr = solve_irr([-100.0, 110.0])
        self.assertIsNotNone(irr)
        self.assertAlmostEqual(irr, 0.10, delta=1e-4)

    def test_irr_zeroes_npv(self) -> None:
        flows = [-2_500.0, 1_000.0, 1_000.0, 1_000.0, 1_000.0, 1_000.0]
        irr = solve_irr(flows)
        self.assertIsNotNone(irr)
        self.assertAlmostEqual(compute_npv(flows, irr), 0.0, delta=0.05)

    def test_small_newton_step_returns_updated_rate(self) -> None:
        # NPV at the 10 % guess is ~9e-4, above tolerance, but the Newton step is ~1e-5.
        flows = [-100.0, 110.001]
        npv = -100.0 + 110.001 / 1.1
        derivative = -110.001 / 1.1**2
        self.assertGreater(abs(npv), 1e-4)

        irr = solve_irr(flows)
        self.assertIsNotNone(irr)
        self.assertNotEqual(irr, 0.10)
        self.assertAlmostEqual(irr, 0.10 - npv / derivative, places=12)
        self.assertAlmostEqual(irr, 0.10001, delta=1e-8)

    def test_flat_derivative_is_indeterminate(self) -> None:
        with self.assertLogs("utils.economics", level=logging.WARNING):
            self.assertIsNone(solve_irr([-100.0, 0.0, 0.0]))

    def test_exhausted_iterations_are_indeterminate(self) -> None:
        with self.assertLogs("utils.economics", level=logging.WARNING):
            self.assertIsNone(solve_irr([-100.0, 300.0], max_iterations=1))


if __name__ == "__main__":
    unittest.main()
