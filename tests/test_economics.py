import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from agro_helper.domain.economics import (
    COST_FIELDS,
    EMPTY_FIELDS_MESSAGE,
    FIELD_LABELS,
    TOO_LARGE_MESSAGE,
    ZERO_COSTS_MESSAGE,
    ZERO_PRICE_MESSAGE,
    EconomicsInputError,
    calculate_economics,
    metrics_mismatch,
    parse_economics_input,
)
from agro_helper.schemas import EconomicsMetrics, FarmEconomicsInput


def sample_input(**overrides) -> FarmEconomicsInput:
    values = dict(
        crop_name="Пшеница",
        area="50",
        area_unit="га",
        seed_cost="100000",
        fertilizer_cost="250000",
        pesticide_cost="75000",
        labor_cost="150000",
        machinery_cost="125000",
        other_costs="50000",
        expected_yield="250",
        yield_unit="тонн",
        market_price="10000",
    )
    values.update(overrides)
    return FarmEconomicsInput(**values)


class EconomicsCalculationTests(unittest.TestCase):
    def test_reference_example(self) -> None:
        metrics = calculate_economics(sample_input())
        self.assertEqual(metrics.total_variable_costs, 750000)
        self.assertEqual(metrics.total_revenue, 2500000)
        self.assertEqual(metrics.profit, 1750000)
        self.assertAlmostEqual(metrics.return_on_investment, 233.33, places=2)
        self.assertEqual(metrics.break_even_yield, 75)

    def test_profit_and_roi_laws(self) -> None:
        metrics = calculate_economics(
            sample_input(expected_yield="12.5", market_price="3300,75", other_costs="0")
        )
        self.assertAlmostEqual(
            metrics.profit, metrics.total_revenue - metrics.total_variable_costs
        )
        self.assertAlmostEqual(
            metrics.return_on_investment,
            metrics.profit / metrics.total_variable_costs * 100,
        )

    def test_loss_gives_negative_profit(self) -> None:
        metrics = calculate_economics(sample_input(expected_yield="10"))
        self.assertLess(metrics.profit, 0)
        self.assertLess(metrics.return_on_investment, 0)

    def test_thousands_separators_are_ignored(self) -> None:
        figures = parse_economics_input(sample_input(seed_cost="100 000"))
        self.assertEqual(figures.seed_cost, 100000)

    def test_wire_names_are_camel_case(self) -> None:
        payload = calculate_economics(sample_input()).model_dump(by_alias=True)
        self.assertEqual(
            set(payload),
            {
                "totalVariableCosts",
                "totalRevenue",
                "profit",
                "returnOnInvestment",
                "breakEvenYield",
            },
        )


class EconomicsValidationTests(unittest.TestCase):
    def test_any_empty_field_is_rejected(self) -> None:
        for field in FIELD_LABELS:
            with self.subTest(field=field):
                with self.assertRaises(EconomicsInputError) as ctx:
                    parse_economics_input(sample_input(**{field: "  "}))
                self.assertEqual(ctx.exception.message, EMPTY_FIELDS_MESSAGE)
                self.assertEqual(ctx.exception.field, field)

    def test_zero_market_price_is_a_defined_error(self) -> None:
        with self.assertRaises(EconomicsInputError) as ctx:
            calculate_economics(sample_input(market_price="0"))
        self.assertEqual(ctx.exception.message, ZERO_PRICE_MESSAGE)
        self.assertEqual(ctx.exception.field, "market_price")

    def test_zero_total_costs_is_a_defined_error(self) -> None:
        zero_costs = {name: "0" for name in COST_FIELDS}
        with self.assertRaises(EconomicsInputError) as ctx:
            calculate_economics(sample_input(**zero_costs))
        self.assertEqual(ctx.exception.message, ZERO_COSTS_MESSAGE)

    def test_negative_value_is_rejected(self) -> None:
        with self.assertRaises(EconomicsInputError) as ctx:
            parse_economics_input(sample_input(labor_cost="-5"))
        self.assertEqual(ctx.exception.field, "labor_cost")
        self.assertIn("отрицательным", ctx.exception.message)

    def test_non_numeric_values_are_rejected(self) -> None:
        for raw in ("abc", "nan", "inf", "1e999999"):
            with self.subTest(raw=raw):
                with self.assertRaises(EconomicsInputError) as ctx:
                    parse_economics_input(sample_input(expected_yield=raw))
                self.assertEqual(ctx.exception.field, "expected_yield")

    def test_overflowing_costs_are_a_defined_error(self) -> None:
        with self.assertRaises(EconomicsInputError) as ctx:
            calculate_economics(
                sample_input(**{name: "1e308" for name in COST_FIELDS})
            )
        self.assertEqual(ctx.exception.message, TOO_LARGE_MESSAGE)
        self.assertEqual(ctx.exception.field, "seed_cost")

    def test_overflowing_revenue_is_a_defined_error(self) -> None:
        with self.assertRaises(EconomicsInputError) as ctx:
            calculate_economics(sample_input(expected_yield="1e300", market_price="1e300"))
        self.assertEqual(ctx.exception.message, TOO_LARGE_MESSAGE)
        self.assertEqual(ctx.exception.field, "expected_yield")

    def test_tiny_price_with_large_costs_is_a_defined_error(self) -> None:
        with self.assertRaises(EconomicsInputError) as ctx:
            calculate_economics(sample_input(seed_cost="1e300", market_price="1e-300"))
        self.assertEqual(ctx.exception.field, "market_price")


class MetricsMismatchTests(unittest.TestCase):
    def test_reports_only_differing_fields(self) -> None:
        expected = calculate_economics(sample_input())
        reported = EconomicsMetrics(
            total_variable_costs=750000,
            total_revenue=2500000,
            profit=1700000,
            return_on_investment=expected.return_on_investment,
            break_even_yield=75,
        )
        diffs = metrics_mismatch(expected, reported)
        self.assertEqual(list(diffs), ["profit"])
        self.assertEqual(diffs["profit"]["reported"], 1700000)

    def test_two_decimal_rounding_is_not_a_mismatch(self) -> None:
        expected = calculate_economics(sample_input())
        reported = expected.model_copy(update={"return_on_investment": 233.33})
        self.assertAlmostEqual(expected.return_on_investment, 233.3333, places=3)
        self.assertEqual(metrics_mismatch(expected, reported), {})
        drifted = expected.model_copy(update={"return_on_investment": 233.4})
        self.assertEqual(list(metrics_mismatch(expected, drifted)), ["return_on_investment"])


if __name__ == "__main__":
    unittest.main()
