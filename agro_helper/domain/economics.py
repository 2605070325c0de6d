from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional

from ..schemas.models import EconomicsMetrics, FarmEconomicsFigures, FarmEconomicsInput


EMPTY_FIELDS_MESSAGE = "Пожалуйста, заполните все поля."
ZERO_PRICE_MESSAGE = (
    "Рыночная цена должна быть больше нуля: точку безубыточности рассчитать нельзя."
)
ZERO_COSTS_MESSAGE = (
    "Общие затраты равны нулю: рентабельность (ROI) рассчитать нельзя."
)
TOO_LARGE_MESSAGE = (
    "Введенные значения слишком велики для расчета. Проверьте данные."
)

FIELD_LABELS: Dict[str, str] = {
    "crop_name": "Название культуры",
    "area": "Площадь",
    "area_unit": "Единица площади",
    "seed_cost": "Стоимость семян",
    "fertilizer_cost": "Стоимость удобрений",
    "pesticide_cost": "Стоимость СЗР",
    "labor_cost": "Затраты на рабочую силу",
    "machinery_cost": "Затраты на технику (топливо, ГСМ)",
    "other_costs": "Прочие затраты",
    "expected_yield": "Ожидаемый урожай (общий)",
    "yield_unit": "Единица урожая",
    "market_price": "Рыночная цена",
}

COST_FIELDS = (
    "seed_cost",
    "fertilizer_cost",
    "pesticide_cost",
    "labor_cost",
    "machinery_cost",
    "other_costs",
)
NUMERIC_FIELDS = ("area", *COST_FIELDS, "expected_yield", "market_price")

# input field blamed when a metric overflows
_OVERFLOW_FIELDS = {
    "total_variable_costs": "seed_cost",
    "total_revenue": "expected_yield",
    "profit": "expected_yield",
    "return_on_investment": "seed_cost",
    "break_even_yield": "market_price",
}


class EconomicsInputError(ValueError):
    """Economics form data that cannot be turned into figures."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


def _parse_amount(field: str, raw: str) -> float:
    text = raw.strip().replace(" ", "").replace("\u00a0", "").replace(",", ".")
    label = FIELD_LABELS[field]
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise EconomicsInputError(f"Поле «{label}» должно быть числом.", field) from None
    if not value.is_finite():
        raise EconomicsInputError(f"Поле «{label}» должно быть числом.", field)
    if value < 0:
        raise EconomicsInputError(
            f"Поле «{label}» не может быть отрицательным.", field
        )
    amount = float(value)
    if not math.isfinite(amount):
        raise EconomicsInputError(f"Поле «{label}» должно быть числом.", field)
    return amount


def find_empty_field(data: FarmEconomicsInput) -> Optional[str]:
    for field in FIELD_LABELS:
        if not getattr(data, field).strip():
            return field
    return None


def parse_economics_input(data: FarmEconomicsInput) -> FarmEconomicsFigures:
    """
    Validate every field of the economics form and convert amounts to numbers.

    Raises:
        EconomicsInputError: on an empty, non-numeric or negative field, on a
            zero market price, or when all costs add up to zero.
    """
    empty = find_empty_field(data)
    if empty is not None:
        raise EconomicsInputError(EMPTY_FIELDS_MESSAGE, empty)
    amounts = {field: _parse_amount(field, getattr(data, field)) for field in NUMERIC_FIELDS}
    if amounts["market_price"] == 0:
        raise EconomicsInputError(ZERO_PRICE_MESSAGE, "market_price")
    if sum(amounts[field] for field in COST_FIELDS) == 0:
        raise EconomicsInputError(ZERO_COSTS_MESSAGE, "seed_cost")
    return FarmEconomicsFigures(
        crop_name=data.crop_name.strip(),
        area_unit=data.area_unit.strip(),
        yield_unit=data.yield_unit.strip(),
        **amounts,
    )


def compute_economics(figures: FarmEconomicsFigures) -> EconomicsMetrics:
    """
    Derive the farm metrics from validated figures.

    Raises:
        EconomicsInputError: when costs or price are zero, or when the amounts
            are so large that a metric would not be a finite number.
    """
    try:
        total_costs = math.fsum(getattr(figures, field) for field in COST_FIELDS)
    except OverflowError:
        raise EconomicsInputError(TOO_LARGE_MESSAGE, "seed_cost") from None
    if total_costs <= 0:
        raise EconomicsInputError(ZERO_COSTS_MESSAGE, "seed_cost")
    if figures.market_price <= 0:
        raise EconomicsInputError(ZERO_PRICE_MESSAGE, "market_price")
    revenue = figures.expected_yield * figures.market_price
    profit = revenue - total_costs
    values = {
        "total_variable_costs": total_costs,
        "total_revenue": revenue,
        "profit": profit,
        "return_on_investment": profit / total_costs * 100,
        "break_even_yield": total_costs / figures.market_price,
    }
    for name, value in values.items():
        if not math.isfinite(value):
            raise EconomicsInputError(TOO_LARGE_MESSAGE, _OVERFLOW_FIELDS[name])
    return EconomicsMetrics(**values)


def calculate_economics(data: FarmEconomicsInput) -> EconomicsMetrics:
    return compute_economics(parse_economics_input(data))


def metrics_mismatch(
    expected: EconomicsMetrics,
    reported: EconomicsMetrics,
    *,
    rel_tol: float = 1e-6,
    abs_tol: float = 5e-3,
) -> Dict[str, Dict[str, float]]:
    """
    Fields where a model-reported figure differs from the local computation.

    The default ``abs_tol`` accepts figures the model rounded to two decimals.
    """
    diffs: Dict[str, Dict[str, float]] = {}
    for field in EconomicsMetrics.model_fields:
        want = getattr(expected, field)
        got = getattr(reported, field)
        if not math.isclose(want, got, rel_tol=rel_tol, abs_tol=abs_tol):
            diffs[field] = {"expected": want, "reported": got}
    return diffs
