from __future__ import annotations

CURRENCY_SIGN = "₽"
_GROUP_SEPARATOR = " "


def format_currency(value: float) -> str:
    """Whole roubles with grouped thousands, e.g. ``1 750 000 ₽``."""
    grouped = f"{round(value):,}".replace(",", _GROUP_SEPARATOR)
    return f"{grouped}{_GROUP_SEPARATOR}{CURRENCY_SIGN}"


def format_percent(value: float) -> str:
    return f"{value:.2f}%"


def format_quantity(value: float, unit: str) -> str:
    return f"{value:.2f} {unit}".rstrip()
