from .economics import (
    EconomicsInputError,
    calculate_economics,
    compute_economics,
    parse_economics_input,
)

__all__ = [
    "EconomicsInputError",
    "calculate_economics",
    "compute_economics",
    "parse_economics_input",
]
