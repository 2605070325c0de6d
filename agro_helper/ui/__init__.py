from .client import AdvisoryClient, AdvisoryClientError
from .forms import (
    ChatSession,
    DiagnosticsForm,
    EconomicsForm,
    NutritionForm,
    WeatherForm,
)
from .markdown import parse_blocks, render_html, render_markdown

__all__ = [
    "AdvisoryClient",
    "AdvisoryClientError",
    "ChatSession",
    "DiagnosticsForm",
    "EconomicsForm",
    "NutritionForm",
    "WeatherForm",
    "parse_blocks",
    "render_html",
    "render_markdown",
]
