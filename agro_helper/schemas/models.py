from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Wire models use the camelCase keys the browser client sends."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TextPart(BaseModel):
    text: str


class ConversationTurn(BaseModel):
    """One chat message tagged by sender role."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "model"]
    parts: List[TextPart] = Field(default_factory=list)

    @classmethod
    def of(cls, role: str, text: str) -> "ConversationTurn":
        return cls(role=role, parts=[TextPart(text=text)])

    @property
    def text(self) -> str:
        return "".join(part.text for part in self.parts)


class AdviceRequest(CamelModel):
    history: List[ConversationTurn] = Field(default_factory=list)
    new_prompt: str


class AnalyzePlantRequest(CamelModel):
    """Transient diagnostic payload; the image is never stored."""

    prompt: str = ""
    image_base64: str
    mime_type: str


class WeatherRequest(CamelModel):
    location: str


class NutritionRequest(CamelModel):
    crop: str
    soil: str
    symptoms: str


class FarmEconomicsInput(CamelModel):
    """Economics record on the wire: all twelve fields, as typed by the user."""

    crop_name: str
    area: str
    area_unit: str
    seed_cost: str
    fertilizer_cost: str
    pesticide_cost: str
    labor_cost: str
    machinery_cost: str
    other_costs: str
    expected_yield: str
    yield_unit: str
    market_price: str


class FarmEconomicsDraft(FarmEconomicsInput):
    """Economics form being filled in; units start preselected."""

    crop_name: str = ""
    area: str = ""
    area_unit: str = "га"
    seed_cost: str = ""
    fertilizer_cost: str = ""
    pesticide_cost: str = ""
    labor_cost: str = ""
    machinery_cost: str = ""
    other_costs: str = ""
    expected_yield: str = ""
    yield_unit: str = "тонн"
    market_price: str = ""


class EconomicsRequest(CamelModel):
    data: FarmEconomicsInput


class FarmEconomicsFigures(BaseModel):
    """Numeric view of a validated FarmEconomicsInput."""

    crop_name: str
    area: float
    area_unit: str
    seed_cost: float
    fertilizer_cost: float
    pesticide_cost: float
    labor_cost: float
    machinery_cost: float
    other_costs: float
    expected_yield: float
    yield_unit: str
    market_price: float


class EconomicsMetrics(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, allow_inf_nan=False
    )

    total_variable_costs: float
    total_revenue: float
    profit: float
    return_on_investment: float = Field(description="Profit over total costs, percent.")
    break_even_yield: float


class ModelEconomicsReport(EconomicsMetrics):
    """Schema the generation service must fill for the economics endpoint."""

    analysis: str = Field(
        description="Краткий текстовый анализ ситуации с рекомендациями."
    )


class FarmEconomicsResult(ModelEconomicsReport):
    error: Optional[str] = None


class TextResponse(BaseModel):
    text: str


class ErrorResponse(BaseModel):
    error: str
    field: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    provider: str
    model: str
