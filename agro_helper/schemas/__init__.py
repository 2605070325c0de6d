from .models import (
    AdviceRequest,
    AnalyzePlantRequest,
    ConversationTurn,
    EconomicsMetrics,
    EconomicsRequest,
    ErrorResponse,
    FarmEconomicsDraft,
    FarmEconomicsFigures,
    FarmEconomicsInput,
    FarmEconomicsResult,
    HealthResponse,
    ModelEconomicsReport,
    NutritionRequest,
    TextPart,
    TextResponse,
    WeatherRequest,
)

__all__ = [
    "AdviceRequest",
    "AnalyzePlantRequest",
    "ConversationTurn",
    "EconomicsMetrics",
    "EconomicsRequest",
    "ErrorResponse",
    "FarmEconomicsDraft",
    "FarmEconomicsFigures",
    "FarmEconomicsInput",
    "FarmEconomicsResult",
    "HealthResponse",
    "ModelEconomicsReport",
    "NutritionRequest",
    "TextPart",
    "TextResponse",
    "WeatherRequest",
]
