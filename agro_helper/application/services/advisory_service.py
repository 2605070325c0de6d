from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from langchain_core.messages import BaseMessage, HumanMessage

from ...domain.economics import compute_economics, metrics_mismatch, parse_economics_input
from ...infra.llm import get_chat_model
from ...infra.llm_structured import llm_structured_generate, message_text
from ...observability.logging_utils import log_event, summarize_text
from ...observability.otel import build_span_attributes, record_exception, start_span
from ...prompts.advisory import (
    build_economics_prompt,
    build_image_message,
    build_nutrition_prompt,
    build_weather_prompt,
    history_to_messages,
)
from ...schemas.models import (
    ConversationTurn,
    FarmEconomicsInput,
    FarmEconomicsResult,
    ModelEconomicsReport,
)

ENDPOINT_ERRORS: Dict[str, str] = {
    "advice": "Failed to get advice from Gemini API",
    "analyze-plant": "Failed to analyze image with Gemini API",
    "weather": "Failed to get weather from Gemini API",
    "nutrition": "Failed to get nutrition plan from Gemini API",
    "economics": "Failed to calculate economics with Gemini API",
}


class AdvisoryError(RuntimeError):
    """An upstream call failed; carries the fixed message for its endpoint."""

    def __init__(self, endpoint: str):
        self.endpoint = endpoint
        self.message = ENDPOINT_ERRORS[endpoint]
        super().__init__(self.message)


class EmptyGenerationError(RuntimeError):
    pass


def _fail(endpoint: str, exc: BaseException) -> AdvisoryError:
    log_event(
        "advisory_error",
        level=logging.ERROR,
        endpoint=endpoint,
        error_type=type(exc).__name__,
        error=summarize_text(str(exc)),
    )
    return AdvisoryError(endpoint)


class AdvisoryGateway:
    """Relay each advisory request to the generation service, one call per request."""

    async def _generate(self, endpoint: str, messages: List[BaseMessage]) -> str:
        attrs: Dict[str, object] = {"advisory.endpoint": endpoint}
        attrs.update(
            build_span_attributes(
                "advisory.input", [message_text(message) for message in messages]
            )
        )
        log_event(
            "advisory_call",
            endpoint=endpoint,
            turns=len(messages),
            prompt_summary=summarize_text(message_text(messages[-1])),
        )
        failure: Optional[BaseException] = None
        with start_span(f"advisory.{endpoint}", attributes=attrs) as span:
            try:
                reply = await get_chat_model().ainvoke(messages)
                text = message_text(reply)
                if not text.strip():
                    raise EmptyGenerationError("generation service returned no text")
                span.set_attribute("advisory.output.size", len(text))
            except Exception as exc:
                record_exception(span, exc)
                failure = exc
        if failure is not None:
            raise _fail(endpoint, failure) from failure
        log_event(
            "advisory_response",
            endpoint=endpoint,
            response_summary=summarize_text(text),
        )
        return text

    async def get_advice(
        self, history: Iterable[ConversationTurn], new_prompt: str
    ) -> str:
        return await self._generate("advice", history_to_messages(history, new_prompt))

    async def analyze_image(self, prompt: str, image_base64: str, mime_type: str) -> str:
        message = build_image_message(prompt, image_base64, mime_type)
        return await self._generate("analyze-plant", [message])

    async def get_weather(self, location: str) -> str:
        return await self._generate(
            "weather", [HumanMessage(content=build_weather_prompt(location))]
        )

    async def get_nutrition_plan(self, crop: str, soil: str, symptoms: str) -> str:
        prompt = build_nutrition_prompt(crop, soil, symptoms)
        return await self._generate("nutrition", [HumanMessage(content=prompt)])

    async def get_economics(self, data: FarmEconomicsInput) -> FarmEconomicsResult:
        """
        Compute the farm metrics locally and ask the model only for the narrative.

        Raises:
            EconomicsInputError: when the form data is incomplete or invalid;
                nothing is sent upstream in that case.
            AdvisoryError: when the model call fails or returns an invalid report.
        """
        metrics = compute_economics(parse_economics_input(data))
        prompt = build_economics_prompt(data, metrics)
        attrs: Dict[str, object] = {"advisory.endpoint": "economics"}
        attrs.update(build_span_attributes("advisory.input", prompt))
        log_event("advisory_call", endpoint="economics", crop=data.crop_name)
        failure: Optional[BaseException] = None
        with start_span("advisory.economics", attributes=attrs) as span:
            try:
                report = await llm_structured_generate(
                    [HumanMessage(content=prompt)],
                    schema=ModelEconomicsReport,
                    llm=get_chat_model(),
                )
                if not report.analysis.strip():
                    raise EmptyGenerationError("economics report has no analysis")
            except Exception as exc:
                record_exception(span, exc)
                failure = exc
        if failure is not None:
            raise _fail("economics", failure) from failure

        diffs = metrics_mismatch(metrics, report)
        if diffs:
            log_event("economics_mismatch", level=logging.WARNING, fields=diffs)
        log_event(
            "advisory_response",
            endpoint="economics",
            response_summary=summarize_text(report.analysis),
        )
        return FarmEconomicsResult(
            **metrics.model_dump(), analysis=report.analysis.strip()
        )
