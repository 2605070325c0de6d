from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional

import httpx
from pydantic import ValidationError

from ..infra.config import get_config
from ..observability.logging_utils import (
    TRACE_HEADER,
    log_event,
    summarize_text,
    trace_scope,
)
from ..schemas.models import ConversationTurn, FarmEconomicsInput, FarmEconomicsResult

NETWORK_ERROR_MESSAGE = "Произошла сетевая ошибка."
SERVER_ERROR_MESSAGE = "Ошибка сервера"
BAD_FORMAT_MESSAGE = "Сервер вернул неверный формат ответа."


class AdvisoryClientError(RuntimeError):
    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AdvisoryClient:
    """Async HTTP client for the advisory backend, one POST per call."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        cfg = get_config()
        self.base_url = (base_url or cfg.backend_url).rstrip("/")
        self.timeout = timeout if timeout is not None else cfg.client_timeout_seconds
        self._transport = transport

    async def _post(self, endpoint: str, body: Dict[str, Any]) -> httpx.Response:
        with trace_scope() as trace_id:
            return await self._send(endpoint, body, trace_id)

    async def _send(
        self, endpoint: str, body: Dict[str, Any], trace_id: str
    ) -> httpx.Response:
        log_event("client_request", endpoint=endpoint)
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    endpoint, json=body, headers={TRACE_HEADER: trace_id}
                )
        except httpx.HTTPError as exc:
            log_event(
                "client_error", level=logging.ERROR, endpoint=endpoint, error=str(exc)
            )
            raise AdvisoryClientError(NETWORK_ERROR_MESSAGE) from exc
        if response.is_success:
            return response
        try:
            message = response.json().get("error") or SERVER_ERROR_MESSAGE
        except (ValueError, AttributeError):
            message = SERVER_ERROR_MESSAGE
        log_event(
            "client_error",
            level=logging.ERROR,
            endpoint=endpoint,
            status=response.status_code,
            error=summarize_text(message),
        )
        raise AdvisoryClientError(message, status_code=response.status_code)

    async def _post_text(self, endpoint: str, body: Dict[str, Any]) -> str:
        response = await self._post(endpoint, body)
        try:
            return str(response.json()["text"])
        except (ValueError, KeyError, TypeError) as exc:
            raise AdvisoryClientError(BAD_FORMAT_MESSAGE) from exc

    async def get_general_advice(
        self, history: Iterable[ConversationTurn], new_prompt: str
    ) -> str:
        payload = [turn.model_dump() for turn in history]
        return await self._post_text(
            "/api/advice", {"history": payload, "newPrompt": new_prompt}
        )

    async def analyze_plant_image(
        self, prompt: str, image_base64: str, mime_type: str
    ) -> str:
        return await self._post_text(
            "/api/analyze-plant",
            {"prompt": prompt, "imageBase64": image_base64, "mimeType": mime_type},
        )

    async def get_weather_recommendations(self, location: str) -> str:
        return await self._post_text("/api/weather", {"location": location})

    async def get_nutrition_plan(self, crop: str, soil: str, symptoms: str) -> str:
        return await self._post_text(
            "/api/nutrition", {"crop": crop, "soil": soil, "symptoms": symptoms}
        )

    async def calculate_economics(self, data: FarmEconomicsInput) -> FarmEconomicsResult:
        response = await self._post(
            "/api/economics", {"data": data.model_dump(by_alias=True)}
        )
        try:
            return FarmEconomicsResult.model_validate_json(response.content)
        except ValidationError as exc:
            raise AdvisoryClientError(BAD_FORMAT_MESSAGE) from exc
