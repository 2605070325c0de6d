"""
State behind the five advisory forms.

Each form owns a loading flag, an error string and its last result. Local
validation rejects bad input with a literal message before any request is made;
an upstream failure replaces only ``error`` and keeps earlier results intact.
"""

from __future__ import annotations

import base64
from typing import Awaitable, Callable, List, Optional, Tuple, TypeVar

from ..domain.economics import EconomicsInputError, calculate_economics
from ..prompts.advisory import DEFAULT_DIAGNOSTICS_PROMPT, QUICK_PROMPTS
from ..schemas.models import (
    ConversationTurn,
    FarmEconomicsDraft,
    FarmEconomicsInput,
    FarmEconomicsResult,
)
from .client import AdvisoryClient, AdvisoryClientError
from .markdown import Block, parse_blocks

ResultT = TypeVar("ResultT")

CHAT_FAILURE_MESSAGE = "Извините, что-то пошло не так. Пожалуйста, попробуйте еще раз."
IMAGE_REQUIRED_MESSAGE = "Пожалуйста, сначала загрузите изображение."
IMAGE_FORMAT_MESSAGE = "Поддерживаются изображения PNG и JPG размером до 10 МБ."
DIAGNOSTICS_FAILURE_MESSAGE = (
    "Во время анализа произошла ошибка. Пожалуйста, попробуйте еще раз."
)
LOCATION_REQUIRED_MESSAGE = "Пожалуйста, введите местоположение."
WEATHER_FAILURE_MESSAGE = (
    "Не удалось получить погодные рекомендации. Пожалуйста, попробуйте еще раз."
)
FIELDS_REQUIRED_MESSAGE = "Пожалуйста, заполните все поля."
NUTRITION_FAILURE_MESSAGE = (
    "Не удалось создать план питания. Пожалуйста, попробуйте еще раз."
)
ECONOMICS_FAILURE_MESSAGE = (
    "Не удалось обработать экономический анализ. ИИ вернул неверный формат."
)

ALLOWED_IMAGE_TYPES = ("image/png", "image/jpeg")
MAX_IMAGE_BYTES = 10 * 1024 * 1024


class FormState:
    def __init__(self, client: AdvisoryClient):
        self.client = client
        self.is_loading = False
        self.error = ""

    def reject(self, message: str) -> None:
        self.error = message

    async def _request(
        self, call: Callable[[], Awaitable[ResultT]], failure_message: str
    ) -> Tuple[bool, Optional[ResultT]]:
        self.is_loading = True
        self.error = ""
        try:
            return True, await call()
        except AdvisoryClientError:
            self.error = failure_message
            return False, None
        finally:
            self.is_loading = False


class TextResultForm(FormState):
    def __init__(self, client: AdvisoryClient):
        super().__init__(client)
        self.result = ""

    @property
    def blocks(self) -> List[Block]:
        return parse_blocks(self.result)

    async def _submit_text(
        self, call: Callable[[], Awaitable[str]], failure_message: str
    ) -> bool:
        ok, text = await self._request(call, failure_message)
        if ok:
            self.result = text or ""
        return ok


class ChatSession(FormState):
    """Advisor chat; the transcript only ever grows by a user/model pair."""

    quick_prompts = QUICK_PROMPTS

    def __init__(self, client: AdvisoryClient):
        super().__init__(client)
        self._history: List[ConversationTurn] = []
        self.pending_prompt: Optional[str] = None

    @property
    def history(self) -> Tuple[ConversationTurn, ...]:
        return tuple(self._history)

    async def send(self, prompt: str) -> Optional[str]:
        if not prompt.strip() or self.is_loading:
            return None
        self.pending_prompt = prompt
        snapshot = tuple(self._history)
        try:
            ok, reply = await self._request(
                lambda: self.client.get_general_advice(snapshot, prompt),
                CHAT_FAILURE_MESSAGE,
            )
        finally:
            self.pending_prompt = None
        if not ok:
            return None
        self._history.append(ConversationTurn.of("user", prompt))
        self._history.append(ConversationTurn.of("model", reply))
        return reply


class DiagnosticsForm(TextResultForm):
    def __init__(self, client: AdvisoryClient):
        super().__init__(client)
        self.prompt = DEFAULT_DIAGNOSTICS_PROMPT
        self.image_base64 = ""
        self.mime_type = ""

    def set_image(self, data: bytes, mime_type: str) -> bool:
        if mime_type not in ALLOWED_IMAGE_TYPES or len(data) > MAX_IMAGE_BYTES:
            self.reject(IMAGE_FORMAT_MESSAGE)
            return False
        self.image_base64 = base64.b64encode(data).decode("ascii")
        self.mime_type = mime_type
        self.error = ""
        return True

    async def submit(self) -> bool:
        if self.is_loading:
            return False
        if not self.image_base64:
            self.reject(IMAGE_REQUIRED_MESSAGE)
            return False
        return await self._submit_text(
            lambda: self.client.analyze_plant_image(
                self.prompt, self.image_base64, self.mime_type
            ),
            DIAGNOSTICS_FAILURE_MESSAGE,
        )


class WeatherForm(TextResultForm):
    def __init__(self, client: AdvisoryClient):
        super().__init__(client)
        self.location = ""

    async def submit(self) -> bool:
        if self.is_loading:
            return False
        location = self.location.strip()
        if not location:
            self.reject(LOCATION_REQUIRED_MESSAGE)
            return False
        return await self._submit_text(
            lambda: self.client.get_weather_recommendations(location),
            WEATHER_FAILURE_MESSAGE,
        )


class NutritionForm(TextResultForm):
    def __init__(self, client: AdvisoryClient):
        super().__init__(client)
        self.crop = ""
        self.soil = ""
        self.symptoms = ""

    async def submit(self) -> bool:
        if self.is_loading:
            return False
        if not (self.crop.strip() and self.soil.strip() and self.symptoms.strip()):
            self.reject(FIELDS_REQUIRED_MESSAGE)
            return False
        return await self._submit_text(
            lambda: self.client.get_nutrition_plan(self.crop, self.soil, self.symptoms),
            NUTRITION_FAILURE_MESSAGE,
        )


class EconomicsForm(FormState):
    def __init__(self, client: AdvisoryClient):
        super().__init__(client)
        self.data: FarmEconomicsInput = FarmEconomicsDraft()
        self.result: Optional[FarmEconomicsResult] = None

    def update(self, **fields: str) -> None:
        self.data = self.data.model_copy(update=fields)

    @property
    def can_submit(self) -> bool:
        return all(value.strip() for value in self.data.model_dump().values())

    @property
    def analysis_blocks(self) -> List[Block]:
        return parse_blocks(self.result.analysis) if self.result else []

    async def submit(self) -> bool:
        if self.is_loading:
            return False
        try:
            calculate_economics(self.data)
        except EconomicsInputError as exc:
            self.reject(exc.message)
            return False
        data = self.data
        ok, result = await self._request(
            lambda: self.client.calculate_economics(data), ECONOMICS_FAILURE_MESSAGE
        )
        if not ok:
            return False
        if result.error:
            self.error = result.error
            return False
        self.result = result
        return True
