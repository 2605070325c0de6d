from __future__ import annotations

import json
from typing import Iterable, List

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage

from ..schemas.models import ConversationTurn, EconomicsMetrics, FarmEconomicsInput


DEFAULT_DIAGNOSTICS_PROMPT = (
    "Определи любые болезни, вредителей или дефицит питательных веществ "
    "на этом изображении и предложи варианты лечения."
)

QUICK_PROMPTS = [
    "Какой севооборот лучше всего подходит для моего региона?",
    "Как бороться с колорадским жуком органическими методами?",
    "Когда оптимальное время для посадки кукурузы в этом сезоне?",
    "Дайте несколько советов по сбережению воды для моей фермы.",
]


def build_weather_prompt(location: str) -> str:
    return (
        f"Предоставь подробный 5-дневный агропрогноз погоды для {location}. "
        "Включи максимальные/минимальные температуры, вероятность осадков, "
        "скорость ветра и влажность. На основе этого прогноза дай конкретные "
        "рекомендации по сельскохозяйственным работам, таким как посадка, "
        "опрыскивание, полив и сбор урожая. Отформатируй вывод с четкими заголовками."
    )


def build_nutrition_prompt(crop: str, soil: str, symptoms: str) -> str:
    return (
        "Я агроном. Мне нужен план питания растений и внесения удобрений. "
        f"- Культура: {crop} - Описание почвы: {soil} "
        f"- Наблюдаемые симптомы дефицита: {symptoms}. "
        "На основе этого предоставь подробную рекомендацию. Включи: "
        "1. Вероятные дефициты питательных веществ. "
        "2. Рекомендуемые удобрения (как органические, так и химические варианты, если возможно). "
        "3. Нормы и сроки внесения. "
        "4. Общие советы по улучшению здоровья почвы. "
        "Отформатируй ответ в виде четких, действенных шагов."
    )


def build_diagnostics_prompt(prompt: str) -> str:
    prompt = (prompt or "").strip()
    return prompt or DEFAULT_DIAGNOSTICS_PROMPT


def build_economics_prompt(data: FarmEconomicsInput, metrics: EconomicsMetrics) -> str:
    raw = json.dumps(data.model_dump(by_alias=True), ensure_ascii=False, indent=2)
    figures = json.dumps(metrics.model_dump(by_alias=True), ensure_ascii=False, indent=2)
    return (
        "Проанализируй следующие экономические данные фермы и предоставь сводку. "
        f"Данные: {raw}. "
        f"Показатели уже рассчитаны: {figures}. "
        "Пожалуйста, верни объект JSON со следующей структурой: "
        '{ "totalVariableCosts": number, "totalRevenue": number, "profit": number, '
        '"returnOnInvestment": number, "breakEvenYield": number, '
        '"analysis": "Краткий текстовый анализ ситуации с рекомендациями." }. '
        "Числовые поля заполни рассчитанными показателями без изменений."
    )


def history_to_messages(
    history: Iterable[ConversationTurn], new_prompt: str
) -> List[BaseMessage]:
    messages: List[BaseMessage] = []
    for turn in history:
        if turn.role == "user":
            messages.append(HumanMessage(content=turn.text))
        else:
            messages.append(AIMessage(content=turn.text))
    messages.append(HumanMessage(content=new_prompt))
    return messages


def build_image_message(prompt: str, image_base64: str, mime_type: str) -> HumanMessage:
    return HumanMessage(
        content=[
            {"type": "text", "text": build_diagnostics_prompt(prompt)},
            {
                "type": "image_url",
                "image_url": {"url": f"data:{mime_type};base64,{image_base64}"},
            },
        ]
    )
