from pathlib import Path
from typing import Dict

import chainlit as cl

from agro_helper.domain.economics import FIELD_LABELS
from agro_helper.infra.config import get_config
from agro_helper.observability.logging_utils import init_logging
from agro_helper.observability.otel import init_otel, instrument_httpx
from agro_helper.ui import (
    AdvisoryClient,
    ChatSession,
    DiagnosticsForm,
    EconomicsForm,
    NutritionForm,
    WeatherForm,
)
from agro_helper.ui.formatting import format_currency, format_percent, format_quantity
from agro_helper.ui.markdown import parse_blocks, render_markdown

PROFILES = {
    "advisor": ("ИИ-советник", "Задайте свой вопрос по сельскому хозяйству."),
    "diagnostics": (
        "Диагностика",
        "Прикрепите фото растения (PNG, JPG до 10МБ) и, при желании, опишите проблему.",
    ),
    "weather": ("Погода", "Введите местоположение для агропрогноза на 5 дней."),
    "nutrition": (
        "Питание",
        "Отправьте три строки:\nкультура: ...\nпочва: ...\nсимптомы: ...",
    ),
    "economics": (
        "Экономика",
        "Отправьте поля построчно в виде «название: значение». Поля:\n"
        + "\n".join(f"- {label}" for label in FIELD_LABELS.values()),
    ),
}

init_logging(log_path=get_config().log_path)
init_otel("agro-helper-ui")
instrument_httpx()

NUTRITION_KEYS = {"культура": "crop", "почва": "soil", "симптомы": "symptoms"}
ECONOMICS_KEYS = {label.lower(): field for field, label in FIELD_LABELS.items()}
FORMS = {
    "advisor": ChatSession,
    "diagnostics": DiagnosticsForm,
    "weather": WeatherForm,
    "nutrition": NutritionForm,
    "economics": EconomicsForm,
}


def parse_field_lines(text: str, keys: Dict[str, str]) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for line in text.splitlines():
        if ":" not in line:
            continue
        name, value = line.split(":", 1)
        field = keys.get(name.strip().lower())
        if field:
            values[field] = value.strip()
    return values


@cl.set_chat_profiles
async def chat_profiles():
    return [
        cl.ChatProfile(name=name, markdown_description=description)
        for name, (_, description) in PROFILES.items()
    ]


@cl.on_chat_start
async def start():
    profile = cl.user_session.get("chat_profile") or "advisor"
    form = FORMS[profile](AdvisoryClient())
    cl.user_session.set("form", form)
    title, description = PROFILES[profile]
    content = f"## {title}\n{description}"
    if profile == "advisor":
        content += "\n\n" + "\n".join(f"* {p}" for p in ChatSession.quick_prompts)
    await cl.Message(content=content).send()


async def _send_blocks(form) -> None:
    if form.error:
        await cl.Message(content=form.error).send()
        return
    await cl.Message(content=render_markdown(form.blocks)).send()


async def _send_economics(form: EconomicsForm) -> None:
    if form.error:
        await cl.Message(content=form.error).send()
        return
    result = form.result
    lines = [
        "## Финансовый отчет",
        f"* **Прибыль:** {format_currency(result.profit)}",
        f"* **Общая выручка:** {format_currency(result.total_revenue)}",
        f"* **Общие затраты:** {format_currency(result.total_variable_costs)}",
        f"* **Рентабельность (ROI):** {format_percent(result.return_on_investment)}",
        "* **Точка безубыточности (урожай):** "
        + format_quantity(result.break_even_yield, form.data.yield_unit),
    ]
    lines.append("### Анализ и рекомендации от ИИ")
    blocks = parse_blocks("\n".join(lines)) + form.analysis_blocks
    await cl.Message(content=render_markdown(blocks)).send()


@cl.on_message
async def on_message(message: cl.Message):
    form = cl.user_session.get("form")
    text = message.content or ""

    if isinstance(form, ChatSession):
        reply = await form.send(text)
        if reply is None:
            if form.error:
                await cl.Message(content=form.error).send()
            return
        await cl.Message(content=render_markdown(parse_blocks(reply))).send()
        return

    if isinstance(form, DiagnosticsForm):
        for element in message.elements or []:
            mime = getattr(element, "mime", "") or ""
            if mime.startswith("image/") and element.path:
                if not form.set_image(Path(element.path).read_bytes(), mime):
                    await cl.Message(content=form.error).send()
                    return
                break
        if text.strip():
            form.prompt = text
        await form.submit()
        await _send_blocks(form)
        return

    if isinstance(form, WeatherForm):
        form.location = text
        await form.submit()
        await _send_blocks(form)
        return

    if isinstance(form, NutritionForm):
        values = parse_field_lines(text, NUTRITION_KEYS)
        for field, value in values.items():
            setattr(form, field, value)
        await form.submit()
        await _send_blocks(form)
        return

    if isinstance(form, EconomicsForm):
        form.update(**parse_field_lines(text, ECONOMICS_KEYS))
        await form.submit()
        await _send_economics(form)
