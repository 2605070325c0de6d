from __future__ import annotations

from typing import Optional, Sequence, Type, TypeVar

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage
from pydantic import BaseModel

from .llm import get_chat_model

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class StructuredOutputError(ValueError):
    """The model returned nothing usable for the requested schema."""


async def llm_structured_generate(
    messages: Sequence[BaseMessage],
    *,
    schema: Type[SchemaT],
    llm: Optional[BaseChatModel] = None,
) -> SchemaT:
    model = llm or get_chat_model()
    generator = model.with_structured_output(schema)
    result = await generator.ainvoke(list(messages))
    if result is None:
        raise StructuredOutputError(f"empty structured output for {schema.__name__}")
    if isinstance(result, schema):
        return result
    if isinstance(result, dict):
        return schema.model_validate(result)
    if isinstance(result, BaseModel):
        return schema.model_validate(result.model_dump())
    raise StructuredOutputError(
        f"unexpected structured output type {type(result).__name__}"
    )


def message_text(message: object) -> str:
    """Flatten a chat model reply into plain text."""
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for item in content:
            if isinstance(item, str):
                parts.append(item)
            elif isinstance(item, dict) and item.get("type") == "text":
                parts.append(str(item.get("text", "")))
        return "".join(parts)
    return "" if content is None else str(content)
