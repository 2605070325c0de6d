from langchain_core.language_models import BaseChatModel
from langchain_google_genai import (
    ChatGoogleGenerativeAI,
    HarmBlockThreshold,
    HarmCategory,
)
from langchain_openai import ChatOpenAI

from .config import get_config, require_api_key

SAFETY_SETTINGS = {
    HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
}


def get_chat_model() -> BaseChatModel:
    cfg = get_config()
    api_key = require_api_key(cfg)
    if cfg.llm_provider == "gemini":
        return ChatGoogleGenerativeAI(
            model=cfg.gemini_model,
            google_api_key=api_key,
            temperature=cfg.temperature,
            top_p=cfg.top_p,
            top_k=cfg.top_k,
            safety_settings=SAFETY_SETTINGS,
        )
    if cfg.llm_provider == "openai":
        # top-k and safety thresholds have no OpenAI counterpart
        kwargs = {
            "api_key": api_key,
            "temperature": cfg.temperature,
            "top_p": cfg.top_p,
            "model": cfg.openai_model,
        }
        if cfg.openai_api_base:
            kwargs["base_url"] = cfg.openai_api_base
        return ChatOpenAI(**kwargs)
    raise ValueError(
        f"Unsupported LLM_PROVIDER: {cfg.llm_provider}. Supported: gemini, openai"
    )
