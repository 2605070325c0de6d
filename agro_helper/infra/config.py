from functools import lru_cache
from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MissingApiKeyError(RuntimeError):
    """Raised at startup when the generation service key is not configured."""


class AppConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    llm_provider: str = Field(default="gemini", validation_alias="LLM_PROVIDER")
    gemini_api_key: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("GEMINI_API_KEY", "API_KEY")
    )
    gemini_model: str = Field(
        default="gemini-2.5-flash", validation_alias="GEMINI_MODEL"
    )
    openai_api_key: Optional[str] = Field(default=None, validation_alias="OPENAI_API_KEY")
    openai_api_base: Optional[str] = Field(
        default=None, validation_alias="OPENAI_API_BASE"
    )
    openai_model: str = Field(default="gpt-4.1-mini", validation_alias="OPENAI_MODEL")
    temperature: float = Field(default=0.7, validation_alias="LLM_TEMPERATURE")
    top_p: float = Field(default=0.95, validation_alias="LLM_TOP_P")
    top_k: int = Field(default=64, validation_alias="LLM_TOP_K")
    port: int = Field(default=3001, validation_alias="PORT")
    cors_origins: str = Field(default="*", validation_alias="CORS_ORIGINS")
    max_request_bytes: int = Field(
        default=10 * 1024 * 1024, validation_alias="MAX_REQUEST_BYTES"
    )
    log_path: Optional[str] = Field(default=None, validation_alias="LOG_PATH")
    backend_url: str = Field(
        default="http://localhost:3001", validation_alias="BACKEND_URL"
    )
    client_timeout_seconds: float = Field(
        default=60.0, validation_alias="CLIENT_TIMEOUT_SECONDS"
    )

    @field_validator("llm_provider", mode="after")
    @classmethod
    def normalize_llm_provider(cls, value: str) -> str:
        return value.lower() if value else value

    @field_validator("backend_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/") if value else value

    @property
    def cors_origin_list(self) -> List[str]:
        return [item.strip() for item in self.cors_origins.split(",") if item.strip()]

    @property
    def model_name(self) -> str:
        if self.llm_provider == "openai":
            return self.openai_model
        return self.gemini_model

    @property
    def api_key(self) -> Optional[str]:
        if self.llm_provider == "openai":
            return self.openai_api_key
        return self.gemini_api_key


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    return AppConfig()


def require_api_key(cfg: Optional[AppConfig] = None) -> str:
    cfg = cfg or get_config()
    key = (cfg.api_key or "").strip()
    if not key:
        env_name = "OPENAI_API_KEY" if cfg.llm_provider == "openai" else "GEMINI_API_KEY"
        raise MissingApiKeyError(f"{env_name} environment variable not set")
    return key
