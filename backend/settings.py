from pydantic import BaseModel
import os

from schemas import ExplanationSettings


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))
    cors_origins: str = os.getenv("CORS_ORIGINS", "*")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    openai_api_key: str | None = os.getenv("OPENAI_API_KEY") or None
    openai_base_url: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1/chat/completions")
    openai_model: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    llm_timeout_seconds: float = float(os.getenv("LLM_TIMEOUT_SECONDS", "30"))

    explain_concurrency: int = int(os.getenv("EXPLAIN_CONCURRENCY", "3"))
    explain_batch_delay_ms: int = int(os.getenv("EXPLAIN_BATCH_DELAY_MS", "100"))
    explain_max_length: int = int(os.getenv("EXPLAIN_MAX_LENGTH", "150"))
    explain_excellent: bool = _env_flag("EXPLAIN_EXCELLENT")
    explain_opening: bool = _env_flag("EXPLAIN_OPENING")
    explain_min_eval_change: float = float(os.getenv("EXPLAIN_MIN_EVAL_CHANGE", "5"))


settings = Settings()


def default_explanation_settings() -> ExplanationSettings:
    """Build the explanation policy settings from the environment-backed config."""
    return ExplanationSettings(
        max_length=settings.explain_max_length,
        explain_excellent=settings.explain_excellent,
        explain_opening=settings.explain_opening,
        min_eval_change=settings.explain_min_eval_change,
    )
