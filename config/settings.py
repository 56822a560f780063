"""Pydantic Settings: typed configuration with .env auto-loading."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from config.llm_config import LLMConfig


class Settings(BaseSettings):
    """Application configuration loaded from environment / .env file.

    Frozen: built once at startup and shared read-only by every request.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    # ── Service ──────────────────────────────────────────────
    service_port: int = 5000
    cors_origins: list[str] = ["*"]
    debug: bool = False
    log_level: str = "info"

    # ── LLM ──────────────────────────────────────────────────
    llm_model: str = "openai/gpt-3.5-turbo-1106"
    llm_max_tokens: int = 2000
    llm_temperature: float | None = None
    llm_max_concurrency: int = 10  # outbound LLM calls per worker

    # Provider API keys, passed to LiteLLM per call by model prefix
    openai_api_key: str = ""
    anthropic_api_key: str = ""

    # ── Evaluation ───────────────────────────────────────────
    request_timeout_seconds: float = 30.0
    clamp_rubric_scores: bool = False
    max_concurrent_answers: int = 15  # per worker, 503 beyond this

    # ── Questions ────────────────────────────────────────────
    default_event_name: str = "devopsdays_whenever"
    questions_dir: str = ""  # empty = bundled config/questions

    # ── Evaluation reporting (Deepchecks) ────────────────────
    deepchecks_api_key: str = ""
    deepchecks_base_url: str = "https://app.llm.deepchecks.com/api/v1/"
    deepchecks_env_type: str = "PROD"
    deepchecks_environment: str = ""  # custom prop, e.g. "Production"
    deepchecks_app_name: str = "Booth Game Quiz"
    deepchecks_app_version: str = "alpha"
    deepchecks_opinion_app_version_id: str = "1"
    deepchecks_timeout: int = 10  # seconds

    # ── Result storage ───────────────────────────────────────
    result_store_type: str = "memory"  # "memory" or "redis"
    redis_url: str = ""  # e.g. redis://:password@host:6379/0

    # ── Helpers ───────────────────────────────────────────────

    def get_default_llm_config(self) -> LLMConfig:
        """Build an :class:`LLMConfig` from global .env defaults."""
        return LLMConfig(
            model=self.llm_model,
            max_tokens=self.llm_max_tokens,
            temperature=self.llm_temperature,
        )


@lru_cache
def get_settings() -> Settings:
    """Singleton accessor for application settings."""
    return Settings()
