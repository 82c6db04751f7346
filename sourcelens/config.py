"""SourceLens configuration, loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "SOURCELENS_", "env_file": ".env"}

    # LLM API keys
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    google_api_key: str = ""

    # Provider endpoints
    openai_base_url: str = "https://api.openai.com/v1"
    anthropic_base_url: str = "https://api.anthropic.com/v1"
    google_base_url: str = "https://generativelanguage.googleapis.com/v1beta"

    # Model selection
    default_model_id: str = "gemini-flash-lite"
    # Ordered fallback candidates per task kind; only the first usable one is tried
    fallback_models: dict[str, list[str]] = {
        "sectioned_analysis": ["claude-haiku", "gpt-4o-mini"],
        "span_highlight": ["gpt-4o-mini", "claude-haiku"],
        "topic_distribution": ["gpt-4o-mini", "claude-haiku"],
    }

    # Provider calls
    request_timeout: float = 120.0
    retry_max_attempts: int = 2
    retry_base_delay: float = 1.0
    retry_max_delay: float = 20.0
    # Whole-request bound, fallback included
    pipeline_timeout: float = 300.0

    # Generation cache (0 disables caching)
    cache_capacity: int = 0

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:3000"]
    log_level: str = "INFO"


settings = Settings()
