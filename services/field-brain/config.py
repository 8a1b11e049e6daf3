"""Environment-based configuration for the field brain (extraction orchestrator)."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Field brain settings, loaded from environment variables."""

    # Server
    PORT: int = 8092

    # LLM endpoint (OpenAI-compatible; empty = extraction unavailable)
    LLM_BASE_URL: str = ""
    LLM_API_KEY: str = ""
    LLM_MODEL: str = "gpt-4.1"
    LLM_TEMPERATURE: float = 0.0

    # LLM timeouts and retry (1 attempt = no retry)
    LLM_TIMEOUT_SECONDS: int = 120
    LLM_CONNECT_TIMEOUT: int = 10
    LLM_RETRY_ATTEMPTS: int = 1
    LLM_RETRY_DELAY: float = 1.0
    LLM_RETRY_BACKOFF: float = 2.0

    # Canned candidates instead of the LLM (local dev)
    USE_MOCK_EXTRACTION: bool = False

    # Pipeline
    MAX_CHUNK_CHARS: int = 4000
    STRICT_VALIDATION: bool = False

    # Client side
    CACHE_MAX_ENTRIES: int = 100
    RENDER_CHUNK_BYTES: int = 1024 * 1024
    DEBOUNCE_SECONDS: float = 0.5
    ANALYSIS_SERVICE_URL: str = "http://localhost:8092"

    model_config = {"env_prefix": "", "case_sensitive": True}


settings = Settings()
