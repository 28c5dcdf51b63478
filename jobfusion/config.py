"""Application configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from jobfusion.constants import EXTERNAL_EXTRACTOR_TIMEOUT, LLM_TIMEOUT


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="JOBFUSION_",
        extra="ignore",
    )

    # Pipeline
    llm_enabled: bool = Field(default=False, description="Allow the LLM fallback stage")
    debug: bool = Field(default=False, description="Log final results and stage timings")
    extractor_timeout: float = Field(
        default=EXTERNAL_EXTRACTOR_TIMEOUT,
        description="Timeout for ML/LLM extractor calls (seconds)",
    )

    # Output
    output_format: str = Field(default="json", description="Output format (json/csv)")

    # LLM settings
    llm_provider: str = Field(default="openrouter", description="LLM provider")
    llm_model: str = Field(default="openai/gpt-4o-mini", description="LLM model")
    llm_timeout: float = Field(default=LLM_TIMEOUT, description="HTTP timeout for LLM requests")
    ollama_url: str = Field(
        default="http://localhost:11434", description="Ollama server URL"
    )

    # OpenRouter
    openrouter_api_key: str = Field(default="", description="OpenRouter API key")


settings = Settings()
