import os

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    openai_api_key: str = Field(default="", validation_alias="OPENAI_API_KEY")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        validation_alias="OPENAI_BASE_URL",
    )
    openai_model: str = Field(default="gpt-4o", validation_alias="OPENAI_MODEL")
    openai_temperature: float = Field(
        default=0.5,
        validation_alias="OPENAI_TEMPERATURE",
        description="Sampling temperature for diet and workout recommendations",
    )
    body_analysis_temperature: float = Field(
        default=0.3,
        validation_alias="BODY_ANALYSIS_TEMPERATURE",
        description="Body-type analysis stays conservative",
    )
    openai_max_tokens: int = Field(
        default=8192,
        validation_alias="OPENAI_MAX_TOKENS",
        description="Long JSON plans need a generous completion budget",
    )
    llm_attempt_timeout_seconds: float = Field(
        default=180.0,
        validation_alias="LLM_ATTEMPT_TIMEOUT_SECONDS",
        description="Deadline for a single gateway call; expiry counts as a gateway failure",
    )
    llm_retry_backoff_seconds: float = Field(
        default=1.0,
        validation_alias="LLM_RETRY_BACKOFF_SECONDS",
        description="Base delay before retrying after a gateway failure (0 disables)",
    )
    body_analysis_max_attempts: int = Field(default=2, ge=1, validation_alias="BODY_ANALYSIS_MAX_ATTEMPTS")
    diet_max_attempts: int = Field(default=2, ge=1, validation_alias="DIET_MAX_ATTEMPTS")
    workout_max_attempts: int = Field(default=3, ge=1, validation_alias="WORKOUT_MAX_ATTEMPTS")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(valid_levels)}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("openai_api_key")
    @classmethod
    def validate_api_key(cls, value: str) -> str:
        """Warn when the OpenAI key is missing.

        Local development and tests run without a key; every recommendation
        call will then fail at the gateway and follow its terminal policy.
        """
        if not value or value == "your-api-key-here":
            logger.warning(
                "OPENAI_API_KEY is not set. AI recommendations will not work. "
                "Set it in .env file or environment variables."
            )
        return value

    @field_validator("openai_base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        """Warn when a production deployment points at a local LLM endpoint."""
        is_production = bool(os.getenv("RENDER") or os.getenv("RAILWAY_ENVIRONMENT") or os.getenv("DYNO"))
        if is_production and ("localhost" in value or "127.0.0.1" in value):
            logger.error(f"OPENAI_BASE_URL points to a local address in production: {value}")
        return value.rstrip("/")


settings = Settings()
