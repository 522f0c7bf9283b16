"""
Configuration management using Pydantic Settings.
Reads from environment variables.
"""

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    model_config = ConfigDict(env_file=".env", case_sensitive=False)

    # Leave API Configuration
    leave_api_base_url: str = Field(default="http://localhost:5000/api", alias="LEAVE_API_BASE_URL")
    leave_api_token: str | None = Field(default=None, alias="LEAVE_API_TOKEN")
    leave_api_timeout: float = Field(default=15.0, alias="LEAVE_API_TIMEOUT")
    use_mock_backend: bool = Field(default=True, alias="USE_MOCK_BACKEND")

    # Wizard session controls
    max_sessions: int = Field(default=1000, alias="MAX_SESSIONS")
    session_ttl_seconds: int = Field(default=1800, alias="SESSION_TTL_SECONDS")

    # Leave rules
    post_submit_redirect_seconds: float = Field(default=2.0, alias="POST_SUBMIT_REDIRECT_SECONDS")
    min_rejection_reason_length: int = Field(default=10, alias="MIN_REJECTION_REASON_LENGTH")
    max_reason_length: int = Field(default=500, alias="MAX_REASON_LENGTH")
    max_days_per_request: float = Field(default=20, alias="MAX_DAYS_PER_REQUEST")
    disable_past_dates: bool = Field(default=True, alias="DISABLE_PAST_DATES")
    pto_ineligible_classifications: list[str] = Field(
        default=["Field Staff"], alias="PTO_INELIGIBLE_CLASSIFICATIONS"
    )
    pto_deducting_types: list[str] = Field(default=["PTO"], alias="PTO_DEDUCTING_TYPES")

    # Application Configuration
    environment: str = Field(default="development", alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Circuit Breaker Configuration
    circuit_breaker_failure_threshold: int = Field(
        default=5, alias="CIRCUIT_BREAKER_FAILURE_THRESHOLD"
    )
    circuit_breaker_timeout: int = Field(default=60, alias="CIRCUIT_BREAKER_TIMEOUT")


# Global settings instance
settings = Settings()
