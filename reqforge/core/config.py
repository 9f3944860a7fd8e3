"""ReqForge settings, read from environment variables or a ``.env`` file.

Every field maps to an upper-case variable of the same name, e.g.
``LLM_MODEL`` or ``RATE_LIMIT_PER_MINUTE``.
"""

from enum import Enum
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import List

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_LOCAL_HOSTS = ("localhost", "127.0.0.1")


class Environment(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class ConfigurationError(Exception):
    """The settings cannot run in the selected environment."""


class Settings(BaseSettings):
    """
    Runtime configuration.

    The LLM fields take LiteLLM model strings, so any provider LiteLLM
    supports can back the generation adapters. An empty ``llm_model``
    leaves the service usable for authoring, assembly and manual edits;
    only generation calls fail.
    """

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="development or production"
    )

    # HTTP
    cors_allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated browser origins allowed by CORS"
    )
    rate_limit_per_minute: int = Field(
        default=120,
        description="Requests per client per minute; 0 disables throttling"
    )

    # Storage
    database_url: str = Field(
        default="sqlite:///./reqforge.db",
        description="SQLAlchemy URL of the project store"
    )
    # Pool sizing applies to PostgreSQL only.
    db_pool_size: int = Field(default=5, description="Persistent connections kept open")
    db_max_overflow: int = Field(default=10, description="Burst connections above the pool size")
    db_pool_timeout: int = Field(default=30, description="Seconds to wait for a free connection")
    db_pool_recycle: int = Field(default=1800, description="Connection lifetime in seconds")

    # Generation (LiteLLM)
    llm_model: str = Field(
        default="",
        description="LiteLLM model string, e.g. 'gemini/gemini-2.5-flash'; empty disables generation"
    )
    llm_api_key: str = Field(default="", description="Provider API key")
    llm_api_base: str = Field(default="", description="Provider base URL override")
    llm_timeout_seconds: int = Field(default=60, description="Per-call timeout")
    llm_max_tokens: int = Field(default=2048, description="Completion token cap per call")
    llm_temperature: float = Field(default=0.3, description="Sampling temperature, 0.0 to 2.0")
    llm_failure_threshold: int = Field(
        default=3,
        description="Consecutive failures that open the model's circuit"
    )
    llm_cooldown_seconds: float = Field(
        default=60.0,
        description="Seconds an open circuit waits before letting a probe through"
    )

    # Document assembly
    document_title: str = Field(
        default="Software Requirements Specification",
        description="First line of every assembled document"
    )
    pending_placeholder: str = Field(
        default="[This section is pending completion]",
        description="Body text for subsections without approved content"
    )

    # Logging
    log_level: str = Field(default="INFO", description="One of " + ", ".join(_LOG_LEVELS))
    log_format: str = Field(default="json", description="'json' lines or human-readable 'text'")

    def get_cors_origins(self) -> List[str]:
        """Parsed CORS origins. A ``*`` entry is refused."""
        origins = [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]
        if "*" in origins:
            raise ValueError(
                "CORS_ALLOWED_ORIGINS may not contain '*'; list the front-end origins explicitly"
            )
        return origins

    def generation_enabled(self) -> bool:
        return bool(self.llm_model)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}, got {v!r}")
        return level

    @field_validator("llm_temperature")
    @classmethod
    def validate_temperature(cls, v: float) -> float:
        if not 0.0 <= v <= 2.0:
            raise ValueError("llm_temperature must be between 0.0 and 2.0")
        return v

    def validate_production_config(self) -> None:
        """Refuse to start a production deployment that cannot serve users.

        Development deployments are never refused here; main.py warns
        about the same problems instead.

        Raises:
            ConfigurationError: listing every problem found.
        """
        if self.environment != Environment.PRODUCTION:
            return

        problems: List[str] = []
        if not self.generation_enabled():
            problems.append("LLM_MODEL is empty, so section drafting and edit suggestions cannot run.")

        local = [o for o in self.get_cors_origins() if any(h in o for h in _LOCAL_HOSTS)]
        if local:
            problems.append(f"CORS_ALLOWED_ORIGINS includes localhost origins {local}.")

        if problems:
            raise ConfigurationError(
                "Production configuration is invalid:\n  - " + "\n  - ".join(problems)
            )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


settings = Settings()
