"""
Process-wide configuration for the Mentor Gateway.

Settings are read from the environment once at startup and are immutable
afterwards. The resulting object is handed to ``create_app`` explicitly.
"""

from typing import Any

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_ENTRIES_SERVICE_ADDR = "entries-cluster-ip-service:50051"


class GatewaySettings(BaseSettings):
    """Immutable gateway configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        frozen=True,
        populate_by_name=True,
        env_ignore_empty=True,
        extra="ignore",
    )

    openai_api_key: str = Field(
        default="",
        validation_alias="OPENAI_API_KEY",
        description="Credential for the LLM service",
    )
    openai_model: str = Field(
        default=DEFAULT_OPENAI_MODEL,
        validation_alias="OPENAI_MODEL",
        description="Chat model identifier",
    )
    openai_base_url: str | None = Field(
        default=None,
        validation_alias="OPENAI_BASE_URL",
        description="Override for the LLM service base URL",
    )
    entries_service_addr: str = Field(
        default=DEFAULT_ENTRIES_SERVICE_ADDR,
        validation_alias="ENTRIES_SERVICE_ADDR",
        description="host:port of the entries gRPC service",
    )
    entries_timeout: float = Field(
        default=10.0,
        gt=0,
        validation_alias="ENTRIES_TIMEOUT",
        description="Deadline in seconds for entries service calls",
    )
    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=5000, gt=0, lt=65536, validation_alias="PORT")
    log_level: str = Field(default="info", validation_alias="LOG_LEVEL")

    @field_validator("*", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: Any, info: ValidationInfo) -> Any:
        # Whitespace-only values fall back to the field default
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return cls.model_fields[info.field_name].default
        return value

    @property
    def llm_configured(self) -> bool:
        """Whether a credential for the LLM service was supplied."""
        return bool(self.openai_api_key)
