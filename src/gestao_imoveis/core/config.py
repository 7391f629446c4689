"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = False

    # Database
    database_url: str = "sqlite:///./data/gestao_imoveis.db"

    # Billing
    timezone: str = "America/Sao_Paulo"
    max_generated_installments: int = Field(
        default=120,
        ge=1,
        description="Limite de parcelas geradas por contrato (modo 'all' e calendário de períodos)",
    )
    generation_max_retries: int = Field(
        default=3,
        ge=0,
        description="Tentativas extras quando duas gerações disputam o mesmo numero_parcela",
    )

    # HTTP
    cors_allowed_origins: str = "http://localhost:3000,http://localhost:5173"
    expose_error_details: bool = False

    @field_validator("cors_allowed_origins")
    @classmethod
    def parse_origin_list(cls, v: str) -> list[str]:
        """Parse comma-separated origin list."""
        if not v:
            return []
        return [origin.strip() for origin in v.split(",") if origin.strip()]

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def show_error_details(self) -> bool:
        """Raw exception text is never sent to callers in production."""
        return self.expose_error_details and not self.is_production


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
