"""Configuration settings for the intake and resolver services."""

import os
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Logging
    LOG_LEVEL: Literal['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'] = Field(
        default=os.getenv("LOG_LEVEL", "INFO"),  # type: ignore[arg-type]
        description="Application log level",
    )

    # Intake service
    INTAKE_HOST: str = Field(
        default=os.getenv("INTAKE_HOST", "0.0.0.0"),
        description="Host address for the intake service",
    )
    INTAKE_PORT: int = Field(
        default=int(os.getenv("INTAKE_PORT", "8080")),
        description="Port for the intake service",
    )

    # Resolver service
    RESOLVER_HOST: str = Field(
        default=os.getenv("RESOLVER_HOST", "0.0.0.0"),
        description="Host address for the resolver service",
    )
    RESOLVER_PORT: int = Field(
        default=int(os.getenv("RESOLVER_PORT", "8081")),
        description="Port for the resolver service",
    )
    RESOLVER_URL: str = Field(
        default=os.getenv("RESOLVER_URL", "http://service-b:8081"),
        description="Base URL the intake service uses to reach the resolver",
    )

    # Upstream lookups
    DIRECTORY_BASE_URL: str = Field(
        default=os.getenv("DIRECTORY_BASE_URL", "http://viacep.com.br"),
        description="Base URL of the postal directory service",
    )
    WEATHER_BASE_URL: str = Field(
        default=os.getenv("WEATHER_BASE_URL", "http://api.weatherapi.com/v1/current.json"),
        description="Current-weather endpoint of the weather service",
    )
    WEATHER_API_KEY: Optional[str] = Field(
        default=os.getenv("WEATHER_API_KEY"),
        description="API key for the weather service",
    )

    # Outbound HTTP
    HTTP_TIMEOUT_SECONDS: float = Field(
        default=float(os.getenv("HTTP_TIMEOUT_SECONDS", "10.0")),
        description="Timeout applied to every outbound HTTP call",
    )

    @field_validator("RESOLVER_URL", "DIRECTORY_BASE_URL", "WEATHER_BASE_URL")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")

    @field_validator("HTTP_TIMEOUT_SECONDS")
    @classmethod
    def _positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("HTTP_TIMEOUT_SECONDS must be positive")
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def load_settings() -> Settings:
    """Load and return application settings."""
    return Settings()  # type: ignore[call-arg]
