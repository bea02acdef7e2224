"""
Application configuration management.
"""

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Azure OpenAI
    azure_openai_endpoint: Optional[str] = None
    azure_openai_api_key: Optional[str] = None
    azure_openai_deployment: Optional[str] = None
    azure_openai_api_version: str = "2024-02-01"

    # OpenAI (used only when Azure is not configured)
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o"

    # Generation parameters
    llm_max_tokens: int = 4000
    llm_temperature: float = 0.1

    # Bitbucket
    bitbucket_api_base_url: str = "https://api.bitbucket.org/2.0"
    bitbucket_request_delay_seconds: float = 0.1
    bitbucket_all_repositories_pagelen: int = 50

    # Application
    log_level: str = "INFO"
    environment: str = "development"
    frontend_origins: List[str] = ["http://localhost:3000"]
    port: int = 5000

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")


# Global settings instance, read-only after startup
settings = Settings()
