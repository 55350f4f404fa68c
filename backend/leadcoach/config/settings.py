"""
Configuration Settings.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # App info
    app_name: str = "LeadCoach"
    app_version: str = "1.0.0"
    debug: bool = True

    # Storage
    storage_type: str = "local"  # local only for now
    local_storage_path: str = "./data"

    # LLM Provider settings
    llm_provider: str = "openai"
    llm_api_key: Optional[str] = None
    llm_model: Optional[str] = None  # uses provider default if not set
    llm_base_url: Optional[str] = None  # uses provider default if not set
    llm_api_mode: str = "responses"  # "chat" (chat/completions) or "responses"
    llm_timeout: float = 120.0
    llm_temperature: float = 0.7

    # Legacy key (still accepted)
    openai_api_key: Optional[str] = None

    # Chat session client
    coach_api_url: str = "http://localhost:8000"
    chat_timeout_seconds: float = 60.0
    persistence_timeout_seconds: float = 15.0

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
    ]

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file_path: str = "./logs/leadcoach.log"
    log_file_enabled: bool = True
    log_console_enabled: bool = True
    log_json_format: bool = True  # JSON format for files, human-readable for console
    log_api_requests: bool = True  # Log all API requests/responses
    log_llm_calls: bool = True  # Log all LLM calls with token usage

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
