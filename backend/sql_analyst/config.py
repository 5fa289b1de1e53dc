"""
Configuration module for the SQL Analyst backend.

Loads environment variables and provides application settings.
"""

from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    database_url: str = "sqlite:///./sql_analyst.db"
    cors_origins: str = "http://localhost:5173,http://localhost:3000"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_base_url: Optional[str] = None
    llm_provider_label: str = "openai"
    llm_timeout_seconds: float = 60.0
    llm_max_retries: int = 0
    upload_dir: str = "./uploads"
    history_window: int = 10
    markdown_table_row_limit: int = 12
    enforce_read_only_sql: bool = True
    log_level: str = "INFO"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [
            origin.strip()
            for origin in self.cors_origins.split(",")
        ]

    class Config:
        """Pydantic settings configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
