"""Settings module using pydantic-settings for configuration management."""

from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Service Configuration
    service_name: str = Field(default="document-service")
    environment: str = Field(default="development")
    port: int = Field(default=8007)
    host: str = Field(default="0.0.0.0")

    # Database Configuration (documents, versions, access rules, audit log)
    database_url: str = Field(default="sqlite+aiosqlite:///./document_service.db")
    database_echo: bool = Field(default=False)

    # Object Storage Configuration (file bytes live outside this service)
    storage_provider: str = Field(default="local", description="local or s3")
    storage_local_dir: str = Field(default="./data/objects")
    storage_public_base_url: str = Field(default="http://localhost:8007/files")
    s3_bucket: str = Field(default="")
    s3_region: str = Field(default="us-east-1")
    s3_endpoint_url: Optional[str] = Field(default=None)
    s3_access_key_id: Optional[str] = Field(default=None)
    s3_secret_access_key: Optional[str] = Field(default=None)

    # Identity
    admin_role: str = Field(default="admin")

    # Pagination Configuration
    default_page_size: int = Field(default=20)
    max_page_size: int = Field(default=100)

    # Folder tree
    folder_max_depth: int = Field(default=50)

    # Logging
    log_level: str = Field(default="INFO")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
