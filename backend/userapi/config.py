"""Application configuration using Pydantic settings."""
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    db_host: str = "db"
    db_port: int = 3306
    db_name: str = "testdb"
    db_user: str = "root"
    db_pass: str = "secret"
    database_url: Optional[str] = None  # Overrides the DB_* values when set

    # API Configuration
    environment: str = "development"
    app_version: str = "1.0.0"
    base_path: str = "/api"

    # Security
    api_key: str = "your-secret-api-key"
    require_password: bool = False

    # CORS
    allowed_origins: str = "*"

    @property
    def sqlalchemy_database_uri(self) -> str:
        """Database URL, assembled from the DB_* values unless given outright."""
        if self.database_url:
            return self.database_url
        return (
            f"mysql+pymysql://{self.db_user}:{self.db_pass}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}?charset=utf8mb4"
        )

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.allowed_origins.split(",")]

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings instance."""
    return Settings()
