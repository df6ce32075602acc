from functools import lru_cache
from typing import List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    app_name: str = "Zentro Homes API"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False

    # Database
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "zentro"
    postgres_password: str = ""
    postgres_db: str = "zentro"
    database_url_override: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DATABASE_URL", "database_url_override"),
    )
    db_pool_size: int = 20
    db_max_overflow: int = 10
    auto_create_tables: bool = True

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            url = self.database_url_override
            # Hosted Postgres providers hand out postgres:// URLs
            if url.startswith("postgres://"):
                url = url.replace("postgres://", "postgresql+asyncpg://", 1)
            elif url.startswith("postgresql://"):
                url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
            return url
        return f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"

    # Admin authentication
    jwt_secret_key: str = ""
    jwt_algorithm: str = "HS256"
    token_expire_hours: int = 24
    admin_username: str = "admin"
    admin_password: str = ""
    admin_name: str = "Admin User"

    # HTTP
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5500",
    ]
    rate_limit_enabled: bool = True
    rate_limit_window_seconds: int = 15 * 60
    rate_limit_max_requests: int = 100

    # Files
    upload_dir: str = "./uploads"
    max_upload_bytes: int = 10 * 1024 * 1024
    static_dir: Optional[str] = None

    # Server
    host: str = "0.0.0.0"
    port: int = 3000

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
