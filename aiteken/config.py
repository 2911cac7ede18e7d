from typing import List, Optional
import os

from dotenv import load_dotenv
from fastapi import Request
from pydantic import BaseModel, Field
from sqlalchemy.engine import URL, make_url

# Load .env automatically
load_dotenv()


DEFAULT_DB_NAME = "aiteken_db"
DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


class ConfigurationError(RuntimeError):
    """Raised when an environment variable holds an unusable value."""


def _env_int(name: str, default: Optional[int] = None) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings(BaseModel):
    environment: str = Field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))

    # MySQL connection, as consumed by the schema initializer and the API
    db_host: str = Field(default_factory=lambda: os.getenv("DB_HOST", "localhost"))
    db_port: Optional[int] = Field(default_factory=lambda: _env_int("DB_PORT"))
    db_user: str = Field(default_factory=lambda: os.getenv("DB_USER", "root"))
    db_password: str = Field(default_factory=lambda: os.getenv("DB_PASSWORD", ""))
    db_name: str = Field(default_factory=lambda: os.getenv("DB_NAME", DEFAULT_DB_NAME))
    # Full SQLAlchemy URL, overrides the DB_* variables when set
    database_url: Optional[str] = Field(default_factory=lambda: os.getenv("DATABASE_URL"))
    db_echo: bool = Field(default_factory=lambda: _env_bool("DB_ECHO"))

    db_pool_size: int = Field(default_factory=lambda: _env_int("DB_POOL_SIZE", 5))
    db_max_overflow: int = Field(default_factory=lambda: _env_int("DB_MAX_OVERFLOW", 10))
    db_pool_timeout: int = Field(default_factory=lambda: _env_int("DB_POOL_TIMEOUT", 30))
    db_pool_recycle: int = Field(default_factory=lambda: _env_int("DB_POOL_RECYCLE", 1800))

    host: str = Field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = Field(default_factory=lambda: _env_int("PORT", 3000))
    # Browser origins allowed to send the session cookie
    cors_origins: List[str] = Field(
        default_factory=lambda: _env_list("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
    )

    jwt_secret: Optional[str] = Field(default_factory=lambda: os.getenv("JWT_SECRET"))
    jwt_algorithm: str = Field(default_factory=lambda: os.getenv("JWT_ALGORITHM", "HS256"))

    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def sqlalchemy_url(self) -> URL:
        if self.database_url:
            return make_url(self.database_url)
        return URL.create(
            "mysql+pymysql",
            username=self.db_user,
            password=self.db_password or None,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )


# Global settings instance
settings = Settings()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
