from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings

_BACKEND_DIR = Path(__file__).resolve().parents[1]
_ENV_FILES = (
    _BACKEND_DIR / ".env",
    ".env",
    ".env.local",
)

# Older deployments used DB_TYPE with these values.
_BACKEND_ALIASES = {
    "kv": "upstash",
    "redis": "upstash",
    "vercel-kv": "upstash",
    "neon": "sql",
    "postgres": "sql",
    "postgresql": "sql",
    "sqlite": "sql",
}
STORAGE_BACKENDS = ("auto", "memory", "upstash", "sql")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_title: str = "Hotel POS Storage API"
    app_version: str = "0.1.0"
    app_env: str = "development"
    cors_origins: list[str] = ["http://localhost:5173"]

    # Storage backend selection: auto | memory | upstash | sql
    storage_backend: str = Field(
        "auto",
        validation_alias=AliasChoices("STORAGE_BACKEND", "DB_TYPE"),
    )
    storage_timeout_seconds: float = 10.0
    validate_records: bool = True

    # Upstash / Vercel KV REST credentials (several historical variable names)
    kv_rest_api_url: str = Field(
        "",
        validation_alias=AliasChoices(
            "HOTEL_KV_KV_REST_API_URL",
            "HOTEL_KV_REST_API_URL",
            "KV_REST_API_URL",
            "UPSTASH_REDIS_URL",
        ),
    )
    kv_rest_api_token: str = Field(
        "",
        validation_alias=AliasChoices(
            "HOTEL_KV_KV_REST_API_TOKEN",
            "HOTEL_KV_REST_API_TOKEN",
            "KV_REST_API_TOKEN",
            "UPSTASH_REDIS_TOKEN",
        ),
    )

    # Relational key-value store (PostgreSQL / SQLite)
    database_url: str = Field(
        "",
        validation_alias=AliasChoices("DATABASE_URL", "NEON_CONNECTION_STRING"),
    )

    # Admin-only operations (seeding, snapshot restore)
    admin_key: str = Field("", validation_alias=AliasChoices("ADMIN_KEY", "VITE_ADMIN_KEY"))
    seed_data_file: str = "data/seed.yaml"

    # Logging — per-category log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_level: str = "INFO"                  # Root / app-wide
    log_level_storage: str = "INFO"          # hotel_pos storage services and backends
    log_level_sql: str = "WARNING"           # sqlalchemy.engine — SQL queries
    log_level_http: str = "WARNING"          # httpx / httpcore — Upstash REST calls
    log_level_uvicorn: str = "INFO"          # uvicorn.access / uvicorn.error

    model_config = {
        "env_file": _ENV_FILES,
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
        "extra": "ignore",
    }

    @field_validator("storage_backend", mode="before")
    @classmethod
    def _normalize_backend(cls, value: str) -> str:
        name = str(value or "auto").strip().lower()
        name = _BACKEND_ALIASES.get(name, name)
        if name not in STORAGE_BACKENDS:
            raise ValueError(f"storage_backend must be one of {', '.join(STORAGE_BACKENDS)}")
        return name

    @property
    def has_kv_credentials(self) -> bool:
        return bool(self.kv_rest_api_url.strip() and self.kv_rest_api_token.strip())

    @property
    def seed_data_path(self) -> Path:
        """Seed file path, resolved against the backend directory when relative."""
        path = Path(self.seed_data_file)
        return path if path.is_absolute() else _BACKEND_DIR / path


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance — reads .env once."""
    return Settings()
