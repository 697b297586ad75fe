import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./beaware.db"
    secret_key: str | None = None
    access_token_expire_minutes: int = 60
    cors_origins: list[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    lookup_max_workers: int = 8
    auto_create_tables: bool = True
    log_level: str = "INFO"

    def require_secret_key(self) -> str:
        if not self.secret_key:
            raise RuntimeError("SECRET_KEY not set in environment")
        return self.secret_key


def load_settings() -> Settings:
    load_dotenv(BASE_DIR / ".env")

    configured_origins = os.getenv("CORS_ORIGINS", "").strip()
    if configured_origins:
        cors_origins = [o.strip() for o in configured_origins.split(",") if o.strip()]
    else:
        cors_origins = list(DEFAULT_CORS_ORIGINS)

    return Settings(
        database_url=os.getenv("DATABASE_URL") or "sqlite:///./beaware.db",
        secret_key=os.getenv("SECRET_KEY"),
        access_token_expire_minutes=_env_int("ACCESS_TOKEN_EXPIRE_MINUTES", 60),
        cors_origins=cors_origins,
        lookup_max_workers=_env_int("LOOKUP_MAX_WORKERS", 8),
        auto_create_tables=_env_bool("AUTO_CREATE_TABLES", True),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


@lru_cache
def get_settings() -> Settings:
    """
    Process-wide settings, built once on first use.
    Routes take it through Depends(get_settings).
    """
    return load_settings()
