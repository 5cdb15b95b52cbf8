from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_env: str = "local"
    api_prefix: str = "/api"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./medstock.db"
    auto_create_tables: bool = True

    # Redis
    redis_url: str | None = None
    dashboard_cache_ttl: int = 60

    # Sessions
    session_backend: str = "database"  # "database" or "redis"
    session_cookie_name: str = "medstock_session"
    session_ttl_days: int = 7
    session_cookie_secure: bool = False

    # Credentials
    default_admin_password: str = "12345"
    password_hash_rounds: int = 10

    # Inventory rules
    low_stock_threshold: int = 20
    expiring_soon_days: int = 90
    strict_audit_ledger: bool = True

    # HTML pages and their assets
    static_dir: str = "public"

    # Pydantic v2 style config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance so the .env is parsed once.
    """
    return Settings()
