"""
Application configuration.
All settings are loaded from environment variables.
Use env.example as a reference for required variables.
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    IMPORTANT: Credentials have no defaults - they MUST be set in .env file.
    """

    # ===========================================
    # APPLICATION
    # ===========================================
    app_env: str = "local"

    # ===========================================
    # DATABASE (PostgreSQL, SQLite for local runs)
    # ===========================================
    database_url: str  # Required, no default
    db_pool_size: int = 10
    db_max_overflow: int = 20

    # ===========================================
    # REDIS & CELERY
    # ===========================================
    # Empty redis_url = in-memory FSM storage and circuit breaker state.
    redis_url: str = ""
    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: str = "redis://localhost:6379/1"

    # ===========================================
    # TELEGRAM BOT
    # ===========================================
    telegram_bot_token: str  # Required, no default
    # Username бота без @ (для deep link ?start=<code>). Пример: FileStoreBot
    telegram_bot_username: str = ""
    # Канал/чат для журнала загрузок и скачиваний. Пусто = не логировать.
    log_channel_id: str = ""
    # Telegram id администраторов через запятую.
    admin_ids: str = ""
    telegram_request_timeout: float = 15.0

    # ===========================================
    # LINK SHORTENER (AdLinkFly-compatible)
    # ===========================================
    # Начальные значения; админ меняет их командой /setadlink (хранятся в bot_settings).
    shortener_domain: str = "https://upload.mycodingtools.in"
    shortener_api_key: str = ""
    shortener_timeout: float = 10.0

    # ===========================================
    # DELIVERY
    # ===========================================
    # celery = отложенное удаление через Celery countdown, local = таймер в процессе бота
    auto_purge_backend: str = "celery"

    # ===========================================
    # ADMIN API
    # ===========================================
    admin_api_key: str | None = None  # Optional, but recommended

    # ===========================================
    # CIRCUIT BREAKER
    # ===========================================
    cb_failure_threshold: int = 5
    cb_open_seconds: int = 30

    # ===========================================
    # LOGGING
    # ===========================================
    log_level: str = "INFO"
    log_file: str | None = None
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    @field_validator("auto_purge_backend")
    @classmethod
    def validate_purge_backend(cls, v: str) -> str:
        v = v.lower().strip()
        if v not in ("celery", "local"):
            raise ValueError("auto_purge_backend must be 'celery' or 'local'")
        return v

    @field_validator("telegram_bot_username")
    @classmethod
    def strip_at(cls, v: str) -> str:
        return v.strip().lstrip("@")

    @property
    def admin_ids_set(self) -> set[str]:
        """Get admin telegram ids as a set."""
        return {i.strip() for i in self.admin_ids.split(",") if i.strip()}

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Игнорировать неизвестные поля из .env


settings = Settings()
