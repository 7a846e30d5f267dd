"""Application configuration loaded from environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed settings exposed via dependency injection throughout the app."""

    # Read .env with BOM tolerance; case-sensitive keys
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        case_sensitive=True,
    )

    APP_NAME: str = "Inventário API"
    ENV: str = "dev"  # dev | staging | prod
    DEBUG: bool = False

    # CORS
    CORS_ALLOWED_ORIGINS: list[str] = Field(default_factory=list)

    # DB (inventario)
    DB_HOST: str = "127.0.0.1"
    DB_PORT: int = 3306
    DB_USER: str = "inventario"
    DB_PASSWORD: str = ""  # set via env/.env
    DB_NAME: str = "inventario"
    # Full SQLAlchemy URL; overrides the DB_* parts when set (tests use sqlite+aiosqlite)
    DB_URL: str | None = None
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 0
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600
    DB_ISOLATION_LEVEL: str = "READ COMMITTED"
    DB_RETRY_ATTEMPTS: int = 4
    DB_RETRY_BASE_DELAY: float = 0.05
    DB_RETRY_JITTER: float = 0.025

    # Migrations: keep serving when a step fails unless fail-fast is requested
    MIGRATIONS_FAIL_FAST: bool = False

    # Passwords
    BCRYPT_ROUNDS: int = 10
    SECURITY_MAX_CONCURRENCY: int = 4
    DEFAULT_USER_PASSWORD: str = "123456"
    ADMIN_USERNAME: str = "admin"
    ADMIN_EMAIL: str = "admin@example.com"
    ADMIN_PASSWORD: str = "marceloadmin"
    TOTP_ISSUER: str = "InventarioPro"

    # Imports. Parsing big CSV exports happens in worker threads; bound how
    # many run at once and how often a client may upload.
    IMPORT_MAX_CONCURRENCY: int = 2
    IMPORT_UPLOAD_RATE: str = "10/minute"
    RATE_LIMIT_ENABLED: bool = True
    MAX_BODY_BYTES: int = 50 * 1024 * 1024  # 50 MB, photos travel inline

    # Report assistant (Ollama-compatible text generation endpoint)
    OLLAMA_URL: str = "http://127.0.0.1:11434/api/generate"
    OLLAMA_MODEL: str = "llama3.2"
    OLLAMA_TIMEOUT_SEC: int = 120

    BACKUP_DIR: str = "./backups"

    @property
    def DATABASE_URL(self) -> str:
        if self.DB_URL:
            return self.DB_URL
        return (
            f"mysql+aiomysql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}?charset=utf8mb4"
        )


settings = Settings()
