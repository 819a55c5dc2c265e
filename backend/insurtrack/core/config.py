"""
Pydantic Settings — centralized configuration loaded from environment variables.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Database ──────────────────────────────
    POSTGRES_USER: str = "insurtrack_user"
    POSTGRES_PASSWORD: str = "insurtrack_pass"
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "insurtrack_db"

    @property
    def DATABASE_URL(self) -> str:
        """Async URL for app runtime (asyncpg)."""
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def DATABASE_URL_SYNC(self) -> str:
        """Sync URL for Alembic migrations (psycopg2)."""
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # Row-level security: API sessions switch to this role and set
    # app.current_user_id so the Postgres policies apply.
    RLS_ENABLED: bool = False
    RLS_SESSION_ROLE: str = "insurtrack_authenticated"

    # ── Redis / Celery ────────────────────────
    REDIS_URL: str = "redis://localhost:6379/0"
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/1"

    # ── Object Storage (avatars) ──────────────
    STORAGE_ENDPOINT: str = "http://localhost:9000"
    STORAGE_PUBLIC_URL: str = "http://localhost:9000"
    STORAGE_ACCESS_KEY: str = "minioadmin"
    STORAGE_SECRET_KEY: str = "minioadmin"
    STORAGE_REGION: str = "us-east-1"
    STORAGE_BUCKET_NAME: str = "avatars"
    AVATAR_MAX_BYTES: int = 5 * 1024 * 1024

    # ── E-mail (Resend) ───────────────────────
    RESEND_API_KEY: str = ""
    RESEND_API_URL: str = "https://api.resend.com/emails"
    EMAIL_FROM: str = "InsurTrack <onboarding@resend.dev>"
    EMAIL_TIMEOUT_SECONDS: float = 10.0

    # ── Auth / JWT ────────────────────────────
    JWT_SECRET_KEY: str = "change-this-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 480
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60
    MIN_PASSWORD_LENGTH: int = 6

    # ── EMI Reminders ─────────────────────────
    EMI_REMINDER_HOUR: int = 9
    EMI_REMINDER_MINUTE: int = 0

    # ── Application ───────────────────────────
    APP_ENV: str = "development"
    APP_BASE_URL: str = "http://localhost:5173"
    DEFAULT_COMMISSION_RATE: float = 10.0

    # ── Bootstrap accounts ────────────────────
    BOOTSTRAP_ADMIN_EMAIL: str = "admin1@example.com"
    DEMO_CLIENT_EMAIL: str = "user1@example.com"

    model_config = {"env_file": ["../.env", ".env"], "extra": "ignore"}


settings = Settings()
