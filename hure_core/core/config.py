# hure_core/core/config.py

from __future__ import annotations

from urllib.parse import urlsplit, urlunsplit, parse_qsl, urlencode

from pydantic_settings import BaseSettings, SettingsConfigDict


def _strip_asyncpg_unsupported_params(url: str) -> str:
    """
    asyncpg does NOT accept sslmode or channel_binding as connect kwargs.
    Supabase connection strings usually carry `?sslmode=require`, which
    SQLAlchemy would otherwise forward to asyncpg.connect().
    """
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = parse_qsl(parts.query, keep_blank_values=True)
    filtered = [(k, v) for (k, v) in params if k not in {"sslmode", "channel_binding"}]
    new_query = urlencode(filtered, doseq=True)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, new_query, parts.fragment))


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -----------------------------
    # Environment
    # -----------------------------
    # Use: development | staging | production
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # -----------------------------
    # DB (Supabase Postgres)
    # -----------------------------
    DATABASE_URL_ASYNC: str
    # Only Alembic needs the sync URL
    DATABASE_URL_SYNC: str | None = None

    # -----------------------------
    # JWT
    # -----------------------------
    JWT_SECRET: str = "hure-dev-secret"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    FIRST_LOGIN_TOKEN_EXPIRE_HOURS: int = 24

    # Dev only: every superadmin route sees a demo superadmin
    SKIP_AUTH: bool = False

    # -----------------------------
    # Onboarding
    # -----------------------------
    OTP_EXPIRE_MINUTES: int = 15
    TEMP_PASSWORD_EXPIRE_HOURS: int = 24
    TRIAL_DAYS: int = 14

    # -----------------------------
    # Email (Brevo)
    # -----------------------------
    BREVO_API_KEY: str | None = None
    BREVO_API_URL: str = "https://api.brevo.com/v3/smtp/email"
    FROM_EMAIL: str = "no-reply@gethure.com"
    FROM_NAME: str = "HURE"
    APP_URL: str = "http://localhost:5173"

    # -----------------------------
    # HTTP
    # -----------------------------
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "https://core.gethure.com",
        "https://gethure.com",
    ]

    @property
    def DATABASE_URL_ASYNC_CLEAN(self) -> str:
        return _strip_asyncpg_unsupported_params(self.DATABASE_URL_ASYNC)

    @property
    def is_production(self) -> bool:
        return (self.ENVIRONMENT or "").strip().lower() == "production"

    @property
    def allow_skip_payment(self) -> bool:
        return not self.is_production

    def model_post_init(self, __context) -> None:  # pydantic v2 hook
        env = (self.ENVIRONMENT or "").strip().lower()

        # Never run staging/production with the placeholder secret.
        if env in {"staging", "production"}:
            if not self.JWT_SECRET or self.JWT_SECRET.strip() == "hure-dev-secret":
                raise ValueError("JWT_SECRET must be set to a strong value in staging/production.")
            if len(self.JWT_SECRET.strip()) < 32:
                raise ValueError("JWT_SECRET is too short; use at least 32 characters in staging/production.")
            if self.SKIP_AUTH:
                raise ValueError("SKIP_AUTH cannot be enabled in staging/production.")

        if self.JWT_ALGORITHM not in {"HS256"}:
            raise ValueError(f"Unsupported JWT_ALGORITHM={self.JWT_ALGORITHM!r}. Allowed: HS256")


settings = Settings()
