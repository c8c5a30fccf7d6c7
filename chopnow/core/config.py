"""
ChopNow Storefront — Configuration
All settings are read from environment variables (or .env file).
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    SERVICE_NAME: str = "chopnow-storefront"
    SERVICE_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # ── Supabase Postgres ─────────────────────────────────────
    DATABASE_URL: str = ""
    POSTGRES_HOST: str = "db.supabase.internal"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "postgres"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    # ── Supabase Auth (JWT verification only) ─────────────────
    SUPABASE_JWT_SECRET: str = "CHANGE_ME_IN_PRODUCTION"
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str = "authenticated"

    # ── Redis ─────────────────────────────────────────────────
    REDIS_HOST: str = "redis"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""

    @property
    def redis_url(self) -> str:
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    IDEMPOTENCY_KEY_TTL_SECONDS: int = 86400

    # ── Dashboard & Search ────────────────────────────────────
    RECENT_ORDERS_LIMIT: int = 5
    SEARCH_VENDOR_LIMIT: int = 10
    SEARCH_MENU_ITEM_LIMIT: int = 20

    # ── Order stream (SSE) ────────────────────────────────────
    SSE_RETRY_MILLISECONDS: int = 3000
    SSE_KEEPALIVE_INTERVAL_SECONDS: float = 15.0

    # ── Observability ─────────────────────────────────────────
    METRICS_ENABLED: bool = True
    HEALTH_CHECK_TIMEOUT: float = 5.0

    # Local development only; Supabase migrations own the schema in production
    CREATE_TABLES: bool = False


@lru_cache()
def get_settings() -> Settings:
    return Settings()
