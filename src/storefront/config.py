"""Runtime settings, read from environment variables."""

import os
from dataclasses import dataclass

DEVELOPMENT_SECRET = "storefront-development-secret"

ONE_YEAR_SECONDS = 60 * 60 * 24 * 365


@dataclass(frozen=True)
class Settings:
    environment: str
    app_secret: str
    token_max_age_seconds: int
    reset_token_ttl_seconds: int
    password_hash_rounds: int
    payment_gateway: str
    stripe_api_key: str | None
    payment_timeout_seconds: float
    payment_currency: str
    lock_timeout_seconds: float
    redis_url: str | None
    lock_ttl_seconds: float
    frontend_url: str
    mail_from: str

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        environment = (os.getenv("PROTEAN_ENV") or "development").lower()
        app_secret = os.getenv("APP_SECRET", DEVELOPMENT_SECRET)
        if environment == "production" and app_secret == DEVELOPMENT_SECRET:
            raise RuntimeError("APP_SECRET must be set in production")
        redis_url = os.getenv("REDIS_URL") or None
        if environment == "production" and not redis_url:
            # Workers must share checkout and cart locks
            raise RuntimeError("REDIS_URL must be set in production")

        return cls(
            environment=environment,
            app_secret=app_secret,
            token_max_age_seconds=int(os.getenv("TOKEN_MAX_AGE_SECONDS", ONE_YEAR_SECONDS)),
            reset_token_ttl_seconds=int(os.getenv("RESET_TOKEN_TTL_SECONDS", 3600)),
            password_hash_rounds=int(os.getenv("PASSWORD_HASH_ROUNDS", 10)),
            payment_gateway=os.getenv("PAYMENT_GATEWAY", "fake").lower(),
            stripe_api_key=os.getenv("STRIPE_API_KEY"),
            payment_timeout_seconds=float(os.getenv("PAYMENT_TIMEOUT_SECONDS", 10)),
            payment_currency=os.getenv("PAYMENT_CURRENCY", "USD").upper(),
            lock_timeout_seconds=float(os.getenv("LOCK_TIMEOUT_SECONDS", 30)),
            redis_url=redis_url,
            lock_ttl_seconds=float(os.getenv("LOCK_TTL_SECONDS", 120)),
            frontend_url=os.getenv("FRONTEND_URL", "http://localhost:7777").rstrip("/"),
            mail_from=os.getenv("MAIL_FROM", "shop@storefront.local"),
        )


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Forget cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
