"""Application settings and configuration.

This module defines all configuration options for the Send2Me API.
Settings are loaded from environment variables with sensible defaults.
Secrets default to unset; their absence is reported at the point of use.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Send2Me", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./send2me.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    transaction_max_attempts: int = Field(default=5, ge=1, alias="TRANSACTION_MAX_ATTEMPTS")

    # Salt for hashing request metadata (IP, user agent)
    hash_salt: str | None = Field(default=None, alias="HASH_SALT")

    # Cloudflare Turnstile bot verification
    turnstile_secret_key: str | None = Field(default=None, alias="TURNSTILE_SECRET_KEY")
    turnstile_verify_url: str = Field(
        default="https://challenges.cloudflare.com/turnstile/v0/siteverify",
        alias="TURNSTILE_VERIFY_URL",
    )
    turnstile_timeout_ms: int = Field(default=5_000, alias="TURNSTILE_TIMEOUT_MS")

    # Identity provider tokens (verified, never issued in production)
    identity_jwt_secret: str | None = Field(default=None, alias="IDENTITY_JWT_SECRET")
    identity_jwt_algorithm: str = Field(default="HS256", alias="IDENTITY_JWT_ALGORITHM")
    identity_jwt_audience: str | None = Field(default=None, alias="IDENTITY_JWT_AUDIENCE")
    identity_jwt_issuer: str | None = Field(default=None, alias="IDENTITY_JWT_ISSUER")
    identity_token_expire_minutes: int = Field(
        default=60,
        alias="IDENTITY_TOKEN_EXPIRE_MINUTES",
    )

    # Public base URL candidates, highest priority first
    public_base_url: str | None = Field(default=None, alias="PUBLIC_BASE_URL")
    app_url: str | None = Field(default=None, alias="APP_URL")
    site_url: str | None = Field(default=None, alias="SITE_URL")
    vercel_url: str | None = Field(default=None, alias="VERCEL_URL")

    # Message rate limiting (fixed windows)
    rate_limit_target_window_ms: int = Field(default=10_000, alias="RATE_LIMIT_TARGET_WINDOW_MS")
    rate_limit_target_limit: int = Field(default=3, alias="RATE_LIMIT_TARGET_LIMIT")
    rate_limit_global_window_ms: int = Field(default=60_000, alias="RATE_LIMIT_GLOBAL_WINDOW_MS")
    rate_limit_global_limit: int = Field(default=30, alias="RATE_LIMIT_GLOBAL_LIMIT")

    # Request metadata
    trust_forwarded_for: bool = Field(default=True, alias="TRUST_FORWARDED_FOR")
    country_header: str = Field(default="x-vercel-ip-country", alias="COUNTRY_HEADER")
    verified_cookie_secure: bool = Field(default=True, alias="VERIFIED_COOKIE_SECURE")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def base_url_candidates(self) -> list[tuple[str, str | None]]:
        """Return configured public base URLs in priority order.

        Returns:
            List of ``(source name, value)`` pairs; values may be unset
        """
        return [
            ("PUBLIC_BASE_URL", self.public_base_url),
            ("APP_URL", self.app_url),
            ("SITE_URL", self.site_url),
            ("VERCEL_URL", self.vercel_url),
        ]


settings = Settings()  # type: ignore[call-arg]
