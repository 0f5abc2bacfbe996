"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Magic Link Auth API")
    app_env: str = Field(default="development")
    debug: bool = Field(default=False)
    app_url: str = Field(
        default="http://localhost:3000",
        description="Public base URL used to build magic links and check origins",
    )

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Database
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/magic_link",
        description="PostgreSQL connection URL with asyncpg driver",
    )

    # Token hashing
    token_pepper: str = Field(
        default="CHANGE-ME-IN-PRODUCTION",
        description="Server-held HMAC key for invite token hashes (keep secret)",
    )

    # Session JWT (RS256)
    jwt_private_key: str = Field(
        default="",
        description="PEM-encoded RSA private key used to sign session tokens",
    )
    jwt_public_key: str = Field(
        default="",
        description="PEM-encoded RSA public key used to verify session tokens",
    )
    session_cookie_name: str = Field(default="app_session")
    session_expiry_hours: int = Field(default=24)

    # Invites
    auth_link_expiry_minutes: int = Field(default=15)
    default_invite_max_uses: int = Field(default=3)

    # Rate Limiting
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable/disable rate limiting (disable for tests)",
    )
    rate_limit_waitlist_per_hour: int = Field(default=3)
    rate_limit_auth_per_minute: int = Field(default=5)
    rate_limit_api_per_minute: int = Field(default=30)
    rate_limit_admin_per_minute: int = Field(default=10)

    # Feature flags
    waitlist_enabled: bool = Field(default=True)
    embed_enabled: bool = Field(default=True)
    admin_ui_enabled: bool = Field(default=True)

    # Origins
    allowed_embed_origins: str = Field(
        default="",
        description="Comma-separated list of origins allowed to embed the waitlist form",
    )
    allowed_origins: str = Field(
        default="",
        description="Comma-separated list of additional origins allowed to call mutating endpoints",
    )
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins",
    )

    # SMTP
    smtp_host: str = Field(default="smtp.zoho.com")
    smtp_port: int = Field(default=465)
    smtp_username: str = Field(default="")
    smtp_password: str = Field(default="")
    smtp_from_email: str = Field(default="")
    smtp_from_name: str = Field(default="App Access")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def async_database_url(self) -> str:
        """Ensure the database URL uses the asyncpg driver scheme.

        Render and other providers supply a standard ``postgresql://`` URL.
        SQLAlchemy's async engine requires ``postgresql+asyncpg://``.
        """
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list."""
        return _split_csv(self.cors_origins)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def trusted_origins_list(self) -> list[str]:
        """Origins allowed to call mutating endpoints: app URL, embeds, extras."""
        return [self.app_url, *_split_csv(self.allowed_embed_origins), *_split_csv(self.allowed_origins)]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def session_max_age_seconds(self) -> int:
        return self.session_expiry_hours * 60 * 60


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
