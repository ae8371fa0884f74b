from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Xero OAuth configuration
    XERO_CLIENT_ID: str | None = None
    XERO_CLIENT_SECRET: str | None = None
    XERO_REDIRECT_URI: str | None = None
    XERO_SCOPES: str = "accounting.transactions accounting.contacts offline_access"
    TENANT_ID: str | None = None  # Pins the tenant instead of taking the first

    # Embed request signing
    HALO_WIDGET_SECRET: str | None = None
    ENABLE_DEBUG_HMAC: bool = True

    # Persistence and caching
    TOKEN_PATH: str = "tokens.json"
    CACHE_TTL_SECONDS: int = 120
    OAUTH_STATE_TTL_MINUTES: int = 30
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
