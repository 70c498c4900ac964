"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with PLANNORA_ prefix
(and an optional .env file for local development).

Learn: every setting has a development default so `plannora serve` works
out of the box against a local SQLite file. Outside development the
validator below refuses to start with the insecure signing secret.
"""

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_JWT_SECRET = "plannora-dev-secret"

# Environments where the development signing secret is tolerated.
_INSECURE_OK = {"development", "test"}


class Settings(BaseSettings):
    """All app configuration. Set via PLANNORA_* env vars."""

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///./plannora.db"
    db_connect_timeout: float = 10.0  # seconds to establish + ping
    db_pool_timeout: float = 10.0  # seconds to wait for a pooled connection
    db_pool_size: int = 5
    db_max_overflow: int = 5
    auto_create_tables: bool = False

    # Redis (rate limiting only, optional)
    redis_url: str = "redis://localhost:6379/0"

    # Auth
    jwt_secret: str = DEV_JWT_SECRET
    jwt_algorithm: str = "HS256"
    token_expire_days: int = 30
    bcrypt_rounds: int = 12
    cookie_name: str = "token"

    # CORS
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    # Rate limiting
    rate_limit_rpm: int = 120  # requests per minute per IP
    rate_limit_auth_rpm: int = 10  # login/register attempts per minute per IP

    model_config = SettingsConfigDict(
        env_prefix="PLANNORA_",
        env_file=".env",
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Ensure the development signing secret never reaches production."""
        if self.environment not in _INSECURE_OK and self.jwt_secret == DEV_JWT_SECRET:
            raise ValueError(
                "PLANNORA_JWT_SECRET must be set to a secure value in "
                f"the {self.environment!r} environment. Generate one with: "
                'python -c "import secrets; print(secrets.token_urlsafe(32))"'
            )
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cookie_secure(self) -> bool:
        return self.is_production

    @property
    def cookie_samesite(self) -> str:
        # Cross-site frontend in production needs SameSite=None (+ Secure).
        return "none" if self.is_production else "lax"

    @property
    def token_max_age(self) -> int:
        """Token lifetime in seconds (also the cookie max-age)."""
        return self.token_expire_days * 24 * 60 * 60


# Singleton — import this everywhere
settings = Settings()
