"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with STAFFDESK_ prefix.
Loaded once at import time; everything else reads the `settings` singleton.

Learn: the database connection is described by discrete host/user/password/
name variables (how ops hands them out), but a full `database_url` can
override them (the tests use that to point at SQLite).
"""

from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """All app configuration. Set via STAFFDESK_* env vars."""

    # Database
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "staffdesk"
    db_password: str = "staffdesk_dev"
    db_name: str = "staffdesk"
    database_url: Optional[str] = None
    db_pool_size: int = 10
    db_pool_timeout: float = 30.0

    # Redis (real-time broadcast)
    redis_url: str = "redis://localhost:6379/0"

    # Auth
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    session_lifetime_hours: int = 24
    session_cookie_name: str = "token"
    bcrypt_rounds: int = 12

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 5000

    # CORS
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    model_config = {"env_prefix": "STAFFDESK_"}

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def sqlalchemy_url(self) -> str:
        """Resolve the async SQLAlchemy URL (explicit override wins)."""
        if self.database_url:
            return self.database_url
        return URL.create(
            "postgresql+asyncpg",
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        ).render_as_string(hide_password=False)

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Ensure sensitive defaults are changed in non-development environments."""
        if (
            self.environment not in ("development", "test")
            and self.jwt_secret == "change-me-in-production"
        ):
            raise ValueError(
                "STAFFDESK_JWT_SECRET must be set to a secure value in "
                "non-development environments. Generate one with: "
                'python -c "import secrets; print(secrets.token_urlsafe(32))"'
            )
        return self


# Singleton — import this everywhere
settings = Settings()
