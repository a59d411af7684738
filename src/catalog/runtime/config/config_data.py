"""Typed view of the ``config:`` section of ``config.yaml``.

Every section has working defaults, so a partial (or missing) file still
yields a complete ``ConfigData``.
"""

from __future__ import annotations

import os
from typing import Literal

from loguru import logger
from pydantic import BaseModel, Field
from sqlalchemy.engine import make_url


class CORSConfig(BaseModel):
    """Origins and methods accepted from browsers."""

    origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:3001"],
        description="Allowed origins; '*' is rejected in production",
    )
    allow_credentials: bool = True
    allow_methods: list[str] = Field(default_factory=lambda: ["GET", "PUT", "OPTIONS"])
    allow_headers: list[str] = Field(default_factory=lambda: ["*"])


class RateLimiterConfig(BaseModel):
    """Sliding-window limits applied to the /books routes."""

    enabled: bool = Field(default=True, description="Turn request limiting on or off")
    requests: int = Field(default=100, ge=1, description="Requests allowed in one window")
    window_ms: int = Field(default=60000, ge=1, description="Window length in milliseconds")
    per_endpoint: bool = Field(
        default=True, description="Count each route template separately"
    )
    per_method: bool = Field(
        default=True, description="Count each HTTP method separately"
    )


class JWTClaimsConfig(BaseModel):
    """Names of the token claims the service reads."""

    user_id: str = Field(default="sub", description="Claim holding the caller id")
    roles: str = Field(default="roles", description="Claim holding the caller roles")


class JWTConfig(BaseModel):
    """Issuing and verification parameters for access tokens."""

    allowed_algorithms: list[str] = Field(
        default_factory=lambda: ["HS256"],
        description="Signature algorithms a token may use",
    )
    issuer: str = Field(
        default="library-catalog",
        description="Issuer written into minted tokens and required on incoming ones",
    )
    audiences: list[str] = Field(
        default_factory=lambda: ["api://library-catalog"],
        description="Audiences this service answers for",
    )
    clock_skew: int = Field(default=60, ge=0, description="Leeway for exp/nbf/iat in seconds")
    token_ttl_seconds: int = Field(
        default=3600, ge=1, description="Lifetime of tokens minted by the CLI"
    )
    claims: JWTClaimsConfig = Field(default_factory=JWTClaimsConfig)


class LoggingConfig(BaseModel):
    """Loguru sinks."""

    level: str = "INFO"
    format: Literal["json", "plain"] = Field(
        default="json", description="Layout of the file sink"
    )
    file: str | None = Field(default=None, description="File sink path; empty disables it")
    max_size_mb: int = Field(default=10, ge=1, description="Rotate the file at this size")
    backup_count: int = Field(default=5, ge=0, description="Rotated files kept")


class DatabaseConfig(BaseModel):
    """SQLAlchemy engine settings."""

    url: str = "sqlite:///./catalog.db"
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = Field(default=30, description="Seconds to wait for a connection")
    pool_recycle: int = Field(default=1800, description="Seconds before a connection is recycled")
    create_tables_on_startup: bool = Field(
        default=False, description="Run create_all when the API starts"
    )
    password_env_var: str | None = Field(
        default=None, description="Variable whose value replaces the URL password"
    )
    password_file: str | None = Field(
        default=None, description="File whose content replaces the URL password"
    )

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def password(self) -> str | None:
        """Resolve the database password.

        A password file wins over an environment variable; when neither is
        configured the password embedded in the URL (if any) is used as-is.
        """
        if self.password_file:
            try:
                with open(self.password_file) as f:
                    return f.read().strip()
            except OSError as e:
                raise ValueError("Failed to read database password from file.") from e
        if self.password_env_var:
            secret = os.getenv(self.password_env_var)
            if not secret:
                raise ValueError(f"Environment variable {self.password_env_var} not set")
            return secret
        return None

    @property
    def connection_string(self) -> str:
        """``url`` with the resolved password substituted in."""
        secret = self.password
        if secret is None:
            return self.url

        url = make_url(self.url)
        if url.password and url.password != secret:
            logger.warning(
                "Database URL password differs from the configured secret; using the secret"
            )
        return url.set(password=secret).render_as_string(hide_password=False)


class CatalogConfig(BaseModel):
    """Catalog behaviour configuration."""

    search_max_results: int = Field(
        default=100, ge=1, description="Maximum number of books returned by a search"
    )
    criterion_max_length: int = Field(
        default=200, ge=1, description="Maximum accepted length of a search criterion"
    )
    strict_availability: bool = Field(
        default=False,
        description="Answer 404 instead of false when checking availability of an unknown book",
    )
    role_prefix: str = Field(
        default="ROLE_", description="Prefix stripped from role names found in tokens"
    )


class AppConfig(BaseModel):
    """Process-level settings."""

    environment: Literal["development", "production", "test"] = "development"
    host: str = "localhost"
    port: int = 8000
    token_signing_secret: str | None = Field(
        default=None, description="Secret for signing and verifying access tokens"
    )
    cors: CORSConfig = Field(default_factory=CORSConfig)

    @property
    def base_url(self) -> str:
        scheme = "https" if self.environment == "production" else "http"
        return f"{scheme}://{self.host}:{self.port}"


class ConfigData(BaseModel):
    """Root of the configuration tree."""

    app: AppConfig = Field(default_factory=AppConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    jwt: JWTConfig = Field(default_factory=JWTConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    rate_limiter: RateLimiterConfig = Field(default_factory=RateLimiterConfig)
