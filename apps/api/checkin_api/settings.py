"""Application settings and configuration."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "dev-jwt-secret-change-in-production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: Optional[str] = None
    postgres_user: str = "checkin"
    postgres_password: str = "checkin_dev_password"
    postgres_db: str = "checkin"
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    database_statement_timeout_ms: int = 10000

    # Runtime
    environment: str = "development"

    # Identity provider tokens
    jwt_secret_key: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_audience: Optional[str] = "authenticated"

    # Validation
    validation_timeout_seconds: float = 10.0
    reject_unknown_status: bool = False
    used_statuses: list[str] = ["utilizado", "used", "usado", "check-in", "checkin", "checked-in"]
    cancelled_statuses: list[str] = ["cancelado", "cancelled", "canceled", "cancel"]
    confirmed_statuses: list[str] = [
        "confirmado",
        "pago",
        "paid",
        "ativo",
        "active",
        "valid",
        "válido",
        "aprovado",
        "approved",
    ]
    paid_statuses: list[str] = ["paid", "pago"]
    used_status_value: str = "utilizado"  # written to vendas.status on redemption

    # History
    history_default_limit: int = 50
    history_max_limit: int = 200

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json or text

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    @property
    def database_url_computed(self) -> str:
        """Compute database URL if not explicitly set."""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    def validate_production_settings(self):
        """Validate settings for production environment."""
        env = self.environment.lower()
        if env not in ("development", "test", "dev"):
            if self.jwt_secret_key == DEFAULT_JWT_SECRET:
                raise ValueError(
                    "JWT_SECRET_KEY must be set to the identity provider secret outside development. "
                    "Do not use the default secret."
                )
            if self.validation_timeout_seconds <= 0:
                raise ValueError("VALIDATION_TIMEOUT_SECONDS must be positive.")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
