"""
Whistle Service Settings

Configuration management using Pydantic settings with environment variable support.
"""

from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from whistle_service.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Whistle Service configuration"""

    # Service Configuration
    service_name: str = Field(default="whistle-service", description="Service name")
    environment: str = Field(default="development", description="Environment (development, production)")
    port: int = Field(default=8080, description="Service port")
    host: str = Field(default="0.0.0.0", description="Service host")
    api_prefix: str = Field(default="/api", description="Prefix for all API routers")

    # Report Storage Configuration
    # REPORT_STORE: "memory" (default) or "database"
    # - memory: process-scoped list, cleared on restart
    # - database: async SQLAlchemy using DATABASE_URL
    report_store: str = Field(default="memory", description="Report store backend (memory, database)")
    database_url: str = Field(
        default="sqlite+aiosqlite:///./whistle.db",
        description="Database connection URL"
    )

    # Admin Authentication
    # NOTE: No defaults for secrets. The API refuses to start without them.
    admin_username: Optional[str] = Field(default=None, description="Admin username")
    admin_password: Optional[str] = Field(default=None, description="Admin password")
    jwt_secret: Optional[str] = Field(default=None, description="Secret used to sign admin JWTs")
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_expire_minutes: int = Field(default=60, description="Admin token lifetime in minutes")
    login_failure_delay_seconds: float = Field(
        default=1.0,
        description="Fixed delay before answering a failed login"
    )

    # Notification Hub
    heartbeat_interval_seconds: float = Field(default=30.0, description="Heartbeat interval for live streams")
    notification_queue_size: int = Field(default=100, description="Per-viewer outbound event buffer")

    # Email Alerts (urgent reports)
    email_enabled: bool = Field(default=False, description="Send email alerts for urgent reports")
    smtp_host: str = Field(default="localhost", description="SMTP relay host")
    smtp_port: int = Field(default=587, description="SMTP relay port")
    smtp_username: Optional[str] = Field(default=None, description="SMTP username")
    smtp_password: Optional[str] = Field(default=None, description="SMTP password")
    smtp_use_tls: bool = Field(default=True, description="Use STARTTLS with the SMTP relay")
    email_from: str = Field(default="whistle@localhost", description="Sender address for alerts")
    email_to: Optional[str] = Field(default=None, description="Recipient address for alerts")

    # CORS Configuration
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def require_auth_config(self) -> None:
        """
        Fail fast when admin secrets are missing

        Raises:
            ConfigurationError: If any admin secret is unset
        """
        missing = [
            name.upper()
            for name in ("admin_username", "admin_password", "jwt_secret")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}"
            )


class ClientSettings(BaseSettings):
    """Configuration for submitter and admin client tooling"""

    base_url: str = Field(default="http://localhost:8080", description="Whistle service base URL")
    api_prefix: str = Field(default="/api", description="API prefix on the service")
    encryption_key: Optional[str] = Field(
        default=None,
        description="Shared report encryption key (64 hex chars or urlsafe base64)"
    )
    request_timeout_seconds: float = Field(default=10.0, description="HTTP request timeout")

    model_config = SettingsConfigDict(
        env_prefix="WHISTLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
