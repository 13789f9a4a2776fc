"""Application settings using Pydantic Settings for configuration management."""

from functools import lru_cache

from pydantic import Field, SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Application
    app_name: str = "mailtrace"
    app_version: str = "0.1.0"
    log_level: str = "INFO"

    # IMAP mailbox that receives test messages
    imap_host: str | None = None
    imap_port: int = 993
    imap_user: str | None = None
    imap_password: SecretStr | None = None
    imap_tls: bool = True
    imap_folder: str = "INBOX"

    # Test messages are recognised by subject prefix
    test_subject_prefix: str = "ANALYZER-TEST"
    initial_fetch_limit: int = Field(default=5, ge=0)
    poll_interval_seconds: int = Field(default=60, ge=1)

    # Persistence
    sqlite_db_path: str = "data/mailtrace.db"

    @computed_field
    @property
    def imap_enabled(self) -> bool:
        """IMAP monitoring only runs when host and credentials are all set."""
        return bool(self.imap_host and self.imap_user and self.imap_password)

    @computed_field
    @property
    def test_email_address(self) -> str:
        """Mailbox address advertised for test messages."""
        return self.imap_user or "test-email-analyzer@tempmail.com"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
