"""Application settings, read from the environment and `.env`."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


Environment = Literal["development", "staging", "production", "testing"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """LearnHub configuration.

    Every field maps to an upper-case environment variable of the same
    name, e.g. `CASSANDRA_HOSTS='["db1","db2"]'` or `LOG_FORMAT=json`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- service ---------------------------------------------------------
    app_name: str = "learnhub"
    app_version: str = "0.1.0"
    environment: Environment = "development"

    # --- access tokens ---------------------------------------------------
    auth_secret_key: str = Field(
        default="dev-only-learnhub-signing-key-replace-me!!",
        min_length=32,
        description="HMAC key that signs access tokens",
    )
    auth_algorithm: str = "HS256"
    auth_access_token_expire_minutes: int = Field(default=15, gt=0)

    # --- cassandra -------------------------------------------------------
    cassandra_hosts: list[str] = Field(
        default_factory=lambda: ["localhost"],
        description="Contact points of the cluster",
    )
    cassandra_port: int = 9042
    cassandra_keyspace: str = Field(
        default="learnhub",
        pattern=r"^[a-zA-Z_][a-zA-Z0-9_]*$",
        description="Keyspace holding courses and enrollments",
    )
    cassandra_username: str | None = None
    cassandra_password: str | None = None
    cassandra_protocol_version: int = 4
    cassandra_connect_timeout: float = Field(default=10.0, gt=0)

    # --- logging ---------------------------------------------------------
    log_level: LogLevel = "DEBUG"
    log_format: Literal["json", "console"] = "console"
    log_include_caller_info: bool = True
    log_to_file: bool = True
    log_dir: str = "logs"
    log_file_max_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    log_file_backup_count: int = Field(default=5, ge=0)
    log_requests: bool = True
    log_exclude_paths: list[str] = Field(
        default_factory=lambda: ["/health"],
        description="Path prefixes left out of request logging",
    )

    # --- cors ------------------------------------------------------------
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = Field(default_factory=lambda: ["*"])
    cors_allow_headers: list[str] = Field(default_factory=lambda: ["*"])
    cors_max_age: int = 600

    # --- progress tracking -----------------------------------------------
    progress_max_write_retries: int = Field(
        default=5,
        ge=1,
        description="Attempts per enrollment update before reporting a conflict",
    )
    certificate_issuer_name: str = Field(
        default="LearnHub",
        description="Organization printed on certificates",
    )

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
