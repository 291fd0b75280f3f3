from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ACELOAD_",
        env_file=".env",
        extra="ignore",
    )

    # Store connection
    ADDR: str = Field(
        default="localhost:26257", description="Address of the cockroachdb instance"
    )
    DATABASE_NAME: str = Field(default="testdb", description="Database to load into")
    DATABASE_USER: str = Field(default="root", description="SQL user")
    DATABASE_URL: str = Field(
        default="",
        description="Full SQLAlchemy URL; overrides ADDR/DATABASE_NAME/TLS settings when set",
    )
    TLS_KEY_FILE: str = Field(
        default="", description="Client TLS key; empty selects an unencrypted connection"
    )
    TLS_CERT_FILE: str = Field(default="", description="Client TLS certificate")
    TLS_CA_CERT_FILE: str = Field(default="", description="CA certificate")
    ISOLATION_LEVEL: str = Field(
        default="SERIALIZABLE",
        description="Transaction isolation level for non-SQLite stores",
    )
    SQL_ECHO: bool = Field(default=False, description="Echo SQL statements")

    # Transaction retries
    TX_MAX_ATTEMPTS: int = Field(
        default=10, description="Attempts per transaction before giving up"
    )
    TX_RETRY_BACKOFF_SECONDS: float = Field(
        default=0.1, description="Exponential backoff multiplier between retries"
    )
    TX_RETRY_MAX_WAIT_SECONDS: float = Field(
        default=2.0, description="Upper bound for a single retry wait"
    )

    # Workload
    DEDUPE_ACTIONS: bool = Field(
        default=False,
        description="Skip appending an action already present on an access control entry",
    )
    VERBOSE: bool = Field(default=False, description="Print detailed timing data")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
