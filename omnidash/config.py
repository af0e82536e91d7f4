"""
Configuration management for OmniDash.

All configuration is done via environment variables.
This module provides typed configuration classes with validation.

Invariants:
    - All settings have sensible defaults for local use
    - Archive credentials are never logged or exposed in error messages

How to change safely:
    - Add new settings with defaults that maintain backward compatibility
    - Changing the default db_name orphans existing local databases
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

_DEFAULT_DATA_DIR = os.path.join(os.path.expanduser("~"), ".omnidash")


@dataclass(frozen=True)
class StorageConfig:
    """Local snapshot store configuration.

    Attributes:
        data_dir: Directory holding the SQLite database file
        db_name: Database name (file is <data_dir>/<db_name>.db)
        wal_mode: SQLite WAL mode enabled
        busy_timeout_ms: SQLite busy timeout in milliseconds
    """

    data_dir: str = _DEFAULT_DATA_DIR
    db_name: str = "OmniDashDB"
    wal_mode: bool = True
    busy_timeout_ms: int = 5000

    @classmethod
    def from_env(cls) -> StorageConfig:
        """Load configuration from environment variables."""
        return cls(
            data_dir=os.getenv("OMNIDASH_DATA_DIR", _DEFAULT_DATA_DIR),
            db_name=os.getenv("OMNIDASH_DB_NAME", "OmniDashDB"),
            wal_mode=os.getenv("SQLITE_WAL_MODE", "true").lower() == "true",
            busy_timeout_ms=int(os.getenv("SQLITE_BUSY_TIMEOUT_MS", "5000")),
        )


@dataclass(frozen=True)
class ArchiveConfig:
    """Remote web archive (Wayback Machine) configuration.

    Attributes:
        availability_url: Availability API endpoint
        cdx_url: CDX history API endpoint
        save_url: Save Page Now endpoint
        timeout_seconds: Per-request timeout
        history_limit: Maximum CDX rows requested
        access_key: S3-style access key for captures
        secret_key: S3-style secret key for captures
        user_agent: User-Agent header sent with every request
    """

    availability_url: str = "https://archive.org/wayback/available"
    cdx_url: str = "https://web.archive.org/cdx/search/cdx"
    save_url: str = "https://web.archive.org/save"
    timeout_seconds: float = 30.0
    history_limit: int = 100
    access_key: str | None = None
    secret_key: str | None = None
    user_agent: str = "omnidash"

    @classmethod
    def from_env(cls) -> ArchiveConfig:
        """Load configuration from environment variables."""
        return cls(
            availability_url=os.getenv(
                "WAYBACK_AVAILABILITY_URL", "https://archive.org/wayback/available"
            ),
            cdx_url=os.getenv("WAYBACK_CDX_URL", "https://web.archive.org/cdx/search/cdx"),
            save_url=os.getenv("WAYBACK_SAVE_URL", "https://web.archive.org/save"),
            timeout_seconds=float(os.getenv("WAYBACK_TIMEOUT_SECONDS", "30")),
            history_limit=int(os.getenv("WAYBACK_HISTORY_LIMIT", "100")),
            access_key=os.getenv("WAYBACK_ACCESS_KEY"),
            secret_key=os.getenv("WAYBACK_SECRET_KEY"),
            user_agent=os.getenv("WAYBACK_USER_AGENT", "omnidash"),
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self.access_key and self.secret_key)


@dataclass(frozen=True)
class ObservabilityConfig:
    """Logging configuration.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json, text)
    """

    log_level: str = "INFO"
    log_format: str = "json"

    @classmethod
    def from_env(cls) -> ObservabilityConfig:
        """Load configuration from environment variables."""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "json"),
        )


@dataclass
class AppConfig:
    """Complete application configuration.

    Attributes:
        storage: Local snapshot store configuration
        archive: Remote archive client configuration
        observability: Logging configuration
    """

    storage: StorageConfig = field(default_factory=StorageConfig)
    archive: ArchiveConfig = field(default_factory=ArchiveConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load complete configuration from environment variables.

        Returns:
            AppConfig with all sections populated from environment.

        Raises:
            ValueError: If configuration is missing or invalid.
        """
        config = cls(
            storage=StorageConfig.from_env(),
            archive=ArchiveConfig.from_env(),
            observability=ObservabilityConfig.from_env(),
        )

        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration consistency.

        Raises:
            ValueError: If configuration is invalid.
        """
        if not self.storage.db_name:
            raise ValueError("OMNIDASH_DB_NAME must not be empty")
        if self.storage.busy_timeout_ms < 0:
            raise ValueError("SQLITE_BUSY_TIMEOUT_MS must not be negative")
        if self.archive.timeout_seconds <= 0:
            raise ValueError("WAYBACK_TIMEOUT_SECONDS must be positive")
        if self.archive.history_limit <= 0:
            raise ValueError("WAYBACK_HISTORY_LIMIT must be positive")
        if self.observability.log_format not in ("json", "text"):
            raise ValueError(
                f"Invalid LOG_FORMAT '{self.observability.log_format}'. Must be one of: json, text"
            )

        if not os.path.exists(self.storage.data_dir):
            logger.warning(
                f"Data directory does not exist: {self.storage.data_dir}. "
                "It will be created on first open."
            )

    def log_config(self) -> None:
        """Log configuration (redacting secrets)."""
        logger.info(
            "Configuration loaded",
            extra={
                "data_dir": self.storage.data_dir,
                "db_name": self.storage.db_name,
                "wal_mode": self.storage.wal_mode,
                "availability_url": self.archive.availability_url,
                "cdx_url": self.archive.cdx_url,
                "save_url": self.archive.save_url,
                "archive_credentials": self.archive.has_credentials,
                "log_level": self.observability.log_level,
            },
        )
