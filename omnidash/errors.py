"""
Error types for OmniDash.

This module defines all exception types raised by the package:
- OmniDashError: Base exception
- StorageError: Local snapshot store failures (init, read, write)
- ArchiveError: Remote web archive failures (request, auth, capture)

Invariants:
    - All errors inherit from OmniDashError
    - Storage errors chain the underlying engine exception (__cause__)
    - Lookup misses are never errors

How to change safely:
    - Do not split storage errors into finer kinds than the engine reports
    - Keep error codes stable, the HTTP layer maps on exception type
"""

from __future__ import annotations

from typing import Any


class OmniDashError(Exception):
    """Base exception for all OmniDash errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "OMNIDASH_ERROR"
        self.details = details or {}


class StorageError(OmniDashError):
    """Base class for snapshot store failures."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        cause: BaseException | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = dict(details or {})
        if cause is not None:
            details["cause"] = repr(cause)
        super().__init__(message, code=code or "STORAGE_ERROR", details=details)


class StorageInitError(StorageError):
    """Database cannot be opened or its schema cannot be created/upgraded.

    Raised when:
    - The data directory cannot be created
    - SQLite refuses to open the file (permissions, disk full)
    - A migration fails or the on-disk schema is newer than the code
    """

    def __init__(
        self,
        message: str,
        db_path: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            message,
            code="STORAGE_INIT_ERROR",
            cause=cause,
            details={"db_path": db_path},
        )
        self.db_path = db_path


class StorageReadError(StorageError):
    """A read transaction failed."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message, code="STORAGE_READ_ERROR", cause=cause)


class StorageWriteError(StorageError):
    """A write transaction aborted. No partial write is visible."""

    def __init__(
        self,
        message: str,
        snapshot_id: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            message,
            code="STORAGE_WRITE_ERROR",
            cause=cause,
            details={"snapshot_id": snapshot_id},
        )
        self.snapshot_id = snapshot_id


class ArchiveError(OmniDashError):
    """Base class for remote web archive failures."""

    pass


class ArchiveRequestError(ArchiveError):
    """Archive endpoint could not be reached or returned an unusable response.

    Attributes:
        status_code: HTTP status, None for transport failures
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(
            message,
            code="ARCHIVE_REQUEST_ERROR",
            details={"status_code": status_code, "url": url},
        )
        self.status_code = status_code


class AuthenticationError(ArchiveError):
    """Capture credentials are missing."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="AUTHENTICATION_ERROR")


class CaptureSubmissionError(ArchiveError):
    """Capture request was rejected by the archive."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(
            message,
            code="CAPTURE_SUBMISSION_ERROR",
            details={"status_code": status_code},
        )
        self.status_code = status_code
