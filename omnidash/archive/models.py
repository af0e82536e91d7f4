"""Response types for the web archive client."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ClosestSnapshot:
    """Nearest archived capture of a URL."""

    available: bool
    status: str
    timestamp: str
    url: str


@dataclass
class Availability:
    """Result of an availability check.

    Attributes:
        url: URL that was checked
        closest_snapshot: Nearest capture, None if the URL was never archived
    """

    url: str
    closest_snapshot: ClosestSnapshot | None = None


@dataclass
class CdxRecord:
    """One row of capture history from the CDX API."""

    url_key: str
    timestamp: str
    original: str
    mime_type: str
    status_code: str
    digest: str
    length: str


@dataclass
class CaptureResult:
    """Outcome of a Save Page Now request."""

    saved: bool
    message: str
