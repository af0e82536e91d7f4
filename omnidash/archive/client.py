"""
Async client for the public web archive APIs.

Covers the three endpoints the dashboard uses:
- Availability: closest archived capture of a URL
- CDX: capture history of a URL
- Save Page Now: request a fresh capture (needs S3-style keys)

Invariants:
    - Requests are made once; retry policy belongs to the caller
    - Failures raise ArchiveError subclasses, nothing falls back silently
    - Credentials are sent only to the capture endpoint and never logged

How to change safely:
    - Keep CDX field order in sync with _CDX_FIELDS
    - Test new endpoints with httpx.MockTransport
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import ArchiveConfig
from ..errors import ArchiveRequestError, AuthenticationError, CaptureSubmissionError
from .models import Availability, CaptureResult, CdxRecord, ClosestSnapshot

logger = logging.getLogger(__name__)

_CDX_FIELDS = ("urlkey", "timestamp", "original", "mimetype", "statuscode", "digest", "length")


class WaybackClient:
    """Client for availability, history and capture requests.

    Example:
        >>> async with WaybackClient() as client:
        ...     availability = await client.check_availability("example.com")
        ...     history = await client.fetch_history("example.com")
    """

    def __init__(
        self,
        config: ArchiveConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Archive configuration (defaults used if not provided)
            client: Pre-built httpx client; the caller keeps ownership
        """
        self.config = config or ArchiveConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=self.config.timeout_seconds,
            headers={"User-Agent": self.config.user_agent},
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> WaybackClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _get(self, endpoint: str, params: dict[str, Any]) -> httpx.Response:
        try:
            response = await self._client.get(endpoint, params=params)
        except httpx.HTTPError as e:
            logger.error(f"Archive request failed: {endpoint}: {e}")
            raise ArchiveRequestError(f"Request to {endpoint} failed: {e}", url=endpoint) from e

        if not response.is_success:
            raise ArchiveRequestError(
                f"Request to {endpoint} failed with status: {response.status_code}",
                status_code=response.status_code,
                url=endpoint,
            )
        return response

    async def check_availability(self, url: str) -> Availability:
        """Find the closest archived capture of a URL.

        Args:
            url: URL to look up

        Returns:
            Availability with closest_snapshot set if the URL was archived

        Raises:
            ArchiveRequestError: On transport failure, non-2xx or invalid JSON
        """
        response = await self._get(self.config.availability_url, {"url": url})
        try:
            data = response.json()
        except ValueError as e:
            raise ArchiveRequestError(
                "Received non-JSON response from availability API",
                status_code=response.status_code,
                url=self.config.availability_url,
            ) from e

        closest = (data.get("archived_snapshots") or {}).get("closest")
        closest_snapshot = None
        if closest:
            closest_snapshot = ClosestSnapshot(
                available=bool(closest.get("available", False)),
                status=str(closest.get("status", "")),
                timestamp=str(closest.get("timestamp", "")),
                url=closest.get("url", ""),
            )

        return Availability(url=data.get("url", url), closest_snapshot=closest_snapshot)

    async def fetch_history(self, url: str, limit: int | None = None) -> list[CdxRecord]:
        """Fetch the capture history of a URL.

        Args:
            url: URL to look up
            limit: Maximum rows (defaults to config.history_limit)

        Returns:
            History rows in archive order, empty if the URL has no captures

        Raises:
            ArchiveRequestError: On transport failure, non-2xx or a
                non-empty non-JSON body
        """
        params = {
            "url": url,
            "output": "json",
            "limit": limit if limit is not None else self.config.history_limit,
            "fl": ",".join(_CDX_FIELDS),
        }
        response = await self._get(self.config.cdx_url, params)

        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            if not response.text:
                return []
            raise ArchiveRequestError(
                "Received non-JSON response from CDX API",
                status_code=response.status_code,
                url=self.config.cdx_url,
            )

        try:
            rows = response.json()
        except ValueError as e:
            raise ArchiveRequestError(
                "Received malformed JSON from CDX API",
                status_code=response.status_code,
                url=self.config.cdx_url,
            ) from e

        # First row is the field header
        if not isinstance(rows, list) or len(rows) < 2:
            return []

        return [
            CdxRecord(
                url_key=row[0],
                timestamp=row[1],
                original=row[2],
                mime_type=row[3],
                status_code=row[4],
                digest=row[5],
                length=row[6],
            )
            for row in rows[1:]
        ]

    async def save_page_now(self, url: str, access_key: str, secret_key: str) -> CaptureResult:
        """Request a fresh capture of a URL.

        Args:
            url: URL to capture
            access_key: Archive S3-style access key
            secret_key: Archive S3-style secret key

        Returns:
            CaptureResult with saved=True once the request is accepted

        Raises:
            AuthenticationError: If either key is empty (no request is sent)
            CaptureSubmissionError: If the archive rejects the request
        """
        if not access_key or not secret_key:
            raise AuthenticationError(
                "Missing credentials. Configure WAYBACK_ACCESS_KEY and WAYBACK_SECRET_KEY."
            )

        try:
            response = await self._client.post(
                self.config.save_url,
                data={"url": url, "capture_all": "1"},
                headers={
                    "Accept": "application/json",
                    "Authorization": f"LOW {access_key}:{secret_key}",
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"Capture request failed: {e}")
            raise CaptureSubmissionError(f"Capture request failed: {e}") from e

        if response.is_success:
            logger.info(f"Capture request submitted: {url}")
            return CaptureResult(saved=True, message="Capture request submitted.")

        text = response.text
        if "<!DOCTYPE html>" in text:
            raise CaptureSubmissionError(
                f"Capture failed (Status {response.status_code}). "
                "This may be due to rate limits.",
                status_code=response.status_code,
            )
        raise CaptureSubmissionError(
            text or f"Capture failed with status {response.status_code}",
            status_code=response.status_code,
        )
