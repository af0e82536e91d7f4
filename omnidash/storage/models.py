"""
Persisted record types for the snapshot store.

The on-disk layout uses the camelCase keys the dashboard client has
always written (id, originalUrl, timestamp, savedAt); Python code uses
snake_case attributes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

_KNOWN_KEYS = frozenset({"id", "originalUrl", "timestamp", "savedAt", "title", "status"})


@dataclass
class SavedSnapshot:
    """A web capture the user chose to keep locally.

    Attributes:
        id: Unique identifier (primary key)
        original_url: Source URL that was archived
        timestamp: Capture time reported by the archive (string or number)
        saved_at: Epoch time the record was written locally, display ordering only
        title: Optional display title
        status: Optional capture status
        extra: Any other fields, stored and returned untouched
    """

    id: str
    original_url: str
    timestamp: str | int | float
    saved_at: int | float
    title: str | None = None
    status: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted camelCase layout."""
        data: dict[str, Any] = dict(self.extra)
        data.update(
            {
                "id": self.id,
                "originalUrl": self.original_url,
                "timestamp": self.timestamp,
                "savedAt": self.saved_at,
            }
        )
        if self.title is not None:
            data["title"] = self.title
        if self.status is not None:
            data["status"] = self.status
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SavedSnapshot:
        """Build a record from the persisted camelCase layout.

        Raises:
            KeyError: If id, originalUrl, timestamp or savedAt is missing
        """
        return cls(
            id=data["id"],
            original_url=data["originalUrl"],
            timestamp=data["timestamp"],
            saved_at=data["savedAt"],
            title=data.get("title"),
            status=data.get("status"),
            extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
        )
