"""
Archive module for OmniDash - client for the public web archive.

The client produces the data a capture turns into a SavedSnapshot;
it never writes to the snapshot store itself.
"""

from .client import WaybackClient
from .models import Availability, CaptureResult, CdxRecord, ClosestSnapshot

__all__ = [
    "WaybackClient",
    "Availability",
    "CaptureResult",
    "CdxRecord",
    "ClosestSnapshot",
]
