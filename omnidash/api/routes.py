"""
API routes for the OmniDash snapshot cache.

Provides REST endpoints over the four SnapshotStore operations:
upsert, get by id, list all and delete.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel, ConfigDict, Field

from ..storage import SavedSnapshot, SnapshotStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Snapshots"])


# --- Request/Response Models ---


class SnapshotBody(BaseModel):
    """Saved snapshot in the persisted camelCase layout.

    Validates request bodies only; responses return the stored record
    as-is so opaque fields, nulls included, round-trip.
    """

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., description="Unique snapshot ID")
    originalUrl: str = Field(..., description="Archived source URL")
    timestamp: str | int | float = Field(..., description="Archive capture time")
    savedAt: int | float = Field(..., description="Local save time (epoch ms)")
    title: str | None = Field(None, description="Display title")
    status: str | None = Field(None, description="Capture status")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    persistence: str


# --- Dependencies ---


def get_store(request: Request) -> SnapshotStore:
    """Get snapshot store from app state."""
    return request.app.state.store


# --- Snapshot Routes ---


@router.get("/snapshots", response_model=None)
async def list_snapshots(store: SnapshotStore = Depends(get_store)):
    """
    List all saved snapshots.

    Most recently saved first.
    """
    snapshots = await store.list_all()
    return [s.to_dict() for s in snapshots]


@router.get("/snapshots/{snapshot_id}", response_model=None)
async def get_snapshot(snapshot_id: str, store: SnapshotStore = Depends(get_store)):
    """Get a single saved snapshot by ID."""
    snapshot = await store.get_by_id(snapshot_id)
    if snapshot is None:
        raise HTTPException(status_code=404, detail=f"Snapshot {snapshot_id} not found")
    return snapshot.to_dict()


@router.put("/snapshots/{snapshot_id}", response_model=None)
async def put_snapshot(
    snapshot_id: str,
    body: SnapshotBody,
    store: SnapshotStore = Depends(get_store),
):
    """
    Save a snapshot.

    Replaces any stored snapshot with the same ID entirely.
    """
    if body.id != snapshot_id:
        raise HTTPException(
            status_code=400,
            detail=f"Body id {body.id!r} does not match path id {snapshot_id!r}",
        )

    snapshot = SavedSnapshot.from_dict(body.model_dump())
    await store.upsert(snapshot)
    return snapshot.to_dict()


@router.delete("/snapshots/{snapshot_id}", status_code=204)
async def delete_snapshot(snapshot_id: str, store: SnapshotStore = Depends(get_store)):
    """
    Delete a saved snapshot.

    Succeeds whether or not the snapshot exists.
    """
    await store.delete_by_id(snapshot_id)
    return Response(status_code=204)


@router.get("/health", response_model=HealthResponse)
async def health(store: SnapshotStore = Depends(get_store)):
    """Report whether local persistence is usable."""
    return HealthResponse(
        status="healthy",
        persistence="available" if store.is_open else "unavailable",
    )
