from __future__ import annotations

from fastapi import HTTPException, Request

from .models import Person
from .snapshot import Snapshot, SnapshotCache


def get_cache(request: Request) -> SnapshotCache:
    cache = getattr(request.app.state, "snapshot_cache", None)
    if cache is None:
        raise RuntimeError("snapshot cache is not configured on the app")
    return cache


def get_snapshot(request: Request) -> Snapshot:
    """FastAPI dependency: the current snapshot from the app's cache."""
    return get_cache(request).get()


def _resolve_person(snapshot: Snapshot, person_id: str) -> Person:
    person = snapshot.people_by_id.get(person_id)
    if person is None:
        raise HTTPException(status_code=404, detail=f"person not found: {person_id}")
    return person
