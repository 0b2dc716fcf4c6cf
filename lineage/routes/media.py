from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..resolve import get_snapshot
from ..serialize import media_public
from ..snapshot import Snapshot

router = APIRouter()


@router.get("/media")
def list_media(
    type: Optional[str] = Query(default=None, pattern="^(photo|document)$"),
    person: Optional[str] = Query(default=None, max_length=64),
    tag: Optional[str] = Query(default=None, max_length=100),
    limit: int = Query(default=500, ge=1, le=10_000),
    offset: int = Query(default=0, ge=0),
    snapshot: Snapshot = Depends(get_snapshot),
) -> dict[str, Any]:
    items = snapshot.person_media(person) if person else list(snapshot.media)
    if type:
        items = [m for m in items if m.type == type]
    if tag:
        t = tag.lower()
        items = [m for m in items if any(x.lower() == t for x in m.tags)]

    return {
        "offset": offset,
        "limit": limit,
        "total": len(items),
        "results": [media_public(m) for m in items[offset : offset + limit]],
    }


@router.get("/media/{media_id}")
def get_media(media_id: str, snapshot: Snapshot = Depends(get_snapshot)) -> dict[str, Any]:
    item = snapshot.media_by_id.get(media_id)
    if item is None:
        raise HTTPException(status_code=404, detail=f"media not found: {media_id}")

    # Only people that exist in this build are linked.
    people = [
        {"id": pid, "display_name": snapshot.people_by_id[pid].full_name}
        for pid in item.people_ids
        if pid in snapshot.people_by_id
    ]
    return {"media": media_public(item), "people": people}
