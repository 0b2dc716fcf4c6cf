from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from ..relationships import relationship_path
from ..resolve import _resolve_person, get_snapshot
from ..snapshot import Snapshot

router = APIRouter()


@router.get("/relationship/path")
def get_relationship_path(
    from_id: str = Query(min_length=1, max_length=64),
    to_id: str = Query(min_length=1, max_length=64),
    max_hops: int = Query(default=12, ge=1, le=50),
    snapshot: Snapshot = Depends(get_snapshot),
) -> dict[str, Any]:
    start = _resolve_person(snapshot, from_id)
    goal = _resolve_person(snapshot, to_id)

    path_ids = relationship_path(start.id, goal.id, snapshot.relationship_index, max_hops=max_hops)
    if not path_ids:
        return {"from": from_id, "to": to_id, "path": []}

    by_id = snapshot.people_by_id
    return {
        "from": from_id,
        "to": to_id,
        "path": [{"id": pid, "display_name": by_id[pid].full_name if pid in by_id else None} for pid in path_ids],
        "hops": max(0, len(path_ids) - 1),
    }
