from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..config import get_canvas_size, get_layout_ticks
from ..families import family_members
from ..graph import assign_depths, build_graph, graph_payload, neighborhood
from ..layout import ForceSimulation
from ..resolve import _resolve_person, get_snapshot
from ..snapshot import Snapshot

log = logging.getLogger(__name__)

router = APIRouter()


@router.get("/graph")
def tree_graph(
    family: Optional[str] = Query(default=None, max_length=100),
    root: Optional[str] = Query(default=None, max_length=64),
    depth: int = Query(default=0, ge=0, le=50),
    max_nodes: int = Query(default=1000, ge=1, le=20_000),
    layout: bool = True,
    snapshot: Snapshot = Depends(get_snapshot),
) -> dict[str, Any]:
    """Nodes and links for the tree view, optionally pre-laid out.

    ``family`` narrows to one surname. With ``root`` and ``depth`` > 0 the
    graph is cut to the people within ``depth`` parent/child hops of the
    root. With ``layout`` the force simulation runs server-side until it
    settles (bounded by LINEAGE_LAYOUT_TICKS) and coordinates are filled in.
    """

    people = family_members(snapshot.people, family) if family else list(snapshot.people)

    root_id: str | None = None
    if root:
        root_id = _resolve_person(snapshot, root).id

    if root_id and depth > 0:
        distances = neighborhood(snapshot.relationship_index, root_id, depth=depth, max_nodes=max_nodes)
        people = [p for p in people if p.id in distances]
    elif len(people) > max_nodes:
        raise HTTPException(
            status_code=400,
            detail=f"graph has {len(people)} people; narrow it with family or root/depth",
        )

    graph = build_graph(people, snapshot.relationships, root_id)
    assign_depths(graph)

    ticks = 0
    if layout and graph:
        width, height = get_canvas_size()
        sim = ForceSimulation(graph.nodes, graph.links, width=width, height=height)
        sim.settle(get_layout_ticks())
        ticks = sim.ticks
        log.debug("laid out %d nodes in %d ticks", len(graph.nodes), ticks)

    payload = graph_payload(graph)
    payload["ticks"] = ticks
    return payload
