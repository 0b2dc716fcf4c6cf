"""FastAPI app serving the derived genealogy views.

Run with ``uvicorn lineage.main:app`` and ``LINEAGE_DATA_DIR`` pointing at a
snapshot directory.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI

from .config import configure_logging, get_data_dir
from .routes.families import router as families_router
from .routes.graph import router as graph_router
from .routes.media import router as media_router
from .routes.people import router as people_router
from .routes.relationship import router as relationship_router
from .snapshot import SnapshotCache, load_snapshot

log = logging.getLogger(__name__)


def create_app(cache: Optional[SnapshotCache] = None) -> FastAPI:
    """Build the app around ``cache``; by default one reading LINEAGE_DATA_DIR lazily."""

    configure_logging()
    app = FastAPI(title="Lineage API", version="0.1.0")

    if cache is None:
        # Resolve the directory on first request so importing the module
        # does not require the environment to be set.
        cache = SnapshotCache(lambda: load_snapshot(get_data_dir()))
    app.state.snapshot_cache = cache

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"ok": "true", "snapshot": "loaded" if cache.loaded else "pending"}

    @app.post("/admin/reload")
    def reload_snapshot() -> dict[str, str]:
        cache.clear()
        log.info("snapshot cache cleared")
        return {"ok": "true"}

    app.include_router(people_router)
    app.include_router(families_router)
    app.include_router(graph_router)
    app.include_router(relationship_router)
    app.include_router(media_router)
    return app


app = create_app()
