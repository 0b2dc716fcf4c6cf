from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from ..dates import generation_label, group_by_generation, slugify
from ..families import (
    events_by_decade,
    family_members,
    family_relationships,
    family_statistics,
    family_timeline,
    find_family,
    notable_members,
)
from ..models import Family
from ..resolve import get_snapshot
from ..serialize import person_summary
from ..snapshot import Snapshot

router = APIRouter()


def _family_row(family: Family) -> dict[str, Any]:
    stats = family.statistics
    return {
        "surname": family.surname,
        "slug": slugify(family.surname),
        "origin": family.origin,
        "alternate_spellings": family.alternate_spellings,
        "members_total": stats.total_members,
        "generations": stats.generations,
        "oldest_member": stats.oldest_member,
        "youngest_member": stats.youngest_member,
    }


@router.get("/families")
def list_families(
    limit: int = Query(default=5000, ge=1, le=50_000),
    offset: int = Query(default=0, ge=0, le=5_000_000),
    include_total: bool = False,
    snapshot: Snapshot = Depends(get_snapshot),
) -> dict[str, Any]:
    """Surname families, largest first."""

    families = sorted(
        snapshot.aggregated_families,
        key=lambda f: (-f.statistics.total_members, f.surname),
    )
    out: dict[str, Any] = {
        "offset": offset,
        "limit": limit,
        "results": [_family_row(f) for f in families[offset : offset + limit]],
    }
    if include_total:
        out["total"] = len(families)
    return out


@router.get("/families/{surname}")
def get_family(surname: str, snapshot: Snapshot = Depends(get_snapshot)) -> dict[str, Any]:
    family = find_family(snapshot.aggregated_families, surname)
    if family is None:
        # Links from the family index use the slug.
        family = next(
            (f for f in snapshot.aggregated_families if slugify(f.surname) == surname.lower()),
            None,
        )
    if family is None:
        raise HTTPException(status_code=404, detail=f"family not found: {surname}")

    members = family_members(snapshot.people, family.surname)
    rels = family_relationships(members, snapshot.relationships)
    timeline = family_timeline(members, rels)

    generations = group_by_generation(members)
    return {
        "family": {
            **_family_row(family),
            "origin_country": family.origin_country,
            "migration_history": family.migration_history,
            "description": family.description,
        },
        "generations": [
            {
                "bucket": bucket,
                "label": generation_label(bucket, len(generations)),
                "members": [person_summary(p) for p in people],
            }
            for bucket, people in generations.items()
        ],
        "notable_members": [person_summary(p) for p in notable_members(members)],
        "statistics": family_statistics(members, rels),
        "timeline": timeline,
        "decades": {str(decade): len(events) for decade, events in events_by_decade(timeline).items()},
    }
