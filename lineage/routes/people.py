from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..models import SearchFilters, YearRange
from ..resolve import _resolve_person, get_snapshot
from ..search import filter_options, ranked_search, search
from ..serialize import media_public, person_detail, person_summary, resolved_public
from ..snapshot import Snapshot

router = APIRouter()


def _year_range(lo: Optional[int], hi: Optional[int], name: str) -> Optional[YearRange]:
    if lo is None and hi is None:
        return None
    if lo is not None and hi is not None and lo > hi:
        raise HTTPException(status_code=400, detail=f"{name}_from must not exceed {name}_to")
    return YearRange(from_year=lo, to_year=hi)


@router.get("/people")
def list_people(
    q: Optional[str] = Query(default=None, max_length=200),
    surname: Optional[str] = Query(default=None, max_length=100),
    first_name: Optional[str] = Query(default=None, max_length=100),
    birth_place: Optional[str] = Query(default=None, max_length=200),
    death_place: Optional[str] = Query(default=None, max_length=200),
    occupation: Optional[str] = Query(default=None, max_length=200),
    birth_from: Optional[int] = None,
    birth_to: Optional[int] = None,
    death_from: Optional[int] = None,
    death_to: Optional[int] = None,
    has_photos: bool = False,
    has_documents: bool = False,
    limit: int = Query(default=5000, ge=1, le=50_000),
    offset: int = Query(default=0, ge=0, le=5_000_000),
    include_total: bool = False,
    snapshot: Snapshot = Depends(get_snapshot),
) -> dict[str, Any]:
    """Filtered people list; with ``q``, best fuzzy matches first.

    Without ``q`` the list is ordered by surname, then given name.
    """

    filters = SearchFilters(
        surname=surname,
        first_name=first_name,
        birth_place=birth_place,
        death_place=death_place,
        occupation=occupation,
        birth_year=_year_range(birth_from, birth_to, "birth"),
        death_year=_year_range(death_from, death_to, "death"),
        has_photos=has_photos,
        has_documents=has_documents,
    )
    people = search(snapshot.people, filters, q, index=snapshot.fuzzy_index)

    out: dict[str, Any] = {
        "offset": offset,
        "limit": limit,
        "query": q,
        "results": [person_summary(p) for p in people[offset : offset + limit]],
    }
    if include_total:
        out["total"] = len(people)
    return out


@router.get("/people/search")
def search_people(
    q: str = Query(min_length=1, max_length=200),
    limit: int = Query(default=25, ge=1, le=500),
    snapshot: Snapshot = Depends(get_snapshot),
) -> dict[str, Any]:
    ranked = ranked_search(snapshot.people, q)[:limit]
    return {
        "query": q,
        "results": [{**person_summary(p), "score": score} for p, score in ranked],
    }


@router.get("/people/filters")
def people_filter_options(snapshot: Snapshot = Depends(get_snapshot)) -> dict[str, Any]:
    return filter_options(snapshot.people)


@router.get("/people/{person_id}")
def get_person(person_id: str, snapshot: Snapshot = Depends(get_snapshot)) -> dict[str, Any]:
    person = _resolve_person(snapshot, person_id)
    resolved = snapshot.relationship_index.resolve(person.id, snapshot.people_by_id)
    media = snapshot.person_media(person.id)

    return {
        "person": person_detail(person),
        "relationships": resolved_public(resolved),
        "relationship_counts": resolved.counts(),
        "photos": [media_public(m) for m in media if m.type == "photo"],
        "documents": [media_public(m) for m in media if m.type == "document"],
    }
