from __future__ import annotations

from datetime import date
from typing import Any, Iterable

from .dates import compute_age, extract_year, format_date
from .families import notable_score
from .models import MediaItem, Person, Relationship
from .relationships import ResolvedRelationships


def _compact(value: Any) -> Any:
    """Drop None, blank strings and empty containers; keep 0 and False."""

    if isinstance(value, str):
        return value if value.strip() else None
    if isinstance(value, list):
        items = [v for v in (_compact(x) for x in value) if v is not None]
        return items or None
    if isinstance(value, dict):
        kept = {k: v for k, v in ((k, _compact(x)) for k, x in value.items()) if v is not None}
        return kept or None
    return value


def person_summary(p: Person) -> dict[str, Any]:
    return {
        "id": p.id,
        "type": "person",
        "display_name": p.full_name,
        "given_name": p.first_name or None,
        "surname": p.last_name or None,
        "birth_year": extract_year(p.birth_date),
        "death_year": extract_year(p.death_date),
        "has_photos": bool(p.photos),
        "has_documents": bool(p.documents),
    }


def person_detail(p: Person, *, today: date | None = None) -> dict[str, Any]:
    out = {
        "id": p.id,
        "type": "person",
        "display_name": p.display_name,
        "given_name": p.first_name,
        "middle_name": p.middle_name,
        "surname": p.last_name,
        "maiden_name": p.maiden_name,
        "nickname": p.nickname,
        "birth": {"date": p.birth_date, "display": format_date(p.birth_date), "place": p.birth_place},
        "death": {"date": p.death_date, "display": format_date(p.death_date), "place": p.death_place},
        "burial_place": p.burial_place,
        "age": compute_age(p.birth_date, p.death_date, today=today),
        "occupation": p.occupation,
        # Paragraphs are separated by blank lines in the import.
        "biography": [para.strip() for para in (p.biography or "").split("\n\n")],
        "notes": p.notes,
        "notable_score": notable_score(p),
    }
    return _compact(out) or {"id": p.id}


def relationship_public(rel: Relationship) -> dict[str, Any]:
    return _compact(rel.model_dump(mode="json")) or {"id": rel.id}


def resolved_public(resolved: ResolvedRelationships) -> dict[str, list[dict[str, Any]]]:
    def _pairs(pairs: Iterable[tuple[Person, Relationship]]) -> list[dict[str, Any]]:
        return [
            {"person": person_summary(person), "relationship": relationship_public(rel)}
            for person, rel in pairs
        ]

    return {
        "spouses": _pairs(resolved.spouses),
        "children": _pairs(resolved.children),
        "parents": _pairs(resolved.parents),
        "siblings": _pairs(resolved.siblings),
    }


def media_public(item: MediaItem) -> dict[str, Any]:
    return _compact(item.model_dump(mode="json")) or {"id": item.id}
