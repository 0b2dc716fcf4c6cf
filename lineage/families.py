"""Surname-keyed family grouping and the per-family views built on it."""

from __future__ import annotations

from collections import Counter
import math
from typing import Any, Iterable, Optional, Sequence

from .dates import GENERATION_YEARS, compute_age, current_year, extract_year
from .models import Family, FamilyStatistics, Person, Relationship, RelationshipType

UNKNOWN_SURNAME = "Unknown"

_NOTABLE_LIMIT = 5
_NOTABLE_BIOGRAPHY_CHARS = 100

# Years outside this window are treated as transcription noise in statistics.
_EARLIEST_CREDIBLE_YEAR = 1600
_MAX_CREDIBLE_LIFESPAN = 120


def surname_key(surname: str | None) -> str:
    s = (surname or "").strip()
    return s.lower() if s else UNKNOWN_SURNAME.lower()


def _generation_count(years: list[int]) -> int:
    if not years:
        return 1
    return math.ceil((max(years) - min(years)) / GENERATION_YEARS) + 1


def _oldest_and_youngest(members: Sequence[Person]) -> tuple[Optional[str], Optional[str]]:
    oldest: tuple[int, str] | None = None
    youngest: tuple[int, str] | None = None
    for person in members:
        year = extract_year(person.birth_date)
        if year is None:
            continue
        # Strict comparisons keep the first person seen on ties.
        if oldest is None or year < oldest[0]:
            oldest = (year, person.id)
        if youngest is None or year > youngest[0]:
            youngest = (year, person.id)
    return (oldest[1] if oldest else None, youngest[1] if youngest else None)


def aggregate_families(
    people: Iterable[Person],
    curated: Iterable[Family] | None = None,
) -> list[Family]:
    """Partition ``people`` into one Family per case-insensitive surname.

    Missing surnames group under "Unknown". Families come out in the order
    their surname is first seen and keep the first spelling seen. When
    ``curated`` records are supplied (origin notes, alternate spellings),
    their descriptive fields are carried over; members and statistics are
    always recomputed from ``people``.
    """

    groups: dict[str, list[Person]] = {}
    spelling: dict[str, str] = {}
    for person in people:
        key = surname_key(person.last_name)
        if key not in groups:
            groups[key] = []
            spelling[key] = (person.last_name or "").strip() or UNKNOWN_SURNAME
        groups[key].append(person)

    curated_by_key = {surname_key(f.surname): f for f in (curated or [])}

    out: list[Family] = []
    for key, members in groups.items():
        years = [y for y in (extract_year(p.birth_date) for p in members) if y is not None]
        oldest, youngest = _oldest_and_youngest(members)
        stats = FamilyStatistics(
            total_members=len(members),
            generations=_generation_count(years),
            oldest_member=oldest,
            youngest_member=youngest,
        )

        base = curated_by_key.get(key)
        if base is not None:
            family = base.model_copy(
                update={
                    "surname": spelling[key],
                    "member_ids": [p.id for p in members],
                    "statistics": stats,
                }
            )
        else:
            family = Family(
                surname=spelling[key],
                member_ids=[p.id for p in members],
                statistics=stats,
            )
        out.append(family)

    return out


def find_family(families: Iterable[Family], surname: str) -> Family | None:
    key = surname_key(surname)
    for family in families:
        if surname_key(family.surname) == key:
            return family
    return None


def family_members(people: Iterable[Person], surname: str) -> list[Person]:
    key = surname_key(surname)
    return [p for p in people if surname_key(p.last_name) == key]


def family_relationships(
    members: Sequence[Person],
    relationships: Iterable[Relationship],
) -> list[Relationship]:
    """Relationships whose two endpoints both belong to ``members``."""
    ids = {p.id for p in members}
    return [r for r in relationships if r.person1_id in ids and r.person2_id in ids]


# ---------------------------------------------------------------------------
# Notable members
# ---------------------------------------------------------------------------


def notable_score(person: Person) -> int:
    return len(person.biography or "") + 50 * len(person.photos) + (25 if person.occupation else 0)


def notable_members(people: Iterable[Person], limit: int = _NOTABLE_LIMIT) -> list[Person]:
    """Top ``limit`` people by how much the archive says about them.

    Only people with a substantial biography, a photo, or an occupation are
    eligible. ``sorted`` is stable, so equal scores keep input order.
    """

    eligible = [
        p
        for p in people
        if len(p.biography or "") > _NOTABLE_BIOGRAPHY_CHARS or p.photos or p.occupation
    ]
    return sorted(eligible, key=notable_score, reverse=True)[:limit]


# ---------------------------------------------------------------------------
# Statistics / timeline
# ---------------------------------------------------------------------------


def _ranked_counts(counter: Counter[str], label: str) -> list[dict[str, Any]]:
    # most_common() keeps first-insertion order for equal counts.
    return [{label: value, "count": n} for value, n in counter.most_common()]


def family_statistics(
    members: Sequence[Person],
    relationships: Sequence[Relationship],
    *,
    reference_year: int | None = None,
) -> dict[str, Any]:
    ref = reference_year if reference_year is not None else current_year()

    def _credible(year: int | None) -> bool:
        return year is not None and _EARLIEST_CREDIBLE_YEAR < year <= ref

    birth_years = [y for y in (extract_year(p.birth_date) for p in members) if _credible(y)]

    lifespans: list[int] = []
    for p in members:
        if not (p.birth_date and p.death_date):
            continue
        span = compute_age(p.birth_date, p.death_date)
        if span is not None and 0 < span < _MAX_CREDIBLE_LIFESPAN:
            lifespans.append(span)

    places: Counter[str] = Counter()
    occupations: Counter[str] = Counter()
    for p in members:
        if p.birth_place:
            places[p.birth_place] += 1
        if p.death_place:
            places[p.death_place] += 1
        if p.occupation:
            occupations[p.occupation] += 1

    return {
        "members": len(members),
        "living_members": sum(1 for p in members if not p.death_date),
        "relationships": len(relationships),
        "marriage_count": sum(1 for r in relationships if r.type == RelationshipType.SPOUSE),
        "earliest_birth": min(birth_years) if birth_years else None,
        "latest_birth": max(birth_years) if birth_years else None,
        "average_lifespan": round(sum(lifespans) / len(lifespans)) if lifespans else None,
        "generations": _generation_count(birth_years),
        "common_places": _ranked_counts(places, "place"),
        "common_occupations": _ranked_counts(occupations, "occupation"),
        "members_with_photos": sum(1 for p in members if p.photos),
        "members_with_documents": sum(1 for p in members if p.documents),
    }


def family_timeline(
    members: Sequence[Person],
    relationships: Sequence[Relationship],
) -> list[dict[str, Any]]:
    """Birth, death and marriage events with a known year, oldest first."""

    by_id = {p.id: p for p in members}
    events: list[dict[str, Any]] = []

    for p in members:
        year = extract_year(p.birth_date)
        if year is not None:
            where = f" in {p.birth_place}" if p.birth_place else ""
            events.append(
                {
                    "id": f"birth-{p.id}",
                    "type": "birth",
                    "year": year,
                    "date": p.birth_date,
                    "person_id": p.id,
                    "related_person_id": None,
                    "description": f"Born{where}",
                }
            )

    for p in members:
        year = extract_year(p.death_date)
        if year is not None:
            desc = "Died"
            if p.death_place:
                desc += f" in {p.death_place}"
            age = compute_age(p.birth_date, p.death_date) if p.birth_date else None
            if age is not None:
                desc += f" at age {age}"
            events.append(
                {
                    "id": f"death-{p.id}",
                    "type": "death",
                    "year": year,
                    "date": p.death_date,
                    "person_id": p.id,
                    "related_person_id": None,
                    "description": desc,
                }
            )

    for r in relationships:
        if r.type != RelationshipType.SPOUSE:
            continue
        year = extract_year(r.marriage_date)
        if year is None or r.person1_id not in by_id or r.person2_id not in by_id:
            continue
        where = f" in {r.marriage_place}" if r.marriage_place else ""
        events.append(
            {
                "id": f"marriage-{r.id}",
                "type": "marriage",
                "year": year,
                "date": r.marriage_date,
                "person_id": r.person1_id,
                "related_person_id": r.person2_id,
                "description": f"Married{where}",
            }
        )

    events.sort(key=lambda e: e["year"])
    return events


def events_by_decade(events: Iterable[dict[str, Any]]) -> dict[int, list[dict[str, Any]]]:
    out: dict[int, list[dict[str, Any]]] = {}
    for e in events:
        out.setdefault((e["year"] // 10) * 10, []).append(e)
    return dict(sorted(out.items()))
