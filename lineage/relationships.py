from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence, Union

from .models import Person, Relationship, RelationshipType

_INVERSE: dict[str, str] = {
    RelationshipType.PARENT.value: RelationshipType.CHILD.value,
    RelationshipType.CHILD.value: RelationshipType.PARENT.value,
    RelationshipType.SPOUSE.value: RelationshipType.SPOUSE.value,
    RelationshipType.SIBLING.value: RelationshipType.SIBLING.value,
    RelationshipType.PARTNER.value: RelationshipType.PARTNER.value,
}


def _type_value(rel_type: Union[RelationshipType, str]) -> str:
    return rel_type.value if isinstance(rel_type, RelationshipType) else str(rel_type)


def invert_type(rel_type: Union[RelationshipType, str]) -> str:
    """Flip a person1->person2 type to person2's point of view.

    Unrecognized types pass through unchanged.
    """
    value = _type_value(rel_type)
    return _INVERSE.get(value, value)


def perspective_type(person_id: str, rel: Relationship) -> str:
    """The relationship type as seen from ``person_id``."""
    if rel.person1_id == person_id:
        return _type_value(rel.type)
    return invert_type(rel.type)


def counterpart_id(person_id: str, rel: Relationship) -> str:
    return rel.person2_id if rel.person1_id == person_id else rel.person1_id


def relationships_for(person_id: str, relationships: Iterable[Relationship]) -> list[Relationship]:
    return [r for r in relationships if r.person1_id == person_id or r.person2_id == person_id]


@dataclass
class ResolvedRelationships:
    spouses: list[tuple[Person, Relationship]] = field(default_factory=list)
    children: list[tuple[Person, Relationship]] = field(default_factory=list)
    parents: list[tuple[Person, Relationship]] = field(default_factory=list)
    siblings: list[tuple[Person, Relationship]] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {
            "spouses": len(self.spouses),
            "children": len(self.children),
            "parents": len(self.parents),
            "siblings": len(self.siblings),
        }


# Perspective type -> bucket. Partners are shown with spouses.
_BUCKETS = {
    "spouse": "spouses",
    "partner": "spouses",
    "child": "children",
    "parent": "parents",
    "sibling": "siblings",
}


def resolve_relationships(
    person_id: str,
    relationships: Iterable[Relationship],
    people_by_id: Mapping[str, Person],
) -> ResolvedRelationships:
    """Group the edges touching ``person_id`` by their type from that person's side.

    The stored type is used as-is when ``person_id`` is person1 and inverted
    otherwise; the result picks the bucket. A stored ``parent`` edge from A
    to B therefore lands in A's ``parents`` bucket and in B's ``children``
    bucket. Edges whose other end is not a known person are skipped.
    """

    out = ResolvedRelationships()
    for rel in relationships_for(person_id, relationships):
        other = people_by_id.get(counterpart_id(person_id, rel))
        if other is None:
            continue
        bucket = _BUCKETS.get(perspective_type(person_id, rel))
        if bucket is None:
            continue
        getattr(out, bucket).append((other, rel))
    return out


class RelationshipIndex:
    """Per-person adjacency built once from the canonical relationship list.

    This replaces the ``spouseIds``/``childrenIds``/... lists the importer
    writes onto each person, which are never kept in sync by hand.
    """

    def __init__(self, relationships: Iterable[Relationship]) -> None:
        self.relationships: list[Relationship] = list(relationships)
        self._by_person: dict[str, list[Relationship]] = {}
        for rel in self.relationships:
            self._by_person.setdefault(rel.person1_id, []).append(rel)
            if rel.person2_id != rel.person1_id:
                self._by_person.setdefault(rel.person2_id, []).append(rel)

    def __len__(self) -> int:
        return len(self.relationships)

    def edges(self, person_id: str) -> list[Relationship]:
        return list(self._by_person.get(person_id, []))

    def resolve(self, person_id: str, people_by_id: Mapping[str, Person]) -> ResolvedRelationships:
        return resolve_relationships(person_id, self.edges(person_id), people_by_id)

    def related_ids(self, person_id: str, kind: str) -> list[str]:
        """Counterparts of the edges whose type from ``person_id``'s side is ``kind``.

        Matches the buckets of ``resolve_relationships``: ``parents_of(A)`` lists
        the people A is recorded as parent of.
        """
        out: list[str] = []
        for rel in self._by_person.get(person_id, []):
            if perspective_type(person_id, rel) == kind:
                out.append(counterpart_id(person_id, rel))
        return out

    def parents_of(self, person_id: str) -> list[str]:
        return self.related_ids(person_id, "parent")

    def children_of(self, person_id: str) -> list[str]:
        return self.related_ids(person_id, "child")

    def spouses_of(self, person_id: str) -> list[str]:
        return self.related_ids(person_id, "spouse") + self.related_ids(person_id, "partner")

    def siblings_of(self, person_id: str) -> list[str]:
        return self.related_ids(person_id, "sibling")

    def neighbors(self, person_id: str) -> list[str]:
        seen: list[str] = []
        for rel in self._by_person.get(person_id, []):
            other = counterpart_id(person_id, rel)
            if other not in seen:
                seen.append(other)
        return seen


# ---------------------------------------------------------------------------
# Data-quality checks
# ---------------------------------------------------------------------------


def find_relationship_issues(
    relationships: Sequence[Relationship],
    people_by_id: Mapping[str, Person],
) -> list[dict[str, str]]:
    """Report suspicious edges without rejecting them.

    Archive data is incomplete by nature, so these are warnings for whoever
    curates the snapshot:

    - ``dangling``: an endpoint is not a known person
    - ``self``: both endpoints are the same person
    - ``duplicate``: the same pair and perspective type appears more than once
    - ``contradiction``: two people are each recorded as the other's parent
    """

    issues: list[dict[str, str]] = []

    # Normalize every edge to (a, b, type-from-a) with child edges flipped to
    # parent edges so A-parent-B and B-child-A count as the same fact.
    def _canonical(rel: Relationship) -> tuple[str, str, str]:
        t = _type_value(rel.type)
        a, b = rel.person1_id, rel.person2_id
        if t == "child":
            return b, a, "parent"
        if t in ("spouse", "sibling", "partner") and b < a:
            return b, a, t
        return a, b, t

    seen: Counter[tuple[str, str, str]] = Counter()
    for rel in relationships:
        for pid in (rel.person1_id, rel.person2_id):
            if pid not in people_by_id:
                issues.append({"kind": "dangling", "relationship_id": rel.id, "person_id": pid})
        if rel.person1_id == rel.person2_id:
            issues.append({"kind": "self", "relationship_id": rel.id, "person_id": rel.person1_id})
            continue

        key = _canonical(rel)
        seen[key] += 1
        if seen[key] == 2:
            issues.append({"kind": "duplicate", "relationship_id": rel.id, "person_id": key[0]})

        if key[2] == "parent" and seen[(key[1], key[0], "parent")] and seen[key] == 1:
            issues.append({"kind": "contradiction", "relationship_id": rel.id, "person_id": key[0]})

    return issues


def relationship_path(
    start: str,
    goal: str,
    index: RelationshipIndex,
    *,
    max_hops: int,
    max_nodes: int = 100_000,
) -> list[str]:
    """Shortest chain of person ids from ``start`` to ``goal`` over any edge type."""

    if start == goal:
        return [start]

    parents: dict[str, str | None] = {start: None}
    frontier = [start]
    for _ in range(max_hops):
        next_frontier: list[str] = []
        for node in frontier:
            for nb in index.neighbors(node):
                if nb in parents:
                    continue
                parents[nb] = node
                if nb == goal:
                    path = [goal]
                    cur: str | None = node
                    while cur is not None:
                        path.append(cur)
                        cur = parents[cur]
                    path.reverse()
                    return path
                if len(parents) >= max_nodes:
                    return []
                next_frontier.append(nb)
        frontier = next_frontier
        if not frontier:
            break
    return []
