from __future__ import annotations

import pytest

from lineage.models import Person, Relationship
from lineage.relationships import (
    RelationshipIndex,
    counterpart_id,
    find_relationship_issues,
    invert_type,
    perspective_type,
    relationship_path,
    relationships_for,
    resolve_relationships,
)


def _by_id(people) -> dict[str, Person]:
    return {p.id: p for p in people}


def _ids(pairs) -> list[str]:
    return [p.id for p, _ in pairs]


@pytest.mark.parametrize(
    "rel_type, expected",
    [("parent", "child"), ("child", "parent"), ("spouse", "spouse"), ("sibling", "sibling"), ("partner", "partner")],
)
def test_invert_type(rel_type, expected) -> None:
    assert invert_type(rel_type) == expected
    assert invert_type(invert_type(rel_type)) == rel_type


def test_invert_type_passes_unknown_values_through() -> None:
    assert invert_type("godparent") == "godparent"


def test_perspective_and_counterpart(relationships) -> None:
    r2 = relationships[1]  # alice parent carol
    assert perspective_type("alice", r2) == "parent"
    assert perspective_type("carol", r2) == "child"
    assert counterpart_id("alice", r2) == "carol"
    assert counterpart_id("carol", r2) == "alice"


def test_relationships_for(relationships) -> None:
    assert [r.id for r in relationships_for("carol", relationships)] == ["r2", "r3"]
    assert relationships_for("nameless", relationships) == []


# ---------------------------------------------------------------------------
# Resolution into buckets
# ---------------------------------------------------------------------------


class TestResolveRelationships:
    def test_parent_edge_seen_from_both_ends(self, people, relationships) -> None:
        by_id = _by_id(people)
        alice = resolve_relationships("alice", relationships, by_id)
        carol = resolve_relationships("carol", relationships, by_id)
        assert _ids(alice.parents) == ["carol"]
        assert alice.children == []
        assert _ids(carol.children) == ["alice", "bob"]
        assert carol.parents == []

    def test_child_edge_is_inverse_of_parent_edge(self, people, relationships) -> None:
        by_id = _by_id(people)
        eve = resolve_relationships("eve", relationships, by_id)
        dan = resolve_relationships("dan", relationships, by_id)
        assert _ids(eve.children) == ["dan"]
        assert _ids(dan.parents) == ["eve"]

    def test_bucket_follows_type_from_subject_side(self, people) -> None:
        # Stored "alice parent dan": from alice's side the edge reads "parent".
        rel = Relationship(id="x", person1_id="alice", person2_id="dan", type="parent")
        by_id = _by_id(people)
        assert _ids(resolve_relationships("alice", [rel], by_id).parents) == ["dan"]
        assert _ids(resolve_relationships("dan", [rel], by_id).children) == ["alice"]
        index = RelationshipIndex([rel])
        assert index.parents_of("alice") == ["dan"]
        assert index.children_of("dan") == ["alice"]

    def test_spouse_is_symmetric(self, people, relationships) -> None:
        by_id = _by_id(people)
        assert _ids(resolve_relationships("alice", relationships, by_id).spouses) == ["bob"]
        assert _ids(resolve_relationships("bob", relationships, by_id).spouses) == ["alice"]

    def test_partner_lands_with_spouses(self, people) -> None:
        rel = Relationship(id="p", person1_id="alice", person2_id="dan", type="partner")
        resolved = resolve_relationships("dan", [rel], _by_id(people))
        assert _ids(resolved.spouses) == ["alice"]

    def test_unknown_counterpart_is_dropped(self, people, relationships) -> None:
        eve = resolve_relationships("eve", relationships, _by_id(people))
        # r5 points at "ghost", who is not in the snapshot.
        assert eve.siblings == []
        assert eve.counts() == {"spouses": 0, "children": 1, "parents": 0, "siblings": 0}

    def test_keeps_the_edge_alongside_the_person(self, people, relationships) -> None:
        alice = resolve_relationships("alice", relationships, _by_id(people))
        person, rel = alice.spouses[0]
        assert person.id == "bob"
        assert rel.marriage_date == "1975-06-01"

    def test_inverse_consistency_over_every_edge(self, people, relationships) -> None:
        by_id = _by_id(people)
        inverse_bucket = {"parents": "children", "children": "parents", "spouses": "spouses", "siblings": "siblings"}
        for pid in by_id:
            resolved = resolve_relationships(pid, relationships, by_id)
            for bucket, other_bucket in inverse_bucket.items():
                for other, _ in getattr(resolved, bucket):
                    back = resolve_relationships(other.id, relationships, by_id)
                    assert pid in _ids(getattr(back, other_bucket))


# ---------------------------------------------------------------------------
# Index
# ---------------------------------------------------------------------------


class TestRelationshipIndex:
    def test_adjacency(self, relationships) -> None:
        index = RelationshipIndex(relationships)
        assert len(index) == 5
        assert index.parents_of("alice") == ["carol"]
        assert index.children_of("carol") == ["alice", "bob"]
        assert index.parents_of("carol") == []
        assert index.spouses_of("bob") == ["alice"]
        assert index.children_of("eve") == ["dan"]
        assert index.siblings_of("eve") == ["ghost"]

    def test_spouses_include_partners(self) -> None:
        index = RelationshipIndex(
            [
                Relationship(id="a", person1_id="x", person2_id="y", type="spouse"),
                Relationship(id="b", person1_id="z", person2_id="x", type="partner"),
            ]
        )
        assert index.spouses_of("x") == ["y", "z"]

    def test_neighbors_are_distinct(self) -> None:
        index = RelationshipIndex(
            [
                Relationship(id="a", person1_id="x", person2_id="y", type="spouse"),
                Relationship(id="b", person1_id="y", person2_id="x", type="partner"),
            ]
        )
        assert index.neighbors("x") == ["y"]

    def test_edges_for_unknown_person(self, relationships) -> None:
        index = RelationshipIndex(relationships)
        assert index.edges("nobody") == []
        assert index.neighbors("nobody") == []

    def test_resolve_matches_plain_function(self, people, relationships) -> None:
        by_id = _by_id(people)
        index = RelationshipIndex(relationships)
        assert index.resolve("carol", by_id).counts() == resolve_relationships("carol", relationships, by_id).counts()


# ---------------------------------------------------------------------------
# Data-quality checks
# ---------------------------------------------------------------------------


class TestRelationshipIssues:
    def test_dangling_endpoint(self, people, relationships) -> None:
        issues = find_relationship_issues(relationships, _by_id(people))
        assert issues == [{"kind": "dangling", "relationship_id": "r5", "person_id": "ghost"}]

    def test_self_edge(self, people) -> None:
        rel = Relationship(id="s", person1_id="alice", person2_id="alice", type="sibling")
        kinds = [i["kind"] for i in find_relationship_issues([rel], _by_id(people))]
        assert kinds == ["self"]

    def test_duplicate_in_either_direction(self, people) -> None:
        rels = [
            Relationship(id="a", person1_id="alice", person2_id="carol", type="parent"),
            Relationship(id="b", person1_id="carol", person2_id="alice", type="child"),
        ]
        issues = find_relationship_issues(rels, _by_id(people))
        assert issues == [{"kind": "duplicate", "relationship_id": "b", "person_id": "alice"}]

    def test_mutual_parents_contradict(self, people) -> None:
        rels = [
            Relationship(id="a", person1_id="alice", person2_id="bob", type="parent"),
            Relationship(id="b", person1_id="bob", person2_id="alice", type="parent"),
        ]
        issues = find_relationship_issues(rels, _by_id(people))
        assert [i["kind"] for i in issues] == ["contradiction"]
        assert issues[0]["relationship_id"] == "b"


# ---------------------------------------------------------------------------
# Path finding
# ---------------------------------------------------------------------------


class TestRelationshipPath:
    def test_shortest_path(self, relationships) -> None:
        index = RelationshipIndex(relationships)
        assert relationship_path("carol", "bob", index, max_hops=5) == ["carol", "bob"]
        path = relationship_path("alice", "carol", index, max_hops=5)
        assert path == ["alice", "carol"]

    def test_two_hops(self) -> None:
        index = RelationshipIndex(
            [
                Relationship(id="a", person1_id="g", person2_id="p", type="parent"),
                Relationship(id="b", person1_id="p", person2_id="c", type="parent"),
            ]
        )
        assert relationship_path("g", "c", index, max_hops=2) == ["g", "p", "c"]
        assert relationship_path("g", "c", index, max_hops=1) == []

    def test_same_person(self, relationships) -> None:
        assert relationship_path("alice", "alice", RelationshipIndex(relationships), max_hops=1) == ["alice"]

    def test_disconnected(self, relationships) -> None:
        assert relationship_path("alice", "dan", RelationshipIndex(relationships), max_hops=10) == []
