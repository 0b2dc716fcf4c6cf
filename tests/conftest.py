from __future__ import annotations

from datetime import date
import json
from pathlib import Path

import pytest

from lineage.models import MediaItem, Person, Relationship
from lineage.snapshot import Snapshot


@pytest.fixture()
def fixed_today() -> date:
    # Keep tests deterministic.
    return date(2026, 1, 20)


def make_person(pid: str, first: str, last: str, **kw) -> Person:
    return Person(id=pid, first_name=first, last_name=last, **kw)


def make_rel(rid: str, p1: str, p2: str, rel_type: str, **kw) -> Relationship:
    return Relationship(id=rid, person1_id=p1, person2_id=p2, type=rel_type, **kw)


@pytest.fixture()
def people() -> list[Person]:
    return [
        make_person("alice", "Alice", "Smith", birth_date="1950", birth_place="Leeds, England"),
        make_person("bob", "Bob", "Smith", birth_date="1952", occupation="Carpenter"),
        make_person(
            "carol",
            "Carol",
            "Smith",
            birth_date="12 March 1980",
            birth_place="York, England",
            photos=["m1"],
        ),
        make_person(
            "dan",
            "Daniel",
            "Jones",
            birth_date="1890-04-02",
            death_date="1961",
            death_place="Cardiff, Wales",
            occupation="Coal miner",
            biography="Worked the Rhondda pits for forty years.\n\nSang in the chapel choir.",
            documents=["m2"],
        ),
        make_person("eve", "Eve", "jones", birth_date="abt 1925", maiden_name="Smith"),
        make_person("nameless", "Foundling", ""),
    ]


@pytest.fixture()
def relationships() -> list[Relationship]:
    return [
        make_rel("r1", "alice", "bob", "spouse", marriage_date="1975-06-01", marriage_place="Leeds"),
        make_rel("r2", "alice", "carol", "parent"),
        make_rel("r3", "bob", "carol", "parent"),
        make_rel("r4", "eve", "dan", "child"),
        make_rel("r5", "eve", "ghost", "sibling"),
    ]


@pytest.fixture()
def media() -> list[MediaItem]:
    return [
        MediaItem(id="m1", filename="carol-1985.jpg", type="photo", people_ids=["carol"], tags=["school"]),
        MediaItem(
            id="m2",
            filename="dan-census.pdf",
            type="document",
            mime_type="application/pdf",
            people_ids=["dan", "eve"],
        ),
        MediaItem(id="m3", filename="wedding.jpg", type="photo", people_ids=["alice", "bob", "ghost"]),
    ]


@pytest.fixture()
def snapshot(people, relationships, media) -> Snapshot:
    return Snapshot(people=people, relationships=relationships, families=[], media=media)


@pytest.fixture()
def snapshot_dir(tmp_path: Path, people, relationships, media) -> Path:
    """The same sample data written in the importer's on-disk layout."""

    (tmp_path / "people").mkdir()
    (tmp_path / "relationships").mkdir()
    (tmp_path / "media").mkdir()

    index = [{"id": p.id, "firstName": p.first_name, "lastName": p.last_name} for p in people]
    (tmp_path / "people" / "index.json").write_text(json.dumps(index), encoding="utf-8")
    for p in people:
        (tmp_path / "people" / f"{p.id}.json").write_text(
            json.dumps(p.model_dump(mode="json", by_alias=True)), encoding="utf-8"
        )

    (tmp_path / "relationships" / "relationships.json").write_text(
        json.dumps([r.model_dump(mode="json", by_alias=True) for r in relationships]),
        encoding="utf-8",
    )
    (tmp_path / "media" / "index.json").write_text(
        json.dumps([m.model_dump(mode="json", by_alias=True) for m in media]),
        encoding="utf-8",
    )
    (tmp_path / "families.json").write_text(
        json.dumps(
            [
                {
                    "surname": "smith",
                    "origin": "West Riding of Yorkshire",
                    "alternateSpellings": ["Smyth"],
                    "memberIds": ["stale-id"],
                    "statistics": {"totalMembers": 99, "generations": 0, "oldestMember": "", "youngestMember": ""},
                }
            ]
        ),
        encoding="utf-8",
    )
    return tmp_path
