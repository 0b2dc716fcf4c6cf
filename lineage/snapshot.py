"""Loading and caching of the read-only JSON snapshot.

The import step writes a directory like::

    data/
      people/index.json        [{"id": ...}, ...]
      people/<id>.json         one Person per file
      relationships/relationships.json
      families.json            curated family notes (origin, spellings)
      media/index.json

Flat ``people.json`` / ``relationships.json`` / ``media.json`` files are
accepted too. A missing file means an empty collection.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
import json
import logging
from pathlib import Path
import threading
from typing import Any, Callable, Optional, Type, TypeVar

from pydantic import BaseModel

from .families import aggregate_families
from .models import Family, MediaItem, Person, Relationship
from .relationships import RelationshipIndex, find_relationship_issues
from .search import FuzzyIndex

log = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


@dataclass(eq=False)
class Snapshot:
    """One immutable build of the data plus memoized derived views."""

    people: list[Person] = field(default_factory=list)
    relationships: list[Relationship] = field(default_factory=list)
    families: list[Family] = field(default_factory=list)
    media: list[MediaItem] = field(default_factory=list)

    @cached_property
    def people_by_id(self) -> dict[str, Person]:
        return {p.id: p for p in self.people}

    @cached_property
    def media_by_id(self) -> dict[str, MediaItem]:
        return {m.id: m for m in self.media}

    @cached_property
    def relationship_index(self) -> RelationshipIndex:
        return RelationshipIndex(self.relationships)

    @cached_property
    def aggregated_families(self) -> list[Family]:
        # Curated records only contribute descriptive fields.
        return aggregate_families(self.people, curated=self.families)

    @cached_property
    def fuzzy_index(self) -> FuzzyIndex:
        return FuzzyIndex(self.people)

    def person_media(self, person_id: str) -> list[MediaItem]:
        """Media linked to a person, by the person's photo/document refs or the item's people list."""

        person = self.people_by_id.get(person_id)
        refs: list[str] = []
        if person is not None:
            refs = list(person.photos) + list(person.documents)

        out: list[MediaItem] = []
        seen: set[str] = set()
        for ref in refs:
            item = self.media_by_id.get(ref)
            if item is None or item.id in seen:
                continue
            seen.add(item.id)
            out.append(item)
        for item in self.media:
            if person_id in item.people_ids and item.id not in seen:
                seen.add(item.id)
                out.append(item)
        return out


def _read_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _first_existing(*paths: Path) -> Optional[Path]:
    for p in paths:
        if p.exists():
            return p
    return None


def _load_list(path: Optional[Path], model: Type[M]) -> list[M]:
    if path is None:
        return []
    data = _read_json(path)
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON list")
    return [model.model_validate(item) for item in data]


def _load_people(data_dir: Path) -> list[Person]:
    index_path = data_dir / "people" / "index.json"
    if index_path.exists():
        people: list[Person] = []
        for entry in _read_json(index_path):
            pid = entry["id"] if isinstance(entry, dict) else str(entry)
            person_path = data_dir / "people" / f"{pid}.json"
            if person_path.exists():
                people.append(Person.model_validate(_read_json(person_path)))
            elif isinstance(entry, dict):
                # Index rows carry the core name/date fields.
                people.append(Person.model_validate(entry))
            else:
                log.warning("person %s listed in index but %s is missing", pid, person_path)
        return people

    return _load_list(_first_existing(data_dir / "people.json"), Person)


def load_snapshot(data_dir: Path) -> Snapshot:
    """Read a snapshot directory. Malformed JSON or records raise."""

    if not data_dir.is_dir():
        raise FileNotFoundError(f"snapshot directory not found: {data_dir}")

    snapshot = Snapshot(
        people=_load_people(data_dir),
        relationships=_load_list(
            _first_existing(
                data_dir / "relationships" / "relationships.json",
                data_dir / "relationships.json",
            ),
            Relationship,
        ),
        families=_load_list(_first_existing(data_dir / "families.json"), Family),
        media=_load_list(
            _first_existing(data_dir / "media" / "index.json", data_dir / "media.json"),
            MediaItem,
        ),
    )

    log.info(
        "loaded snapshot from %s: %d people, %d relationships, %d families, %d media",
        data_dir,
        len(snapshot.people),
        len(snapshot.relationships),
        len(snapshot.families),
        len(snapshot.media),
    )
    for issue in find_relationship_issues(snapshot.relationships, snapshot.people_by_id):
        log.warning(
            "relationship %s: %s (person %s)",
            issue["relationship_id"],
            issue["kind"],
            issue["person_id"],
        )
    return snapshot


class SnapshotCache:
    """Read-through cache for the snapshot, shared by reference.

    The first ``get()`` loads; later calls return the same object until
    ``clear()``. Routes run in a threadpool, so the load is locked.
    """

    def __init__(self, loader: Callable[[], Snapshot]) -> None:
        self._loader = loader
        self._snapshot: Optional[Snapshot] = None
        self._lock = threading.Lock()

    @classmethod
    def from_directory(cls, data_dir: Path) -> "SnapshotCache":
        return cls(lambda: load_snapshot(data_dir))

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> "SnapshotCache":
        return cls(lambda: snapshot)

    @property
    def loaded(self) -> bool:
        return self._snapshot is not None

    def get(self) -> Snapshot:
        snap = self._snapshot
        if snap is not None:
            return snap
        with self._lock:
            if self._snapshot is None:
                self._snapshot = self._loader()
            return self._snapshot

    def clear(self) -> None:
        with self._lock:
            self._snapshot = None
