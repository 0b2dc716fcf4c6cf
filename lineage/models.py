"""Domain records for the genealogy snapshot.

Snapshot records are pydantic models so the camelCase JSON written by the
import step validates as-is (``firstName`` -> ``first_name``). The tree
layout types at the bottom are plain dataclasses: they are mutated on every
simulation tick and never serialized back.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _SnapshotModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _blank_to_none(value: Any) -> Any:
    # The importer writes "" for every field it could not scrape.
    if isinstance(value, str) and not value.strip():
        return None
    return value


class RelationshipType(str, Enum):
    PARENT = "parent"
    CHILD = "child"
    SPOUSE = "spouse"
    SIBLING = "sibling"
    PARTNER = "partner"


class Person(_SnapshotModel):
    id: str
    first_name: str = ""
    middle_name: Optional[str] = None
    last_name: str = ""
    maiden_name: Optional[str] = None
    nickname: Optional[str] = None
    birth_date: Optional[str] = None
    birth_place: Optional[str] = None
    death_date: Optional[str] = None
    death_place: Optional[str] = None
    burial_place: Optional[str] = None
    occupation: Optional[str] = None
    biography: Optional[str] = None
    notes: Optional[str] = None
    photos: list[str] = Field(default_factory=list)
    documents: list[str] = Field(default_factory=list)

    # Denormalized copies of the relationship list, accepted for compatibility
    # with older snapshots. Nothing derives from them; see RelationshipIndex.
    spouse_ids: list[str] = Field(default_factory=list)
    children_ids: list[str] = Field(default_factory=list)
    parent_ids: list[str] = Field(default_factory=list)
    sibling_ids: list[str] = Field(default_factory=list)

    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator(
        "middle_name",
        "maiden_name",
        "nickname",
        "birth_date",
        "birth_place",
        "death_date",
        "death_place",
        "burial_place",
        "occupation",
        "biography",
        "notes",
        mode="before",
    )
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def _name_text(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def display_name(self) -> str:
        parts = [self.first_name, self.middle_name or "", self.last_name]
        name = " ".join(p for p in parts if p)
        if self.maiden_name:
            name = f"{name} (née {self.maiden_name})"
        return name


class Relationship(_SnapshotModel):
    """An edge between two people, typed from person1's point of view.

    ``type="parent"`` means person1 is the parent of person2.
    """

    id: str
    person1_id: str
    person2_id: str
    type: RelationshipType
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    marriage_date: Optional[str] = None
    marriage_place: Optional[str] = None
    divorce_date: Optional[str] = None
    divorce_place: Optional[str] = None
    verified: bool = False
    source: Optional[str] = None
    notes: Optional[str] = None

    @field_validator(
        "start_date",
        "end_date",
        "marriage_date",
        "marriage_place",
        "divorce_date",
        "divorce_place",
        "source",
        "notes",
        mode="before",
    )
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        return _blank_to_none(value)


class FamilyStatistics(_SnapshotModel):
    total_members: int = 0
    generations: int = 0
    oldest_member: Optional[str] = None
    youngest_member: Optional[str] = None

    @field_validator("oldest_member", "youngest_member", mode="before")
    @classmethod
    def _optional_id(cls, value: Any) -> Any:
        return _blank_to_none(value)


class Family(_SnapshotModel):
    surname: str
    alternate_spellings: list[str] = Field(default_factory=list)
    origin: Optional[str] = None
    origin_country: Optional[str] = None
    migration_history: Optional[str] = None
    description: Optional[str] = None
    member_ids: list[str] = Field(default_factory=list)
    statistics: FamilyStatistics = Field(default_factory=FamilyStatistics)

    @field_validator("origin", "origin_country", "migration_history", "description", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        return _blank_to_none(value)


# Media metadata is an open map of flat scalar values (EXIF-ish keys such as
# "width", "camera", "scanned"). Nested structures are rejected.
MetadataValue = Union[str, int, float, bool, None]


class MediaItem(_SnapshotModel):
    id: str
    filename: str
    original_filename: Optional[str] = None
    type: str = "photo"
    mime_type: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = None
    location: Optional[str] = None
    people_ids: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    source: Optional[str] = None
    copyright: Optional[str] = None
    thumbnail_path: Optional[str] = None
    metadata: dict[str, MetadataValue] = Field(default_factory=dict)

    @field_validator(
        "original_filename",
        "mime_type",
        "title",
        "description",
        "date",
        "location",
        "source",
        "copyright",
        "thumbnail_path",
        mode="before",
    )
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        return _blank_to_none(value)


class YearRange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_year: Optional[int] = Field(default=None, alias="from")
    to_year: Optional[int] = Field(default=None, alias="to")

    def contains(self, year: int) -> bool:
        if self.from_year is not None and year < self.from_year:
            return False
        if self.to_year is not None and year > self.to_year:
            return False
        return True


class SearchFilters(_SnapshotModel):
    surname: Optional[str] = None
    first_name: Optional[str] = None
    birth_place: Optional[str] = None
    death_place: Optional[str] = None
    occupation: Optional[str] = None
    birth_year: Optional[YearRange] = None
    death_year: Optional[YearRange] = None
    has_photos: bool = False
    has_documents: bool = False


# ---------------------------------------------------------------------------
# Tree layout (ephemeral)
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class TreeNode:
    id: str
    person: Person
    generation: int = 0
    depth: int = 0
    index: int = 0
    x: Optional[float] = None
    y: Optional[float] = None
    vx: float = 0.0
    vy: float = 0.0
    fx: Optional[float] = None
    fy: Optional[float] = None

    @property
    def pinned(self) -> bool:
        return self.fx is not None or self.fy is not None


@dataclass(eq=False)
class TreeLink:
    id: str
    # Person ids until the simulation resolves them to TreeNode objects.
    source: Union[str, TreeNode]
    target: Union[str, TreeNode]
    type: str
    index: int = 0

    @property
    def source_id(self) -> str:
        return self.source.id if isinstance(self.source, TreeNode) else self.source

    @property
    def target_id(self) -> str:
        return self.target.id if isinstance(self.target, TreeNode) else self.target
