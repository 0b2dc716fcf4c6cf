"""People search: structured filters, weighted fuzzy matching, ranked lookup.

Two modes combine with AND. Structured filters narrow the candidate set;
a free-text query keeps only fuzzy matches and orders them best first.

Fuzzy scores follow the usual "distance" convention: 0.0 is a perfect
match, 1.0 is no match at all.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
import sys
from typing import Iterable, Optional, Sequence

from rapidfuzz import fuzz, process

from .dates import extract_year
from .models import Person, SearchFilters

# Relative importance of each searchable field. Normalised to sum to 1 when
# the index is built.
FIELD_WEIGHTS: dict[str, float] = {
    "first_name": 0.3,
    "last_name": 0.4,
    "middle_name": 0.1,
    "maiden_name": 0.2,
    "nickname": 0.1,
    "birth_place": 0.1,
    "death_place": 0.1,
    "occupation": 0.2,
    "biography": 0.1,
}

DEFAULT_THRESHOLD = 0.4
MIN_MATCH_CHAR_LENGTH = 2

# A perfect field match still has to contribute a positive factor to the
# weighted product below.
_EPSILON = sys.float_info.epsilon

# Substring hits ("smi" in "smith") rank just behind whole-token hits.
_PARTIAL_PENALTY = 0.9

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)


def _tokens(text: str | None, min_len: int = 1) -> list[str]:
    if not text:
        return []
    return [t for t in _TOKEN_RE.findall(text.lower()) if len(t) >= min_len]


# ---------------------------------------------------------------------------
# Structured filters
# ---------------------------------------------------------------------------


def _contains(value: str | None, needle: str) -> bool:
    if not value:
        return False
    return needle.lower() in value.lower()


def apply_filters(people: Iterable[Person], filters: SearchFilters | None) -> list[Person]:
    """Keep people that pass every active filter.

    Text filters are case-insensitive substring tests and fail when the
    person has no value for the field. Year ranges drop people with no
    date; a date with no readable year counts as year 0 and is tested
    against the bounds like any other.
    """

    results = list(people)
    if filters is None:
        return results

    for attr in ("surname", "first_name", "birth_place", "death_place", "occupation"):
        needle = getattr(filters, attr)
        if not needle:
            continue
        field = "last_name" if attr == "surname" else attr
        results = [p for p in results if _contains(getattr(p, field), needle)]

    for attr, field in (("birth_year", "birth_date"), ("death_year", "death_date")):
        year_range = getattr(filters, attr)
        if year_range is None:
            continue
        kept: list[Person] = []
        for p in results:
            raw = getattr(p, field)
            if not raw:
                continue
            if year_range.contains(extract_year(raw) or 0):
                kept.append(p)
        results = kept

    if filters.has_photos:
        results = [p for p in results if p.photos]
    if filters.has_documents:
        results = [p for p in results if p.documents]

    return results


# ---------------------------------------------------------------------------
# Fuzzy index
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FuzzyMatch:
    person: Person
    score: float
    fields: tuple[str, ...]


class FuzzyIndex:
    """Weighted, typo-tolerant matcher over the textual person fields.

    Each query token (at least ``min_match_char_length`` characters) is
    compared with the tokens of every indexed field; a field's distance is
    the best token distance found. Fields within ``threshold`` count as
    matched and combine as ``prod(distance ** weight)``, so several matched
    fields, or a match in a heavier field, give a lower (better) score.

    Distances are computed once per query token against the distinct tokens
    of the whole index, then looked up per person.
    """

    def __init__(
        self,
        people: Iterable[Person],
        *,
        keys: dict[str, float] | None = None,
        threshold: float = DEFAULT_THRESHOLD,
        min_match_char_length: int = MIN_MATCH_CHAR_LENGTH,
    ) -> None:
        weights = dict(keys or FIELD_WEIGHTS)
        total = sum(weights.values()) or 1.0
        self.weights = {k: w / total for k, w in weights.items()}
        self.threshold = threshold
        self.min_match_char_length = min_match_char_length
        self.people: list[Person] = list(people)
        self._field_tokens: list[dict[str, list[str]]] = [
            {k: _tokens(getattr(p, k, None)) for k in self.weights} for p in self.people
        ]
        self._vocabulary: list[str] = sorted(
            {t for fields in self._field_tokens for tokens in fields.values() for t in tokens}
        )

    def __len__(self) -> int:
        return len(self.people)

    def _token_distances(self, token: str) -> dict[str, float]:
        """Distance from ``token`` to every vocabulary token within threshold.

        Tokens left out are farther than ``threshold`` and read as 1.0.
        """

        limit = min(max(self.threshold, 0.0), 1.0)
        out: dict[str, float] = {}
        for choice, score, _ in process.extract(
            token,
            self._vocabulary,
            scorer=fuzz.ratio,
            limit=None,
            score_cutoff=(1.0 - limit) * 100.0,
        ):
            out[choice] = 1.0 - score / 100.0

        longer = [c for c in self._vocabulary if len(c) > len(token)]
        if longer:
            for choice, score, _ in process.extract(
                token,
                longer,
                scorer=fuzz.partial_ratio,
                limit=None,
                score_cutoff=min((1.0 - limit) * 100.0 / _PARTIAL_PENALTY, 100.0),
            ):
                distance = 1.0 - _PARTIAL_PENALTY * score / 100.0
                out[choice] = min(out.get(choice, 1.0), distance)
        return out

    @staticmethod
    def _field_distance(distances: list[dict[str, float]], choices: list[str]) -> float:
        best = 1.0
        for table in distances:
            for choice in choices:
                best = min(best, table.get(choice, 1.0))
        return best

    def search(self, query: str, limit: Optional[int] = None) -> list[FuzzyMatch]:
        query_tokens = _tokens(query, self.min_match_char_length)
        if not query_tokens or not self.people:
            return []

        distances = [self._token_distances(t) for t in dict.fromkeys(query_tokens)]

        matches: list[FuzzyMatch] = []
        for person, fields in zip(self.people, self._field_tokens):
            score = 1.0
            matched: list[str] = []
            for key, weight in self.weights.items():
                distance = self._field_distance(distances, fields[key])
                if distance > self.threshold:
                    continue
                matched.append(key)
                score *= max(distance, _EPSILON) ** weight
            if matched:
                matches.append(FuzzyMatch(person=person, score=score, fields=tuple(matched)))

        matches.sort(key=lambda m: m.score)
        return matches[:limit] if limit is not None else matches

    def scores(self, query: str) -> dict[str, float]:
        return {m.person.id: m.score for m in self.search(query)}


# ---------------------------------------------------------------------------
# Combined search
# ---------------------------------------------------------------------------


def search(
    people: Sequence[Person],
    filters: SearchFilters | None = None,
    query: str | None = None,
    *,
    index: FuzzyIndex | None = None,
) -> list[Person]:
    """Filter ``people`` and, when ``query`` is given, rank by fuzzy score.

    Without a query the result is ordered by last name, then first name.
    Pass a prebuilt ``index`` to avoid re-tokenising the snapshot per call.
    """

    results = apply_filters(people, filters)

    q = (query or "").strip()
    if not q:
        return sorted(results, key=lambda p: (p.last_name, p.first_name))

    scores = (index or FuzzyIndex(people)).scores(q)
    results = [p for p in results if p.id in scores]
    results.sort(key=lambda p: scores[p.id])
    return results


def ranked_search(people: Iterable[Person], query: str) -> list[tuple[Person, int]]:
    """Simple additive relevance used by the quick-search box.

    +10 full name contains the query, +5 biography contains it, +15 exact
    surname, +15 exact first name. People scoring nothing are left out;
    equal scores keep input order.
    """

    q = query.strip().lower()
    if not q:
        return []

    scored: list[tuple[Person, int]] = []
    for p in people:
        score = 0
        if q in p.full_name.lower():
            score += 10
        if p.biography and q in p.biography.lower():
            score += 5
        if p.last_name.lower() == q:
            score += 15
        if p.first_name.lower() == q:
            score += 15
        if score > 0:
            scored.append((p, score))

    scored.sort(key=lambda item: item[1], reverse=True)
    return scored


def filter_options(people: Iterable[Person]) -> dict[str, list]:
    """Distinct values for the filter dropdowns.

    ``places`` merges birth and death places; the per-field lists back the
    separate place dropdowns.
    """

    surnames: set[str] = set()
    birth_places: set[str] = set()
    death_places: set[str] = set()
    occupations: set[str] = set()
    years: set[int] = set()
    for p in people:
        if p.last_name:
            surnames.add(p.last_name)
        if p.birth_place:
            birth_places.add(p.birth_place)
        if p.death_place:
            death_places.add(p.death_place)
        if p.occupation:
            occupations.add(p.occupation)
        year = extract_year(p.birth_date)
        if year is not None:
            years.add(year)
    return {
        "surnames": sorted(surnames),
        "places": sorted(birth_places | death_places),
        "birth_places": sorted(birth_places),
        "death_places": sorted(death_places),
        "occupations": sorted(occupations),
        "birth_years": sorted(years),
    }
