from __future__ import annotations

from datetime import date
import math
import re
from typing import Any, Iterable, Optional

from .models import Person

_YEAR_RE = re.compile(r"\d{4}")

# Width of a generation band in years. This is a cohort bucket, not a
# pedigree generation count.
GENERATION_YEARS = 25


def extract_year(value: Any) -> Optional[int]:
    """Return the first four-digit run in ``value`` as an int, else ``None``.

    Archive dates are free text ("abt 1889", "12 March 1889", "1889-03-12"),
    so this never raises; anything without four consecutive digits yields
    ``None``.
    """

    if not value or not isinstance(value, str):
        return None
    m = _YEAR_RE.search(value)
    if not m:
        return None
    return int(m.group(0))


def current_year(today: date | None = None) -> int:
    return (today or date.today()).year


def generation_bucket(birth_year: int, reference_year: int | None = None) -> int:
    """Bucket 0 is the most recent 25-year band before ``reference_year``."""
    ref = reference_year if reference_year is not None else current_year()
    return math.floor((ref - birth_year) / GENERATION_YEARS)


def compute_age(
    birth_date: str | None,
    end_date: str | None = None,
    *,
    today: date | None = None,
) -> int | None:
    """Whole-year age from the extracted years (not calendar exact).

    The end defaults to today. ``None`` when the birth year, or an explicitly
    supplied end year, cannot be read.
    """

    birth_year = extract_year(birth_date)
    if birth_year is None:
        return None
    if end_date:
        end_year = extract_year(end_date)
        if end_year is None:
            return None
    else:
        end_year = current_year(today)
    return end_year - birth_year


def format_date(value: str | None) -> str:
    """Render ISO dates as "Mar 12, 1889"; other text is returned untouched."""

    if not value:
        return ""
    try:
        d = date.fromisoformat(value.strip())
    except ValueError:
        return value
    return f"{d.strftime('%b')} {d.day}, {d.year}"


def slugify(text: str) -> str:
    s = re.sub(r"[^\w\s-]", "", text.lower())
    return re.sub(r"\s+", "-", s).strip()


def group_by_generation(
    people: Iterable[Person],
    reference_year: int | None = None,
) -> dict[int, list[Person]]:
    """Group people into 25-year bands, most recent first.

    People without a readable birth year are counted as born in the
    reference year and land in band 0.
    """

    ref = reference_year if reference_year is not None else current_year()
    out: dict[int, list[Person]] = {}
    for person in people:
        year = extract_year(person.birth_date)
        bucket = generation_bucket(year if year is not None else ref, ref)
        out.setdefault(bucket, []).append(person)
    return dict(sorted(out.items()))


def generation_label(bucket: int, total: int) -> str:
    if bucket == 0:
        return "Current Generation"
    if bucket == 1:
        return "Previous Generation"
    if bucket == total - 1:
        return "Earliest Generation"
    return f"{bucket + 1} Generations Ago"
