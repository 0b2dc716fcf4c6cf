from __future__ import annotations

from lineage.models import Person, SearchFilters, YearRange
from lineage.search import FuzzyIndex, apply_filters, filter_options, ranked_search, search


def _ids(people) -> list[str]:
    return [p.id for p in people]


# ---------------------------------------------------------------------------
# Structured filters
# ---------------------------------------------------------------------------


class TestFilters:
    def test_no_filters_returns_everyone(self, people) -> None:
        assert _ids(apply_filters(people, None)) == _ids(people)
        assert _ids(apply_filters(people, SearchFilters())) == _ids(people)

    def test_surname_substring_case_insensitive(self, people) -> None:
        assert _ids(apply_filters(people, SearchFilters(surname="SMI"))) == ["alice", "bob", "carol"]

    def test_missing_field_fails_text_filter(self, people) -> None:
        out = apply_filters(people, SearchFilters(birth_place="england"))
        assert _ids(out) == ["alice", "carol"]

    def test_filters_compose_conjunctively(self, people) -> None:
        both = apply_filters(people, SearchFilters(surname="Smith", has_photos=True))
        surname_only = {p.id for p in people if "smith" in p.last_name.lower()}
        photos_only = {p.id for p in people if p.photos}
        assert set(_ids(both)) == surname_only & photos_only == {"carol"}

    def test_birth_year_range(self, people) -> None:
        out = apply_filters(people, SearchFilters(birth_year=YearRange(from_year=1900, to_year=1960)))
        assert _ids(out) == ["alice", "bob", "eve"]

    def test_open_ended_year_range(self, people) -> None:
        out = apply_filters(people, SearchFilters(birth_year=YearRange(to_year=1900)))
        assert _ids(out) == ["dan"]

    def test_year_range_excludes_people_without_dates(self, people) -> None:
        out = apply_filters(people, SearchFilters(birth_year=YearRange(from_year=0)))
        assert "nameless" not in _ids(out)

    def test_unreadable_year_counts_as_zero(self) -> None:
        people = [Person(id="u", first_name="Ada", last_name="Moss", birth_date="unknown")]
        assert _ids(apply_filters(people, SearchFilters(birth_year=YearRange(to_year=1900)))) == ["u"]
        assert apply_filters(people, SearchFilters(birth_year=YearRange(from_year=1800))) == []

    def test_year_range_accepts_from_to_aliases(self) -> None:
        filters = SearchFilters.model_validate({"birthYear": {"from": 1800, "to": 1850}})
        assert filters.birth_year.from_year == 1800
        assert filters.birth_year.to_year == 1850

    def test_has_documents(self, people) -> None:
        assert _ids(apply_filters(people, SearchFilters(has_documents=True))) == ["dan"]


# ---------------------------------------------------------------------------
# Fuzzy matching
# ---------------------------------------------------------------------------


class TestFuzzyIndex:
    def test_exact_surname_beats_loose_biography_match(self) -> None:
        people = [
            Person(id="bio", first_name="Ann", last_name="Brown", biography="She met a Millar at the fair."),
            Person(id="surname", first_name="Tom", last_name="Miller"),
        ]
        matches = FuzzyIndex(people).search("Miller")
        assert [m.person.id for m in matches] == ["surname", "bio"]
        assert matches[0].score <= matches[1].score

    def test_tolerates_typos(self, people) -> None:
        matches = FuzzyIndex(people).search("Smiht")
        assert {"alice", "bob", "carol"} <= {m.person.id for m in matches}

    def test_prefix_of_longer_token_ranks_first(self, people) -> None:
        matches = FuzzyIndex(people).search("Carp")
        assert matches[0].person.id == "bob"
        assert "occupation" in matches[0].fields

    def test_short_tokens_ignored(self, people) -> None:
        assert FuzzyIndex(people).search("a") == []
        assert FuzzyIndex(people).search("   ") == []

    def test_unrelated_query_matches_nothing(self, people) -> None:
        assert FuzzyIndex(people).search("zzzzqqq") == []

    def test_scores_are_in_unit_interval(self, people) -> None:
        for m in FuzzyIndex(people).search("Jones"):
            assert 0.0 < m.score <= 1.0

    def test_identical_fields_score_identically(self) -> None:
        people = [
            Person(id="a", first_name="Mary", last_name="Whitaker"),
            Person(id="b", first_name="Mary", last_name="Whitaker"),
            Person(id="c", first_name="Martha", last_name="Whittaker", occupation="Weaver"),
        ]
        scores = FuzzyIndex(people).scores("Mary Whitaker")
        assert scores["a"] == scores["b"]
        assert scores["a"] < scores["c"]

    def test_repeated_query_tokens_do_not_change_scores(self, people) -> None:
        index = FuzzyIndex(people)
        assert index.scores("Smith Smith") == index.scores("Smith")

    def test_empty_index(self) -> None:
        assert FuzzyIndex([]).search("Smith") == []


# ---------------------------------------------------------------------------
# Combined search
# ---------------------------------------------------------------------------


class TestSearch:
    def test_without_query_sorts_by_last_then_first_name(self, people) -> None:
        out = search(people, SearchFilters(surname="smith"))
        assert _ids(out) == ["alice", "bob", "carol"]
        everyone = search(people)
        # Empty surname sorts first; case-sensitive comparison puts "Jones" before "jones".
        assert _ids(everyone)[:3] == ["nameless", "dan", "alice"]

    def test_query_restricts_and_orders_by_score(self, people) -> None:
        index = FuzzyIndex(people)
        out = search(people, SearchFilters(surname="Jones"), "Daniel", index=index)
        assert _ids(out) == ["dan"]

    def test_query_and_filters_are_anded(self, people) -> None:
        out = search(people, SearchFilters(has_photos=True), "Smith")
        assert _ids(out) == ["carol"]

    def test_blank_query_is_ignored(self, people) -> None:
        assert _ids(search(people, None, "   ")) == _ids(search(people))

    def test_empty_people(self) -> None:
        assert search([], SearchFilters(surname="x"), "Smith") == []


class TestRankedSearch:
    def test_scoring(self, people) -> None:
        ranked = dict((p.id, s) for p, s in ranked_search(people, "smith"))
        # Full name contains "smith" (+10) and exact surname (+15).
        assert ranked["alice"] == 25
        assert "eve" not in ranked

    def test_exact_first_name(self, people) -> None:
        ranked = ranked_search(people, "Daniel")
        assert ranked[0][0].id == "dan"
        assert ranked[0][1] == 25

    def test_biography_match(self, people) -> None:
        ranked = ranked_search(people, "chapel")
        assert [(p.id, s) for p, s in ranked] == [("dan", 5)]

    def test_no_match_and_blank(self, people) -> None:
        assert ranked_search(people, "nobody") == []
        assert ranked_search(people, " ") == []

    def test_ties_keep_input_order(self, people) -> None:
        ranked = ranked_search(people, "smith")
        assert [p.id for p, _ in ranked] == ["alice", "bob", "carol"]


def test_filter_options(people) -> None:
    opts = filter_options(people)
    assert opts["surnames"] == ["Jones", "Smith", "jones"]
    assert "Cardiff, Wales" in opts["places"]
    assert opts["birth_places"] == ["Leeds, England", "York, England"]
    assert opts["death_places"] == ["Cardiff, Wales"]
    assert opts["occupations"] == ["Carpenter", "Coal miner"]
    assert opts["birth_years"] == [1890, 1925, 1950, 1952, 1980]
