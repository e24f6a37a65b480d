"""Tests for candidate selection: interests, budget ceiling, exclusions, ranking."""
import pytest

from tripplanner.itinerary.candidates import (
    MAX_CANDIDATES,
    filter_places,
    interest_tags,
    per_person_ceiling,
)


def test_interest_tags_union():
    tags = interest_tags(["Historical", "Art & Culture"])
    assert tags == {"historical", "cultural", "art", "museum"}


def test_interest_tags_unknown_adds_nothing():
    assert interest_tags(["Skydiving"]) == frozenset()
    assert interest_tags([]) == frozenset()


@pytest.mark.parametrize("count, expected", [(2, 50.0), (1, 100.0), (0, 100.0), (-3, 100.0), (None, 100.0)])
def test_per_person_ceiling(count, expected):
    assert per_person_ceiling(100.0, count) == expected


def test_matches_interest_tags(make_place, catalog_db):
    _, query = catalog_db([
        make_place("beach", tags=["beach"]),
        make_place("fort", tags=["historical"]),
        make_place("mall", tags=["shopping"]),
    ])
    out = filter_places("4", ["Nature", "Historical"], 1000, 1, query_places=query)
    assert {p.id for p in out} == {"beach", "fort"}


def test_tag_match_is_case_insensitive(make_place):
    place = make_place("beach", tags=["Beach"])
    out = filter_places("4", ["Nature"], 1000, 1, query_places=lambda **kw: [place])
    assert [p.id for p in out] == ["beach"]


def test_price_ceiling_is_per_person_and_inclusive(make_place, catalog_db):
    _, query = catalog_db([
        make_place("at-limit", avg_price=50.0),
        make_place("over", avg_price=50.01),
        make_place("free", avg_price=0.0),
    ])
    out = filter_places("4", ["Nature"], 100, 2, query_places=query)
    assert {p.id for p in out} == {"at-limit", "free"}


def test_zero_travelers_treated_as_one(make_place, catalog_db):
    _, query = catalog_db([make_place("pricey", avg_price=90.0)])
    out = filter_places("4", ["Nature"], 100, 0, query_places=query)
    assert [p.id for p in out] == ["pricey"]


def test_only_active_places_in_district(make_place, catalog_db):
    _, query = catalog_db([
        make_place("open"),
        make_place("inactive", is_active=False),
        make_place("elsewhere", district_id="1"),
        make_place("shop", category="shopping", tags=["nature"]),
    ])
    out = filter_places("4", ["Nature"], 1000, 1, query_places=query)
    assert [p.id for p in out] == ["open"]


def test_dining_places_are_candidates(make_place, catalog_db):
    _, query = catalog_db([make_place("warung", category="dining", tags=["local-food"])])
    out = filter_places("4", ["Food"], 1000, 1, query_places=query)
    assert [p.id for p in out] == ["warung"]


def test_excluded_ids_never_returned(make_place, catalog_db):
    _, query = catalog_db([make_place("a"), make_place("b"), make_place("c")])
    out = filter_places("4", ["Nature"], 1000, 1, ["b"], query_places=query)
    assert [p.id for p in out] == ["a", "c"]


def test_exclusions_applied_even_if_catalog_ignores_them(make_place):
    places = [make_place("a"), make_place("b")]
    out = filter_places("4", ["Nature"], 1000, 1, {"a"}, query_places=lambda **kw: places)
    assert [p.id for p in out] == ["b"]


def test_sorted_by_popularity_then_rating(make_place, catalog_db):
    _, query = catalog_db([
        make_place("low", popularity_score=10, rating=5.0),
        make_place("high-b", popularity_score=90, rating=4.0),
        make_place("high-a", popularity_score=90, rating=4.8),
        make_place("mid", popularity_score=50, rating=3.0),
    ])
    out = filter_places("4", ["Nature"], 1000, 1, query_places=query)
    assert [p.id for p in out] == ["high-a", "high-b", "mid", "low"]


def test_full_ties_keep_catalog_order(make_place, catalog_db):
    _, query = catalog_db([make_place("first"), make_place("second"), make_place("third")])
    out = filter_places("4", ["Nature"], 1000, 1, query_places=query)
    assert [p.id for p in out] == ["first", "second", "third"]


def test_truncated_to_max_candidates(make_place, catalog_db):
    _, query = catalog_db([make_place(f"p{i:02d}", popularity_score=i) for i in range(20)])
    out = filter_places("4", ["Nature"], 1000, 1, query_places=query)
    assert len(out) == MAX_CANDIDATES
    assert out[0].id == "p19"
    assert out[-1].id == "p05"


def test_no_interests_returns_empty_without_query(make_place):
    calls = []

    def query(**kw):
        calls.append(kw)
        return [make_place("a")]

    assert filter_places("4", [], 1000, 1, query_places=query) == []
    assert calls == []


def test_query_failure_returns_empty():
    def boom(**kw):
        raise RuntimeError("catalog down")

    assert filter_places("4", ["Nature"], 1000, 1, query_places=boom) == []


def test_query_filters_passed_to_catalog():
    seen = {}

    def query(**kw):
        seen.update(kw)
        return []

    filter_places("4", ["Nature"], 300, 3, ["x"], query_places=query)
    assert seen["district_id"] == "4"
    assert set(seen["categories"]) == {"attraction", "dining"}
    assert seen["is_active"] is True
    assert seen["price_lte"] == 100.0
    assert set(seen["exclude_ids"]) == {"x"}
