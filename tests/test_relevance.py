"""Tests for search relevance ranking."""

from itertools import permutations

import pytest

from catalog_gateway.services.relevance import rank_by_relevance, score_candidate


def names(items):
    return [item["name"] for item in items]


class TestScoreCandidate:
    def test_exact_match(self):
        assert score_candidate("doom", {"name": "Doom"}) == 1000

    def test_prefix_match(self):
        assert score_candidate("doom", {"name": "Doom Eternal"}) == 500

    def test_substring_match(self):
        assert score_candidate("doom", {"name": "Gloom and Doom"}) == 100

    def test_word_matches(self):
        # "grand theft" is not a substring, but both words appear
        assert score_candidate("grand theft", {"name": "Theft of the Grand Prize"}) == 20
        assert score_candidate("grand theft", {"name": "Grandia"}) == 10
        assert score_candidate("grand theft", {"name": "Tetris"}) == 0

    def test_boosts(self):
        item = {"name": "Doom", "rating": 4.5, "metacritic": 90}
        assert score_candidate("doom", item) == pytest.approx(1000 + 9 + 9)

    def test_missing_boosts_count_as_zero(self):
        assert score_candidate("doom", {"name": "Doom", "rating": None, "metacritic": None}) == 1000

    def test_query_is_trimmed_and_case_insensitive(self):
        assert score_candidate("  DOOM ", {"name": "doom"}) == 1000

    def test_missing_name(self):
        assert score_candidate("doom", {"name": None}) == 0


class TestRankByRelevance:
    def test_doom_ordering_independent_of_input_order(self):
        candidates = [{"name": "Gloom"}, {"name": "Doom Eternal"}, {"name": "Doom"}]
        for order in permutations(candidates):
            assert names(rank_by_relevance("doom", list(order))) == ["Doom", "Doom Eternal", "Gloom"]

    def test_exact_prefix_substring_tiers(self):
        candidates = [{"name": "The Doom Gloom"}, {"name": "Doom"}, {"name": "Doom Eternal"}]
        for order in permutations(candidates):
            assert names(rank_by_relevance("doom", list(order))) == [
                "Doom",
                "Doom Eternal",
                "The Doom Gloom",
            ]

    def test_ties_keep_upstream_order(self):
        first = {"name": "Doom II", "id": 1}
        second = {"name": "Doom 3", "id": 2}
        assert rank_by_relevance("doom", [first, second]) == [first, second]
        assert rank_by_relevance("doom", [second, first]) == [second, first]

    def test_boost_breaks_ties(self):
        low = {"name": "Doom II", "rating": 3.0}
        high = {"name": "Doom 3", "rating": 4.0}
        assert names(rank_by_relevance("doom", [low, high])) == ["Doom 3", "Doom II"]

    def test_score_is_not_exposed(self):
        items = [{"name": "Doom Eternal", "id": 1}, {"name": "Doom", "id": 2}]
        ranked = rank_by_relevance("doom", items)
        assert all(set(item) == {"name", "id"} for item in ranked)

    def test_empty(self):
        assert rank_by_relevance("doom", []) == []


class TestNonFiniteBoosts:
    @pytest.mark.parametrize("value", ["nan", "inf", "-Infinity", float("nan"), float("inf")])
    def test_non_finite_boosts_count_as_zero(self, value):
        item = {"name": "Doom", "rating": value, "metacritic": value}
        assert score_candidate("doom", item) == 1000

    def test_numeric_strings_still_count(self):
        assert score_candidate("doom", {"name": "Doom", "rating": "4", "metacritic": "80"}) == 1016

    def test_nan_rating_does_not_make_order_input_dependent(self):
        candidates = [
            {"name": "Doom II", "rating": float("nan")},
            {"name": "Doom 3", "rating": 4.0},
            {"name": "Doom 64", "rating": 2.0},
        ]
        for order in permutations(candidates):
            assert names(rank_by_relevance("doom", list(order)))[:2] == ["Doom 3", "Doom 64"]
