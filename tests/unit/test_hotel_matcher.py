"""Tests for the hotel name matcher and city validator."""

import pytest

from hotel_identity.utils.hotel_matcher import (
    analyze_match,
    validate_city,
    words_match_fuzzy,
)


class TestAnalyzeMatch:
    def test_same_brand_family_containment(self):
        verdict = analyze_match("The Westin Sacramento", "Westin Sacramento Riverfront")

        assert verdict.is_match
        assert verdict.reason == 'Same brand family "marriott" + containment match'
        assert verdict.search_brand == "westin"
        assert verdict.candidate_brand == "westin"

    def test_sibling_brands_exact_after_normalization(self):
        verdict = analyze_match("Andaz West Hollywood", "Hyatt Regency West Hollywood")

        assert verdict.is_match
        assert verdict.reason == "Exact match after normalization"
        assert verdict.normalized_search == verdict.normalized_candidate == "west hollywood"

    def test_brand_veto(self):
        verdict = analyze_match("Andaz West Hollywood", "Marriott West Hollywood")

        assert not verdict.is_match
        assert verdict.reason == 'Brand mismatch: searching for "andaz" but found "marriott"'

    def test_distinctive_containment(self):
        verdict = analyze_match("The Rittenhouse", "The Rittenhouse Hotel Philadelphia")

        assert verdict.is_match
        assert "distinctive" in verdict.reason

    def test_multiword_containment(self):
        verdict = analyze_match("Casa Madrona Sausalito", "Casa Madrona Sausalito Hotel and Spa")

        assert verdict.is_match
        assert verdict.reason == "One name contains the other"

    def test_short_name_requires_all_words(self):
        verdict = analyze_match("Park Inn", "Holiday Inn Express")

        assert not verdict.is_match
        assert verdict.reason == "Short name: only 0/1 significant words match"
        assert verdict.search_words == ["park"]

    def test_brand_in_search_only(self):
        verdict = analyze_match("Hilton Tampa Downtown", "Tampa Downtown Suites")

        assert not verdict.is_match
        assert verdict.reason == 'Brand "hilton" in search but no brand in result - likely different hotel'

    def test_brand_in_search_only_exact(self):
        verdict = analyze_match("Hilton Garden Tampa", "Garden Tampa")

        assert verdict.is_match
        assert verdict.reason == "Exact normalized match (brand in search only)"

    def test_word_overlap_threshold_met(self):
        verdict = analyze_match("Grand Canyon Lodge North Rim", "Grand Canyon North Rim Lodge")

        assert verdict.is_match
        assert verdict.matching_word_count == 4
        assert verdict.reason == "4/4 significant words match (>=2 required)"

    def test_word_overlap_threshold_missed(self):
        verdict = analyze_match("Pacific Grove Ocean View Retreat", "Mountain View Retreat Denver")

        assert not verdict.is_match
        assert verdict.matching_word_count == 2
        assert verdict.reason == "Only 2/5 significant words match (<3 required)"

    def test_verdict_serializes(self):
        data = analyze_match("Park Inn", "Holiday Inn Express").to_dict()

        assert data["is_match"] is False
        assert set(data) >= {"reason", "search_words", "candidate_words", "matching_word_count"}


class TestWordsMatchFuzzy:
    @pytest.mark.parametrize("a, b, expected", [
        ("sacramento", "sacramento", True),
        ("park", "parkside", True),
        ("inn", "innsbruck", False),
        ("rim", "grim", False),
        ("harbor", "harbour", False),
    ])
    def test_cases(self, a, b, expected):
        assert words_match_fuzzy(a, b) is expected


class TestValidateCity:
    def test_missing_address_passes(self):
        assert validate_city(None, "Sacramento")
        assert validate_city("", "Sacramento")

    def test_city_with_state_suffix(self):
        assert validate_city("4800 Riverside Blvd, Sacramento, CA", "Sacramento, CA")

    def test_wrong_city(self):
        assert not validate_city("1 Main St, Davis, CA", "Sacramento")

    def test_accents_ignored(self):
        assert validate_city("Calle 1, San José, Costa Rica", "San Jose")
