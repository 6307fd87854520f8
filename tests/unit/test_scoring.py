"""Unit tests for match scoring.

Tests cover:
    - calculate_similarity: normalization, symmetry, edge cases
    - calculate_match_score: each scoring tier in order
"""
import pytest

from pricecompare.services.matching import calculate_match_score, calculate_similarity


class TestCalculateSimilarity:
    """Tests for calculate_similarity function."""

    def test_identical_after_normalization(self):
        """Case and surrounding whitespace are ignored."""
        assert calculate_similarity("  Milk ", "milk") == 1.0

    def test_both_empty(self):
        assert calculate_similarity("", "   ") == 1.0

    def test_edit_distance_ratio(self):
        """kitten -> sitting is 3 edits over 7 characters."""
        assert calculate_similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)

    @pytest.mark.parametrize(
        "a,b",
        [
            ("kitten", "sitting"),
            ("bread", "breadsticks"),
            ("Eggs", "egg whites"),
            ("", "butter"),
        ],
    )
    def test_symmetric(self, a, b):
        assert calculate_similarity(a, b) == calculate_similarity(b, a)

    def test_completely_different(self):
        assert calculate_similarity("abc", "xyz") == 0.0


class TestCalculateMatchScore:
    """Tests for calculate_match_score tiers."""

    def test_exact_name_case_insensitive(self):
        assert calculate_match_score("whole milk", "Whole Milk") == 0.95

    def test_input_contained_in_name(self):
        assert calculate_match_score("milk", "Organic Whole Milk") == 0.95

    def test_name_contained_in_input(self):
        assert calculate_match_score("organic bananas bunch", "Bananas") == 0.95

    def test_all_tokens_match_with_brand(self):
        """Reordered tokens all found in 'brand name' score 0.85."""
        assert calculate_match_score("milk 2%", "Great Value 2% Milk", "Great Value") == 0.85

    def test_reordered_tokens_exceed_threshold(self):
        assert calculate_match_score("milk 2%", "2% Milk", "Great Value") > 0.70

    def test_token_substring_either_direction(self):
        """'egg' is a substring of the catalog token 'eggs'."""
        assert calculate_match_score("large egg", "Eggs Large Brown") == 0.85

    def test_brand_tokens_count(self):
        assert calculate_match_score("kroger butter", "Salted Butter", "Kroger") == 0.85

    def test_partial_token_match(self):
        """Three of four tokens matched: 0.75 * 0.75."""
        score = calculate_match_score("organic whole milk gallon", "Whole Milk Gallon Jug")
        assert score == pytest.approx(0.75 * 0.75)

    def test_partial_below_ratio_falls_back_to_similarity(self):
        """One of two tokens (50%) is below the 70% ratio."""
        score = calculate_match_score("milk chocolate", "Whole Milk")
        assert score == pytest.approx(calculate_similarity("milk chocolate", "whole milk"))
        assert score < 0.70

    def test_levenshtein_fallback_for_typo(self):
        assert calculate_match_score("bnana", "Banana") == pytest.approx(1 - 1 / 6)

    def test_unrelated_item_scores_low(self):
        assert calculate_match_score("eggs", "Whole Milk") < 0.70

    def test_brand_none_and_empty_equivalent(self):
        assert calculate_match_score("bread", "Wheat Loaf", None) == calculate_match_score(
            "bread", "Wheat Loaf", ""
        )
