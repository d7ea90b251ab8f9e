"""Tests for token and page estimates."""

import pytest

from pitchrag.domain.estimation import estimate_page_count, estimate_tokens


class TestEstimateTokens:
    @pytest.mark.parametrize(
        "length, expected",
        [(0, 0), (1, 1), (4, 1), (5, 2), (400, 100), (401, 101)],
    )
    def test_rounds_up_quarter_length(self, length, expected):
        assert estimate_tokens("a" * length) == expected

    def test_monotonic_in_length(self):
        counts = [estimate_tokens("b" * n) for n in range(0, 50)]
        assert counts == sorted(counts)


class TestEstimatePageCount:
    @pytest.mark.parametrize(
        "length, expected",
        [(0, 0), (1, 1), (2500, 1), (2501, 2), (5000, 2), (12_345, 5)],
    )
    def test_five_hundred_words_per_page(self, length, expected):
        assert estimate_page_count("c" * length) == expected
