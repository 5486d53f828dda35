"""Text confidence heuristic tests."""
from __future__ import annotations

import pytest

from recipe_ocr.confidence.confidence import extract_confidence_score


def test_empty_text_scores_base() -> None:
    assert extract_confidence_score("") == 0.5


@pytest.mark.parametrize(
    "text",
    ["", "x", "\n\n\n", "@@@@ ### !!!", "cups " * 500, "2 cups\n" * 200],
)
def test_score_always_in_range(text: str) -> None:
    assert 0.0 <= extract_confidence_score(text) <= 1.0


def test_score_capped_for_keyword_padding() -> None:
    padding = "ingredients directions cup tablespoon teaspoon preheat oven cook bake mix "
    text = padding * 15
    assert len(text) > 1000
    assert extract_confidence_score(text) <= 1.0


def test_all_signals_reach_full_score() -> None:
    text = "\n".join(
        [
            "INGREDIENTS for the cookie dough",
            "2 cups all purpose flour sifted",
            "1 teaspoon baking soda and salt",
            "DIRECTIONS for baking the cookies",
            "Preheat the oven to 375 degrees",
            "Bake for ten minutes until golden",
        ]
    )
    assert extract_confidence_score(text) == 1.0


def test_section_keyword_is_case_insensitive() -> None:
    # Two short lines: only the keyword signal applies.
    assert extract_confidence_score("INGREDIENTS\nx") == 0.7


def test_measurement_signal() -> None:
    assert extract_confidence_score("add 2 cups") == 0.6
    assert extract_confidence_score("add 1tsp") == 0.6
