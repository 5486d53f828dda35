"""Confidence scoring for processed recipe text.

The engines report their own recognition confidence; this module scores the
text itself. Longer, multi-line text with recipe sections and measurements is
more likely to be a clean read than a handful of fragments.
"""
from __future__ import annotations

import re

BASE_SCORE = 0.5

_MEASUREMENT_RE = re.compile(r"\d+\s*(cups?|tbsp|tsp|tablespoons?|teaspoons?)", re.IGNORECASE)


def extract_confidence_score(text: str) -> float:
    """Return a heuristic score in [0.0, 1.0] for *text*.

    Signals:
        +0.1  average non-blank line longer than 20 characters
        +0.1  more than 5 non-blank lines
        +0.2  mentions "ingredients" or "directions"
        +0.1  contains a measurement such as "2 cups" or "1 tsp"
    """
    lines = [line for line in text.split("\n") if line.strip()]
    avg_line_length = sum(len(line) for line in lines) / len(lines) if lines else 0.0
    lower = text.lower()

    score = BASE_SCORE
    if avg_line_length > 20:
        score += 0.1
    if len(lines) > 5:
        score += 0.1
    if "ingredients" in lower or "directions" in lower:
        score += 0.2
    if _MEASUREMENT_RE.search(text):
        score += 0.1

    return round(max(0.0, min(1.0, score)), 4)
