"""Cleanup of raw OCR text before recipe parsing.

``process_text`` runs four stages in a fixed order, each a pure
``str -> str`` function:

1. ``normalize_whitespace``   line endings, blank-line runs, space runs
2. ``fix_common_ocr_errors``  digit/letter confusions, garbled words, units
3. ``improve_structure``      section headers, list markers, quantity spacing
4. ``remove_noise``           punctuation, stray characters, one-char lines

Later stages rely on the output of earlier ones (the structure stage expects
canonical unit words, the noise stage deliberately strips the punctuation the
structure stage just added), so the order must not change.
"""
from __future__ import annotations

import re

from recipe_ocr.core.result import ProcessingError, Result

# ---------------------------------------------------------------------------
# Stage 1: whitespace
# ---------------------------------------------------------------------------

_BLANK_RUN_RE = re.compile(r"\n{3,}")
_SPACE_RUN_RE = re.compile(r"[ \t]+")
_SPACE_AROUND_NEWLINE_RE = re.compile(r"[ \t]*\n[ \t]*")


def normalize_whitespace(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _BLANK_RUN_RE.sub("\n\n", text)
    text = _SPACE_RUN_RE.sub(" ", text)
    text = _SPACE_AROUND_NEWLINE_RE.sub("\n", text)
    # Stripping spaces can expose new blank-line runs.
    return _BLANK_RUN_RE.sub("\n\n", text).strip()


# ---------------------------------------------------------------------------
# Stage 2: OCR character errors
# ---------------------------------------------------------------------------

# A digit only stands for a letter when letters sit on both sides of it,
# so quantities such as "2 cups" or "350F" are left alone.
_LETTER_FLANKED_DIGITS = (
    (re.compile(r"(?<=[A-Za-z])0(?=[A-Za-z])"), "o"),
    (re.compile(r"(?<=[A-Za-z])1(?=[A-Za-z])"), "l"),
    (re.compile(r"(?<=[A-Za-z])5(?=[A-Za-z])"), "S"),
    (re.compile(r"(?<=[A-Za-z])8(?=[A-Za-z])"), "B"),
)

# Tokens seen garbled in scanned recipe cards, including the forms left over
# after the letter-flanked fixes above have run.
GARBLED_WORDS = {
    "Ch0c0late": "Chocolate",
    "Choc0late": "Chocolate",
    "Ch1p": "Chip",
    "Chlp": "Chip",
    "C00k1es": "Cookies",
    "C00kles": "Cookies",
    "1ngred1ents": "ingredients",
    "1ngredlents": "ingredients",
    "f10ur": "flour",
    "0ven": "oven",
    "0nion": "onion",
    "0live": "olive",
}
_GARBLED_RE = [
    (re.compile(rf"\b{re.escape(wrong)}\b"), right) for wrong, right in GARBLED_WORDS.items()
]

UNIT_ABBREVIATIONS = {
    "tbsp": "tablespoon",
    "tsp": "teaspoon",
    "mins": "minutes",
    "min": "minutes",
    "hrs": "hours",
    "hr": "hours",
}
# A unit glued to its quantity ("2tbsp") still counts as a word of its own.
_UNIT_RE = [
    (re.compile(rf"(?<![A-Za-z]){abbr}\b", re.IGNORECASE), full)
    for abbr, full in UNIT_ABBREVIATIONS.items()
]


def fix_common_ocr_errors(text: str) -> str:
    for pattern, letter in _LETTER_FLANKED_DIGITS:
        text = pattern.sub(letter, text)
    for pattern, right in _GARBLED_RE:
        text = pattern.sub(right, text)
    for pattern, full in _UNIT_RE:
        text = pattern.sub(full, text)
    return text


# ---------------------------------------------------------------------------
# Stage 3: recipe structure
# ---------------------------------------------------------------------------

_SECTION_RE = re.compile(
    r"\b(ingredients?|directions?|instructions?|method|preparation)\b", re.IGNORECASE
)
_BULLET_RE = re.compile(r"^[ \t]*[-•*][ \t]*", re.MULTILINE)
_NUMBERED_RE = re.compile(r"^[ \t]*(\d+)[.)](?!\d)[ \t]*", re.MULTILINE)
# Punctuation between quantity and unit ("2-cups") is dropped here, since the
# noise stage would otherwise glue them together after this stage has run.
_GLUED_UNIT_RE = re.compile(
    r"(\d)(?:[^\w\s]|_)*(cups?|tablespoons?|teaspoons?|tbsp|tsp|minutes?|mins?|hours?|hrs?)\b",
    re.IGNORECASE,
)


def improve_structure(text: str) -> str:
    text = _SECTION_RE.sub(lambda m: m.group(0).upper() + ":", text)
    text = _BULLET_RE.sub("- ", text)
    text = _NUMBERED_RE.sub(r"\1. ", text)
    return _GLUED_UNIT_RE.sub(r"\1 \2", text)


# ---------------------------------------------------------------------------
# Stage 4: noise
# ---------------------------------------------------------------------------

_ELLIPSIS_RE = re.compile(r"\.{3,}")
_BANGS_RE = re.compile(r"!{2,}")
_QUESTIONS_RE = re.compile(r"\?{2,}")
_NON_TEXT_RE = re.compile(r"[^\w\s]|_")
_LIST_MARKER_RE = re.compile(r"^[\d.)\-*•]")


def remove_noise(text: str) -> str:
    text = _ELLIPSIS_RE.sub("...", text)
    text = _BANGS_RE.sub("!", text)
    text = _QUESTIONS_RE.sub("?", text)
    # Everything that is not a letter, digit or whitespace goes, including
    # the list markers and header colons added by improve_structure.
    text = _NON_TEXT_RE.sub("", text)

    kept: list[str] = []
    for line in text.split("\n"):
        line = _SPACE_RUN_RE.sub(" ", line).strip()
        if len(line) > 1 or _LIST_MARKER_RE.match(line):
            kept.append(line)
    return "\n".join(kept)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

def process_text(raw_text: str) -> Result[str]:
    """Clean raw OCR output for recipe parsing.

    Fails only when there is nothing to process. Input that is non-empty but
    consists purely of noise comes back as a successful empty string; callers
    that need text should check for that themselves.
    """
    if not raw_text or not raw_text.strip():
        return Result.failure(ProcessingError("No text to process"))

    text = normalize_whitespace(raw_text)
    text = fix_common_ocr_errors(text)
    text = improve_structure(text)
    text = remove_noise(text)
    return Result.success(text.strip())
