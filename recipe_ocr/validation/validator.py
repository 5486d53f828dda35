from __future__ import annotations

from recipe_ocr.core.result import RecipeValidationError, Result

MIN_RECIPE_LENGTH = 20
MIN_INDICATORS = 3

RECIPE_INDICATORS = (
    "ingredients",
    "directions",
    "instructions",
    "recipe",
    "cook",
    "bake",
    "mix",
    "cup",
    "tablespoon",
    "teaspoon",
    "preheat",
    "oven",
)


def find_recipe_indicators(text: str) -> list[str]:
    lower = text.lower()
    return [word for word in RECIPE_INDICATORS if word in lower]


def validate_recipe_text(text: str) -> Result[bool]:
    """Check that *text* plausibly is a recipe.

    Needs at least 20 characters and three distinct indicator words
    (substring match, so "cups" counts for "cup").
    """
    if len(text) < MIN_RECIPE_LENGTH:
        return Result.failure(RecipeValidationError("Text is too short to be a recipe"))

    if len(find_recipe_indicators(text)) < MIN_INDICATORS:
        return Result.failure(RecipeValidationError("Text does not appear to be a recipe"))

    return Result.success(True)
