"""Result values and the OCR error taxonomy.

Every public OCR operation returns a :class:`Result` instead of raising, so a
caller can branch on ``result.is_success`` and read either ``result.value`` or
``result.error``. Errors are ordinary exception instances carried as values;
``unwrap()`` re-raises them for callers that prefer exceptions.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


class OCRError(Exception):
    """Base class for every failure surfaced by the OCR core."""


class InvalidInputError(OCRError):
    """The image reference is missing, malformed or unreadable."""


class EngineError(OCRError):
    """A recognition backend failed (model, transport or non-2xx response)."""


class ProcessingError(OCRError):
    """Raw text could not be processed."""


class RecipeValidationError(OCRError):
    """Processed text does not look like a recipe."""


@dataclass(frozen=True)
class Result(Generic[T]):
    value: T | None = None
    error: OCRError | None = None

    @classmethod
    def success(cls, value: T) -> Result[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: OCRError | str) -> Result[T]:
        if isinstance(error, str):
            error = OCRError(error)
        return cls(error=error)

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def error_message(self) -> str | None:
        return None if self.error is None else str(self.error)

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
