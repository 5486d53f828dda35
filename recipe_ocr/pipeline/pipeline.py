"""Recipe text pipeline: OCR (with fallback) → cleanup → confidence → validation.

The orchestrator only retrieves raw text; this pipeline is the caller that
turns it into an accept/review decision:

- ``accepted``  text was extracted, cleaned and looks like a recipe
- ``review``    text was extracted and cleaned but failed recipe validation;
                the cleaned text is still returned
- ``failed``    no usable text (both engines failed, or nothing to process)

Every step is recorded as a ``ProcessingEvent`` with its duration so the HTTP
layer can show what happened.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable

from recipe_ocr.confidence.confidence import extract_confidence_score
from recipe_ocr.core.result import InvalidInputError, Result
from recipe_ocr.ocr.base_ocr import EngineId, ImageRef
from recipe_ocr.ocr.fallback import Extraction, FallbackOrchestrator
from recipe_ocr.processing.result_processor import process_text
from recipe_ocr.validation.validator import validate_recipe_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessingEvent:
    step: str
    status: str  # completed | failed
    detail: str | None = None
    duration_ms: int | None = None


@dataclass(frozen=True)
class RecipeTextOutcome:
    status: str
    text: str | None = None
    raw_text: str | None = None
    text_confidence: float = 0.0
    ocr_confidence: float = 0.0
    engine: EngineId = EngineId.NONE
    error: str | None = None
    events: list[ProcessingEvent] = field(default_factory=list)

    @property
    def is_recipe(self) -> bool:
        return self.status == "accepted"


class RecipeTextPipeline:
    def __init__(self, orchestrator: FallbackOrchestrator) -> None:
        self._orchestrator = orchestrator

    # ------------------------------------------------------------------ #
    #  Public entry points                                                 #
    # ------------------------------------------------------------------ #

    async def process_image(self, image_ref: ImageRef) -> RecipeTextOutcome:
        events: list[ProcessingEvent] = []
        extracted = await self._timed(events, "ocr", self._orchestrator.extract(image_ref))
        if not extracted.is_success:
            logger.warning("recipe_ocr_failed", extra={"error": extracted.error_message})
            return RecipeTextOutcome(status="failed", error=extracted.error_message, events=events)

        return self._finish(extracted.value, events=events)

    async def process_images(self, image_refs: list[ImageRef]) -> Result[list[RecipeTextOutcome]]:
        """Run a batch; outcomes exist only for images whose text was extracted."""
        if not image_refs:
            return Result.failure(InvalidInputError("Image references are required"))

        events: list[ProcessingEvent] = []
        extracted = await self._timed(
            events, "ocr_batch", self._orchestrator.extract_many(image_refs)
        )
        if not extracted.is_success:
            return Result.failure(extracted.error)

        return Result.success(
            [self._finish(extraction, events=list(events)) for extraction in extracted.value]
        )

    # ------------------------------------------------------------------ #
    #  Steps                                                               #
    # ------------------------------------------------------------------ #

    def _finish(self, extraction: Extraction, *, events: list[ProcessingEvent]) -> RecipeTextOutcome:
        raw_text = extraction.text
        engine = extraction.engine
        ocr_confidence = extraction.confidence

        t0 = time.monotonic()
        processed = process_text(raw_text)
        events.append(_event("processing", processed, t0))
        if not processed.is_success:
            return RecipeTextOutcome(
                status="failed",
                raw_text=raw_text,
                engine=engine,
                ocr_confidence=ocr_confidence,
                error=processed.error_message,
                events=events,
            )

        text = processed.value
        text_confidence = extract_confidence_score(text)
        events.append(ProcessingEvent(step="confidence", status="completed", detail=f"score={text_confidence:.3f}"))

        t0 = time.monotonic()
        validation = validate_recipe_text(text)
        events.append(_event("validation", validation, t0))

        status = "accepted" if validation.is_success else "review"
        logger.info(
            "recipe_text_processed",
            extra={
                "status": status,
                "engine": engine.value,
                "ocr_confidence": round(ocr_confidence, 4),
                "text_confidence": text_confidence,
            },
        )
        return RecipeTextOutcome(
            status=status,
            text=text,
            raw_text=raw_text,
            text_confidence=text_confidence,
            ocr_confidence=ocr_confidence,
            engine=engine,
            error=validation.error_message,
            events=events,
        )

    @staticmethod
    async def _timed(events: list[ProcessingEvent], step: str, coro: Awaitable[Result]) -> Result:
        t0 = time.monotonic()
        result = await coro
        events.append(_event(step, result, t0))
        return result


def _event(step: str, result: Result, t0: float) -> ProcessingEvent:
    return ProcessingEvent(
        step=step,
        status="completed" if result.is_success else "failed",
        detail=result.error_message,
        duration_ms=int((time.monotonic() - t0) * 1000),
    )
