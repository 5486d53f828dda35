"""Fallback orchestration over an on-device and a cloud OCR engine.

``HYBRID`` mode tries the primary engine and, if it fails, makes exactly one
hop to the secondary engine. There is no retry against the same engine and no
backoff. The orchestrator remembers which engine produced the last text and
that engine's confidence; those two fields are per-instance state, so build
one orchestrator per in-flight request.
"""
from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass

from recipe_ocr.core.result import EngineError, InvalidInputError, Result
from recipe_ocr.ocr.base_ocr import EngineId, ImageRef, OCREngine

logger = logging.getLogger(__name__)


class OCRQuality(str, enum.Enum):
    ON_DEVICE = "on-device"
    CLOUD = "cloud"
    HYBRID = "hybrid"


@dataclass(frozen=True)
class EngineStatus:
    available: bool
    error: str | None = None

    def to_dict(self) -> dict:
        data: dict = {"available": self.available}
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class ServiceStatus:
    on_device: EngineStatus
    cloud: EngineStatus

    def to_dict(self) -> dict:
        return {"onDevice": self.on_device.to_dict(), "cloud": self.cloud.to_dict()}


@dataclass(frozen=True)
class Extraction:
    """Text from one image and the engine that produced it."""

    text: str
    engine: EngineId
    confidence: float


class FallbackOrchestrator:
    def __init__(
        self,
        primary: OCREngine,
        secondary: OCREngine,
        *,
        quality: OCRQuality = OCRQuality.HYBRID,
        timeout: float | None = None,
        batch_concurrency: int = 1,
    ) -> None:
        self._primary = primary
        self._secondary = secondary
        self._quality = OCRQuality(quality)
        self._timeout = timeout
        self._batch_concurrency = max(1, batch_concurrency)
        self._last_used_engine = EngineId.NONE
        self._last_confidence = 0.0

    @property
    def quality(self) -> OCRQuality:
        return self._quality

    # ------------------------------------------------------------------ #
    #  Extraction                                                          #
    # ------------------------------------------------------------------ #

    async def extract_text(self, image_ref: ImageRef) -> Result[str]:
        result = await self.extract(image_ref)
        if not result.is_success:
            return Result.failure(result.error)
        return Result.success(result.value.text)

    async def extract(self, image_ref: ImageRef) -> Result[Extraction]:
        """Like ``extract_text`` but also says which engine produced the text."""
        if self._quality is OCRQuality.ON_DEVICE:
            return await self._attempt(self._primary, image_ref)
        if self._quality is OCRQuality.CLOUD:
            return await self._attempt(self._secondary, image_ref)

        first = await self._attempt(self._primary, image_ref)
        if first.is_success:
            return first

        # The secondary would resolve the same reference, so bad input is final.
        if isinstance(first.error, InvalidInputError):
            return first

        logger.warning(
            "ocr_fallback",
            extra={
                "primary": self._primary.name,
                "secondary": self._secondary.name,
                "error": first.error_message,
            },
        )
        second = await self._attempt(self._secondary, image_ref)
        if second.is_success:
            return second

        logger.error(
            "ocr_both_failed",
            extra={"primary_error": first.error_message, "secondary_error": second.error_message},
        )
        return Result.failure(
            EngineError(
                f"Both {self._primary.name} and {self._secondary.name} OCR failed: "
                f"{first.error_message}; {second.error_message}"
            )
        )

    async def extract_text_from_multiple(
        self,
        image_refs: list[ImageRef],
        *,
        max_concurrency: int | None = None,
    ) -> Result[list[str]]:
        """Extract every image independently, keeping successes in input order.

        Failed images are dropped, so the returned list can be shorter than
        ``image_refs``. Only when nothing succeeds is the batch a failure.
        """
        result = await self.extract_many(image_refs, max_concurrency=max_concurrency)
        if not result.is_success:
            return Result.failure(result.error)
        return Result.success([item.text for item in result.value])

    async def extract_many(
        self,
        image_refs: list[ImageRef],
        *,
        max_concurrency: int | None = None,
    ) -> Result[list[Extraction]]:
        semaphore = asyncio.Semaphore(max(1, max_concurrency or self._batch_concurrency))

        async def _one(ref: ImageRef) -> Result[Extraction]:
            async with semaphore:
                return await self.extract(ref)

        results = await asyncio.gather(*(_one(ref) for ref in image_refs))

        extractions = [r.value for r in results if r.is_success]
        errors = [r.error_message for r in results if not r.is_success]
        if errors:
            logger.info(
                "ocr_batch_partial",
                extra={"requested": len(image_refs), "succeeded": len(extractions), "failed": len(errors)},
            )
        if not extractions:
            return Result.failure(EngineError(f"All OCR extractions failed: {', '.join(errors)}"))
        return Result.success(extractions)

    async def _attempt(self, engine: OCREngine, image_ref: ImageRef) -> Result[Extraction]:
        try:
            if self._timeout is None:
                result = await engine.extract_text(image_ref)
            else:
                result = await asyncio.wait_for(engine.extract_text(image_ref), self._timeout)
        except asyncio.TimeoutError:
            return Result.failure(
                EngineError(f"{engine.name} OCR timed out after {self._timeout}s")
            )
        except Exception as exc:
            logger.exception("engine_raised", extra={"engine": engine.name})
            return Result.failure(EngineError(f"{engine.name} OCR failed: {exc}"))

        if not result.is_success:
            return Result.failure(result.error)

        score = engine.get_last_confidence_score()
        extraction = Extraction(
            text=result.value,
            engine=engine.engine_id,
            confidence=score.value if score.is_success else 0.0,
        )
        self._last_used_engine = extraction.engine
        self._last_confidence = extraction.confidence
        logger.info(
            "ocr_extracted",
            extra={"engine": engine.name, "confidence": round(extraction.confidence, 4)},
        )
        return Result.success(extraction)

    # ------------------------------------------------------------------ #
    #  Availability                                                        #
    # ------------------------------------------------------------------ #

    async def is_available(self) -> Result[bool]:
        status = await self.get_service_status()
        return Result.success(status.on_device.available or status.cloud.available)

    async def get_service_status(self) -> ServiceStatus:
        on_device, cloud = await asyncio.gather(
            self._probe(self._primary), self._probe(self._secondary)
        )
        return ServiceStatus(on_device=on_device, cloud=cloud)

    @staticmethod
    async def _probe(engine: OCREngine) -> EngineStatus:
        try:
            result = await engine.is_available()
        except Exception as exc:
            return EngineStatus(available=False, error=str(exc))
        if not result.is_success:
            return EngineStatus(available=False, error=result.error_message)
        return EngineStatus(available=bool(result.value))

    # ------------------------------------------------------------------ #
    #  State                                                               #
    # ------------------------------------------------------------------ #

    def get_last_used_engine(self) -> EngineId:
        return self._last_used_engine

    def get_last_confidence_score(self) -> float:
        return self._last_confidence

    def reset(self) -> None:
        self._last_used_engine = EngineId.NONE
        self._last_confidence = 0.0
