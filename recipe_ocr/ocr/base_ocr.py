from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from recipe_ocr.core.result import EngineError, InvalidInputError, OCRError, Result

logger = logging.getLogger(__name__)

ImageRef = Union[str, os.PathLike]


class EngineId(str, enum.Enum):
    NONE = "none"
    ON_DEVICE = "on-device"
    CLOUD = "cloud"


@dataclass(frozen=True)
class OCRResult:
    text: str
    confidence: float  # 0.0 to 1.0


def resolve_image_ref(image_ref: ImageRef) -> Path:
    """Turn a path or ``file://`` URI into an existing, readable file path."""
    ref = os.fspath(image_ref) if image_ref is not None else ""
    if not ref or not ref.strip():
        raise InvalidInputError("Invalid image reference provided")
    if ref.startswith("file://"):
        ref = ref[len("file://"):]

    path = Path(ref)
    if not path.is_file():
        raise InvalidInputError(f"Image file does not exist: {path}")
    if not os.access(path, os.R_OK):
        raise InvalidInputError(f"Image file is not readable: {path}")
    return path


class OCREngine:
    """Recognition backend contract.

    Subclasses implement :meth:`_recognize`; the public methods here turn
    every outcome into a :class:`Result` so nothing but cancellation escapes.
    """

    engine_id: EngineId = EngineId.NONE
    name: str = "engine"

    def __init__(self) -> None:
        self._last_confidence = 0.0

    async def _recognize(self, image_bytes: bytes, image_format: str) -> OCRResult:
        raise NotImplementedError

    async def _probe(self) -> bool:
        return True

    async def extract_text(self, image_ref: ImageRef) -> Result[str]:
        try:
            path = resolve_image_ref(image_ref)
            image_bytes = path.read_bytes()
        except InvalidInputError as exc:
            return Result.failure(exc)
        except OSError as exc:
            return Result.failure(InvalidInputError(f"Image file could not be read: {exc}"))

        try:
            result = await self._recognize(image_bytes, _image_format(path))
        except OCRError as exc:
            return Result.failure(exc)
        except Exception as exc:
            logger.warning("engine_failed", extra={"engine": self.name, "error": str(exc)})
            return Result.failure(EngineError(f"{self.name} OCR failed: {str(exc) or type(exc).__name__}"))

        if not result.text or not result.text.strip():
            return Result.failure(EngineError(f"{self.name} OCR returned no text"))

        self._last_confidence = max(0.0, min(1.0, result.confidence))
        return Result.success(result.text)

    async def extract_text_from_multiple(self, image_refs: list[ImageRef]) -> Result[list[str]]:
        texts: list[str] = []
        errors: list[str] = []
        for ref in image_refs:
            result = await self.extract_text(ref)
            if result.is_success:
                texts.append(result.value)
            else:
                errors.append(result.error_message)

        if not texts:
            return Result.failure(EngineError(f"All {self.name} OCR extractions failed: {', '.join(errors)}"))
        return Result.success(texts)

    async def is_available(self) -> Result[bool]:
        try:
            return Result.success(await self._probe())
        except OCRError as exc:
            return Result.failure(exc)
        except Exception as exc:
            return Result.failure(EngineError(f"{self.name} availability check failed: {exc}"))

    def get_last_confidence_score(self) -> Result[float]:
        return Result.success(self._last_confidence)


def _image_format(path: Path) -> str:
    suffix = path.suffix.lower().lstrip(".")
    if suffix in ("jpg", ""):
        return "jpeg"
    return suffix
