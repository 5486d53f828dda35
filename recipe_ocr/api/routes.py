from __future__ import annotations

import logging
import tempfile
from pathlib import Path

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from recipe_ocr.core.config import settings
from recipe_ocr.ocr.factory import get_orchestrator
from recipe_ocr.ocr.fallback import FallbackOrchestrator
from recipe_ocr.pipeline.pipeline import RecipeTextOutcome, RecipeTextPipeline
from recipe_ocr.schemas import (
    AvailabilityOut,
    BatchExtractionResponse,
    EngineStatusOut,
    ExtractionResponse,
    ProcessingEventOut,
    ServiceStatusOut,
)

logger = logging.getLogger(__name__)
router = APIRouter()

ALLOWED_CONTENT_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/heic": ".heic",
}


def orchestrator_dependency() -> FallbackOrchestrator:
    # One orchestrator per request: its last-used engine/confidence are not shared.
    return get_orchestrator()


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/ocr/status", response_model=ServiceStatusOut, response_model_exclude_none=True)
async def service_status(
    orchestrator: FallbackOrchestrator = Depends(orchestrator_dependency),
) -> ServiceStatusOut:
    status = await orchestrator.get_service_status()
    return ServiceStatusOut(
        on_device=EngineStatusOut(available=status.on_device.available, error=status.on_device.error),
        cloud=EngineStatusOut(available=status.cloud.available, error=status.cloud.error),
    )


@router.get("/ocr/available", response_model=AvailabilityOut)
async def availability(
    orchestrator: FallbackOrchestrator = Depends(orchestrator_dependency),
) -> AvailabilityOut:
    result = await orchestrator.is_available()
    return AvailabilityOut(available=bool(result.value))


@router.post("/ocr/extract", response_model=ExtractionResponse)
async def extract(
    file: UploadFile = File(...),
    orchestrator: FallbackOrchestrator = Depends(orchestrator_dependency),
) -> ExtractionResponse:
    suffix = _check_content_type(file)
    image_bytes = await _read_limited(file)

    with tempfile.TemporaryDirectory(prefix="recipe-ocr-") as tmp:
        path = Path(tmp) / f"upload{suffix}"
        path.write_bytes(image_bytes)
        outcome = await RecipeTextPipeline(orchestrator).process_image(path)

    logger.info(
        "image_extracted",
        extra={"upload_filename": file.filename, "status": outcome.status, "engine": outcome.engine.value},
    )
    if outcome.status == "failed":
        raise HTTPException(status_code=422, detail=outcome.error)
    return _to_response(outcome, filename=file.filename)


@router.post("/ocr/extract/batch", response_model=BatchExtractionResponse)
async def extract_batch(
    files: list[UploadFile] = File(...),
    orchestrator: FallbackOrchestrator = Depends(orchestrator_dependency),
) -> BatchExtractionResponse:
    uploads = [(_check_content_type(f), await _read_limited(f)) for f in files]

    with tempfile.TemporaryDirectory(prefix="recipe-ocr-") as tmp:
        paths = []
        for i, (suffix, image_bytes) in enumerate(uploads):
            path = Path(tmp) / f"upload-{i}{suffix}"
            path.write_bytes(image_bytes)
            paths.append(path)
        result = await RecipeTextPipeline(orchestrator).process_images(paths)

    if not result.is_success:
        raise HTTPException(status_code=422, detail=result.error_message)

    logger.info("batch_extracted", extra={"requested": len(files), "extracted": len(result.value)})
    return BatchExtractionResponse(
        requested=len(files),
        extracted=len(result.value),
        results=[_to_response(outcome) for outcome in result.value],
    )


def _check_content_type(file: UploadFile) -> str:
    content_type = file.content_type or "image/jpeg"
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise HTTPException(status_code=415, detail=f"Unsupported content_type={content_type!r}")
    return ALLOWED_CONTENT_TYPES[content_type]


async def _read_limited(file: UploadFile) -> bytes:
    # One byte past the limit is enough to know the upload is too large.
    data = await file.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail="Image is too large")
    return data


def _to_response(outcome: RecipeTextOutcome, filename: str | None = None) -> ExtractionResponse:
    return ExtractionResponse(
        filename=filename,
        status=outcome.status,
        text=outcome.text,
        raw_text=outcome.raw_text,
        engine=outcome.engine.value,
        ocr_confidence=round(outcome.ocr_confidence, 4),
        text_confidence=outcome.text_confidence,
        is_recipe=outcome.is_recipe,
        error=outcome.error,
        events=[
            ProcessingEventOut(
                step=e.step,
                status=e.status,
                detail=e.detail,
                duration_ms=e.duration_ms,
            )
            for e in outcome.events
        ],
    )
