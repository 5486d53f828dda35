from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class EngineStatusOut(BaseModel):
    available: bool
    error: str | None = None


class ServiceStatusOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    on_device: EngineStatusOut = Field(alias="onDevice")
    cloud: EngineStatusOut


class AvailabilityOut(BaseModel):
    available: bool


class ProcessingEventOut(BaseModel):
    """Single pipeline step."""
    step: str
    status: str
    detail: str | None = None
    duration_ms: int | None = None


class ExtractionResponse(BaseModel):
    filename: str | None = None
    status: str  # accepted | review | failed
    text: str | None
    raw_text: str | None
    engine: str
    ocr_confidence: float
    text_confidence: float
    is_recipe: bool
    error: str | None = None
    events: list[ProcessingEventOut] = Field(default_factory=list)


class BatchExtractionResponse(BaseModel):
    requested: int
    extracted: int
    results: list[ExtractionResponse]
