from __future__ import annotations

from recipe_ocr.core.config import Settings, settings
from recipe_ocr.ocr.base_ocr import EngineId, OCREngine
from recipe_ocr.ocr.fallback import FallbackOrchestrator, OCRQuality
from recipe_ocr.ocr.mock_ocr import MockOCREngine


def get_on_device_engine(cfg: Settings | None = None) -> OCREngine:
    """Return the configured on-device engine.

    ON_DEVICE_PROVIDER options:
        paddleocr — OnDeviceOCREngine (pip install paddlepaddle paddleocr)
        mock      — canned recipe text (dev/test, no deps required)
    """
    cfg = cfg if cfg is not None else settings
    provider = cfg.on_device_provider.lower().strip()

    if provider == "mock":
        return MockOCREngine(engine_id=EngineId.ON_DEVICE)

    if provider == "paddleocr":
        from recipe_ocr.ocr.engines import OnDeviceOCREngine
        return OnDeviceOCREngine(lang=cfg.paddle_lang, use_gpu=cfg.paddle_use_gpu)

    raise ValueError(f"Unknown ON_DEVICE_PROVIDER={cfg.on_device_provider!r}")


def get_cloud_engine(cfg: Settings | None = None) -> OCREngine:
    """Return the configured cloud engine.

    CLOUD_PROVIDER options:
        http         — CloudOCREngine posting to CLOUD_OCR_BASE_URL
        aws_textract — TextractOCREngine (pip install boto3 + AWS credentials)
        mock         — canned recipe text (dev/test, no deps required)
    """
    cfg = cfg if cfg is not None else settings
    provider = cfg.cloud_provider.lower().strip()

    if provider == "mock":
        return MockOCREngine(engine_id=EngineId.CLOUD, confidence=0.7)

    if provider == "http":
        from recipe_ocr.ocr.engines import CloudOCREngine
        return CloudOCREngine(
            base_url=cfg.cloud_ocr_base_url,
            timeout=cfg.cloud_ocr_timeout_seconds,
            health_timeout=cfg.cloud_health_timeout_seconds,
        )

    if provider == "aws_textract":
        from recipe_ocr.ocr.engines import TextractOCREngine
        return TextractOCREngine(
            region=cfg.aws_region,
            aws_access_key_id=cfg.aws_access_key_id,
            aws_secret_access_key=cfg.aws_secret_access_key,
        )

    raise ValueError(f"Unknown CLOUD_PROVIDER={cfg.cloud_provider!r}")


def get_orchestrator(cfg: Settings | None = None) -> FallbackOrchestrator:
    """Build a fresh orchestrator; its last-used state belongs to one caller."""
    cfg = cfg if cfg is not None else settings
    try:
        quality = OCRQuality(cfg.ocr_quality.lower().strip())
    except ValueError:
        raise ValueError(f"Unknown OCR_QUALITY={cfg.ocr_quality!r}") from None

    return FallbackOrchestrator(
        get_on_device_engine(cfg),
        get_cloud_engine(cfg),
        quality=quality,
        timeout=cfg.ocr_timeout_seconds,
        batch_concurrency=cfg.ocr_batch_concurrency,
    )
