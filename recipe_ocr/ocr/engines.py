"""OnDeviceOCREngine using PaddleOCR, CloudOCREngine over HTTP and TextractOCREngine for AWS."""
from __future__ import annotations

import asyncio
import base64
import functools
import importlib.util
import logging

import requests

from recipe_ocr.core.result import EngineError
from recipe_ocr.ocr.base_ocr import EngineId, OCREngine, OCRResult

logger = logging.getLogger(__name__)

DEFAULT_CLOUD_CONFIDENCE = 0.7


def _merge_lines(lines: list[tuple[str, float]], source: str) -> OCRResult:
    """Join recognized lines into one text; confidence is the line average."""
    confidence = sum(conf for _, conf in lines) / len(lines) if lines else 0.0
    logger.info(
        "ocr_lines_merged",
        extra={"source": source, "lines": len(lines), "avg_confidence": round(confidence, 4)},
    )
    return OCRResult(text="\n".join(text for text, _ in lines), confidence=confidence)


# ---------------------------------------------------------------------------
# OnDeviceOCREngine — PaddleOCR
# ---------------------------------------------------------------------------

@functools.lru_cache(maxsize=4)
def _load_paddle(lang: str, use_gpu: bool):
    try:
        from paddleocr import PaddleOCR  # type: ignore[import]
    except ModuleNotFoundError as exc:
        raise EngineError(
            "PaddleOCR is not installed. Run: pip install paddlepaddle paddleocr"
        ) from exc
    return PaddleOCR(use_angle_cls=True, lang=lang, use_gpu=use_gpu, show_log=False)


class OnDeviceOCREngine(OCREngine):
    """OCR engine backed by PaddleOCR (runs 100% locally, no network round-trip).

    Install dependency:
        pip install "recipe-ocr[paddle]"

    Config (via .env):
        ON_DEVICE_PROVIDER=paddleocr
        PADDLE_LANG=en
        PADDLE_USE_GPU=false

    The model is loaded on first use and shared by every engine instance with
    the same language/GPU settings.
    """

    engine_id = EngineId.ON_DEVICE
    name = "on-device"

    def __init__(self, lang: str = "en", use_gpu: bool = False) -> None:
        super().__init__()
        self._lang = lang
        self._use_gpu = use_gpu

    async def _probe(self) -> bool:
        return importlib.util.find_spec("paddleocr") is not None

    async def _recognize(self, image_bytes: bytes, image_format: str) -> OCRResult:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._run_paddle, image_bytes)

    def _run_paddle(self, image_bytes: bytes) -> OCRResult:
        import io

        import numpy as np  # type: ignore[import]
        from PIL import Image  # type: ignore[import]

        img = Image.open(io.BytesIO(image_bytes)).convert("RGB")
        result = _load_paddle(self._lang, self._use_gpu).ocr(np.array(img), cls=True)

        # Each line: [bounding_box, [text, confidence]]
        lines = [(line[1][0], float(line[1][1])) for line in (result[0] or [])] if result else []
        return _merge_lines(lines, "paddleocr")


# ---------------------------------------------------------------------------
# CloudOCREngine — recognition backend over HTTP
# ---------------------------------------------------------------------------

class CloudOCREngine(OCREngine):
    """OCR engine that posts the image to a recognition backend.

    Request:  POST {base_url}/ocr/extract  {"imageBase64": ..., "imageFormat": "jpeg"}
    Response: {"success": bool, "extractedText": str, "confidence": float, "error": str}
    Health:   GET {base_url}/health

    Config (via .env):
        CLOUD_PROVIDER=http
        CLOUD_OCR_BASE_URL=http://localhost:5000/api
    """

    engine_id = EngineId.CLOUD
    name = "cloud"

    def __init__(
        self,
        base_url: str = "http://localhost:5000/api",
        timeout: float = 30.0,
        health_timeout: float = 5.0,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__()
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._health_timeout = health_timeout
        self._session = session or requests.Session()

    async def _recognize(self, image_bytes: bytes, image_format: str) -> OCRResult:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._post_extract, image_bytes, image_format)

    def _post_extract(self, image_bytes: bytes, image_format: str) -> OCRResult:
        payload = {
            "imageBase64": base64.b64encode(image_bytes).decode("ascii"),
            "imageFormat": image_format,
        }
        try:
            response = self._session.post(
                f"{self.base_url}/ocr/extract", json=payload, timeout=self._timeout
            )
        except requests.RequestException as exc:
            raise EngineError(f"Cloud OCR failed: {exc}") from exc

        if not response.ok:
            raise EngineError(
                f"Cloud OCR failed: HTTP error! status: {response.status_code}, message: {response.text}"
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise EngineError("Cloud OCR failed: response was not valid JSON") from exc

        if not body.get("success"):
            raise EngineError(body.get("error") or "Cloud OCR failed")

        confidence = body.get("confidence") or DEFAULT_CLOUD_CONFIDENCE
        text = body.get("extractedText") or ""
        logger.info("cloud_ocr_complete", extra={"chars": len(text), "confidence": confidence})
        return OCRResult(text=text, confidence=float(confidence))

    async def _probe(self) -> bool:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._get_health)

    def _get_health(self) -> bool:
        try:
            response = self._session.get(f"{self.base_url}/health", timeout=self._health_timeout)
        except requests.RequestException as exc:
            raise EngineError(f"Cloud OCR service not available: {exc}") from exc
        return response.ok


# ---------------------------------------------------------------------------
# TextractOCREngine — AWS Textract
# ---------------------------------------------------------------------------

class TextractOCREngine(OCREngine):
    """Cloud engine backed by AWS Textract DetectDocumentText (CLOUD_PROVIDER=aws_textract)."""

    engine_id = EngineId.CLOUD
    name = "cloud"

    def __init__(
        self,
        region: str = "us-east-1",
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
    ) -> None:
        super().__init__()
        self._client_kwargs: dict = {"region_name": region}
        if aws_access_key_id:
            self._client_kwargs["aws_access_key_id"] = aws_access_key_id
            self._client_kwargs["aws_secret_access_key"] = aws_secret_access_key
        self._client = None

    @property
    def client(self):
        if self._client is None:
            try:
                import boto3  # type: ignore[import]
            except ModuleNotFoundError as exc:
                raise EngineError('boto3 is not installed. Run: pip install "recipe-ocr[aws]"') from exc
            self._client = boto3.client("textract", **self._client_kwargs)
        return self._client

    async def _probe(self) -> bool:
        return importlib.util.find_spec("boto3") is not None

    async def _recognize(self, image_bytes: bytes, image_format: str) -> OCRResult:
        loop = asyncio.get_running_loop()
        response = await loop.run_in_executor(
            None, functools.partial(self.client.detect_document_text, Document={"Bytes": image_bytes})
        )
        lines = [
            (block.get("Text", ""), float(block.get("Confidence", 0)) / 100.0)
            for block in response.get("Blocks", [])
            if block["BlockType"] == "LINE"
        ]
        return _merge_lines(lines, "textract")
