"""OCR engine tests — fully mocked, no real model or network required."""
from __future__ import annotations

import sys
from unittest.mock import MagicMock, patch

import pytest
import requests

from recipe_ocr.core.config import Settings
from recipe_ocr.core.result import EngineError, InvalidInputError
from recipe_ocr.ocr.base_ocr import EngineId, OCREngine, resolve_image_ref
from recipe_ocr.ocr.engines import CloudOCREngine, OnDeviceOCREngine, TextractOCREngine
from recipe_ocr.ocr.mock_ocr import MOCK_RECIPE_TEXT, MockOCREngine


# ---------------------------------------------------------------------------
# Image references
# ---------------------------------------------------------------------------

def test_resolve_plain_path(image_file) -> None:
    assert resolve_image_ref(str(image_file)) == image_file


def test_resolve_file_uri(image_file) -> None:
    assert resolve_image_ref(f"file://{image_file}") == image_file


def test_resolve_missing_file(tmp_path) -> None:
    with pytest.raises(InvalidInputError, match="does not exist"):
        resolve_image_ref(tmp_path / "missing.jpg")


@pytest.mark.parametrize("ref", ["", "   "])
def test_resolve_blank_ref(ref: str) -> None:
    with pytest.raises(InvalidInputError, match="Invalid image reference"):
        resolve_image_ref(ref)


# ---------------------------------------------------------------------------
# Base OCREngine
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_base_engine_reports_not_implemented_as_failure(image_file) -> None:
    engine = OCREngine()
    result = await engine.extract_text(image_file)
    assert not result.is_success
    assert isinstance(result.error, EngineError)
    assert "NotImplementedError" in result.error_message


@pytest.mark.asyncio
async def test_base_engine_rejects_missing_image(tmp_path) -> None:
    result = await MockOCREngine().extract_text(tmp_path / "nope.jpg")
    assert isinstance(result.error, InvalidInputError)


@pytest.mark.asyncio
async def test_default_confidence_is_zero() -> None:
    result = MockOCREngine().get_last_confidence_score()
    assert result.is_success
    assert result.value == 0.0


# ---------------------------------------------------------------------------
# MockOCREngine
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_mock_ocr_returns_recipe(image_file) -> None:
    engine = MockOCREngine()
    result = await engine.extract_text(image_file)
    assert result.value == MOCK_RECIPE_TEXT
    assert engine.get_last_confidence_score().value == 0.85


@pytest.mark.asyncio
async def test_mock_ocr_blank_text_is_engine_error(image_file) -> None:
    result = await MockOCREngine(text="   ").extract_text(image_file)
    assert isinstance(result.error, EngineError)


@pytest.mark.asyncio
async def test_engine_batch_drops_failures(image_file, tmp_path) -> None:
    engine = MockOCREngine(text="Text 1")
    result = await engine.extract_text_from_multiple([image_file, tmp_path / "missing.jpg"])
    assert result.value == ["Text 1"]


@pytest.mark.asyncio
async def test_engine_batch_all_failed(tmp_path) -> None:
    engine = MockOCREngine()
    result = await engine.extract_text_from_multiple([tmp_path / "a.jpg", tmp_path / "b.jpg"])
    assert not result.is_success
    assert "extractions failed" in result.error_message


# ---------------------------------------------------------------------------
# CloudOCREngine
# ---------------------------------------------------------------------------

def _response(ok: bool = True, status_code: int = 200, body=None, text: str = "") -> MagicMock:
    response = MagicMock()
    response.ok = ok
    response.status_code = status_code
    response.text = text
    response.json.return_value = body if body is not None else {}
    return response


@pytest.mark.asyncio
async def test_cloud_ocr_success(image_file) -> None:
    session = MagicMock()
    session.post.return_value = _response(
        body={"success": True, "extractedText": "2 cups flour", "confidence": 0.91}
    )
    engine = CloudOCREngine(base_url="http://ocr.test/api/", session=session)

    result = await engine.extract_text(image_file)

    assert result.value == "2 cups flour"
    assert engine.get_last_confidence_score().value == 0.91
    url = session.post.call_args.args[0]
    payload = session.post.call_args.kwargs["json"]
    assert url == "http://ocr.test/api/ocr/extract"
    assert payload["imageFormat"] == "jpeg"
    assert payload["imageBase64"]


@pytest.mark.asyncio
async def test_cloud_ocr_default_confidence(image_file) -> None:
    session = MagicMock()
    session.post.return_value = _response(body={"success": True, "extractedText": "text"})
    engine = CloudOCREngine(session=session)
    await engine.extract_text(image_file)
    assert engine.get_last_confidence_score().value == 0.7


@pytest.mark.asyncio
async def test_cloud_ocr_http_error(image_file) -> None:
    session = MagicMock()
    session.post.return_value = _response(ok=False, status_code=503, text="overloaded")
    result = await CloudOCREngine(session=session).extract_text(image_file)
    assert isinstance(result.error, EngineError)
    assert "status: 503" in result.error_message
    assert "overloaded" in result.error_message


@pytest.mark.asyncio
async def test_cloud_ocr_reported_failure(image_file) -> None:
    session = MagicMock()
    session.post.return_value = _response(body={"success": False, "error": "Image too blurry"})
    result = await CloudOCREngine(session=session).extract_text(image_file)
    assert result.error_message == "Image too blurry"


@pytest.mark.asyncio
async def test_cloud_ocr_transport_error(image_file) -> None:
    session = MagicMock()
    session.post.side_effect = requests.ConnectionError("connection refused")
    result = await CloudOCREngine(session=session).extract_text(image_file)
    assert isinstance(result.error, EngineError)
    assert "connection refused" in result.error_message


@pytest.mark.asyncio
async def test_cloud_health_probe() -> None:
    session = MagicMock()
    session.get.return_value = _response(ok=True)
    result = await CloudOCREngine(session=session).is_available()
    assert result.value is True


@pytest.mark.asyncio
async def test_cloud_health_probe_failure() -> None:
    session = MagicMock()
    session.get.side_effect = requests.Timeout("timed out")
    result = await CloudOCREngine(session=session).is_available()
    assert not result.is_success
    assert "Cloud OCR service not available" in result.error_message


# ---------------------------------------------------------------------------
# TextractOCREngine / OnDeviceOCREngine
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_textract_joins_lines(image_file) -> None:
    engine = TextractOCREngine()
    engine._client = MagicMock()
    engine._client.detect_document_text.return_value = {
        "Blocks": [
            {"BlockType": "PAGE"},
            {"BlockType": "LINE", "Text": "Ingredients", "Confidence": 90.0},
            {"BlockType": "LINE", "Text": "2 cups flour", "Confidence": 80.0},
        ]
    }
    result = await engine.extract_text(image_file)
    assert result.value == "Ingredients\n2 cups flour"
    assert engine.get_last_confidence_score().value == pytest.approx(0.85)
    assert engine.engine_id is EngineId.CLOUD


@pytest.mark.asyncio
async def test_textract_reports_missing_boto3(image_file) -> None:
    with patch.dict(sys.modules, {"boto3": None}):
        result = await TextractOCREngine().extract_text(image_file)
    assert isinstance(result.error, EngineError)
    assert "boto3 is not installed" in result.error_message


@pytest.mark.asyncio
async def test_on_device_reports_missing_paddle(image_file) -> None:
    engine = OnDeviceOCREngine()
    with patch.object(
        OnDeviceOCREngine, "_run_paddle", side_effect=EngineError("PaddleOCR is not installed")
    ):
        result = await engine.extract_text(image_file)
    assert result.error_message == "PaddleOCR is not installed"


@pytest.mark.asyncio
async def test_on_device_availability_follows_install() -> None:
    with patch("recipe_ocr.ocr.engines.importlib.util.find_spec", return_value=None):
        result = await OnDeviceOCREngine().is_available()
    assert result.value is False


# ---------------------------------------------------------------------------
# OCR Factory
# ---------------------------------------------------------------------------

def test_factory_builds_mock_engines() -> None:
    from recipe_ocr.ocr.factory import get_orchestrator

    orchestrator = get_orchestrator(
        Settings(on_device_provider="mock", cloud_provider="mock", ocr_quality="cloud")
    )
    assert orchestrator.quality.value == "cloud"


def test_factory_builds_real_engines() -> None:
    from recipe_ocr.ocr.factory import get_cloud_engine, get_on_device_engine

    cfg = Settings(
        on_device_provider="paddleocr",
        cloud_provider="http",
        cloud_ocr_base_url="http://ocr.test/api",
    )
    assert isinstance(get_on_device_engine(cfg), OnDeviceOCREngine)
    cloud = get_cloud_engine(cfg)
    assert isinstance(cloud, CloudOCREngine)
    assert cloud.base_url == "http://ocr.test/api"
    assert isinstance(get_cloud_engine(Settings(cloud_provider="aws_textract")), TextractOCREngine)


def test_factory_raises_on_unknown_provider() -> None:
    from recipe_ocr.ocr.factory import get_cloud_engine, get_on_device_engine, get_orchestrator

    with pytest.raises(ValueError, match="Unknown ON_DEVICE_PROVIDER"):
        get_on_device_engine(Settings(on_device_provider="tesseract"))
    with pytest.raises(ValueError, match="Unknown CLOUD_PROVIDER"):
        get_cloud_engine(Settings(cloud_provider="azure"))
    with pytest.raises(ValueError, match="Unknown OCR_QUALITY"):
        get_orchestrator(Settings(ocr_quality="best"))
