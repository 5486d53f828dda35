"""Shared pytest configuration and fixtures."""
from __future__ import annotations

import os

import pytest

# Provide env defaults before any recipe_ocr module is imported
os.environ.setdefault("ON_DEVICE_PROVIDER", "mock")
os.environ.setdefault("CLOUD_PROVIDER", "mock")
os.environ.setdefault("OCR_QUALITY", "hybrid")


@pytest.fixture
def image_file(tmp_path):
    path = tmp_path / "recipe.jpg"
    path.write_bytes(b"\xff\xd8\xff\xe0 not really a jpeg")
    return path
