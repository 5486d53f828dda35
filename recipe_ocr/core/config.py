from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    # Engine policy: on-device | cloud | hybrid
    ocr_quality: str = "hybrid"

    # On-device provider: paddleocr | mock
    on_device_provider: str = "paddleocr"
    paddle_lang: str = "en"
    paddle_use_gpu: bool = False

    # Cloud provider: http | aws_textract | mock
    cloud_provider: str = "http"
    cloud_ocr_base_url: str = "http://localhost:5000/api"
    cloud_ocr_timeout_seconds: float = 30.0
    cloud_health_timeout_seconds: float = 5.0

    # AWS Textract (only needed when cloud_provider=aws_textract)
    aws_region: str = "us-east-1"
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None

    ocr_batch_concurrency: int = 1
    ocr_timeout_seconds: float | None = None

    max_upload_bytes: int = 10 * 1024 * 1024


settings = Settings()
