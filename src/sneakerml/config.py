"""Environment-based configuration for SneakerML."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from SNEAKERML_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SNEAKERML_",
        case_sensitive=False,
    )

    # Server
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8000
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # ML device
    device: Literal["cpu", "cuda", "openvino"] = "cpu"

    # Model selection; model_path skips the Hub download when set
    classification_model: str = "sneaker_mobilenetv2"
    model_path: str | None = None
    models_dir: str = "models"

    # ONNX Runtime threading
    intra_op_threads: int = Field(default=0, ge=0)
    inter_op_threads: int = Field(default=1, ge=1)
    gpu_mem_limit: int = Field(default=2_147_483_648, ge=0)

    # Concurrency
    max_concurrent: int = Field(default=2, ge=1)
    queue_timeout: float = Field(default=5.0, gt=0)

    # Input limits
    max_image_pixels: int = Field(default=16_777_216, ge=1)
    max_file_size: int = Field(default=20_971_520, ge=1)

    # Result display
    top_k: int = Field(default=2, ge=1)
    confidence_floor: float = Field(default=0.0001, ge=0.0, le=1.0)


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
