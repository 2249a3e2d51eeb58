"""Pydantic request/response schemas for the SneakerML API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class Prediction(BaseModel):
    """One sneaker prediction that made it into the displayed result."""

    identifier: str = Field(description="Raw model label, e.g. 'dunk_sb'")
    display_name: str = Field(description="Human-readable name, or the identifier if unknown")
    confidence: float = Field(ge=0.0, le=1.0)


class ClassifyImageResponse(BaseModel):
    """Response for the image classification endpoint."""

    status: Literal["ok", "empty", "error"] = Field(
        description="'ok' with predictions, 'empty' if nothing was recognized, 'error' if classification failed"
    )
    text: str = Field(description="Display text, e.g. 'Prediction:\\nNike Dunk SB - 92.31%'")
    predictions: list[Prediction]


class SneakerLabel(BaseModel):
    identifier: str
    display_name: str


class LabelsResponse(BaseModel):
    labels: list[SneakerLabel]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    gpu: bool
    models_loaded: list[str]
    concurrent_requests: int
    queue_depth: int


class ModelInfo(BaseModel):
    """Information about a registered classification model."""

    name: str
    status: str = Field(description="Model status: 'active' or 'available'")
    license: str
    input_size: int
    num_labels: int


class ModelsResponse(BaseModel):
    models: list[ModelInfo]


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
