"""API route definitions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Request, UploadFile, status

from sneakerml.api.schemas import (
    ClassifyImageResponse,
    ErrorResponse,
    HealthResponse,
    LabelsResponse,
    ModelInfo,
    ModelsResponse,
    Prediction,
    SneakerLabel,
)
from sneakerml.labels import SNEAKER_LABELS, display_name
from sneakerml.ml.model_manager import MODEL_REGISTRY

if TYPE_CHECKING:
    from sneakerml.config import Settings
    from sneakerml.controller import ClassificationController
    from sneakerml.ml.inference import InferencePool
    from sneakerml.ml.model_manager import OnnxModelManager

router = APIRouter(prefix="/api/v1")


def _get_settings(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


def _get_inference_pool(request: Request) -> InferencePool:
    pool: InferencePool = request.app.state.inference_pool
    return pool


def _get_controller(request: Request) -> ClassificationController:
    controller: ClassificationController = request.app.state.controller
    return controller


def _get_model_manager(request: Request) -> OnnxModelManager:
    manager: OnnxModelManager = request.app.state.model_manager
    return manager


@router.post(
    "/classify-image",
    response_model=ClassifyImageResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_413_CONTENT_TOO_LARGE: {"model": ErrorResponse},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse},
    },
    summary="Classify a sneaker photo",
)
async def classify_image(request: Request, file: UploadFile) -> ClassifyImageResponse:
    """Classify an uploaded photo and return the top sneaker predictions.

    Images that cannot be decoded or classified still return 200, with
    ``status="error"`` and the failure message as display text.
    """
    settings = _get_settings(request)
    contents = await file.read(settings.max_file_size + 1)
    if not contents:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty file received")
    if len(contents) > settings.max_file_size:
        raise HTTPException(
            status_code=status.HTTP_413_CONTENT_TOO_LARGE,
            detail=f"File exceeds {settings.max_file_size} bytes",
        )

    controller = _get_controller(request)
    try:
        outcome = await controller.update_classifications(contents)
    except TimeoutError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Inference queue is full, try again later",
        ) from None

    return ClassifyImageResponse(
        status=outcome.status,
        text=outcome.text,
        predictions=[
            Prediction(
                identifier=p.identifier,
                display_name=display_name(p.identifier),
                confidence=p.confidence,
            )
            for p in outcome.predictions
        ],
    )


@router.get(
    "/labels",
    response_model=LabelsResponse,
    summary="List known sneaker labels",
)
async def list_labels() -> LabelsResponse:
    """Return the label table used to name predictions."""
    return LabelsResponse(
        labels=[SneakerLabel(identifier=key, display_name=name) for key, name in SNEAKER_LABELS.items()]
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health(request: Request) -> HealthResponse:
    """Return service health status."""
    settings = _get_settings(request)
    pool = _get_inference_pool(request)
    return HealthResponse(
        status="ok",
        gpu=settings.device == "cuda",
        models_loaded=_get_model_manager(request).get_loaded_models(),
        concurrent_requests=pool.active_count,
        queue_depth=pool.queue_depth,
    )


@router.get(
    "/models",
    response_model=ModelsResponse,
    summary="List available models",
)
async def list_models(request: Request) -> ModelsResponse:
    """Return registered models, marking the configured one as active."""
    settings = _get_settings(request)
    return ModelsResponse(
        models=[
            ModelInfo(
                name=spec.name,
                status="active" if spec.name == settings.classification_model else "available",
                license=spec.license,
                input_size=spec.input_size,
                num_labels=len(spec.labels),
            )
            for spec in MODEL_REGISTRY.values()
        ]
    )
