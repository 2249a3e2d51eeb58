"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sneakerml.api.routes import router
from sneakerml.config import get_settings
from sneakerml.controller import ClassificationController
from sneakerml.ml.image_classifier import load_classifier
from sneakerml.ml.inference import InferencePool
from sneakerml.ml.model_manager import ModelLoadError, OnnxModelManager
from sneakerml.ml.preprocessing import PillowPreprocessor

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: load the model on startup, clean up on shutdown.

    The model is the whole point of the service, so failing to load it
    aborts startup.
    """
    settings = get_settings()
    app.state.settings = settings

    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)

    logger.info(
        "Starting SneakerML (device=%s, max_concurrent=%s, model=%s)",
        settings.device,
        settings.max_concurrent,
        settings.classification_model,
    )

    model_manager = OnnxModelManager(settings)
    preprocessor = PillowPreprocessor(settings.max_image_pixels)
    try:
        classifier = load_classifier(settings.classification_model, model_manager, preprocessor)
    except ModelLoadError:
        logger.critical("Failed to load classification model %s", settings.classification_model, exc_info=True)
        raise

    inference_pool = InferencePool(settings.max_concurrent, settings.queue_timeout)
    app.state.model_manager = model_manager
    app.state.inference_pool = inference_pool
    app.state.controller = ClassificationController(
        classifier,
        preprocessor,
        inference_pool,
        top_k=settings.top_k,
        confidence_floor=settings.confidence_floor,
    )

    logger.info("SneakerML ready")
    yield

    logger.info("Shutting down SneakerML")
    inference_pool.shutdown()
    model_manager.shutdown()
    logger.info("SneakerML shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="SneakerML",
        description="Sneaker model recognition from photos",
        version="0.1.0",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(router)
    return application


app = create_app()
