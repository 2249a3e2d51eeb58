"""Command-line interface: run the API server or classify photos from disk."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import uvicorn

from sneakerml.config import Settings, get_settings
from sneakerml.controller import ClassificationController
from sneakerml.main import LOG_FORMAT
from sneakerml.ml.image_classifier import load_classifier
from sneakerml.ml.inference import InferencePool
from sneakerml.ml.model_manager import ModelLoadError, OnnxModelManager
from sneakerml.ml.preprocessing import PillowPreprocessor
from sneakerml.presenter import CLASSIFYING_TEXT, present_error

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sneakerml", description="Recognize sneaker models in photos.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None, help="Bind address (default: SNEAKERML_HOST)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default: SNEAKERML_PORT)")

    classify = subparsers.add_parser("classify", help="Classify photos from disk")
    classify.add_argument("paths", nargs="+", type=Path, help="Image files to classify")
    return parser


async def _classify_paths(settings: Settings, paths: list[Path]) -> None:
    model_manager = OnnxModelManager(settings)
    preprocessor = PillowPreprocessor(settings.max_image_pixels)
    classifier = load_classifier(settings.classification_model, model_manager, preprocessor)

    pool = InferencePool(settings.max_concurrent, settings.queue_timeout)
    controller = ClassificationController(
        classifier,
        preprocessor,
        pool,
        top_k=settings.top_k,
        confidence_floor=settings.confidence_floor,
    )
    try:
        for path in paths:
            print(f"{path}: {CLASSIFYING_TEXT}")
            try:
                image_bytes = path.read_bytes()
            except OSError as exc:
                print(present_error(exc))
                continue
            outcome = await controller.update_classifications(image_bytes)
            print(outcome.text)
    finally:
        pool.shutdown()
        model_manager.shutdown()


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)

    if args.command == "serve":
        uvicorn.run(
            "sneakerml.main:app",
            host=args.host if args.host is not None else settings.host,
            port=args.port if args.port is not None else settings.port,
            log_level=settings.log_level.lower(),
        )
        return 0

    try:
        asyncio.run(_classify_paths(settings, args.paths))
    except ModelLoadError:
        logger.critical("Failed to load classification model %s", settings.classification_model, exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
