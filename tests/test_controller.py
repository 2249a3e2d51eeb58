"""Tests for the classification controller."""

from __future__ import annotations

import io
from typing import TYPE_CHECKING

import numpy as np
import pytest
from PIL import Image

from sneakerml.controller import ClassificationController
from sneakerml.ml.image_classifier import Classification, InferenceError
from sneakerml.ml.inference import InferencePool
from sneakerml.ml.preprocessing import PillowPreprocessor

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

# APP1 block whose TIFF header is not valid
CORRUPT_EXIF = b"Exif\x00\x00M5\x00*" + b"\x00" * 16


def _jpeg_bytes(exif: bytes | None = None) -> bytes:
    buf = io.BytesIO()
    extra = {"exif": exif} if exif is not None else {}
    Image.new("RGB", (32, 32), color=(200, 200, 200)).save(buf, format="JPEG", **extra)
    return buf.getvalue()


class _FakeClassifier:
    def __init__(self, results: list[Classification] | None = None, error: Exception | None = None) -> None:
        self._results = results or []
        self._error = error
        self.seen_text: list[str] = []
        self.controller: ClassificationController | None = None

    @property
    def model_name(self) -> str:
        return "fake"

    def classify(self, image: np.ndarray) -> list[Classification]:
        if self.controller is not None:
            self.seen_text.append(self.controller.label_text)
        if self._error is not None:
            raise self._error
        return self._results


@pytest.fixture()
async def pool() -> AsyncIterator[InferencePool]:
    inference_pool = InferencePool(max_concurrent=1)
    yield inference_pool
    inference_pool.shutdown()


def _controller(classifier: _FakeClassifier, pool: InferencePool) -> ClassificationController:
    controller = ClassificationController(classifier, PillowPreprocessor(10_000), pool)
    classifier.controller = controller
    return controller


class TestClassificationController:
    async def test_successful_classification(self, pool: InferencePool) -> None:
        classifier = _FakeClassifier(
            [
                Classification("dunk_sb", 0.9231),
                Classification("air_force_1", 0.05),
                Classification("ultraboost", 0.0269),
            ]
        )
        controller = _controller(classifier, pool)

        outcome = await controller.update_classifications(_jpeg_bytes())

        assert outcome.status == "ok"
        assert outcome.text == "Prediction:\nNike Dunk SB - 92.31%\nNike Air Force 1 - 5.00%"
        assert [p.identifier for p in outcome.predictions] == ["dunk_sb", "air_force_1"]
        assert controller.label_text == outcome.text

    async def test_shows_classifying_while_running(self, pool: InferencePool) -> None:
        classifier = _FakeClassifier([Classification("dunk_sb", 1.0)])
        controller = _controller(classifier, pool)

        await controller.update_classifications(_jpeg_bytes())

        assert classifier.seen_text == ["Classifying..."]

    async def test_empty_result(self, pool: InferencePool) -> None:
        controller = _controller(_FakeClassifier([]), pool)

        outcome = await controller.update_classifications(_jpeg_bytes())

        assert outcome.status == "empty"
        assert outcome.text == "Nothing recognized."
        assert outcome.predictions == []

    async def test_all_below_floor_is_not_empty(self, pool: InferencePool) -> None:
        controller = _controller(_FakeClassifier([Classification("x", 0.00001)]), pool)

        outcome = await controller.update_classifications(_jpeg_bytes())

        assert outcome.status == "ok"
        assert outcome.text == "Prediction:\n"
        assert outcome.predictions == []

    async def test_inference_error_becomes_display_text(self, pool: InferencePool) -> None:
        controller = _controller(_FakeClassifier(error=InferenceError("model exploded")), pool)

        outcome = await controller.update_classifications(_jpeg_bytes())

        assert outcome.status == "error"
        assert outcome.text == "Unable to classify image.\nmodel exploded"
        assert controller.label_text == outcome.text

    async def test_undecodable_image_becomes_display_text(self, pool: InferencePool) -> None:
        classifier = _FakeClassifier([Classification("dunk_sb", 1.0)])
        controller = _controller(classifier, pool)

        outcome = await controller.update_classifications(b"not an image")

        assert outcome.status == "error"
        assert outcome.text.startswith("Unable to classify image.\nCannot decode image")
        assert classifier.seen_text == []

    async def test_corrupted_exif_becomes_display_text(self, pool: InferencePool) -> None:
        classifier = _FakeClassifier([Classification("dunk_sb", 1.0)])
        controller = _controller(classifier, pool)

        outcome = await controller.update_classifications(_jpeg_bytes(exif=CORRUPT_EXIF))

        assert outcome.status == "error"
        assert outcome.text.startswith("Unable to classify image.\nCannot decode image")
        assert controller.label_text == outcome.text

    async def test_recovers_after_failure(self, pool: InferencePool) -> None:
        classifier = _FakeClassifier([Classification("air_presto", 0.5)])
        controller = _controller(classifier, pool)

        await controller.update_classifications(b"broken")
        outcome = await controller.update_classifications(_jpeg_bytes())

        assert outcome.text == "Prediction:\nNike Air Presto - 50.00%"

    async def test_custom_display_settings(self, pool: InferencePool) -> None:
        classifier = _FakeClassifier([Classification("air_jordan_3", 0.6), Classification("air_jordan_4", 0.4)])
        controller = ClassificationController(
            classifier, PillowPreprocessor(10_000), pool, top_k=1, confidence_floor=0.5
        )

        outcome = await controller.update_classifications(_jpeg_bytes())

        assert outcome.text == "Prediction:\nNike Air Jordan 3 - 60.00%"
