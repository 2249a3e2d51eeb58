"""Sneaker image classifier backed by an ONNX Runtime session."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

import numpy as np

from sneakerml.ml.model_manager import get_model_spec

if TYPE_CHECKING:
    from numpy.typing import NDArray
    from onnxruntime import InferenceSession

    from sneakerml.ml.model_manager import ModelSpec, OnnxModelManager
    from sneakerml.ml.preprocessing import PillowPreprocessor


class InferenceError(RuntimeError):
    """Running the model on a single image failed."""


@dataclass(frozen=True)
class Classification:
    """A single (label, confidence) prediction."""

    identifier: str
    confidence: float


class ImageClassifier(Protocol):
    """Protocol for image classification models."""

    @property
    def model_name(self) -> str:
        """Return the model identifier string."""
        ...

    def classify(self, image: NDArray[np.uint8]) -> list[Classification]:
        """Classify an image over the model's full label set.

        Args:
            image: HxWx3 RGB uint8 array.

        Returns:
            One classification per label, sorted by confidence (descending).

        Raises:
            InferenceError: If the model fails on this image.
        """
        ...


def softmax(scores: NDArray[np.float32]) -> NDArray[np.float32]:
    shifted = np.exp(scores - np.max(scores))
    return shifted / shifted.sum()


class OnnxImageClassifier:
    """Runs a single-output ONNX classifier and ranks its labels."""

    def __init__(
        self,
        session: InferenceSession,
        spec: ModelSpec,
        preprocessor: PillowPreprocessor,
    ) -> None:
        self._session = session
        self._spec = spec
        self._preprocessor = preprocessor
        self._input_name: str = session.get_inputs()[0].name

    @property
    def model_name(self) -> str:
        return self._spec.name

    def classify(self, image: NDArray[np.uint8]) -> list[Classification]:
        tensor = self._preprocessor.preprocess_for_classification(
            image,
            input_size=self._spec.input_size,
            mean=self._spec.mean,
            std=self._spec.std,
        )
        try:
            outputs = self._session.run(None, {self._input_name: tensor})
        except Exception as exc:
            raise InferenceError(f"Model {self._spec.name} failed: {exc}") from exc

        scores = np.asarray(outputs[0], dtype=np.float32).reshape(-1)
        if scores.shape[0] != len(self._spec.labels):
            raise InferenceError(
                f"Model {self._spec.name} returned {scores.shape[0]} scores for {len(self._spec.labels)} labels"
            )
        if self._spec.outputs_logits:
            scores = softmax(scores)

        order = np.argsort(-scores, kind="stable")
        return [Classification(identifier=self._spec.labels[i], confidence=float(scores[i])) for i in order]


def load_classifier(
    model_name: str,
    model_manager: OnnxModelManager,
    preprocessor: PillowPreprocessor,
) -> OnnxImageClassifier:
    """Build a classifier for a registered model, loading its session.

    Raises:
        ModelLoadError: If the model cannot be downloaded or loaded.
    """
    spec = get_model_spec(model_name)
    session = model_manager.get_session(model_name)
    return OnnxImageClassifier(session, spec, preprocessor)
