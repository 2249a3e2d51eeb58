"""Classification controller: image in, display text out."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from sneakerml.ml.image_classifier import InferenceError
from sneakerml.presenter import (
    CLASSIFYING_TEXT,
    DEFAULT_CONFIDENCE_FLOOR,
    DEFAULT_TOP_K,
    present,
    present_error,
    top_classifications,
)

if TYPE_CHECKING:
    from sneakerml.ml.image_classifier import Classification, ImageClassifier
    from sneakerml.ml.inference import InferencePool
    from sneakerml.ml.preprocessing import PillowPreprocessor

logger = logging.getLogger(__name__)

OutcomeStatus = Literal["ok", "empty", "error"]


@dataclass(frozen=True)
class ClassificationOutcome:
    """Result of one classification request as shown to the user."""

    status: OutcomeStatus
    text: str
    predictions: list[Classification] = field(default_factory=list)


class ClassificationController:
    """Drives one image through the classifier and owns the display text.

    ``label_text`` is only written from the event loop. Decoding and
    inference run on the inference pool; a newer request does not cancel an
    older one, so the request that finishes last sets the final text.
    """

    def __init__(
        self,
        classifier: ImageClassifier,
        preprocessor: PillowPreprocessor,
        pool: InferencePool,
        top_k: int = DEFAULT_TOP_K,
        confidence_floor: float = DEFAULT_CONFIDENCE_FLOOR,
    ) -> None:
        self._classifier = classifier
        self._preprocessor = preprocessor
        self._pool = pool
        self._top_k = top_k
        self._confidence_floor = confidence_floor
        self.label_text: str = ""

    async def update_classifications(self, image_bytes: bytes) -> ClassificationOutcome:
        """Classify an encoded image and update ``label_text``.

        Decode and inference failures become an error outcome. Pool
        saturation is not caught here.

        Raises:
            TimeoutError: If the inference pool has no free slot in time.
        """
        self.label_text = CLASSIFYING_TEXT

        try:
            classifications = await self._pool.run(self._classify_bytes, image_bytes)
        except (InferenceError, ValueError) as exc:
            logger.warning("Failed to perform classification: %s", exc)
            outcome = ClassificationOutcome(status="error", text=present_error(exc))
        else:
            outcome = ClassificationOutcome(
                status="ok" if classifications else "empty",
                text=present(classifications, self._top_k, self._confidence_floor),
                predictions=top_classifications(classifications, self._top_k, self._confidence_floor),
            )

        self.label_text = outcome.text
        return outcome

    def _classify_bytes(self, image_bytes: bytes) -> list[Classification]:
        image = self._preprocessor.decode_image(image_bytes)
        return self._classifier.classify(image)
