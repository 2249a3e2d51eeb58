"""Turn classifier output into the text shown to the user.

The presenter trusts the upstream ordering: it takes a prefix of the
classifications as given and never re-sorts them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sneakerml.labels import display_name

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sneakerml.ml.image_classifier import Classification

CLASSIFYING_TEXT = "Classifying..."
NOTHING_RECOGNIZED_TEXT = "Nothing recognized."
PREDICTION_HEADER = "Prediction:\n"
ERROR_HEADER = "Unable to classify image.\n"

DEFAULT_TOP_K: int = 2
DEFAULT_CONFIDENCE_FLOOR: float = 0.0001


def top_classifications(
    classifications: Sequence[Classification],
    top_k: int = DEFAULT_TOP_K,
    confidence_floor: float = DEFAULT_CONFIDENCE_FLOOR,
) -> list[Classification]:
    """Take the first ``top_k`` entries, then drop those below the floor."""
    return [c for c in classifications[:top_k] if c.confidence >= confidence_floor]


def format_classification(classification: Classification) -> str:
    """Format one entry, e.g. ``"Nike Dunk SB - 92.31%"``."""
    return f"{display_name(classification.identifier)} - {classification.confidence * 100:.2f}%"


def present(
    classifications: Sequence[Classification],
    top_k: int = DEFAULT_TOP_K,
    confidence_floor: float = DEFAULT_CONFIDENCE_FLOOR,
) -> str:
    """Build the display text for a classification result.

    An empty sequence yields ``"Nothing recognized."``. A non-empty sequence
    whose top entries all fall below the floor yields the bare header.
    """
    if not classifications:
        return NOTHING_RECOGNIZED_TEXT

    descriptions = [format_classification(c) for c in top_classifications(classifications, top_k, confidence_floor)]
    return PREDICTION_HEADER + "\n".join(descriptions)


def present_error(error: BaseException) -> str:
    """Build the display text for a failed classification."""
    return f"{ERROR_HEADER}{error}"
