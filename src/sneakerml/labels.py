"""Sneaker label table: model identifiers to display names."""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

# Order matches the label vector of the bundled classification models.
SNEAKER_LABELS: Mapping[str, str] = MappingProxyType(
    {
        "dunk_sb": "Nike Dunk SB",
        "yeezy_boost_350": "Adidas Yeezy Boost 350",
        "ultraboost": "Adidas Ultraboost",
        "air_force_1": "Nike Air Force 1",
        "air_presto": "Nike Air Presto",
        "air_jordan_1": "Nike Air Jordan 1",
        "air_jordan_3": "Nike Air Jordan 3",
        "air_jordan_4": "Nike Air Jordan 4",
        "air_jordan_5": "Nike Air Jordan 5",
        "air_jordan_6": "Nike Air Jordan 6",
        "air_jordan_7": "Nike Air Jordan 7",
    }
)


def display_name(identifier: str) -> str:
    """Return the display name for a label, or the identifier itself if unknown."""
    return SNEAKER_LABELS.get(identifier, identifier)
