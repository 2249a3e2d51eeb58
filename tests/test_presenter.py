"""Tests for the result presenter."""

from __future__ import annotations

from sneakerml.ml.image_classifier import Classification
from sneakerml.presenter import (
    NOTHING_RECOGNIZED_TEXT,
    format_classification,
    present,
    present_error,
    top_classifications,
)


def _c(identifier: str, confidence: float) -> Classification:
    return Classification(identifier=identifier, confidence=confidence)


class TestPresent:
    def test_empty_input_is_nothing_recognized(self) -> None:
        assert present([]) == "Nothing recognized."
        assert present([]) == NOTHING_RECOGNIZED_TEXT

    def test_top_two_known_labels(self) -> None:
        text = present([_c("dunk_sb", 0.9231), _c("air_force_1", 0.05)])
        assert text == "Prediction:\nNike Dunk SB - 92.31%\nNike Air Force 1 - 5.00%"

    def test_unknown_identifier_used_verbatim(self) -> None:
        assert present([_c("unknown_shoe", 0.5)]) == "Prediction:\nunknown_shoe - 50.00%"

    def test_all_below_floor_keeps_bare_header(self) -> None:
        assert present([_c("x", 0.00001)]) == "Prediction:\n"

    def test_low_second_entry_dropped(self) -> None:
        text = present([_c("ultraboost", 0.98), _c("air_presto", 0.00005)])
        assert text == "Prediction:\nAdidas Ultraboost - 98.00%"

    def test_only_first_two_considered(self) -> None:
        text = present(
            [
                _c("air_jordan_1", 0.2),
                _c("air_jordan_3", 0.1),
                _c("air_jordan_4", 0.7),
            ]
        )
        assert text == "Prediction:\nNike Air Jordan 1 - 20.00%\nNike Air Jordan 3 - 10.00%"
        assert "Air Jordan 4" not in text

    def test_custom_top_k(self) -> None:
        text = present([_c("air_jordan_5", 0.6), _c("air_jordan_6", 0.3), _c("air_jordan_7", 0.1)], top_k=3)
        assert text.count("\n") == 3
        assert text.endswith("Nike Air Jordan 7 - 10.00%")


class TestTopClassifications:
    def test_floor_is_inclusive(self) -> None:
        kept = top_classifications([_c("dunk_sb", 0.0001), _c("ultraboost", 0.00009)])
        assert [c.identifier for c in kept] == ["dunk_sb"]

    def test_does_not_resort(self) -> None:
        kept = top_classifications([_c("a", 0.1), _c("b", 0.9)])
        assert [c.identifier for c in kept] == ["a", "b"]


class TestFormatting:
    def test_two_decimal_places(self) -> None:
        assert format_classification(_c("yeezy_boost_350", 1.0)) == "Adidas Yeezy Boost 350 - 100.00%"
        assert format_classification(_c("yeezy_boost_350", 0.123456)) == "Adidas Yeezy Boost 350 - 12.35%"
        assert format_classification(_c("yeezy_boost_350", 0.0)) == "Adidas Yeezy Boost 350 - 0.00%"

    def test_error_text(self) -> None:
        assert present_error(ValueError("Cannot decode image")) == "Unable to classify image.\nCannot decode image"
