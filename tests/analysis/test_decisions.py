"""Tests for the land-cover, confidence, and change decisions."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from coverproducts._types import CharacterizedPixel, PixelInputs
from coverproducts.analysis.decisions import (
    change,
    confidence,
    landcover,
    scale_probability,
)
from coverproducts.config import Config, RetryStrategy
from coverproducts.exceptions import DataGenerationError

GRASS = 3
TREE = 4

Characterize = Callable[..., CharacterizedPixel]


def _config(**kwargs: Any) -> Config:
    return Config(
        retry_strategy=RetryStrategy(initial_delay=0.0, jitter=0.0), **kwargs
    )


@pytest.fixture
def same_class(
    segment_record: Callable[..., dict[str, Any]],
    prediction_record: Callable[..., dict[str, Any]],
) -> PixelInputs:
    """Two grass segments separated by a gap in 2005."""
    grass = [0.0, 0.0, 0.8, 0.1, 0.1, 0.0, 0.0, 0.0]
    return PixelInputs(
        segments=[
            segment_record("2000-01-01", "2005-01-01", "2005-06-01"),
            segment_record("2006-01-01", "2010-01-01"),
        ],
        predictions=[
            prediction_record("2000-01-01", "2003-07-01", grass),
            prediction_record("2006-01-01", "2008-07-01", grass),
        ],
    )


@pytest.mark.unit
class TestLandcover:
    """Verify each land-cover rule in order."""

    def test_before_first_segment_fills_from_first(
        self, two_segments: PixelInputs, characterize: Characterize
    ) -> None:
        pixel = characterize(two_segments, "1999-07-01")
        assert landcover(pixel, 0, _config()) == GRASS
        assert landcover(pixel, 1, _config()) == TREE

    def test_before_first_segment_without_fill_is_insufficient(
        self, two_segments: PixelInputs, characterize: Characterize
    ) -> None:
        config = _config(fill_begin=False)
        pixel = characterize(two_segments, "1999-07-01", config)
        assert landcover(pixel, 0, config) == config.lc_defaults.lc_insuff

    def test_first_segment_start_is_inside_segment(
        self, two_segments: PixelInputs, characterize: Characterize
    ) -> None:
        config = _config(fill_begin=False)
        pixel = characterize(two_segments, "2000-01-01", config)
        assert landcover(pixel, 0, config) == GRASS

    def test_after_last_segment_fills_from_last(
        self, two_segments: PixelInputs, characterize: Characterize
    ) -> None:
        pixel = characterize(two_segments, "2011-07-01")
        assert landcover(pixel, 0, _config()) == TREE
        assert landcover(pixel, 1, _config()) == GRASS

    def test_after_last_segment_without_fill_is_insufficient(
        self, two_segments: PixelInputs, characterize: Characterize
    ) -> None:
        config = _config(fill_end=False)
        pixel = characterize(two_segments, "2011-07-01", config)
        assert landcover(pixel, 0, config) == config.lc_defaults.lc_insuff

    def test_inside_segment_uses_its_class(
        self, two_segments: PixelInputs, characterize: Characterize
    ) -> None:
        assert landcover(characterize(two_segments, "2003-07-01"), 0, _config()) == GRASS
        assert landcover(characterize(two_segments, "2008-07-01"), 0, _config()) == TREE

    def test_gap_between_same_class_segments(
        self, same_class: PixelInputs, characterize: Characterize
    ) -> None:
        pixel = characterize(same_class, "2005-09-01")
        assert landcover(pixel, 0, _config()) == GRASS

    def test_after_break_uses_next_segment(
        self, two_segments: PixelInputs, characterize: Characterize
    ) -> None:
        pixel = characterize(two_segments, "2005-09-01")
        assert landcover(pixel, 0, _config()) == TREE
        assert landcover(pixel, 1, _config()) == GRASS

    def test_between_end_and_break_uses_ending_segment(
        self, two_segments: PixelInputs, characterize: Characterize
    ) -> None:
        pixel = characterize(two_segments, "2005-03-01")
        assert landcover(pixel, 0, _config()) == GRASS

    def test_gap_without_fill_is_in_between(
        self, two_segments: PixelInputs, characterize: Characterize
    ) -> None:
        config = _config(fill_difflc=False)
        for day in ("2005-03-01", "2005-09-01"):
            pixel = characterize(two_segments, day, config)
            assert landcover(pixel, 0, config) == config.lc_defaults.lc_inbtw

    def test_same_class_gap_without_samelc_fill_uses_break_rule(
        self, same_class: PixelInputs, characterize: Characterize
    ) -> None:
        config = _config(fill_samelc=False, fill_difflc=False)
        pixel = characterize(same_class, "2005-09-01", config)
        assert landcover(pixel, 0, config) == config.lc_defaults.lc_inbtw

    def test_no_segments_raises_data_generation_error(self) -> None:
        pixel = CharacterizedPixel(pixelxy=(30, -60), date=730120)
        with pytest.raises(DataGenerationError) as exc_info:
            landcover(pixel, 0, _config())
        err = exc_info.value
        assert err.operation == "landcover"
        assert err.arguments == {"pixelxy": (30, -60), "date": 730120}
        assert err.error_type == "data-generation-error"
        assert isinstance(err.__cause__, ValueError)


@pytest.mark.unit
class TestConfidence:
    """Verify each confidence rule in order."""

    def test_before_first_segment(
        self, two_segments: PixelInputs, characterize: Characterize
    ) -> None:
        pixel = characterize(two_segments, "1999-07-01")
        assert confidence(pixel, 0, _config()) == 151

    def test_after_last_segment_without_certain_break(
        self, two_segments: PixelInputs, characterize: Characterize
    ) -> None:
        pixel = characterize(two_segments, "2011-07-01")
        assert confidence(pixel, 0, _config()) == 153

    def test_after_last_segment_with_certain_break(
        self,
        segment_record: Callable[..., dict[str, Any]],
        characterize: Characterize,
    ) -> None:
        inputs = PixelInputs(
            segments=[segment_record("2000-01-01", "2005-01-01", chprob=1.0)],
            predictions=[
                {
                    "px": 0,
                    "py": 0,
                    "sday": "2000-01-01",
                    "pday": "2003-01-01",
                    "prob": [0.1, 0.9],
                }
            ],
        )
        pixel = characterize(inputs, "2006-07-01")
        assert confidence(pixel, 0, _config()) == 152

    def test_inside_segment_scales_last_prediction(
        self, two_segments: PixelInputs, characterize: Characterize
    ) -> None:
        pixel = characterize(two_segments, "2003-07-01")
        assert confidence(pixel, 0, _config()) == 2
        assert confidence(pixel, 1, _config()) == 3

    def test_custom_scale(
        self, two_segments: PixelInputs, characterize: Characterize
    ) -> None:
        config = _config(confidence_scale=1000)
        pixel = characterize(two_segments, "2003-07-01", config)
        assert confidence(pixel, 0, config) == 20

    def test_inside_growing_segment(
        self,
        segment_record: Callable[..., dict[str, Any]],
        prediction_record: Callable[..., dict[str, Any]],
        characterize: Characterize,
    ) -> None:
        inputs = PixelInputs(
            segments=[
                segment_record("2000-01-01", "2005-01-01", nir_start=0.2, nir_end=0.4)
            ],
            predictions=[
                prediction_record("2000-01-01", "2003-01-01", [0.1, 0.1, 0.8])
            ],
        )
        pixel = characterize(inputs, "2003-07-01")
        assert confidence(pixel, 0, _config()) == 201

    def test_inside_declining_segment(
        self,
        segment_record: Callable[..., dict[str, Any]],
        prediction_record: Callable[..., dict[str, Any]],
        characterize: Characterize,
    ) -> None:
        inputs = PixelInputs(
            segments=[
                segment_record("2000-01-01", "2005-01-01", nir_start=0.4, nir_end=0.2)
            ],
            predictions=[
                prediction_record("2000-01-01", "2003-01-01", [0.1, 0.1, 0.8])
            ],
        )
        pixel = characterize(inputs, "2003-07-01")
        assert confidence(pixel, 1, _config()) == 202

    def test_rises_with_probability(
        self,
        segment_record: Callable[..., dict[str, Any]],
        prediction_record: Callable[..., dict[str, Any]],
        characterize: Characterize,
    ) -> None:
        scores = []
        for p in (0.0, 0.15, 0.4, 0.55, 0.8, 1.0):
            inputs = PixelInputs(
                segments=[segment_record("2000-01-01", "2005-01-01")],
                predictions=[
                    prediction_record("2000-01-01", "2003-01-01", [p, 1.0 - p])
                ],
            )
            pixel = characterize(inputs, "2003-07-01")
            scores.append(confidence(pixel, 0, _config()))
        assert scores == sorted(scores)
        assert scores[0] == 0
        assert scores[-1] == 100

    def test_segment_without_predictions_raises(
        self, two_segments: PixelInputs, characterize: Characterize
    ) -> None:
        inputs = PixelInputs(
            segments=two_segments.segments, predictions=two_segments.predictions[:2]
        )
        pixel = characterize(inputs, "2006-07-01")
        assert landcover(pixel, 0, _config()) == 0
        with pytest.raises(DataGenerationError) as exc_info:
            confidence(pixel, 0, _config())
        assert exc_info.value.operation == "confidence"
        assert isinstance(exc_info.value.original, IndexError)

    def test_gap_between_same_class_segments(
        self, same_class: PixelInputs, characterize: Characterize
    ) -> None:
        pixel = characterize(same_class, "2005-09-01")
        assert confidence(pixel, 0, _config()) == 154

    def test_gap_between_different_class_segments(
        self, two_segments: PixelInputs, characterize: Characterize
    ) -> None:
        for day in ("2005-03-01", "2005-09-01"):
            pixel = characterize(two_segments, day)
            assert confidence(pixel, 0, _config()) == 155

    def test_no_segments_raises_data_generation_error(self) -> None:
        pixel = CharacterizedPixel(pixelxy=(0, 0), date=730120)
        with pytest.raises(DataGenerationError, match="Error calculating confidence"):
            confidence(pixel, 0, _config())


@pytest.mark.unit
class TestScaleProbability:
    """Verify probability scaling."""

    def test_default_scale(self) -> None:
        assert scale_probability(0.87, _config()) == 87

    def test_rounds_to_nearest(self) -> None:
        assert scale_probability(0.876, _config()) == 88

    def test_monotonic(self) -> None:
        config = _config()
        scores = [scale_probability(p / 20, config) for p in range(21)]
        assert scores == sorted(scores)
        assert scores[0] == 0
        assert scores[-1] == 100


@pytest.mark.unit
class TestChange:
    """Verify annual change against the previous year."""

    def test_unchanged_class_is_returned(
        self, two_segments: PixelInputs, characterize: Characterize
    ) -> None:
        pixel = characterize(two_segments, "2004-07-01")
        assert change(pixel, _config()) == GRASS

    def test_change_concatenates_previous_and_current(
        self, two_segments: PixelInputs, characterize: Characterize
    ) -> None:
        # A year earlier the date fell between the grass segment's end and break.
        pixel = characterize(two_segments, "2006-03-01")
        assert change(pixel, _config()) == 34

    def test_previous_year_in_between_without_fill(
        self, two_segments: PixelInputs, characterize: Characterize
    ) -> None:
        config = _config(fill_difflc=False)
        pixel = characterize(two_segments, "2006-07-01", config)
        assert change(pixel, config) == 104

    def test_previous_year_before_first_segment(
        self, two_segments: PixelInputs, characterize: Characterize
    ) -> None:
        pixel = characterize(two_segments, "2000-06-01")
        assert change(pixel, _config()) == GRASS

    def test_no_segments_raises(self) -> None:
        pixel = CharacterizedPixel(pixelxy=(0, 0), date=730120)
        with pytest.raises(DataGenerationError):
            change(pixel, _config())
