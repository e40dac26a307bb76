"""Shared test fixtures for the coverproducts test suite."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from coverproducts._types import CharacterizedPixel, PixelInputs
from coverproducts.config import Config, RetryStrategy
from coverproducts.dates import to_ordinal
from coverproducts.products import characterize_inputs

Record = dict[str, Any]


def _probs(
    primary: int, secondary: int, p1: float = 0.7, p2: float = 0.2, size: int = 8
) -> list[float]:
    """Build a probability vector over classes ``1..size``."""
    vector = [0.0] * size
    vector[primary - 1] = p1
    vector[secondary - 1] = p2
    return vector


@pytest.fixture
def test_config() -> Config:
    """Return a Config with a small pool and no retry delays."""
    return Config(
        max_workers=2,
        retry_strategy=RetryStrategy(max_attempts=3, initial_delay=0.0, jitter=0.0),
    )


@pytest.fixture
def segment_record() -> Callable[..., Record]:
    """Factory for raw segment records.

    The NIR band varies linearly from ``nir_start`` at ``sday`` to
    ``nir_end`` at ``eday`` while SWIR stays at 0.1, so equal values give
    a burn ratio of zero and diverging values give growth or decline.
    """

    def make(
        sday: str,
        eday: str,
        bday: str | None = None,
        chprob: float = 0.0,
        nir_start: float = 0.3,
        nir_end: float = 0.3,
        px: int = 0,
        py: int = 0,
    ) -> Record:
        start, end = to_ordinal(sday), to_ordinal(eday)
        slope = (nir_end - nir_start) / (end - start)
        return {
            "px": px,
            "py": py,
            "sday": sday,
            "eday": eday,
            "bday": bday or eday,
            "chprob": chprob,
            "niint": nir_start - start * slope,
            "nicoef": [slope, 0.0, 0.0],
            "s1int": 0.1,
            "s1coef": [0.0, 0.0, 0.0],
        }

    return make


@pytest.fixture
def prediction_record() -> Callable[..., Record]:
    """Factory for raw prediction records."""

    def make(
        sday: str, pday: str, prob: list[float], px: int = 0, py: int = 0
    ) -> Record:
        return {"px": px, "py": py, "sday": sday, "pday": pday, "prob": prob}

    return make


@pytest.fixture
def two_segments(
    segment_record: Callable[..., Record],
    prediction_record: Callable[..., Record],
) -> PixelInputs:
    """A grass segment followed, after a break and a gap, by a tree segment.

    Grass: 2000-01-01 to 2005-01-01, break 2005-06-01, chprob 1.
    Tree: 2006-01-01 to 2010-01-01, chprob 0.
    """
    return PixelInputs(
        segments=[
            segment_record("2000-01-01", "2005-01-01", "2005-06-01", chprob=1.0),
            segment_record("2006-01-01", "2010-01-01"),
        ],
        predictions=[
            prediction_record(
                "2000-01-01", "2004-07-01", [0.02, 0.03, 0.7, 0.2, 0.05, 0, 0, 0]
            ),
            prediction_record("2000-01-01", "2002-07-01", _probs(3, 4, 0.6, 0.3)),
            prediction_record("2006-01-01", "2009-07-01", _probs(4, 3)),
        ],
    )


@pytest.fixture
def characterize(test_config: Config) -> Callable[..., CharacterizedPixel]:
    """Characterize pixel inputs at an ISO date."""

    def make(
        inputs: PixelInputs, day: str, config: Config | None = None
    ) -> CharacterizedPixel:
        return characterize_inputs(
            (0, 0), inputs, to_ordinal(day), config or test_config
        )

    return make
