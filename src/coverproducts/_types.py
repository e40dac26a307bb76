"""Internal shared types for cross-boundary data contracts.

These types define the data shapes passed between the schema layer,
the decision functions, and the chip generator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from coverproducts.dates import to_yyyy_mm_dd

PixelXY = tuple[int, int]
"""Pixel coordinate ``(px, py)`` in projection units."""

Record = dict[str, Any]
"""A raw JSON record as returned by the results service."""


@dataclass(frozen=True)
class Segment:
    """A fitted change-detection model for one pixel.

    Dates are ordinal days. Only the first coefficient of each band is
    used, to evaluate the band at a date.

    Args:
        sday: Start date of the model.
        eday: End date of the model.
        bday: Break date detected after the model.
        chprob: Change probability (0.0--1.0).
        niint: Near-infrared intercept.
        nicoef: Near-infrared coefficients.
        s1int: Short-wave infrared intercept.
        s1coef: Short-wave infrared coefficients.
    """

    sday: int
    eday: int
    bday: int
    chprob: float
    niint: float
    nicoef: tuple[float, ...]
    s1int: float
    s1coef: tuple[float, ...]


@dataclass(frozen=True)
class Prediction:
    """Classifier probabilities for one date of a segment.

    Args:
        sday: Start date of the segment the prediction belongs to.
        pday: Date the prediction applies to.
        prob: Per-class probabilities, ordered like ``Config.lc_list``.
    """

    sday: int
    pday: int
    prob: tuple[float, ...]


@dataclass(frozen=True)
class CharacterizedSegment:
    """A segment described relative to one query date.

    Recomputed for every query date, never cached across dates.
    ``segment`` is the source model the description was derived from.
    """

    segment: Segment
    sday: int
    eday: int
    bday: int
    chprob: float
    intersects: bool
    precedes_sday: bool
    follows_eday: bool
    follows_bday: bool
    btw_eday_bday: bool
    burn_ratio: float
    growth: bool
    decline: bool
    predictions: tuple[Prediction, ...]
    primary_class: int
    secondary_class: int

    def class_at(self, rank: int) -> int:
        """Return the primary (rank 0) or secondary class."""
        return self.primary_class if rank == 0 else self.secondary_class


@dataclass(frozen=True)
class CharacterizedPixel:
    """All segments of a pixel characterized for a query date.

    An empty ``segments`` tuple signals missing or invalid inputs.
    """

    pixelxy: PixelXY
    date: int
    segments: tuple[CharacterizedSegment, ...] = ()


@dataclass(frozen=True)
class Product:
    """The five cover product values of a pixel for one date.

    Example:
        >>> p = Product(px=1, py=2, date=730120, primary_landcover=4,
        ...             secondary_landcover=3, primary_confidence=80,
        ...             secondary_confidence=10, annual_change=4)
        >>> p.to_record()["date"]
        '2000-01-01'
    """

    px: int
    py: int
    date: int
    primary_landcover: int
    secondary_landcover: int
    primary_confidence: int
    secondary_confidence: int
    annual_change: int

    def to_record(self) -> Record:
        """Return the flat, JSON-serializable representation."""
        return {
            "px": self.px,
            "py": self.py,
            "date": to_yyyy_mm_dd(self.date),
            "primary_landcover": self.primary_landcover,
            "secondary_landcover": self.secondary_landcover,
            "primary_confidence": self.primary_confidence,
            "secondary_confidence": self.secondary_confidence,
            "annual_change": self.annual_change,
        }


@dataclass
class ChipResults:
    """Raw segments and predictions fetched for one chip.

    Args:
        segments: Segment records, each carrying ``px`` and ``py``.
        predictions: Prediction records, each carrying ``px`` and ``py``.
    """

    segments: list[Record] = field(default_factory=list)
    predictions: list[Record] = field(default_factory=list)


@dataclass
class PixelInputs:
    """Raw inputs grouped for a single pixel."""

    segments: list[Record] = field(default_factory=list)
    predictions: list[Record] = field(default_factory=list)
