"""Structural validation of raw segment and prediction records.

A pixel whose records fail validation is not an error: the caller
degrades it to the "no data" product path.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
)

from coverproducts._types import Prediction, Segment
from coverproducts.dates import to_ordinal

logger = logging.getLogger(__name__)


def _coerce_ordinal(value: Any) -> int:
    """Convert ISO strings and dates to ordinals for pydantic."""
    try:
        return to_ordinal(value)
    except TypeError as exc:
        raise ValueError(str(exc)) from exc


OrdinalDate = Annotated[int, BeforeValidator(_coerce_ordinal)]


class SegmentRecord(BaseModel):
    """Fields of a segment record used by the cover products."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    px: int
    py: int
    sday: OrdinalDate
    eday: OrdinalDate
    bday: OrdinalDate
    chprob: float
    niint: float
    nicoef: list[float] = Field(min_length=1)
    s1int: float
    s1coef: list[float] = Field(min_length=1)

    def to_segment(self) -> Segment:
        return Segment(
            sday=self.sday,
            eday=self.eday,
            bday=self.bday,
            chprob=self.chprob,
            niint=self.niint,
            nicoef=tuple(self.nicoef),
            s1int=self.s1int,
            s1coef=tuple(self.s1coef),
        )


class PredictionRecord(BaseModel):
    """Fields of a prediction record used by the cover products."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    px: int
    py: int
    sday: OrdinalDate
    pday: OrdinalDate
    prob: list[float] = Field(min_length=1)

    def to_prediction(self) -> Prediction:
        return Prediction(sday=self.sday, pday=self.pday, prob=tuple(self.prob))


_SEGMENTS = TypeAdapter(list[SegmentRecord])
_PREDICTIONS = TypeAdapter(list[PredictionRecord])


def parse_segments(records: Any) -> tuple[Segment, ...] | None:
    """Validate and convert segment records.

    Args:
        records: Raw segment records for one pixel.

    Returns:
        Segments in input order, or ``None`` if *records* is empty or
        any record is structurally invalid.
    """
    if not records:
        return None
    try:
        parsed = _SEGMENTS.validate_python(records)
    except ValidationError as exc:
        logger.debug("Invalid segment records: %s", exc)
        return None
    return tuple(r.to_segment() for r in parsed)


def parse_predictions(records: Any) -> tuple[Prediction, ...] | None:
    """Validate and convert prediction records.

    Args:
        records: Raw prediction records for one pixel.

    Returns:
        Predictions in input order, or ``None`` if *records* is empty or
        any record is structurally invalid.
    """
    if not records:
        return None
    try:
        parsed = _PREDICTIONS.validate_python(records)
    except ValidationError as exc:
        logger.debug("Invalid prediction records: %s", exc)
        return None
    return tuple(r.to_prediction() for r in parsed)


def segments_valid(records: Any) -> bool:
    """Return ``True`` if *records* is a non-empty list of valid segments."""
    return parse_segments(records) is not None


def predictions_valid(records: Any) -> bool:
    """Return ``True`` if *records* is a non-empty list of valid predictions."""
    return parse_predictions(records) is not None
