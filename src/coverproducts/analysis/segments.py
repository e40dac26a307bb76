"""Characterization of segments relative to a query date."""

from __future__ import annotations

from collections.abc import Sequence

from coverproducts._types import (
    CharacterizedPixel,
    CharacterizedSegment,
    PixelXY,
    Prediction,
    Segment,
)
from coverproducts.analysis.burn_ratio import burn_ratio, is_decline, is_growth
from coverproducts.analysis.classification import classify
from coverproducts.config import Config

SegmentPair = tuple[CharacterizedSegment, CharacterizedSegment]


def segment_predictions(
    segment: Segment, predictions: Sequence[Prediction]
) -> tuple[Prediction, ...]:
    """Return the predictions belonging to *segment*, sorted by ``pday``."""
    owned = [p for p in predictions if p.sday == segment.sday]
    return tuple(sorted(owned, key=lambda p: p.pday))


def characterize_segment(
    segment: Segment,
    query_date: int,
    predictions: Sequence[Prediction],
    config: Config,
) -> CharacterizedSegment:
    """Describe a segment relative to a query date.

    Computes the temporal relation flags, the burn ratio with its
    growth/decline flags, and the primary and secondary classes of the
    segment from its own predictions.

    Args:
        segment: The segment to characterize.
        query_date: Ordinal query date.
        predictions: Every prediction of the pixel.
        config: Class configuration.

    Returns:
        The characterized segment.

    Raises:
        ZeroDivisionError: If the segment's NIR and SWIR sum to zero at
            its start or end date.
    """
    ratio = burn_ratio(segment)
    owned = segment_predictions(segment, predictions)
    return CharacterizedSegment(
        segment=segment,
        sday=segment.sday,
        eday=segment.eday,
        bday=segment.bday,
        chprob=segment.chprob,
        intersects=segment.sday <= query_date <= segment.eday,
        precedes_sday=query_date < segment.sday,
        follows_eday=query_date > segment.eday,
        follows_bday=query_date >= segment.bday,
        btw_eday_bday=segment.eday <= query_date <= segment.bday,
        burn_ratio=ratio,
        growth=is_growth(ratio),
        decline=is_decline(ratio),
        predictions=owned,
        primary_class=classify(owned, query_date, 0, ratio, config),
        secondary_class=classify(owned, query_date, 1, ratio, config),
    )


def between_eday_sday(segments: Sequence[CharacterizedSegment]) -> SegmentPair | None:
    """Return the consecutive pair whose gap holds the query date.

    The first segment of the pair ended before the query date and the
    second starts after it.
    """
    for earlier, later in zip(segments, segments[1:]):
        if earlier.follows_eday and later.precedes_sday:
            return earlier, later
    return None


def between_bday_sday(segments: Sequence[CharacterizedSegment]) -> SegmentPair | None:
    """Return the consecutive pair where the query date is on or after
    the first segment's break date and before the second's start."""
    for earlier, later in zip(segments, segments[1:]):
        if earlier.follows_bday and later.precedes_sday:
            return earlier, later
    return None


def characterize_pixel(
    pixelxy: PixelXY,
    segments: Sequence[Segment],
    predictions: Sequence[Prediction],
    query_date: int,
    config: Config,
) -> CharacterizedPixel:
    """Characterize every segment of a pixel for a query date.

    Segments keep their input order, which must be ascending ``sday``.
    """
    return CharacterizedPixel(
        pixelxy=pixelxy,
        date=query_date,
        segments=tuple(
            characterize_segment(s, query_date, predictions, config) for s in segments
        ),
    )


def recharacterize(
    pixel: CharacterizedPixel, query_date: int, config: Config
) -> CharacterizedPixel:
    """Characterize the same segments and predictions at another date."""
    return CharacterizedPixel(
        pixelxy=pixel.pixelxy,
        date=query_date,
        segments=tuple(
            characterize_segment(s.segment, query_date, s.predictions, config)
            for s in pixel.segments
        ),
    )
