"""Normalized Burn Ratio of a segment's spectral model.

Pure computation module: no HTTP, no storage, no configuration.
"""

from __future__ import annotations

import numpy as np

from coverproducts._types import Segment

GROWTH_THRESHOLD: float = 0.05
DECLINE_THRESHOLD: float = -0.05


def band_value(intercept: float, coefficients: tuple[float, ...], day: int) -> float:
    """Evaluate a band's model at an ordinal day (first coefficient only)."""
    return intercept + day * coefficients[0]


def normalized_burn_ratio(nir: float, swir: float) -> float:
    """Compute the Normalized Burn Ratio, rounded to single precision.

    NBR = (NIR - SWIR) / (NIR + SWIR). Unlike an NDVI raster, a zero
    denominator here is a data-quality problem of the segment and raises.

    Raises:
        ZeroDivisionError: If ``nir + swir == 0``.

    Example:
        >>> round(normalized_burn_ratio(0.3, 0.1), 6)
        0.5
    """
    return float(np.float32((nir - swir) / (nir + swir)))


def burn_ratio(segment: Segment) -> float:
    """Return ``NBR(eday) - NBR(sday)`` for a segment.

    Positive values indicate vegetation growth over the segment,
    negative values decline.

    Example:
        >>> seg = Segment(sday=0, eday=10, bday=10, chprob=0.0,
        ...               niint=0.3, nicoef=(0.0,), s1int=0.1, s1coef=(0.0,))
        >>> burn_ratio(seg)
        0.0
    """
    nbr_start = normalized_burn_ratio(
        band_value(segment.niint, segment.nicoef, segment.sday),
        band_value(segment.s1int, segment.s1coef, segment.sday),
    )
    nbr_end = normalized_burn_ratio(
        band_value(segment.niint, segment.nicoef, segment.eday),
        band_value(segment.s1int, segment.s1coef, segment.eday),
    )
    return nbr_end - nbr_start


def is_growth(ratio: float) -> bool:
    return ratio > GROWTH_THRESHOLD


def is_decline(ratio: float) -> bool:
    return ratio < DECLINE_THRESHOLD
