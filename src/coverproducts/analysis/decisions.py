"""Land-cover, confidence, and change decisions for a characterized pixel.

Each decision is an ordered list of ``(applies, value)`` rules; the
first rule that applies determines the result. Rules are callables so
that a value is only computed when its rule is selected.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TypeVar

from coverproducts._types import CharacterizedPixel, CharacterizedSegment
from coverproducts.analysis.segments import (
    SegmentPair,
    between_bday_sday,
    between_eday_sday,
    recharacterize,
)
from coverproducts.config import Config
from coverproducts.dates import subtract_year
from coverproducts.exceptions import DataGenerationError

logger = logging.getLogger(__name__)

Rule = tuple[Callable[[], bool], Callable[[], int]]

_F = TypeVar("_F", bound=Callable[..., int])


def _first_match(rules: Iterable[Rule]) -> int:
    for applies, value in rules:
        if applies():
            return value()
    raise LookupError("no decision rule applied")


def _data_generation(operation: str) -> Callable[[_F], _F]:
    """Log any failure of *operation* and re-raise it as ``DataGenerationError``."""

    def decorator(func: _F) -> _F:
        @functools.wraps(func)
        def wrapper(pixel: CharacterizedPixel, *args: object, **kwargs: object) -> int:
            try:
                return func(pixel, *args, **kwargs)
            except DataGenerationError:
                raise
            except Exception as exc:
                logger.exception(
                    "Error calculating %s for pixel %s", operation, pixel.pixelxy
                )
                raise DataGenerationError(
                    operation,
                    exc,
                    args={"pixelxy": pixel.pixelxy, "date": pixel.date},
                ) from exc

        return wrapper  # type: ignore[return-value]

    return decorator


@dataclass(frozen=True)
class _Situation:
    """Where the query date of a pixel falls among its segments."""

    date: int
    first: CharacterizedSegment
    last: CharacterizedSegment
    intersected: CharacterizedSegment | None
    eday_bday: CharacterizedSegment | None
    eday_sday_pair: SegmentPair | None
    bday_sday_pair: SegmentPair | None

    @classmethod
    def of(cls, pixel: CharacterizedPixel) -> _Situation:
        segments = pixel.segments
        if not segments:
            raise ValueError(f"pixel {pixel.pixelxy} has no segments")
        return cls(
            date=pixel.date,
            first=segments[0],
            last=segments[-1],
            intersected=next((s for s in segments if s.intersects), None),
            eday_bday=next((s for s in segments if s.btw_eday_bday), None),
            eday_sday_pair=between_eday_sday(segments),
            bday_sday_pair=between_bday_sday(segments),
        )

    @property
    def before_first(self) -> bool:
        return self.date < self.first.sday

    @property
    def after_last(self) -> bool:
        return self.date > self.last.eday


@_data_generation("landcover")
def landcover(pixel: CharacterizedPixel, rank: int, config: Config) -> int:
    """Return the land-cover class of a pixel at its query date.

    Rules, first match wins:

    1. before the first segment, ``fill_begin``: first segment's class
    2. before the first segment: ``lc_insuff``
    3. after the last segment, ``fill_end``: last segment's class
    4. after the last segment: ``lc_insuff``
    5. inside a segment: that segment's class
    6. between two segments of the same class, ``fill_samelc``: that class
    7. between a break date and the next start, ``fill_difflc``: the
       later segment's class
    8. between a segment's end and break dates, ``fill_difflc``: that
       segment's class
    9. otherwise ``lc_inbtw``

    Args:
        pixel: Characterized pixel with at least one segment.
        rank: 0 for primary, 1 for secondary.
        config: Fill policy and default values.

    Returns:
        The class label.

    Raises:
        DataGenerationError: If the decision cannot be computed.
    """
    s = _Situation.of(pixel)
    defaults = config.lc_defaults
    pair = s.eday_sday_pair
    break_pair = s.bday_sday_pair

    rules: list[Rule] = [
        (lambda: s.before_first and config.fill_begin,
         lambda: s.first.class_at(rank)),
        (lambda: s.before_first,
         lambda: defaults.lc_insuff),
        (lambda: s.after_last and config.fill_end,
         lambda: s.last.class_at(rank)),
        (lambda: s.after_last,
         lambda: defaults.lc_insuff),
        (lambda: s.intersected is not None,
         lambda: s.intersected.class_at(rank)),  # type: ignore[union-attr]
        (lambda: config.fill_samelc and pair is not None
         and pair[0].class_at(rank) == pair[1].class_at(rank),
         lambda: pair[1].class_at(rank)),  # type: ignore[index]
        (lambda: config.fill_difflc and break_pair is not None,
         lambda: break_pair[1].class_at(rank)),  # type: ignore[index]
        (lambda: config.fill_difflc and s.eday_bday is not None,
         lambda: s.eday_bday.class_at(rank)),  # type: ignore[union-attr]
        (lambda: True,
         lambda: defaults.lc_inbtw),
    ]
    return _first_match(rules)


def scale_probability(value: float, config: Config) -> int:
    """Scale a probability to an integer confidence score."""
    return int(round(value * config.confidence_scale))


@_data_generation("confidence")
def confidence(pixel: CharacterizedPixel, rank: int, config: Config) -> int:
    """Return the land-cover confidence of a pixel at its query date.

    Rules, first match wins:

    1. before the first segment: ``lcc_back``
    2. after the last segment that ended in a certain break: ``lcc_afterbr``
    3. after the last segment: ``lcc_forwards``
    4. inside a growing segment: ``lcc_growth``
    5. inside a declining segment: ``lcc_decline``
    6. inside a segment: scaled probability at position *rank* of the
       segment's last prediction
    7. between two segments of the same primary class: ``lcc_samelc``
    8. between two segments: ``lcc_difflc``
    9. otherwise the ``none`` class

    Args:
        pixel: Characterized pixel with at least one segment.
        rank: 0 for primary, 1 for secondary.
        config: Default values and scaling.

    Returns:
        A confidence code or score.

    Raises:
        DataGenerationError: If the decision cannot be computed.
    """
    s = _Situation.of(pixel)
    defaults = config.lc_defaults
    pair = s.eday_sday_pair
    hit = s.intersected

    rules: list[Rule] = [
        (lambda: s.before_first,
         lambda: defaults.lcc_back),
        (lambda: s.after_last and int(s.last.chprob) == 1,
         lambda: defaults.lcc_afterbr),
        (lambda: s.after_last,
         lambda: defaults.lcc_forwards),
        (lambda: hit is not None and hit.growth,
         lambda: defaults.lcc_growth),
        (lambda: hit is not None and hit.decline,
         lambda: defaults.lcc_decline),
        (lambda: hit is not None,
         lambda: scale_probability(hit.predictions[-1].prob[rank], config)),  # type: ignore[union-attr]
        (lambda: pair is not None
         and pair[0].primary_class == pair[1].primary_class,
         lambda: defaults.lcc_samelc),
        (lambda: pair is not None,
         lambda: defaults.lcc_difflc),
        (lambda: True,
         lambda: config.lc_map.none),
    ]
    return _first_match(rules)


def change(pixel: CharacterizedPixel, config: Config) -> int:
    """Return the annual land-cover change of a pixel.

    Compares the primary land cover at the query date with the primary
    land cover one year earlier, for which the pixel's segments are
    characterized again at the earlier date. An unchanged class is
    returned as is; a change is encoded by concatenating the digits of
    the previous class and the current class.

    Example:
        A pixel that was grass (3) a year ago and is tree (4) now yields 34.
    """
    current = landcover(pixel, 0, config)
    previous_pixel = recharacterize(pixel, subtract_year(pixel.date), config)
    previous = landcover(previous_pixel, 0, config)
    if current == previous:
        return current
    return int(f"{previous}{current}")
