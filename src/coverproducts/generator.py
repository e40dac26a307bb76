"""Chip-level generation of cover products.

For each requested date, every pixel of a chip is characterized and
classified in a bounded pool of worker processes, and the resulting
records are stored as one document per date. Dates are processed one
after the other; a failure anywhere aborts the whole chip.
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import Executor, Future, ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from coverproducts._types import PixelInputs, PixelXY, Product, Record
from coverproducts.config import Config, get_default_config
from coverproducts.dates import to_ordinal, to_yyyy_mm_dd
from coverproducts.exceptions import DataGenerationError, ServiceError
from coverproducts.products import pixel_products
from coverproducts.retry import with_retries
from coverproducts.service import AnalyticService
from coverproducts.storage import FileSystemStore, ObjectStore, product_path

logger = logging.getLogger(__name__)

PRODUCT_NAME = "cover"

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

T = TypeVar("T")


class ChipRequest(BaseModel):
    """A request to generate cover products for one chip.

    Args:
        cx: Chip x coordinate.
        cy: Chip y coordinate.
        tile: Identifier of the tile containing the chip.
        dates: Query dates as ``YYYY-MM-DD`` strings, processed in order.

    Example:
        >>> ChipRequest(cx=100, cy=200, tile="h01v02", dates=["2001-07-01"])
        ChipRequest(cx=100, cy=200, tile='h01v02', dates=['2001-07-01'])
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    cx: int
    cy: int
    tile: str = ""
    dates: list[str] = Field(min_length=1)

    @field_validator("dates")
    @classmethod
    def _validate_dates(cls, v: list[str]) -> list[str]:
        """Ensure every date is a valid ``YYYY-MM-DD`` string."""
        for value in v:
            if not _DATE_PATTERN.match(value):
                msg = f"dates must match 'YYYY-MM-DD', got {value!r}"
                raise ValueError(msg)
            to_ordinal(value)
        return v


@dataclass
class ChipSummary:
    """Outcome of a successful chip generation."""

    products: str
    cx: int
    cy: int
    tile: str
    dates: list[str]
    keys: list[str] = field(default_factory=list)
    pixel_count: int = 0


def pixel_groups(records: Iterable[Record]) -> dict[PixelXY, list[Record]]:
    """Group records by their ``(px, py)`` coordinate, keeping order.

    Raises:
        KeyError: If a record has no ``px`` or ``py`` field.
    """
    groups: dict[PixelXY, list[Record]] = defaultdict(list)
    for record in records:
        groups[(record["px"], record["py"])].append(record)
    return dict(groups)


def pixel_inputs(
    segments: Iterable[Record], predictions: Iterable[Record]
) -> dict[PixelXY, PixelInputs]:
    """Pair each pixel's segment and prediction records.

    Every pixel present in either collection is included, so a pixel
    with predictions but no segments still receives a product.
    """
    grouped_segments = pixel_groups(segments)
    grouped_predictions = pixel_groups(predictions)
    keys = sorted(set(grouped_segments) | set(grouped_predictions))
    return {
        xy: PixelInputs(
            segments=grouped_segments.get(xy, []),
            predictions=grouped_predictions.get(xy, []),
        )
        for xy in keys
    }


def map_bounded(
    func: Callable[..., T],
    argument_tuples: Sequence[tuple[object, ...]],
    workers: int,
    executor_type: type[Executor] = ProcessPoolExecutor,
) -> list[T]:
    """Apply *func* to each argument tuple in a bounded worker pool.

    Pixels are pure CPU work, so the default pool runs them in separate
    processes; *func* and its arguments must be picklable. Results are
    returned in input order. The first failure cancels all work that has
    not started yet and is re-raised.
    """
    if not argument_tuples:
        return []
    pool_size = max(1, min(workers, len(argument_tuples)))
    with executor_type(max_workers=pool_size) as executor:
        futures: list[Future[T]] = [
            executor.submit(func, *args) for args in argument_tuples
        ]
        try:
            for future in as_completed(futures):
                future.result()
        except BaseException:
            for future in futures:
                future.cancel()
            raise
    return [future.result() for future in futures]


def date_products(
    inputs: dict[PixelXY, PixelInputs], query_date: int, config: Config
) -> list[Product]:
    """Compute the products of every pixel for one ordinal date."""
    work = [(xy, pixel, query_date, config) for xy, pixel in inputs.items()]
    return map_bounded(pixel_products, work, config.workers)


def flatten(products: Iterable[Product]) -> list[Record]:
    """Return the serializable records of *products*."""
    return [p.to_record() for p in products]


def generate(
    request: ChipRequest,
    config: Config | None = None,
    service: AnalyticService | None = None,
    store: ObjectStore | None = None,
) -> ChipSummary:
    """Generate and store cover products for a chip.

    Args:
        request: Chip coordinates, tile, and dates.
        config: Configuration; defaults to the module-level default.
        service: Results service client; built from *config* if omitted.
        store: Product store; a ``FileSystemStore`` at
            ``config.storage_dir`` if omitted.

    Returns:
        Summary of the stored documents.

    Raises:
        DataGenerationError: If fetching, grouping, computing, or storing
            fails. The original exception is chained and the request
            arguments are attached.
    """
    config = config or get_default_config()
    service = service or AnalyticService(config)
    store = store or FileSystemStore(config.storage_dir)

    try:
        results = service.results(request.cx, request.cy)
        if results is None:
            raise ServiceError(
                what="Change detection results unavailable",
                cause=f"Fetch failed for chip ({request.cx}, {request.cy})",
                fix="Check the results service and retry the chip",
            )
        inputs = pixel_inputs(results.segments, results.predictions)

        keys: list[str] = []
        for day in request.dates:
            query_date = to_ordinal(day)
            logger.info("Working on cover products for: %s", day)
            records = flatten(date_products(inputs, query_date, config))
            day_string = to_yyyy_mm_dd(query_date)
            path = product_path(
                PRODUCT_NAME, request.cx, request.cy, request.tile, day_string
            )
            logger.info("Storing: %s", path.name)
            with_retries(
                lambda: store.put(path, records),  # noqa: B023
                config.retry_strategy,
                description=f"storing {path.name}",
            )
            keys.append(path.key)
    except Exception as exc:
        logger.exception(
            "Exception in generate - args: %s  message: %s", request.model_dump(), exc
        )
        raise DataGenerationError(
            "generate",
            exc,
            args=request.model_dump(),
            fix="Re-run the whole chip once the cause is resolved",
        ) from exc

    return ChipSummary(
        products=PRODUCT_NAME,
        cx=request.cx,
        cy=request.cy,
        tile=request.tile,
        dates=list(request.dates),
        keys=keys,
        pixel_count=len(inputs),
    )
