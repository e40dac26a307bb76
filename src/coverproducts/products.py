"""Per-pixel product assembly.

Validates a pixel's raw records, characterizes its segments for a query
date, and computes the five cover product values.
"""

from __future__ import annotations

import logging

from coverproducts._types import CharacterizedPixel, PixelInputs, PixelXY, Product
from coverproducts.analysis.decisions import change, confidence, landcover
from coverproducts.analysis.segments import characterize_pixel
from coverproducts.config import Config
from coverproducts.schemas import parse_predictions, parse_segments

logger = logging.getLogger(__name__)


def characterize_inputs(
    pixelxy: PixelXY,
    inputs: PixelInputs,
    query_date: int,
    config: Config,
) -> CharacterizedPixel:
    """Characterize a pixel's raw inputs for a query date.

    Invalid or missing segments or predictions are not an error: the
    returned pixel then has no segments.

    Args:
        pixelxy: Pixel coordinate.
        inputs: Raw segment and prediction records of the pixel.
        query_date: Ordinal query date.
        config: Class configuration.

    Returns:
        The characterized pixel.
    """
    segments = parse_segments(inputs.segments)
    predictions = parse_predictions(inputs.predictions)
    if segments is None or predictions is None:
        logger.debug("Insufficient or invalid inputs for pixel %s", pixelxy)
        return CharacterizedPixel(pixelxy=pixelxy, date=query_date)
    return characterize_pixel(pixelxy, segments, predictions, query_date, config)


def products(pixel: CharacterizedPixel, config: Config) -> Product:
    """Compute the cover products of a characterized pixel.

    A pixel without segments gets the ``none`` class for land cover and
    change, and ``lcc_nomodel`` for both confidences.

    Raises:
        DataGenerationError: If a land-cover or confidence value cannot
            be computed.
    """
    px, py = pixel.pixelxy
    if not pixel.segments:
        none = config.lc_map.none
        nomodel = config.lc_defaults.lcc_nomodel
        return Product(
            px=px,
            py=py,
            date=pixel.date,
            primary_landcover=none,
            secondary_landcover=none,
            primary_confidence=nomodel,
            secondary_confidence=nomodel,
            annual_change=none,
        )

    return Product(
        px=px,
        py=py,
        date=pixel.date,
        primary_landcover=landcover(pixel, 0, config),
        secondary_landcover=landcover(pixel, 1, config),
        primary_confidence=confidence(pixel, 0, config),
        secondary_confidence=confidence(pixel, 1, config),
        annual_change=change(pixel, config),
    )


def pixel_products(
    pixelxy: PixelXY, inputs: PixelInputs, query_date: int, config: Config
) -> Product:
    """Characterize a pixel and compute its products in one step."""
    return products(characterize_inputs(pixelxy, inputs, query_date, config), config)
