"""Rank-based classification of segment probabilities.

A class is chosen by ranking a probability vector; the burn ratio of
the segment can override the ranking for grass/tree transitions.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from coverproducts._types import Prediction
from coverproducts.analysis.burn_ratio import is_decline, is_growth
from coverproducts.config import Config


def get_class(probs: Sequence[float], rank: int, config: Config) -> int:
    """Return the class label of the ``rank``-th highest probability.

    The position of the value is the first index holding it, so equal
    probabilities resolve to the class listed first in ``lc_list``.

    Args:
        probs: Per-class probabilities ordered like ``config.lc_list``.
        rank: 0 for the most probable class, 1 for the second.
        config: Supplies ``lc_list`` and the ``none`` sentinel.

    Returns:
        The class label, or ``config.lc_map.none`` if *probs* is empty
        or *rank* is out of range.

    Example:
        >>> get_class([0.1, 0.7, 0.2], 0, Config(lc_list=(3, 4, 5)))
        4
    """
    values = list(probs)
    ranked = sorted(values, reverse=True)
    if not 0 <= rank < len(ranked):
        return config.lc_map.none
    position = values.index(ranked[rank])
    if position >= len(config.lc_list):
        return config.lc_map.none
    return config.lc_list[position]


def mean_probabilities(predictions: Sequence[Prediction]) -> list[float]:
    """Average the probability vectors of *predictions* element-wise.

    Returns an empty list when there are no predictions.
    """
    if not predictions:
        return []
    stacked = np.asarray([p.prob for p in predictions], dtype=np.float64)
    return [float(v) for v in stacked.mean(axis=0)]


def first_date_of_class(
    predictions: Sequence[Prediction], label: int, config: Config
) -> int | None:
    """Return the ``pday`` of the first prediction classified as *label*.

    Args:
        predictions: Predictions sorted by ``pday``.
        label: Class label to look for.
        config: Configuration passed to ``get_class``.

    Returns:
        The ordinal date, or ``None`` when no prediction has that class.
    """
    for prediction in predictions:
        if get_class(prediction.prob, 0, config) == label:
            return prediction.pday
    return None


def classify(
    predictions: Sequence[Prediction],
    query_date: int,
    rank: int,
    burn_ratio: float,
    config: Config,
) -> int:
    """Return the class of a segment for a query date and rank.

    A growing segment that starts as grass and ends as tree is reported
    as tree from the first date tree is predicted onwards, and as grass
    before it; a declining tree-to-grass segment is handled the same way
    around the first grass date. Every other segment is classified from
    the mean of its probability vectors.

    Args:
        predictions: Segment predictions sorted by ``pday``.
        query_date: Ordinal query date.
        rank: 0 for primary, 1 for secondary.
        burn_ratio: Burn ratio of the segment.
        config: Class configuration.

    Returns:
        The class label.
    """
    grass = config.lc_map.grass
    tree = config.lc_map.tree
    if predictions:
        first_class = get_class(predictions[0].prob, 0, config)
        last_class = get_class(predictions[-1].prob, 0, config)

        if is_growth(burn_ratio) and first_class == grass and last_class == tree:
            first_forest_date = first_date_of_class(predictions, tree, config)
            if first_forest_date is not None and query_date >= first_forest_date:
                return (tree, grass)[rank]
            return (grass, tree)[rank]

        if is_decline(burn_ratio) and first_class == tree and last_class == grass:
            first_grass_date = first_date_of_class(predictions, grass, config)
            if first_grass_date is not None and query_date >= first_grass_date:
                return (grass, tree)[rank]
            return (tree, grass)[rank]

    return get_class(mean_probabilities(predictions), rank, config)
