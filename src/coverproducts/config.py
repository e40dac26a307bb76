"""Configuration for cover product generation.

The configuration is an immutable value passed explicitly to every
decision function, so the engine never reads hidden global state.
A module-level default exists only for convenience in scripts.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    ValidationError,
    field_validator,
    model_validator,
)

from coverproducts.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class LandcoverMap(BaseModel):
    """Named land-cover class labels.

    ``none`` is the sentinel returned when no class can be determined.
    ``grass`` and ``tree`` drive the burn-ratio reclassification rules.

    Example:
        >>> LandcoverMap().tree
        4
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    none: int = 0
    developed: int = 1
    cropland: int = 2
    grass: int = 3
    tree: int = 4
    water: int = 5
    wetland: int = 6
    snow: int = 7
    barren: int = 8


class LandcoverDefaults(BaseModel):
    """Sentinel values for land-cover and confidence edge cases."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    lc_insuff: int = 9
    lc_inbtw: int = 10
    lcc_back: int = 151
    lcc_afterbr: int = 152
    lcc_forwards: int = 153
    lcc_samelc: int = 154
    lcc_difflc: int = 155
    lcc_growth: int = 201
    lcc_decline: int = 202
    lcc_nomodel: int = 250


class RetryStrategy(BaseModel):
    """Backoff parameters for retried persistence.

    The delay before retry ``n`` (zero-based) is
    ``min(initial_delay * multiplier**n, max_delay)`` plus up to
    ``jitter`` of that value at random.

    Args:
        max_attempts: Total attempts including the first one.
        initial_delay: Delay in seconds before the first retry.
        max_delay: Upper bound on a single delay, in seconds.
        multiplier: Growth factor between consecutive delays.
        jitter: Random fraction (0.0--1.0) added to each delay.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_attempts: int = 5
    initial_delay: float = 1.0
    max_delay: float = 60.0
    multiplier: float = 2.0
    jitter: float = 0.1

    @field_validator("max_attempts")
    @classmethod
    def _validate_attempts(cls, v: int) -> int:
        """Ensure at least one attempt is made."""
        if v < 1:
            msg = "max_attempts must be at least 1"
            raise ValueError(msg)
        return v

    @field_validator("initial_delay", "max_delay")
    @classmethod
    def _validate_delay(cls, v: float) -> float:
        """Ensure delays are not negative."""
        if v < 0:
            msg = "retry delays must not be negative"
            raise ValueError(msg)
        return v

    @field_validator("multiplier")
    @classmethod
    def _validate_multiplier(cls, v: float) -> float:
        if v < 1.0:
            msg = "multiplier must be at least 1.0"
            raise ValueError(msg)
        return v

    @field_validator("jitter")
    @classmethod
    def _validate_jitter(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            msg = "jitter must be between 0.0 and 1.0"
            raise ValueError(msg)
        return v


class Config(BaseModel):
    """Cover product configuration.

    Immutable pydantic model. ``lc_list`` gives the class label for each
    position of a prediction's probability vector.

    Args:
        lc_list: Class label per probability-vector position.
        lc_map: Named class labels, including the ``none`` sentinel.
        fill_begin: Use the first segment's class before any segment starts.
        fill_end: Use the last segment's class after the last segment ends.
        fill_samelc: Fill gaps between segments that share a class.
        fill_difflc: Fill gaps between segments with different classes.
        lc_defaults: Sentinel values for edge cases.
        confidence_scale: Factor applied to a probability to obtain a
            confidence score.
        retry_strategy: Backoff parameters for persistence.
        max_workers: Worker processes per date; ``None`` uses the CPU count.
        nemo_host: Base URL of the change-detection results service.
        segments_path: Path of the segments endpoint.
        predictions_path: Path of the predictions endpoint.
        request_timeout: HTTP timeout in seconds.
        storage_dir: Root directory of the product store.

    Example:
        >>> cfg = Config(fill_begin=False, max_workers=4)
        >>> cfg.lc_map.grass
        3
    """

    model_config = ConfigDict(frozen=True, validate_default=True, extra="forbid")

    lc_list: tuple[int, ...] = (1, 2, 3, 4, 5, 6, 7, 8)
    lc_map: LandcoverMap = LandcoverMap()
    fill_begin: bool = True
    fill_end: bool = True
    fill_samelc: bool = True
    fill_difflc: bool = True
    lc_defaults: LandcoverDefaults = LandcoverDefaults()
    confidence_scale: int = 100
    retry_strategy: RetryStrategy = RetryStrategy()
    max_workers: int | None = None
    nemo_host: str = "http://localhost:5757"
    segments_path: str = "/segment"
    predictions_path: str = "/prediction"
    request_timeout: float = 120.0
    storage_dir: Path = Path("~/.coverproducts/store")

    @field_validator("lc_list")
    @classmethod
    def _validate_lc_list(cls, v: tuple[int, ...]) -> tuple[int, ...]:
        """Ensure the class list is non-empty and free of duplicates."""
        if not v:
            msg = "lc_list must contain at least one class"
            raise ValueError(msg)
        if len(set(v)) != len(v):
            msg = "lc_list must not contain duplicate classes"
            raise ValueError(msg)
        return v

    @field_validator("max_workers")
    @classmethod
    def _validate_max_workers(cls, v: int | None) -> int | None:
        if v is not None and v <= 0:
            msg = "max_workers must be greater than 0"
            raise ValueError(msg)
        return v

    @field_validator("confidence_scale")
    @classmethod
    def _validate_scale(cls, v: int) -> int:
        if v <= 0:
            msg = "confidence_scale must be greater than 0"
            raise ValueError(msg)
        return v

    @field_validator("storage_dir", mode="before")
    @classmethod
    def _expand_storage_dir(cls, v: str | Path) -> Path:
        """Expand ``~`` in the storage directory path."""
        return Path(v).expanduser()

    @model_validator(mode="after")
    def _check_reclassification_classes(self) -> Config:
        """Ensure grass and tree can be produced by the classifier."""
        for name in ("grass", "tree"):
            if getattr(self.lc_map, name) not in self.lc_list:
                msg = f"lc_map.{name} must be one of lc_list"
                raise ValueError(msg)
        return self

    @property
    def workers(self) -> int:
        """Worker count for per-pixel computation."""
        return self.max_workers or os.cpu_count() or 1


_default_config = Config()


def configure(**kwargs: Any) -> None:
    """Set module-level default configuration.

    Creates a new ``Config`` from the current defaults merged with
    the provided keyword arguments.

    Args:
        **kwargs: Any ``Config`` field.

    Raises:
        ValidationError: If a provided value fails pydantic validation.

    Example:
        >>> configure(fill_begin=False, max_workers=8)
    """
    global _default_config  # noqa: PLW0603
    current = _default_config.model_dump()
    current.update(kwargs)
    _default_config = Config(**current)


def get_default_config() -> Config:
    """Return the current module-level default configuration."""
    return _default_config


def load_config(path: Path | str) -> Config:
    """Load a ``Config`` from a JSON file.

    Keys missing from the file keep their default values.

    Args:
        path: Path to a JSON object with ``Config`` fields.

    Returns:
        Validated configuration.

    Raises:
        ConfigurationError: If the file is missing, is not valid JSON,
            or holds invalid values.
    """
    resolved = Path(path).expanduser()
    try:
        text = resolved.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigurationError(
            what="Cannot read configuration file",
            cause=f"File not found: {resolved}",
            fix="Pass the path of an existing JSON configuration file",
        ) from None
    except PermissionError:
        raise ConfigurationError(
            what="Cannot read configuration file",
            cause=f"Permission denied: {resolved}",
            fix=f"Check file permissions on {resolved}",
        ) from None

    try:
        parsed: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(
            what="Invalid configuration file format",
            cause=f"JSON parse error in {resolved}: {exc}",
            fix="Ensure the file contains a valid JSON object",
        ) from None

    if not isinstance(parsed, dict):
        raise ConfigurationError(
            what="Invalid configuration file format",
            cause=f"Expected a JSON object in {resolved}, got {type(parsed).__name__}",
            fix="Ensure the file contains a JSON object of configuration fields",
        )

    try:
        config = Config(**parsed)
    except ValidationError as exc:
        raise ConfigurationError(
            what="Invalid configuration values",
            cause=f"{exc.error_count()} validation error(s) in {resolved}: {exc}",
            fix="Correct the listed fields",
        ) from exc

    logger.debug("Loaded configuration from %s", resolved)
    return config
