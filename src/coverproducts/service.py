"""Client for the change-detection results service.

The service exposes segments and predictions per chip. A fetch is only
successful when both requests succeed; a failed fetch is reported as
``None`` and never raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import requests

from coverproducts._types import ChipResults, Record
from coverproducts.config import Config
from coverproducts.dates import to_ordinal

logger = logging.getLogger(__name__)

_STATUS_TIMEOUT = 10  # seconds
_SUCCESS_STATUS_CODES = frozenset({200})


def results_url(host: str, path: str, cx: int, cy: int) -> str:
    """Build the URL of a per-chip results endpoint.

    Example:
        >>> results_url("http://nemo", "/segment", 100, -200)
        'http://nemo/segment?chipx=100&chipy=-200'
    """
    return f"{host}{path}?chipx={cx}&chipy={cy}"


def segments_sorted(records: list[Record], key: str = "sday") -> list[Record]:
    """Return segment records sorted ascending by a date field.

    Records whose field cannot be read as a date sort first, so schema
    validation rejects them later instead of this sort failing.
    """

    def sort_key(record: Record) -> int:
        try:
            return to_ordinal(record[key])
        except (KeyError, TypeError, ValueError):
            return -1

    return sorted(records, key=sort_key)


@dataclass
class ServiceStatus:
    """Operational status of the results service.

    Args:
        available: ``True`` if the service answered.
        message: Human-readable status message (empty when healthy).
    """

    available: bool = False
    message: str = ""


class AnalyticService:
    """HTTP client for chip segments and predictions.

    Args:
        config: Supplies the host, endpoint paths, and request timeout.
        session: Optional ``requests.Session`` to reuse.

    Example:
        >>> service = AnalyticService(Config(nemo_host="http://nemo:5757"))
        >>> service.segments_url(100, 200)
        'http://nemo:5757/segment?chipx=100&chipy=200'
    """

    def __init__(self, config: Config, session: requests.Session | None = None) -> None:
        self._config = config
        self._session: requests.Session = session or requests.Session()

    def segments_url(self, cx: int, cy: int) -> str:
        return results_url(self._config.nemo_host, self._config.segments_path, cx, cy)

    def predictions_url(self, cx: int, cy: int) -> str:
        return results_url(
            self._config.nemo_host, self._config.predictions_path, cx, cy
        )

    def _get(self, url: str) -> requests.Response | None:
        try:
            return self._session.get(url, timeout=self._config.request_timeout)
        except requests.RequestException as exc:
            logger.error("Request to %s failed: %s", url, exc)
            return None

    @staticmethod
    def _parse_body(resp: requests.Response) -> list[Record] | None:
        try:
            body: Any = resp.json()
        except ValueError as exc:
            logger.error("Invalid JSON from %s: %s", resp.url, exc)
            return None
        if not isinstance(body, list):
            logger.error(
                "Expected a JSON list from %s, got %s", resp.url, type(body).__name__
            )
            return None
        return body

    def results(self, cx: int, cy: int) -> ChipResults | None:
        """Fetch segments and predictions for a chip.

        Args:
            cx: Chip x coordinate.
            cy: Chip y coordinate.

        Returns:
            ``ChipResults`` with segments sorted by ``sday``, or ``None``
            when either request fails or returns a non-200 status.
        """
        logger.debug("Fetching change detection results for chip (%s, %s)", cx, cy)
        segments_resp = self._get(self.segments_url(cx, cy))
        predictions_resp = self._get(self.predictions_url(cx, cy))
        if segments_resp is None or predictions_resp is None:
            return None

        statuses = (segments_resp.status_code, predictions_resp.status_code)
        if not all(code in _SUCCESS_STATUS_CODES for code in statuses):
            logger.error(
                "Problem retrieving change detection results for chip (%s, %s): "
                "segments HTTP %d, predictions HTTP %d",
                cx,
                cy,
                statuses[0],
                statuses[1],
            )
            return None

        segments = self._parse_body(segments_resp)
        predictions = self._parse_body(predictions_resp)
        if segments is None or predictions is None:
            return None

        logger.info(
            "Fetched %d segments and %d predictions for chip (%s, %s)",
            len(segments),
            len(predictions),
            cx,
            cy,
        )
        return ChipResults(
            segments=segments_sorted(segments, "sday"), predictions=predictions
        )

    def check_status(self) -> ServiceStatus:
        """Check that the results service is reachable.

        Never raises; returns ``available=False`` with a message instead.
        """
        try:
            resp = self._session.get(self._config.nemo_host, timeout=_STATUS_TIMEOUT)
        except requests.RequestException as exc:
            return ServiceStatus(
                available=False, message=f"Results service unreachable: {exc}"
            )
        if resp.status_code < 500:
            return ServiceStatus(available=True)
        return ServiceStatus(
            available=False,
            message=f"Results service returned HTTP {resp.status_code}",
        )
