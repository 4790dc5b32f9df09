"""
Time range utilities for Sumo Logic searches.

Search jobs are submitted with local wall-clock bounds plus an explicit
``timeZone`` parameter, so generated timestamps carry no offset.
"""

import re
from datetime import datetime, timedelta
from typing import Mapping, Optional, Tuple
from zoneinfo import ZoneInfo
import logging

logger = logging.getLogger(__name__)


class TimeParser:
    """Helpers for building and checking search time bounds."""

    # Format of generated bounds, interpreted in the job's time zone
    SEARCH_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"

    # Default look-back when the caller gives no start time
    DEFAULT_LOOKBACK = timedelta(days=1)

    ISO_PATTERNS = [
        re.compile(r'^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d{1,6})?Z?$', re.IGNORECASE),
        re.compile(r'^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d{1,6})?[+-]\d{2}:?\d{2}$'),
        re.compile(r'^\d{4}-\d{2}-\d{2}$'),
    ]

    @classmethod
    def is_iso_format(cls, time_str: str) -> bool:
        """Check if time string is in ISO 8601 format."""
        return any(pattern.match(time_str) for pattern in cls.ISO_PATTERNS)

    @classmethod
    def now(cls, time_zone: str) -> datetime:
        """Current wall-clock time in ``time_zone``."""
        return datetime.now(ZoneInfo(time_zone))

    @classmethod
    def to_search_format(cls, dt: datetime) -> str:
        """Format a datetime as a search bound.

        Args:
            dt: Datetime already expressed in the job's time zone

        Returns:
            Time string like ``2024-03-01T09:30:00``
        """
        return dt.strftime(cls.SEARCH_TIME_FORMAT)

    @classmethod
    def default_time_range(cls, time_zone: str, now: Optional[datetime] = None) -> Tuple[str, str]:
        """Return the default ``(from, to)`` pair: the last 24 hours up to now."""
        now = now or cls.now(time_zone)
        return (
            cls.to_search_format(now - cls.DEFAULT_LOOKBACK),
            cls.to_search_format(now),
        )

    @classmethod
    def resolve_time_range(
        cls,
        time_range: Optional[Mapping[str, Optional[str]]],
        time_zone: str,
        now: Optional[datetime] = None
    ) -> Tuple[str, str]:
        """Merge caller supplied bounds over the defaults.

        Each missing (or empty) bound falls back to its own default, so a
        caller may give only ``from`` or only ``to``. Supplied values are
        passed through unchanged.

        Args:
            time_range: Mapping with optional ``from`` and ``to`` keys
            time_zone: IANA zone used to compute the defaults
            now: Reference time, defaults to the current time

        Returns:
            Tuple of ``(from, to)`` strings for the search job
        """
        default_from, default_to = cls.default_time_range(time_zone, now)
        time_range = time_range or {}

        from_time = time_range.get("from") or default_from
        to_time = time_range.get("to") or default_to

        logger.debug(
            "Resolved search time range",
            extra={"from_time": from_time, "to_time": to_time, "time_zone": time_zone}
        )
        return from_time, to_time
