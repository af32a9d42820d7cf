"""
Period validation for Last.fm top-track queries
"""
from typing import Tuple

from lastfm_embed.errors import InvalidPeriodError

DEFAULT_PERIOD = "1month"

# "6month " keeps the trailing space Last.fm documents for this window.
PERIODS: Tuple[str, ...] = ("overall", "7day", "1month", "3month", "6month ", "12month")


def is_period(raw: str) -> bool:
    return raw in PERIODS


def validate_period(raw: str) -> str:
    """
    Narrow a free-form string to one of the recognized aggregation windows.

    Matching is exact and case-sensitive; nothing is trimmed or lowercased.

    Args:
        raw: Period string from the query

    Returns:
        The same string, once known to be valid

    Raises:
        InvalidPeriodError: If the string is not a recognized period
    """
    if not isinstance(raw, str) or not is_period(raw):
        raise InvalidPeriodError(f"invalid period: {raw!r}")
    return raw
