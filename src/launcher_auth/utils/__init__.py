"""Utilities"""

from launcher_auth.utils.time import (
    Clock,
    expires_after,
    format_timestamp,
    parse_timestamp,
    utc_now,
)

__all__ = [
    "Clock",
    "utc_now",
    "parse_timestamp",
    "format_timestamp",
    "expires_after",
]
