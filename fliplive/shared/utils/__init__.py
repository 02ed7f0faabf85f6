"""
Utility helpers for shared packages.
"""

from .timeutils import utc_now

__all__ = [
    "utc_now",
]
