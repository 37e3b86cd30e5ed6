"""
Core Utilities Package

This package contains utility functions and helpers used throughout the application.

Modules:
    - time: Timestamp conversion and normalization utilities
"""

from core.utils.time import current_utc_datetime, from_unix, split_float_timestamp

__all__ = ["current_utc_datetime", "from_unix", "split_float_timestamp"]
