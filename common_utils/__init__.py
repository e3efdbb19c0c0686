"""
Common utilities for the Litex portal
"""
from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Current UTC time as a naive datetime, matching what the database
    columns store.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)
