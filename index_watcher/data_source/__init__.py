"""
Quote fetching module for index snapshots.

This module fetches a single index quote from the primary HTTP source,
falls back to synthetic data when that source is unavailable, and
normalizes both into immutable Snapshot records.
"""

from .fetcher import QuoteFetcher
from .models import Snapshot, calculate_change_percent, reaches

__all__ = ["QuoteFetcher", "Snapshot", "calculate_change_percent", "reaches"]
