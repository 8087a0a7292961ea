"""Utility helpers."""
from presence_sync.utils.batching import chunked, sample_ids
from presence_sync.utils.datetime_helpers import ensure_utc, utc_now

__all__ = ["chunked", "sample_ids", "ensure_utc", "utc_now"]
