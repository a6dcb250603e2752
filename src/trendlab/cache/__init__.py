"""File cache for trendlab.

Raw upstream CSVs under fixed filenames plus tidy Parquet snapshots.
"""

from trendlab.cache.dataset_store import DatasetStore

__all__ = ["DatasetStore"]
