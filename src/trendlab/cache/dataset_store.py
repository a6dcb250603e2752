"""File cache for downloaded CSVs and tidy Parquet snapshots.

Raw upstream CSVs are kept byte-for-byte under fixed filenames directly in
the data directory; tidy tables produced by the pipelines are stored as
Parquet next to them.

Storage structure:
    data/{filename}.csv
    data/tidy/{name}.parquet

Example:
    data/nypd_shooting_incidents.csv
    data/time_series_covid19_confirmed_US.csv
    data/tidy/shootings.parquet

All I/O operations are async-compatible using asyncio.to_thread for
non-blocking execution.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

logger = logging.getLogger(__name__)


class DatasetStore:
    """Async file cache for raw CSV downloads and tidy tables.

    Raw files are never overwritten unless asked to: the shooting export is
    refreshed explicitly, COVID archives are written once.

    Args:
        base_path: Root directory for cache. Defaults to 'data/'.
    """

    def __init__(self, base_path: str | Path = "data") -> None:
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def raw_path(self, filename: str) -> Path:
        """Path of a raw download. Filenames are used as-is."""
        return self.base_path / filename

    def tidy_path(self, name: str) -> Path:
        """Path of a tidy Parquet snapshot."""
        return self.base_path / "tidy" / f"{name}.parquet"

    async def exists(self, filename: str) -> bool:
        """Check if a raw download is cached."""
        return await asyncio.to_thread(self.raw_path(filename).exists)

    async def write_raw(
        self,
        filename: str,
        content: str,
        overwrite: bool = False,
    ) -> Path:
        """Write a raw CSV download to the cache.

        Writes to a temporary sibling first, then renames, so an interrupted
        download never leaves a truncated file under the cached name.

        Args:
            filename: Fixed cache filename
            content: CSV text
            overwrite: If False (default), raises error if file exists.

        Returns:
            Path to the written file

        Raises:
            FileExistsError: If file exists and overwrite=False
            ValueError: If content is empty
        """
        if not content.strip():
            raise ValueError("Cannot write empty content to cache")

        file_path = self.raw_path(filename)

        if file_path.exists() and not overwrite:
            raise FileExistsError(
                f"Cache file already exists: {file_path}. "
                "Use overwrite=True to replace."
            )

        def _write() -> None:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = file_path.with_name(file_path.name + ".part")
            tmp_path.write_text(content, encoding="utf-8")
            tmp_path.replace(file_path)

        await asyncio.to_thread(_write)
        logger.debug("Cached %s (%d chars)", file_path, len(content))
        return file_path

    async def read_raw(self, filename: str, **read_csv_kwargs: Any) -> pd.DataFrame | None:
        """Read a cached CSV into a DataFrame.

        Args:
            filename: Fixed cache filename
            **read_csv_kwargs: Passed through to pandas.read_csv

        Returns:
            DataFrame if file exists, None otherwise. Parse errors propagate.
        """
        file_path = self.raw_path(filename)

        if not file_path.exists():
            return None

        def _read() -> pd.DataFrame:
            return pd.read_csv(file_path, **read_csv_kwargs)

        return await asyncio.to_thread(_read)

    async def write_tidy(self, name: str, data: pd.DataFrame) -> Path:
        """Write a tidy table to Parquet, replacing any previous snapshot.

        Raises:
            ValueError: If data is empty
        """
        if data.empty:
            raise ValueError("Cannot write empty DataFrame to cache")

        file_path = self.tidy_path(name)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        def _write() -> None:
            table = pa.Table.from_pandas(data, preserve_index=False)
            pq.write_table(
                table,
                file_path,
                compression="snappy",
                use_dictionary=True,
                write_statistics=True,
            )

        await asyncio.to_thread(_write)
        return file_path

    async def read_tidy(self, name: str) -> pd.DataFrame | None:
        """Read a tidy Parquet snapshot.

        Returns:
            DataFrame if the snapshot exists and is readable, None otherwise
        """
        file_path = self.tidy_path(name)

        if not file_path.exists():
            return None

        def _read() -> pd.DataFrame | None:
            try:
                return pq.read_table(file_path).to_pandas()
            except Exception as e:
                logger.warning(
                    "Failed to read tidy snapshot %s: %s. "
                    "File may be corrupted — returning None.",
                    file_path, e,
                )
                return None

        return await asyncio.to_thread(_read)

    async def stats(self) -> dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dictionary with:
                - raw_files: Sorted list of cached CSV filenames
                - tidy_tables: Sorted list of tidy snapshot names
                - size_bytes: Total size on disk
        """
        def _stats() -> dict[str, Any]:
            raw = sorted(self.base_path.glob("*.csv"))
            tidy_dir = self.base_path / "tidy"
            tidy = sorted(tidy_dir.glob("*.parquet")) if tidy_dir.exists() else []
            return {
                "raw_files": [p.name for p in raw],
                "tidy_tables": [p.stem for p in tidy],
                "size_bytes": sum(p.stat().st_size for p in raw + tidy),
            }

        return await asyncio.to_thread(_stats)
