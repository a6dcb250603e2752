"""Upstream schema checks shared by the dataset tidiers."""

import pandas as pd


class SchemaError(ValueError):
    """Raised when an upstream CSV no longer carries the expected columns."""

    def __init__(self, dataset: str, missing: list[str]) -> None:
        super().__init__(f"{dataset}: missing required column(s): {', '.join(missing)}")
        self.dataset = dataset
        self.missing = missing


def require_columns(data: pd.DataFrame, columns: list[str], dataset: str) -> None:
    """Raise SchemaError listing every required column absent from data."""
    missing = [c for c in columns if c not in data.columns]
    if missing:
        raise SchemaError(dataset, missing)
