"""
Reader — all parquet reads go through here.

No other module should call pl.read_parquet directly.

observations.parquet is long format, one row per (signal, sample):
    signal_id   str    which channel
    signal_0    num    sample index / timestamp (ordering axis)
    value       float  observed value
    cohort      str    optional grouping (one separation per cohort)
"""

import polars as pl
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np


REQUIRED_COLUMNS = ('signal_id', 'signal_0', 'value')

# Separation outputs land under <output_dir>/ica/
OUTPUT_SUBDIR = 'ica'


def load_observations(data_path: str) -> pl.DataFrame:
    """Load observations.parquet from a file or data directory, sorted by signal_0."""
    p = Path(data_path)
    if p.is_file() and p.suffix == '.parquet':
        df = pl.read_parquet(str(p))
    elif (p / 'observations.parquet').exists():
        df = pl.read_parquet(str(p / 'observations.parquet'))
    else:
        raise FileNotFoundError(f"No observations.parquet in {data_path}")

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"observations missing required columns: {missing}")

    return df.sort('signal_0')


def observations_to_matrix(
    df: pl.DataFrame,
) -> Tuple[np.ndarray, List[str], np.ndarray]:
    """
    Pivot long-format observations to a signals x samples matrix.

    Rows follow sorted signal_id; columns follow sorted signal_0. Samples
    where any signal is missing or non-finite are dropped so the matrix is
    rectangular and finite.

    Args:
        df: Long-format observations (one cohort)

    Returns:
        (matrix N x M, signal_ids, signal_0 values of the kept samples)
    """
    wide = (
        df.select(['signal_0', 'signal_id', 'value'])
        .with_columns(pl.col('signal_id').cast(pl.Utf8))
        .pivot(values='value', index='signal_0', on='signal_id', aggregate_function='mean')
        .sort('signal_0')
    )

    signal_ids = sorted(c for c in wide.columns if c != 'signal_0')
    matrix = wide.select(signal_ids).to_numpy().astype(np.float64)
    index = wide['signal_0'].to_numpy()

    keep = np.isfinite(matrix).all(axis=1)
    return matrix[keep].T, signal_ids, index[keep]


def output_path(output_dir: str, name: str) -> Path:
    """Path of a stage output by name (<output_dir>/ica/<name>.parquet)."""
    d = Path(output_dir) / OUTPUT_SUBDIR
    d.mkdir(parents=True, exist_ok=True)
    return d / f"{name}.parquet"


def load_output(output_dir: str, name: str) -> Optional[pl.DataFrame]:
    """Load a stage output by name, or None if it has not been written."""
    path = Path(output_dir) / OUTPUT_SUBDIR / f"{name}.parquet"
    if path.exists():
        return pl.read_parquet(str(path))
    return None
