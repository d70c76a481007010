"""
Writer — all parquet writes go through here.

No other module should call df.write_parquet directly.
"""

import polars as pl
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np

from fastsep.io.reader import output_path


def matrix_to_frame(
    matrix: np.ndarray,
    row_labels: Sequence,
    column_labels: Sequence,
    row_name: str,
    column_name: str,
    extra: Optional[Dict[str, object]] = None,
) -> pl.DataFrame:
    """
    Flatten a 2-D matrix to long format.

    Args:
        matrix: R x C array
        row_labels: R labels (e.g. component indices)
        column_labels: C labels (e.g. signal ids)
        row_name: Column name for row labels
        column_name: Column name for column labels
        extra: Constant columns to add (e.g. {'cohort': 'unit_1'})

    Returns:
        DataFrame with columns [*extra, row_name, column_name, 'value']
    """
    n_rows, n_cols = matrix.shape
    data = {
        row_name: np.repeat(np.asarray(row_labels), n_cols),
        column_name: np.tile(np.asarray(column_labels), n_rows),
        'value': np.asarray(matrix, dtype=np.float64).ravel(),
    }
    df = pl.DataFrame(data)

    if extra:
        df = df.with_columns([pl.lit(v).alias(k) for k, v in extra.items()])
        df = df.select([*extra.keys(), row_name, column_name, 'value'])

    return df


def _safe_write(df: pl.DataFrame, path: Path, verbose: bool = True, metadata: dict = None) -> bool:
    """
    Guard against writing invalid parquet files.

    Returns True if a file was written, False if skipped.
    """
    if df is None:
        return False

    if len(df.columns) == 0:
        if verbose:
            print(f"  !! Skipped {path} (empty schema — 0 columns)")
        return False

    kw = {"metadata": metadata} if metadata else {}

    if df.height == 0:
        # Schema-only parquet: columns defined, 0 rows.
        df.head(0).write_parquet(str(path), **kw)
        return True

    df.write_parquet(str(path), **kw)
    return True


def write_output(
    df: pl.DataFrame,
    output_dir: str,
    name: str,
    verbose: bool = True,
    metadata: dict = None,
) -> Optional[Path]:
    """
    Write a stage output to <output_dir>/ica/<name>.parquet.

    Args:
        df: DataFrame to write (None or empty-schema → skip)
        output_dir: Output root (files land in output_dir/ica/)
        name: Output name (e.g. 'unmixing', 'components')
        verbose: Print path on write
        metadata: Optional Parquet file-level key-value metadata

    Returns:
        Path to written file, or None if skipped
    """
    path = output_path(output_dir, name)

    if not _safe_write(df, path, verbose=verbose, metadata=metadata):
        return None

    if verbose:
        print(f"  -> {path} ({len(df)} rows)")

    return path


def concat_frames(frames: List[pl.DataFrame]) -> Optional[pl.DataFrame]:
    """Vertically concatenate per-cohort frames (None when there are none)."""
    frames = [f for f in frames if f is not None]
    if not frames:
        return None
    return pl.concat(frames, how='vertical_relaxed')
