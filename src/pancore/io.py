"""
Table I/O for completeness vectors, gene counts and labelled output.

Input tables are whitespace-delimited with one header line; output tables
are tab-separated.
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pandas as pd
import pandera as pa

from .calibrate import ThresholdResult
from .exceptions import ValidationError
from .schemas import GeneCountsSchema

logger = logging.getLogger(__name__)


def _read_table(path: str | Path) -> pd.DataFrame:
    try:
        return pd.read_csv(
            path,
            sep=r"\s+",
            header=None,
            skiprows=1,
            dtype=str,
            engine="python",
            keep_default_na=False,
            na_filter=False,
        )
    except pd.errors.EmptyDataError as exc:
        raise ValidationError(f"Table {path} has no data rows", {"path": str(path)}) from exc
    except pd.errors.ParserError as exc:
        # Every data row must have as many fields as the first one.
        raise ValidationError(f"Malformed table {path}: {exc}", {"path": str(path)}) from exc


def load_completeness(path: str | Path, column: int = 1) -> np.ndarray:
    """Load completeness percentages and return them as fractions.

    Args:
        path: Whitespace-delimited table with a header line
        column: 1-based index of the completeness column

    Returns:
        Float array of completeness fractions, one per genome
    """
    if column < 1:
        raise ValidationError(f"Completeness column is 1-based, got {column}", {"column": column})

    frame = _read_table(path)
    if column > frame.shape[1]:
        raise ValidationError(
            f"Completeness column {column} not present in {path} ({frame.shape[1]} columns)",
            {"path": str(path), "column": column},
        )

    raw = pd.to_numeric(frame.iloc[:, column - 1], errors="coerce")
    if raw.isna().any():
        rows = (np.flatnonzero(raw.isna().to_numpy()) + 2).tolist()
        raise ValidationError(
            f"Non-numeric completeness values in {path}",
            {"path": str(path), "lines": rows[:10]},
        )

    completeness = raw.to_numpy(dtype=float) / 100.0
    logger.info("Loaded completeness for %d genomes from %s", completeness.size, path)
    return completeness


@pa.check_output(GeneCountsSchema.to_schema())
def load_counts(path: str | Path) -> pd.DataFrame:
    """Load a gene count matrix and sum each gene's count columns.

    Args:
        path: Whitespace-delimited table; first column is the gene identifier

    Returns:
        DataFrame with columns 'gene' and 'count' in input order
    """
    frame = _read_table(path)
    if frame.shape[1] < 2:
        raise ValidationError(f"Count table {path} needs a gene column and at least one count column")

    genes = frame.iloc[:, 0]
    values = frame.iloc[:, 1:].apply(pd.to_numeric, errors="coerce")
    invalid = values.isna() | (values < 0) | (values % 1 != 0)
    if invalid.to_numpy().any():
        bad_rows = np.flatnonzero(invalid.any(axis=1).to_numpy())
        raise ValidationError(
            f"Counts in {path} must be non-negative integers",
            {"path": str(path), "genes": genes.iloc[bad_rows[:10]].tolist()},
        )

    counts = pd.DataFrame({"gene": genes, "count": values.sum(axis=1).astype(np.int64)})
    duplicated = counts["gene"].duplicated(keep="last")
    if duplicated.any():
        logger.warning("%d duplicate gene identifiers in %s; keeping the last row", int(duplicated.sum()), path)
        counts = counts[~duplicated]

    logger.info("Loaded counts for %d genes from %s", len(counts), path)
    return counts.reset_index(drop=True)


def write_labels(labelled: pd.DataFrame, path: str | Path) -> Path:
    """Write the ``gene``/``count``/``label`` table as TSV."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    labelled[["gene", "count", "label"]].to_csv(path, sep="\t", index=False)
    return path


def write_curves(result: ThresholdResult, path: str | Path) -> Path:
    """Write the four error curves, one row per candidate threshold."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    result.curves.reset_index().to_csv(path, sep="\t", index=False, float_format="%.6g")
    return path
