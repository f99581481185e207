"""Gene labelling from calibrated thresholds."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pandera as pa

from .enums import GeneLabel
from .schemas import GeneCountsSchema, LabelledGenesSchema


def label_count(count: int, core_threshold: int, rare_threshold: int) -> GeneLabel:
    """Label one count; the core test runs before the rare one."""
    if count >= core_threshold:
        return GeneLabel.CORE
    if count <= rare_threshold:
        return GeneLabel.RARE
    return GeneLabel.MIDDLE


@pa.check_input(pa.DataFrameSchema(GeneCountsSchema.to_schema().columns, strict=False), "counts")
@pa.check_output(LabelledGenesSchema.to_schema())
def label_genes(counts: pd.DataFrame, core_threshold: int, rare_threshold: int) -> pd.DataFrame:
    """Add a ``label`` column to a ``gene``/``count`` table.

    Args:
        counts: DataFrame with columns 'gene', 'count'
        core_threshold: Counts at or above this are core
        rare_threshold: Counts at or below this (and below core) are rare

    Returns:
        Copy of ``counts`` with the label column appended
    """
    labelled = counts.copy()
    values = labelled["count"].to_numpy()
    labelled["label"] = np.select(
        [values >= core_threshold, values <= rare_threshold],
        [str(GeneLabel.CORE), str(GeneLabel.RARE)],
        default=str(GeneLabel.MIDDLE),
    )
    return labelled


def label_summary(labelled: pd.DataFrame) -> dict[str, int]:
    """Number of genes per label, every label present."""
    counts = labelled["label"].value_counts()
    return {str(label): int(counts.get(str(label), 0)) for label in GeneLabel}
