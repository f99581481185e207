"""Pandera schemas for the tables passed between pancore stages."""

import pandera as pa
from pandera.typing import Index, Series

from .enums import GeneLabel


class GeneCountsSchema(pa.DataFrameModel):
    """Schema for a loaded gene count table."""
    gene: Series[str] = pa.Field(nullable=False, coerce=True, description="Gene identifier.")
    count: Series[int] = pa.Field(ge=0, description="Observed count summed over all count columns.")


class LabelledGenesSchema(GeneCountsSchema):
    """Schema for the output of label_genes."""
    label: Series[str] = pa.Field(isin=[str(label) for label in GeneLabel], coerce=True)


class ErrorCurvesSchema(pa.DataFrameModel):
    """Schema for the four misclassification curves of a calibration run."""
    threshold: Index[int] = pa.Field(ge=0)
    core_as_notcore: Series[float] = pa.Field(ge=0, le=1)
    notcore_as_core: Series[float] = pa.Field(ge=0, le=1)
    rare_as_notrare: Series[float] = pa.Field(ge=0, le=1)
    notrare_as_rare: Series[float] = pa.Field(ge=0, le=1)
