"""
Utilities to load an expression dataset and its models from files on disk.

The loaded objects are the inputs of `slurm.utils.slurm_edger`: a DGEList built from
a raw counts table and its annotations, and the design and contrast matrices.
"""

import logging
from pathlib import Path
from typing import Optional

import pandas as pd

from components.dge_list import DGEList

logger = logging.getLogger(__name__)


def read_table(file_path: Path) -> pd.DataFrame:
    """Read a table whose first column holds the row labels.

    Files ending in ".csv" are read as comma-separated, anything else as
    tab-separated.
    """
    sep = "," if file_path.suffix == ".csv" else "\t"
    return pd.read_csv(file_path, sep=sep, index_col=0)


def load_dge_list(
    counts_file: Path,
    samples_file: Optional[Path] = None,
    genes_file: Optional[Path] = None,
    group_col: str = "group",
) -> DGEList:
    """Build a DGEList from a raw counts table and its annotations.

    Only samples present in both the counts and the sample annotation are kept, in
    the order of the counts columns. The feature annotation is aligned to the
    counts rows.

    Args:
        counts_file: Raw counts, features as rows and samples as columns.
        samples_file: Sample annotation, samples as rows.
        genes_file: Feature annotation, features as rows.
        group_col: Column of the sample annotation holding the sample groups.

    Returns:
        DGEList: The loaded dataset.

    Raises:
        KeyError: If `group_col` is missing from the sample annotation, or the
            feature annotation lacks some of the features.
    """
    counts_df = read_table(counts_file)
    samples_df, group = None, None

    if samples_file is not None:
        samples_df = read_table(samples_file)
        samples_df.index = samples_df.index.astype(str)
        counts_df.columns = counts_df.columns.astype(str)

        common_samples = [s for s in counts_df.columns if s in samples_df.index]
        if len(common_samples) < counts_df.shape[1]:
            logger.warning(
                f"{counts_df.shape[1] - len(common_samples)} samples without"
                " annotation are dropped."
            )
        counts_df = counts_df.loc[:, common_samples]
        samples_df = samples_df.loc[common_samples, :]
        group = samples_df[group_col]
        samples_df = samples_df.rename_axis("Sample").reset_index()

    genes_df = None
    if genes_file is not None:
        genes_df = read_table(genes_file)
        genes_df.index = genes_df.index.astype(str)
        genes_df = genes_df.loc[counts_df.index.astype(str), :]
        genes_df = genes_df.rename_axis("Feature").reset_index()

    return DGEList(counts=counts_df, genes=genes_df, samples=samples_df, group=group)
