import logging
from pathlib import Path
from typing import Iterable, Optional, Union

import pandas as pd

from components.dge_list import DGEList

logger = logging.getLogger(__name__)

DESCRIPTION_COLS = ("GeneSymbol", "Description")


def write_gct(
    counts: pd.DataFrame,
    save_path: Union[str, Path],
    descriptions: Optional[Iterable[str]] = None,
) -> None:
    """Write an expression matrix in GCT (version 1.2) format.

    The GCT format is a tab-delimited text file with two header lines (the version
    tag and the matrix dimensions) followed by a table whose first two columns are
    the feature name and its description:

        #1.2
        <n_features>\t<n_samples>
        Name\tDescription\t<sample_1>\t...\t<sample_n>
        <feature>\t<description>\t<value_1>\t...\t<value_n>

    Args:
        counts: Expression matrix, features as rows and samples as columns.
        save_path: Path of the file to write. Its parent directory must exist.
        descriptions: One description per feature. Defaults to the feature names.

    Returns:
        None

    Raises:
        OSError: If the file cannot be written.
    """
    descriptions = pd.Series(
        list(descriptions) if descriptions is not None else list(counts.index),
        index=counts.index,
        name="Description",
    )
    gct_df = pd.concat([descriptions, counts], axis=1)

    with Path(save_path).expanduser().open("w") as fp:
        fp.write("#1.2\n")
        fp.write(f"{counts.shape[0]}\t{counts.shape[1]}\n")
        gct_df.to_csv(fp, sep="\t", index_label="Name")


def write_matrix(matrix: pd.DataFrame, save_path: Union[str, Path]) -> None:
    """Write a numeric matrix as a tab-delimited table, keeping row and column labels.

    The header line starts with an empty cell above the row labels, so the file can
    be read back in R with `read.table(..., header=TRUE, row.names=1)`.

    Args:
        matrix: Matrix to write (e.g. a design or a contrast matrix).
        save_path: Path of the file to write. Its parent directory must exist.

    Raises:
        OSError: If the file cannot be written.
    """
    matrix.to_csv(save_path, sep="\t", index_label="")


def write_table(df: pd.DataFrame, save_path: Union[str, Path]) -> None:
    """Write an annotation table, tab-delimited, with header and without row labels."""
    df.to_csv(save_path, sep="\t", index=False)


def write_lines(lines: Iterable[str], save_path: Union[str, Path]) -> None:
    """Write one item per line."""
    Path(save_path).expanduser().write_text("".join(f"{line}\n" for line in lines))


def write_dge_list(
    dge_list: DGEList,
    exprs_file: Union[str, Path],
    fdata_file: Union[str, Path],
    pdata_file: Union[str, Path],
    group_file: Union[str, Path],
    group_levels_file: Union[str, Path],
    description_col: Optional[str] = None,
) -> None:
    """Export a DGEList to the flat files read by the edgeR command line script.

    Five files are written (and overwritten if present):
        - exprs_file: counts in GCT format.
        - fdata_file: feature annotation.
        - pdata_file: sample annotation.
        - group_file: group label of each sample, one per line, in sample order.
        - group_levels_file: levels of the grouping factor, one per line.

    Args:
        dge_list: Dataset to export.
        exprs_file: Path of the GCT counts file.
        fdata_file: Path of the feature annotation file.
        pdata_file: Path of the sample annotation file.
        group_file: Path of the sample group file.
        group_levels_file: Path of the group levels file.
        description_col: Column of the feature annotation used as GCT description.
            By default the first of "GeneSymbol" and "Description" present in the
            feature annotation is used, or the feature names if there is none.

    Returns:
        None

    Raises:
        KeyError: If `description_col` is not a column of the feature annotation.
        OSError: If any of the files cannot be written. Parent directories are
            not created.
    """
    # 0. Feature descriptions for the GCT file
    if description_col is None:
        description_col = next(
            (c for c in DESCRIPTION_COLS if c in dge_list.genes.columns), None
        )
    descriptions = (
        dge_list.genes[description_col].astype(str).tolist()
        if description_col is not None
        else None
    )

    # 1. Counts
    write_gct(dge_list.counts, exprs_file, descriptions=descriptions)

    # 2. Feature and sample annotations
    write_table(dge_list.genes, fdata_file)
    write_table(dge_list.samples, pdata_file)

    # 3. Grouping factor
    write_lines(dge_list.group.astype(str), group_file)
    write_lines(dge_list.group_levels.astype(str), group_levels_file)

    logger.debug(
        f"DGEList written to {exprs_file}, {fdata_file}, {pdata_file}, {group_file}"
        f" and {group_levels_file}"
    )
