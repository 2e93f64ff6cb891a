import logging
import os
import shlex
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

import pandas as pd
from pydantic import BaseModel

from components.dge_list import DGEList
from data.io import write_dge_list, write_matrix
from data.utils import temp_prefix

logger = logging.getLogger(__name__)

EDGER_SCRIPT: str = "/pstore/apps/bioinfo/geneexpression/bin/ngsDge_edgeR.Rscript"


class DesignMatrixError(ValueError):
    """Raised when the design or contrast matrix does not conform to the counts."""


class ArtifactPaths(BaseModel):
    """Files exported for one run of the edgeR script.

    All paths are built by appending a fixed suffix to a common prefix, e.g. the
    prefix "data/outfile" gives "data/outfile-counts.gct".
    """

    exprs_file: str
    fdata_file: str
    pdata_file: str
    group_file: str
    group_levels_file: str
    design_file: str
    contrast_file: str

    @classmethod
    def from_prefix(cls, outfile_prefix: Optional[str] = None) -> "ArtifactPaths":
        """Derive the artifact paths from a prefix.

        Args:
            outfile_prefix: Prefix of the output files. It can include directories.
                A single trailing "-" is removed and "~" is expanded. If None, a
                temporary path is used.
        """
        if outfile_prefix is None:
            outfile_prefix = temp_prefix()
        outfile_prefix = os.path.expanduser(str(outfile_prefix))
        if outfile_prefix.endswith("-"):
            outfile_prefix = outfile_prefix[:-1]

        return cls(
            exprs_file=f"{outfile_prefix}-counts.gct",
            fdata_file=f"{outfile_prefix}-featureAnno.txt",
            pdata_file=f"{outfile_prefix}-sampleAnno.txt",
            group_file=f"{outfile_prefix}-sampleGroup.txt",
            group_levels_file=f"{outfile_prefix}-sampleGroupLevels.txt",
            design_file=f"{outfile_prefix}-designMatrix.txt",
            contrast_file=f"{outfile_prefix}-contrastMatrix.txt",
        )

    def files(self) -> List[str]:
        return list(self.model_dump().values())


def strip_trailing_slash(path: Union[str, Path]) -> str:
    """Remove a single trailing "/" from a path."""
    path = str(path)
    return path[:-1] if path.endswith("/") else path


def _is_default_index(index: pd.Index) -> bool:
    """Whether row labels are unset: 0..n-1 (pandas default) or 1..n (R default)."""
    n = len(index)
    if isinstance(index, pd.RangeIndex) and index.start == 0 and index.step == 1:
        return True
    labels = [str(x) for x in index]
    return labels == [str(i) for i in range(1, n + 1)]


def check_design_contrast(
    dge_list: DGEList,
    design_matrix: pd.DataFrame,
    contrast_matrix: pd.DataFrame,
    fill_design_rownames: bool = True,
) -> pd.DataFrame:
    """Check that the design and contrast matrices conform to the counts.

    Checks, in this order:
        1. The design matrix has as many rows as the count matrix has columns.
        2. The row names of the design matrix equal the column names of the count
           matrix (same values, same order).
        3. The contrast matrix has as many rows as the design matrix has columns.

    If the design matrix has no row names (a default integer sequence), they are
    set to the sample names before the second check.

    Args:
        dge_list: Dataset the design matrix refers to.
        design_matrix: Design matrix, one row per sample.
        contrast_matrix: Contrast matrix, one row per design matrix column.
        fill_design_rownames: Whether missing design row names are set to the
            sample names. If False, such a design matrix fails the second check.

    Returns:
        pd.DataFrame: The design matrix, with row names filled in if needed. The
            input is not modified.

    Raises:
        DesignMatrixError: If any of the checks fails.
    """
    sample_names = list(dge_list.sample_names)

    if design_matrix.shape[0] != len(sample_names):
        raise DesignMatrixError(
            "The design matrix must have the same number of rows as the columns of"
            " the count matrix."
        )

    if (
        fill_design_rownames
        and [str(x) for x in design_matrix.index] != sample_names
        and _is_default_index(design_matrix.index)
    ):
        logger.debug("Design matrix has no row names, using the sample names")
        design_matrix = design_matrix.copy()
        design_matrix.index = dge_list.sample_names

    if [str(x) for x in design_matrix.index] != sample_names:
        raise DesignMatrixError(
            "Row names of the design matrix not matching column names of the"
            " expression matrix."
        )

    if design_matrix.shape[1] != contrast_matrix.shape[0]:
        raise DesignMatrixError(
            "The contrast matrix must have the same number of rows as the columns of"
            " the design matrix."
        )

    return design_matrix


def render_command(
    program: str,
    options: Iterable[Tuple[str, Optional[Union[str, Path]]]],
) -> str:
    """Render a command line from a program and its (flag, value) pairs.

    Flags whose value is None are rendered bare. Values are shell-quoted only when
    they contain characters that need it.

    Example:
        >>> render_command("run.R", [("-infile", "a.gct"), ("-writedb", None)])
        'run.R -infile a.gct -writedb'
    """
    tokens: List[str] = [program]
    for flag, value in options:
        tokens.append(flag)
        if value is not None:
            tokens.append(shlex.quote(str(value)))
    return " ".join(tokens)


def edger_command(
    dge_list: DGEList,
    design_matrix: pd.DataFrame,
    contrast_matrix: pd.DataFrame,
    outfile_prefix: Optional[str] = None,
    outdir: str = "edgeR_output",
    mps: bool = False,
    script: str = EDGER_SCRIPT,
    fill_design_rownames: bool = True,
) -> str:
    """Export a DGEList, design and contrast matrices to files and return the
    command that runs the edgeR script on them.

    The design and contrast matrices are checked first (see
    `check_design_contrast`); no file is written if any check fails. Then seven
    files, named after `outfile_prefix`, are written:

        <prefix>-counts.gct, <prefix>-featureAnno.txt, <prefix>-sampleAnno.txt,
        <prefix>-sampleGroup.txt, <prefix>-sampleGroupLevels.txt,
        <prefix>-designMatrix.txt, <prefix>-contrastMatrix.txt

    The command is returned, not run.

    Args:
        dge_list: Dataset with counts, feature and sample annotations and groups.
        design_matrix: Design matrix to model the data.
        contrast_matrix: Contrast matrix matching the design matrix.
        outfile_prefix: Prefix of the output files. It can include directories,
            e.g. "data/outfile-". If None, temporary files are created.
        outdir: Output directory of the edgeR script. "~" is expanded.
        mps: Whether molecular-phenotyping analysis is run.
        script: Path of the edgeR script.
        fill_design_rownames: Whether missing design row names are set to the
            sample names.

    Returns:
        str: The edgeR command line.

    Raises:
        DesignMatrixError: If the design or contrast matrix does not conform.
        OSError: If any of the files cannot be written.

    Examples:
        >>> counts = pd.DataFrame(
        ...     [[i + j for j in range(10)] for i in range(10)],
        ...     index=[f"gene{i}" for i in range(1, 11)],
        ...     columns=[f"s{i}" for i in range(1, 11)],
        ... )
        >>> y = DGEList(counts=counts, group=["Control"] * 5 + ["Treatment"] * 5)
        >>> design = pd.DataFrame(
        ...     {"Control": 1, "Treatment": [0] * 5 + [1] * 5}, index=counts.columns
        ... )
        >>> contrast = pd.DataFrame({"Treatment": [0, 1]}, index=design.columns)
        >>> edger_command(y, design, contrast, outdir="results/edgeR_output")
    """
    outdir = os.path.expanduser(str(outdir))

    # 0. Validate inputs before writing anything
    design_matrix = check_design_contrast(
        dge_list,
        design_matrix,
        contrast_matrix,
        fill_design_rownames=fill_design_rownames,
    )

    # 1. Export data
    paths = ArtifactPaths.from_prefix(outfile_prefix)
    write_dge_list(
        dge_list,
        exprs_file=paths.exprs_file,
        fdata_file=paths.fdata_file,
        pdata_file=paths.pdata_file,
        group_file=paths.group_file,
        group_levels_file=paths.group_levels_file,
    )
    write_matrix(design_matrix, paths.design_file)
    write_matrix(contrast_matrix, paths.contrast_file)

    # 2. Build command
    log_file = f"{strip_trailing_slash(outdir)}.log"
    options = [
        ("-infile", paths.exprs_file),
        ("-designFile", paths.design_file),
        ("-contrastFile", paths.contrast_file),
        ("-sampleGroups", paths.group_file),
        ("-groupLevels", paths.group_levels_file),
        ("-featureAnnotationFile", paths.fdata_file),
        ("-phenoData", paths.pdata_file),
        ("-outdir", outdir),
        ("-log", log_file),
        ("-writedb", None),
    ]
    if mps:
        options.append(("-mps", None))

    command = render_command(script, options)
    logger.debug(f"edgeR command: {command}")

    return command
