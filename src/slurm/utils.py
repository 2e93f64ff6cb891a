import logging
import os
import re
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional, Union

import pandas as pd
from pydantic.dataclasses import dataclass
from tqdm.rich import tqdm

from components.dge_list import DGEList
from slurm.edger_command import EDGER_SCRIPT, edger_command
from slurm.slurm_job_submitter import SlurmJobSubmitter

logger = logging.getLogger(__name__)

JOB_ID_PATTERN = re.compile(r"Submitted batch job (\d+)")


class OverwritePolicy(str, Enum):
    """What to do when the output directory of a job already exists."""

    ASK = "ask"
    YES = "yes"
    NO = "no"


@dataclass
class Submitted:
    """A job that was handed over to SLURM.

    Attributes:
        command: The `sbatch` command line that was run.
        output: Standard output of `sbatch`.
    """

    command: str
    output: str

    @property
    def job_id(self) -> Optional[int]:
        """SLURM job ID, parsed from `sbatch` output."""
        match = JOB_ID_PATTERN.search(self.output)
        return int(match.group(1)) if match else None


@dataclass
class SkippedExisting:
    """A job that was not submitted because its output directory exists."""

    outdir: str


SubmissionResult = Union[Submitted, SkippedExisting]


def ask_overwrite(
    outdir: Union[str, Path], prompt: Callable[[str], str] = input
) -> bool:
    """Ask whether an existing output directory may be overwritten.

    Prompts until the answer is valid: "y" means yes, "n", "N" or an empty answer
    mean no. Any other answer is reported and the question is asked again, with no
    limit on the number of attempts.

    Args:
        outdir: Existing output directory.
        prompt: Function that shows a message and returns one line of input. End of
            input counts as an empty answer.

    Returns:
        bool: Whether the directory may be overwritten.
    """
    msg = f"Directory {outdir} exists. Overwritte(y/N)?[N]"
    while True:
        try:
            ans = prompt(msg)
        except EOFError:
            ans = ""

        if ans in ("", "n", "N"):
            return False
        if ans == "y":
            return True
        logger.warning(f"Invalid input {ans}")


def resolve_overwrite(
    overwrite: Union[str, OverwritePolicy],
    outdir: Union[str, Path],
    prompt: Callable[[str], str] = input,
) -> bool:
    """Decide whether a job writing to `outdir` may overwrite it.

    With "ask", the user is only prompted if `outdir` exists; a missing directory
    has nothing to overwrite. "yes" and "no" are returned as they are.

    Raises:
        ValueError: If `overwrite` is not a valid policy.
    """
    outdir = os.path.expanduser(str(outdir))
    overwrite = OverwritePolicy(overwrite)
    if overwrite is OverwritePolicy.ASK:
        return ask_overwrite(outdir, prompt) if os.path.isdir(outdir) else True
    return overwrite is OverwritePolicy.YES


def slurm_edger_command(
    dge_list: DGEList,
    design_matrix: pd.DataFrame,
    contrast_matrix: pd.DataFrame,
    outfile_prefix: Optional[str] = None,
    outdir: str = "edgeR_output",
    mps: bool = False,
    script: str = EDGER_SCRIPT,
) -> str:
    """Return the SLURM command that runs the edgeR script.

    Wraps `edger_command` (which writes the input files of the script) in an
    `sbatch` call. The job is named after the output directory, and its stdout
    and stderr files are placed next to it (see `SlurmJobSubmitter.from_outdir`).

    Args:
        dge_list: Dataset with counts, feature and sample annotations and groups.
        design_matrix: Design matrix to model the data.
        contrast_matrix: Contrast matrix matching the design matrix.
        outfile_prefix: Prefix of the output files. If None, temporary files are
            created.
        outdir: Output directory of the edgeR script.
        mps: Whether molecular-phenotyping analysis is run.
        script: Path of the edgeR script.

    Returns:
        str: The `sbatch` command line.
    """
    outdir = os.path.expanduser(str(outdir))
    command = edger_command(
        dge_list=dge_list,
        design_matrix=design_matrix,
        contrast_matrix=contrast_matrix,
        outfile_prefix=outfile_prefix,
        outdir=outdir,
        mps=mps,
        script=script,
    )
    return SlurmJobSubmitter.from_outdir(outdir).command(command)


def slurm_edger(
    dge_list: DGEList,
    design_matrix: pd.DataFrame,
    contrast_matrix: pd.DataFrame,
    outfile_prefix: Optional[str] = None,
    outdir: str = "edgeR_output",
    overwrite: Union[str, OverwritePolicy] = OverwritePolicy.ASK,
    mps: bool = False,
    script: str = EDGER_SCRIPT,
    prompt: Callable[[str], str] = input,
) -> SubmissionResult:
    """Send an edgeR analysis job to SLURM.

    Args:
        dge_list: Dataset with counts, feature and sample annotations and groups.
        design_matrix: Design matrix to model the data.
        contrast_matrix: Contrast matrix matching the design matrix.
        outfile_prefix: Prefix of the output files. It can include directories,
            e.g. "data/outfile-". If None, temporary files are created.
        outdir: Output directory of the edgeR script.
        overwrite: If "ask", the user is asked before an existing output directory
            is overwritten. If "yes", the job is started and an existing directory
            is overwritten anyway. If "no" and the output directory exists, the
            job is not started.
        mps: Whether molecular-phenotyping analysis is run.
        script: Path of the edgeR script.
        prompt: Input function used when asking the user.

    Returns:
        SubmissionResult: `Submitted` with the `sbatch` command and its output, or
            `SkippedExisting` if the job was not started. In the latter case no
            file is written.

    Raises:
        DesignMatrixError: If the design or contrast matrix does not conform.
        subprocess.CalledProcessError: If `sbatch` fails.

    Note:
        Even if the output directory is empty, the job is not started when the
        answer is no.
    """
    outdir = os.path.expanduser(str(outdir))
    if not resolve_overwrite(overwrite, outdir, prompt) and os.path.isdir(outdir):
        logger.info(f"Output directory {outdir} exists, job not submitted.")
        return SkippedExisting(outdir=str(outdir))

    command = edger_command(
        dge_list=dge_list,
        design_matrix=design_matrix,
        contrast_matrix=contrast_matrix,
        outfile_prefix=outfile_prefix,
        outdir=outdir,
        mps=mps,
        script=script,
    )
    submitter = SlurmJobSubmitter.from_outdir(outdir)
    output = submitter.submit(command)

    return Submitted(command=submitter.command(command), output=output)


def submit_contrasts(
    dge_list: DGEList,
    design_matrix: pd.DataFrame,
    contrasts: Dict[str, pd.DataFrame],
    outdir_root: Path,
    prefix_root: Optional[Path] = None,
    overwrite: Union[str, OverwritePolicy] = OverwritePolicy.ASK,
    mps: bool = False,
    script: str = EDGER_SCRIPT,
    prompt: Callable[[str], str] = input,
) -> Dict[str, SubmissionResult]:
    """Submit one edgeR job per contrast matrix.

    Each job writes to its own output directory, `outdir_root/<name>`, so jobs are
    named after their contrast. Input files are named `prefix_root/<name>-*` or
    are temporary if `prefix_root` is None.

    Args:
        dge_list: Dataset with counts, feature and sample annotations and groups.
        design_matrix: Design matrix shared by all jobs.
        contrasts: Contrast matrices by name.
        outdir_root: Parent directory of the output directories. It must exist,
            since SLURM writes the job logs there.
        prefix_root: Directory of the exported input files.
        overwrite: Overwrite policy applied to each job (see `slurm_edger`).
        mps: Whether molecular-phenotyping analysis is run.
        script: Path of the edgeR script.
        prompt: Input function used when asking the user.

    Returns:
        Dict[str, SubmissionResult]: Result of each submission, by contrast name.
    """
    results = {}
    for name, contrast_matrix in tqdm(contrasts.items()):
        results[name] = slurm_edger(
            dge_list=dge_list,
            design_matrix=design_matrix,
            contrast_matrix=contrast_matrix,
            outfile_prefix=(
                str(prefix_root.joinpath(name)) if prefix_root is not None else None
            ),
            outdir=str(outdir_root.joinpath(name)),
            overwrite=overwrite,
            mps=mps,
            script=script,
            prompt=prompt,
        )

    submitted = sum(isinstance(r, Submitted) for r in results.values())
    logger.info(f"{submitted} of {len(results)} jobs submitted.")

    return results
