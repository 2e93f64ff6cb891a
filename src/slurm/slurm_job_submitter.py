import logging
import os
import shlex
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel

from data.utils import run_cmd
from slurm.edger_command import render_command, strip_trailing_slash

logger = logging.getLogger(__name__)


class SlurmJobSubmitter(BaseModel):
    """Submit commands as jobs to a SLURM cluster system. :no-index:

    This class renders an `sbatch` call that runs a single command on one node and
    submits it. The command is passed to `sbatch` directly, so it must start with
    an executable script.

    Args:
        job_name: Name of the job (`-J`).
        output: File receiving the job's stdout (`-o`).
        error: File receiving the job's stderr (`-e`).
        cpus: Number of CPU cores requested (`-c`).

    Attributes:
        job_name: Name of the job.
        output: Path of the job's stdout file.
        error: Path of the job's stderr file.
        cpus: Number of CPU cores requested.
    """

    job_name: str
    output: str
    error: str
    cpus: int = 1

    @classmethod
    def from_outdir(
        cls, outdir: Union[str, Path], cpus: int = 1
    ) -> "SlurmJobSubmitter":
        """Build a submitter for a job writing its results to `outdir`.

        The job is named after the output directory, and its stdout and stderr
        files are placed next to it:

            outdir = "results/edgeR_output"
                --> -J edgeR_output
                    -o results/slurm-edgeR_output.out
                    -e results/slurm-edgeR_output.err

        Args:
            outdir: Output directory of the job. A trailing "/" is ignored.
            cpus: Number of CPU cores requested.
        """
        outdir = strip_trailing_slash(os.path.expanduser(str(outdir)))
        outdir_base = os.path.basename(outdir)
        outdir_parent = os.path.dirname(outdir) or "."

        return cls(
            job_name=outdir_base,
            output=os.path.join(outdir_parent, f"slurm-{outdir_base}.out"),
            error=os.path.join(outdir_parent, f"slurm-{outdir_base}.err"),
            cpus=cpus,
        )

    def command(self, command: str) -> str:
        """Return the `sbatch` call that submits `command`.

        Args:
            command: Command to run, typically a call to an R or Python script.

        Returns:
            str: `sbatch -c <cpus> -e <error> -J <job_name> -o <output> <command>`
        """
        sbatch = render_command(
            "sbatch",
            [
                ("-c", str(self.cpus)),
                ("-e", self.error),
                ("-J", self.job_name),
                ("-o", self.output),
            ],
        )
        return f"{sbatch} {command.strip()}"

    def submit(self, command: str, log_path: Optional[Path] = None) -> str:
        """Submit job to SLURM cluster.

        Blocks until `sbatch` returns, which happens once the job is queued, not
        when it finishes.

        Args:
            command: Command to run, typically a call to an R or Python script.
            log_path: Optional path to store stdout and stderr logs from the
                sbatch command itself (not the job's output).

        Returns:
            str: Standard output of `sbatch`.

        Raises:
            subprocess.CalledProcessError: If `sbatch` exits with a non-zero code.
            FileNotFoundError: If `sbatch` is not available.
        """
        sbatch_command = self.command(command)
        logger.info(f"Submitting SLURM job {self.job_name}")
        logger.debug(sbatch_command)

        return run_cmd(cmd=shlex.split(sbatch_command), log_path=log_path)["stdout"]
