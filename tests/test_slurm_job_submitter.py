import subprocess

import pytest

from slurm.slurm_job_submitter import SlurmJobSubmitter


@pytest.mark.parametrize(
    "outdir, expected",
    [
        (
            "results/edgeR_output",
            (
                "edgeR_output",
                "results/slurm-edgeR_output.out",
                "results/slurm-edgeR_output.err",
            ),
        ),
        (
            "results/edgeR_output/",
            (
                "edgeR_output",
                "results/slurm-edgeR_output.out",
                "results/slurm-edgeR_output.err",
            ),
        ),
        (
            "edgeR_output",
            ("edgeR_output", "./slurm-edgeR_output.out", "./slurm-edgeR_output.err"),
        ),
    ],
)
def test_from_outdir(outdir, expected):
    submitter = SlurmJobSubmitter.from_outdir(outdir)

    assert (submitter.job_name, submitter.output, submitter.error) == expected
    assert submitter.cpus == 1


def test_command():
    submitter = SlurmJobSubmitter.from_outdir("/data/run1")

    assert submitter.command("script.R -infile a.gct -writedb") == (
        "sbatch -c 1 -e /data/slurm-run1.err -J run1 -o /data/slurm-run1.out"
        " script.R -infile a.gct -writedb"
    )


def test_submit_returns_stdout(fake_sbatch):
    output = SlurmJobSubmitter.from_outdir("/data/run1").submit("script.R -writedb")

    assert output == "Submitted batch job 4242\n"
    assert fake_sbatch == [
        [
            "sbatch",
            "-c",
            "1",
            "-e",
            "/data/slurm-run1.err",
            "-J",
            "run1",
            "-o",
            "/data/slurm-run1.out",
            "script.R",
            "-writedb",
        ]
    ]


def test_submit_propagates_failure(monkeypatch):
    def run_cmd(cmd, log_path=None):
        raise subprocess.CalledProcessError(1, cmd, stderr="sbatch: error")

    monkeypatch.setattr("slurm.slurm_job_submitter.run_cmd", run_cmd)

    with pytest.raises(subprocess.CalledProcessError):
        SlurmJobSubmitter.from_outdir("/data/run1").submit("script.R")
