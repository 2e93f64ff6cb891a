import pandas as pd
import pytest

from components.dge_list import DGEList

SAMPLES = [f"s{i}" for i in range(1, 11)]
GENES = [f"gene{i}" for i in range(1, 11)]
GROUPS = ["Control"] * 5 + ["Treatment"] * 5


@pytest.fixture
def counts() -> pd.DataFrame:
    return pd.DataFrame(
        [[(i * 7 + j * 3) % 11 for j in range(10)] for i in range(10)],
        index=GENES,
        columns=SAMPLES,
    )


@pytest.fixture
def dge_list(counts) -> DGEList:
    genes = pd.DataFrame(
        {"Feature": GENES, "GeneSymbol": [f"SYM{i}" for i in range(1, 11)]},
        index=GENES,
    )
    return DGEList(counts=counts, genes=genes, group=GROUPS)


@pytest.fixture
def design() -> pd.DataFrame:
    # intercept + group indicator, named after the group levels
    return pd.DataFrame(
        {"Control": [1] * 10, "Treatment": [0] * 5 + [1] * 5}, index=SAMPLES
    )


@pytest.fixture
def contrast(design) -> pd.DataFrame:
    return pd.DataFrame({"Treatment": [0, 1]}, index=design.columns)


@pytest.fixture
def fake_sbatch(monkeypatch):
    """Replace process execution in the submitter, recording the calls made."""
    calls = []

    def run_cmd(cmd, log_path=None):
        calls.append(list(cmd))
        return {"stdout": "Submitted batch job 4242\n", "stderr": ""}

    monkeypatch.setattr("slurm.slurm_job_submitter.run_cmd", run_cmd)
    return calls
