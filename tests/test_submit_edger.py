import pandas as pd
import pytest

from pipelines.edger_slurm.run.submit_edger import main
from pipelines.edger_slurm.utils import load_dge_list, read_table


@pytest.fixture
def input_files(tmp_path, counts, design, contrast):
    samples = pd.DataFrame(
        {"condition": ["Control"] * 5 + ["Treatment"] * 5, "batch": [1, 2] * 5},
        index=counts.columns,
    )
    genes = pd.DataFrame(
        {"GeneSymbol": [f"SYM{i}" for i in range(1, 11)]}, index=counts.index
    )
    # one extra, unannotated sample in the counts
    counts = counts.assign(s11=0)

    files = {
        "counts": tmp_path / "counts.csv",
        "samples": tmp_path / "samples.csv",
        "genes": tmp_path / "genes.txt",
        "design": tmp_path / "design.txt",
        "contrast": tmp_path / "contrast.txt",
    }
    counts.to_csv(files["counts"])
    samples.iloc[::-1].to_csv(files["samples"])
    genes.iloc[::-1].to_csv(files["genes"], sep="\t")
    design.to_csv(files["design"], sep="\t")
    contrast.to_csv(files["contrast"], sep="\t")
    return files


def test_read_table_separator(input_files):
    assert list(read_table(input_files["counts"]).columns)[:2] == ["s1", "s2"]
    assert list(read_table(input_files["design"]).columns) == ["Control", "Treatment"]


def test_load_dge_list_aligns_annotations(input_files):
    y = load_dge_list(
        input_files["counts"],
        samples_file=input_files["samples"],
        genes_file=input_files["genes"],
        group_col="condition",
    )

    assert list(y.sample_names) == [f"s{i}" for i in range(1, 11)]
    assert list(y.samples["Sample"]) == list(y.sample_names)
    assert list(y.group) == ["Control"] * 5 + ["Treatment"] * 5
    assert list(y.genes["Feature"]) == list(y.counts.index)
    assert y.genes["GeneSymbol"].iloc[0] == "SYM1"


def test_main_submits(tmp_path, input_files, fake_sbatch, capsys):
    outdir = tmp_path / "edgeR_output"
    exit_code = main(
        [
            "--counts", str(input_files["counts"]),
            "--samples", str(input_files["samples"]),
            "--genes", str(input_files["genes"]),
            "--design", str(input_files["design"]),
            "--contrast", str(input_files["contrast"]),
            "--group-col", "condition",
            "--outfile-prefix", f"{tmp_path}/edgeR-",
            "--outdir", str(outdir),
            "--overwrite", "yes",
            "--mps",
        ]
    )

    assert exit_code == 0
    assert len(fake_sbatch) == 1
    assert fake_sbatch[0][-1] == "-mps"
    assert (tmp_path / "edgeR-sampleGroupLevels.txt").read_text() == (
        "Control\nTreatment\n"
    )
    assert "Submitted batch job 4242" in capsys.readouterr().out


def test_main_skips_existing(tmp_path, input_files, fake_sbatch, capsys):
    outdir = tmp_path / "edgeR_output"
    outdir.mkdir()

    main(
        [
            "--counts", str(input_files["counts"]),
            "--samples", str(input_files["samples"]),
            "--design", str(input_files["design"]),
            "--contrast", str(input_files["contrast"]),
            "--group-col", "condition",
            "--outdir", str(outdir),
            "--overwrite", "no",
        ]
    )

    assert fake_sbatch == []
    assert "job not submitted" in capsys.readouterr().out


def test_main_rejects_unknown_policy(input_files):
    with pytest.raises(SystemExit):
        main(
            [
                "--counts", str(input_files["counts"]),
                "--design", str(input_files["design"]),
                "--contrast", str(input_files["contrast"]),
                "--overwrite", "maybe",
            ]
        )
