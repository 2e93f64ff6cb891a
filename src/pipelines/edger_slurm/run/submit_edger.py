"""Export a counts table with its annotations and submit an edgeR job to SLURM.

The design and contrast matrices are read from tables whose first column holds the
row names (samples for the design, design columns for the contrast). Tables ending
in ".csv" are comma-separated, anything else is read as tab-separated.

Example:
    $ PYTHONPATH=src python src/pipelines/edger_slurm/run/submit_edger.py \
        --counts data/raw_counts.csv --samples data/samples_annotation.csv \
        --design data/design.txt --contrast data/contrast.txt \
        --outfile-prefix data/edgeR- --outdir results/edgeR_output --overwrite ask
"""

import argparse
import logging
import warnings
from pathlib import Path
from typing import Iterable, Optional

from rich import traceback

from pipelines.edger_slurm.utils import load_dge_list, read_table
from slurm.edger_command import EDGER_SCRIPT
from slurm.utils import OverwritePolicy, Submitted, slurm_edger

_ = traceback.install()
warnings.filterwarnings("ignore")


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--counts", type=Path, required=True, help="Raw counts table")
    parser.add_argument("--design", type=Path, required=True, help="Design matrix")
    parser.add_argument(
        "--contrast", type=Path, required=True, help="Contrast matrix"
    )
    parser.add_argument(
        "--samples", type=Path, help="Sample annotation table", default=None
    )
    parser.add_argument(
        "--genes", type=Path, help="Feature annotation table", default=None
    )
    parser.add_argument(
        "--group-col",
        type=str,
        help="Column of the sample annotation with the sample groups",
        default="group",
    )
    parser.add_argument(
        "--outfile-prefix",
        type=str,
        help="Prefix of the exported files. Temporary files are used if not given.",
        default=None,
    )
    parser.add_argument(
        "--outdir",
        type=str,
        help="Output directory of the edgeR script",
        default="edgeR_output",
    )
    parser.add_argument(
        "--overwrite",
        type=str,
        choices=[p.value for p in OverwritePolicy],
        help="What to do if the output directory exists",
        default=OverwritePolicy.ASK.value,
    )
    parser.add_argument(
        "--mps",
        action="store_true",
        help="Run molecular-phenotyping analysis",
    )
    parser.add_argument(
        "--script", type=str, help="Path of the edgeR script", default=EDGER_SCRIPT
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
        default="INFO",
    )
    return parser


def main(argv: Optional[Iterable[str]] = None) -> int:
    user_args = vars(get_parser().parse_args(argv))

    logging.basicConfig(force=True)
    logging.getLogger().setLevel(user_args["log_level"])

    dge_list = load_dge_list(
        counts_file=user_args["counts"],
        samples_file=user_args["samples"],
        genes_file=user_args["genes"],
        group_col=user_args["group_col"],
    )
    result = slurm_edger(
        dge_list=dge_list,
        design_matrix=read_table(user_args["design"]),
        contrast_matrix=read_table(user_args["contrast"]),
        outfile_prefix=user_args["outfile_prefix"],
        outdir=user_args["outdir"],
        overwrite=user_args["overwrite"],
        mps=user_args["mps"],
        script=user_args["script"],
    )

    if isinstance(result, Submitted):
        print(result.command)
        print(result.output.strip())
    else:
        print(f"Output directory {result.outdir} exists, job not submitted.")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
