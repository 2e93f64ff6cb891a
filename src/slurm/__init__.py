"""SLURM job submission utilities.

This package provides utilities for exporting edgeR inputs and submitting the edgeR
script as a job on a SLURM cluster.

Modules:
    edger_command: Checks the design and contrast matrices, exports the input files
        and builds the edgeR command line.
    slurm_job_submitter: Contains the SlurmJobSubmitter class for submitting single jobs.
    utils: Overwrite confirmation and submission of one or several edgeR jobs.
"""
