"""Utility functions for process management and temporary file naming.

This module provides the helpers shared by the SLURM submission code: running an
external command and capturing its output, and generating unique file prefixes.
"""

import logging
import subprocess
import tempfile
import uuid
from pathlib import Path
from typing import Dict, Iterable, Optional

logger = logging.getLogger(__name__)


def run_cmd(cmd: Iterable[str], log_path: Optional[Path] = None) -> Dict[str, str]:
    """Execute a command and capture its output.

    Runs a command in a subprocess, blocking until it exits, and optionally saves
    its output to a log file.

    Args:
        cmd: Sequence of command components to execute
            (e.g., ['sbatch', '-c', '1', 'job.sh'])
        log_path: Optional path to save stdout and stderr output. Only paths with
            a ".log" suffix are written.

    Returns:
        Dict[str, str]: Dictionary with 'stdout' and 'stderr' keys containing
            the command's output

    Raises:
        subprocess.CalledProcessError: If the command returns a non-zero exit code
        FileNotFoundError: If the executable cannot be found
    """
    # 0. Run command
    cmd = [str(x) for x in cmd]
    try:
        process_output = subprocess.run(
            cmd,
            check=True,
            capture_output=True,
            universal_newlines=True,
        )
    except subprocess.CalledProcessError as e:
        logger.error(f"Command {cmd[0]} exited with code {e.returncode}: {e.stderr}")
        raise
    except FileNotFoundError as e:
        logger.error(f"Command {cmd[0]} could not be started: {e}")
        raise

    # 1. Save stdout and stderr if a file path is provided
    logs = {
        "stderr": str(process_output.stderr),
        "stdout": str(process_output.stdout),
    }
    if log_path is not None and log_path.suffix == ".log":
        log_path.write_text(
            f"stderr:\n {logs['stderr']} \n\n stdout:\n {logs['stdout']}"
        )

    return logs


def temp_prefix(pattern: str = "edgeRslurm") -> str:
    """Return a new, process-unique path in the temporary directory.

    Like R's `tempfile()`, the path is only generated: no file is created.

    Args:
        pattern: Start of the file name.

    Returns:
        str: Path made of the temporary directory and a random name starting
            with `pattern`.
    """
    file_name = f"{pattern}{uuid.uuid4().hex[:12]}"
    return str(Path(tempfile.gettempdir()).joinpath(file_name))
