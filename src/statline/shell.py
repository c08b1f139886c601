"""Run platform commands and hand back their raw output."""

import logging
import subprocess
from typing import Sequence

logger = logging.getLogger(__name__)


class ShellProbeError(RuntimeError):
    """A platform command could not produce usable output."""


def run_command(args: Sequence[str], timeout: float = 3.0) -> str:
    """
    Execute a command and return its stdout.

    Raises ShellProbeError when the executable is missing, the command times
    out, or it exits non-zero. No interpretation of the output happens here.
    """
    try:
        result = subprocess.run(
            list(args),
            capture_output=True,
            timeout=timeout,
            text=True,
        )
    except FileNotFoundError as exc:
        raise ShellProbeError(f"{args[0]}: not found on PATH") from exc
    except subprocess.TimeoutExpired as exc:
        raise ShellProbeError(f"{args[0]}: timed out after {timeout}s") from exc
    except OSError as exc:
        raise ShellProbeError(f"{args[0]}: {exc}") from exc

    if result.returncode != 0:
        raise ShellProbeError(
            f"{args[0]}: exit status {result.returncode}: {result.stderr.strip()}"
        )
    return result.stdout
