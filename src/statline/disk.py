"""
Disk usage probing.

Two of the strategies shell out to platform utilities and parse their text,
which is sensitive to locale and tool version. The expected formats are:

``df -h --output=size,used,pcent /`` (GNU coreutils)::

    Size  Used Use%
     20G   10G  53%

``wmic logicaldisk get caption,freespace,size`` (Windows; columns are always
emitted in alphabetical order regardless of the order requested)::

    Caption  FreeSpace     Size
    C:       107374182400  256060514304
    D:

The parsers are plain functions so a platform can swap in its own.
"""

import logging
import os
import sys
from typing import Callable, Sequence

import psutil

from statline.formatting import round_half_up
from statline.models import DiskUsage
from statline.shell import ShellProbeError, run_command

logger = logging.getLogger(__name__)

DF_COMMAND = ("df", "-h", "--output=size,used,pcent", "/")
WMIC_COMMAND = ("wmic", "logicaldisk", "get", "caption,freespace,size")

GIB = 1024**3


def parse_df_output(output: str) -> DiskUsage | None:
    """Parse ``df`` output; the second line holds size, used and percent."""
    lines = output.strip().splitlines()
    if len(lines) < 2:
        return None
    parts = lines[1].split()
    if len(parts) < 3:
        return None
    size, used, percent = parts[0], parts[1], parts[2]
    return DiskUsage(used_display=used, total_display=size, percent=percent)


def parse_wmic_output(output: str, drive: str = "C:") -> DiskUsage | None:
    """Parse ``wmic logicaldisk`` output for the row matching ``drive``."""
    lines = [line for line in output.strip().splitlines() if line.strip()]
    for line in lines[1:]:
        parts = line.split()
        # Drives without media (empty card readers, DVD) have no size columns.
        if len(parts) < 3:
            continue
        caption, free, size = parts[-3], parts[-2], parts[-1]
        if caption.upper() != drive.upper():
            continue
        try:
            free_bytes = int(free)
            size_bytes = int(size)
        except ValueError:
            return None
        if size_bytes <= 0:
            return None
        used_bytes = size_bytes - free_bytes
        return DiskUsage(
            used_display=f"{round_half_up(used_bytes / GIB):.0f}GB",
            total_display=f"{round_half_up(size_bytes / GIB):.0f}GB",
            percent=f"{round_half_up(used_bytes / size_bytes * 100):.0f}%",
        )
    return None


def _human_size(size: int) -> str:
    """Format bytes the way ``df -h`` does (binary units, one letter)."""
    value = float(size)
    for unit in ["B", "K", "M", "G", "T"]:
        if value < 1024:
            return f"{value:.1f}{unit}" if value < 10 and unit != "B" else f"{value:.0f}{unit}"
        value = value / 1024
    return f"{value:.0f}P"


def native_disk_usage(path: str) -> DiskUsage:
    """Read usage of ``path`` through psutil instead of a subprocess."""
    usage = psutil.disk_usage(path)
    return DiskUsage(
        used_display=_human_size(usage.used),
        total_display=_human_size(usage.total),
        percent=f"{usage.percent:.0f}%",
    )


def system_drive() -> str:
    return os.environ.get("SystemDrive", "C:")


def default_strategy() -> str:
    return "windows" if sys.platform == "win32" else "posix"


class DiskProbe:
    """
    Best-effort disk usage probe.

    ``probe()`` never raises; any failure is reported as None so the caller
    can show its unknown marker.
    """

    def __init__(
        self,
        strategy: str = "auto",
        timeout: float = 3.0,
        runner: Callable[[Sequence[str], float], str] = run_command,
    ) -> None:
        self.strategy = default_strategy() if strategy == "auto" else strategy
        self.timeout = timeout
        self._runner = runner

    def probe(self) -> DiskUsage | None:
        try:
            if self.strategy == "windows":
                output = self._runner(WMIC_COMMAND, self.timeout)
                usage = parse_wmic_output(output, system_drive())
            elif self.strategy == "native":
                usage = native_disk_usage(os.path.abspath(os.sep))
            else:
                output = self._runner(DF_COMMAND, self.timeout)
                usage = parse_df_output(output)
        except (ShellProbeError, OSError) as exc:
            logger.debug("Disk probe failed: %s", exc)
            return None

        if usage is None:
            logger.debug("Disk probe output could not be parsed (strategy=%s)", self.strategy)
        return usage
