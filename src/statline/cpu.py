"""CPU utilization from successive per-core time counters."""

from typing import Callable

import psutil

from statline.formatting import round_half_up
from statline.models import CpuSample

# Already included in user/nice on Linux; counting them again would
# inflate the total.
_EXCLUDED_FIELDS = {"guest", "guest_nice"}


def read_cpu_sample() -> list[CpuSample]:
    """Read cumulative idle and total time for every core."""
    samples = []
    for times in psutil.cpu_times(percpu=True):
        fields = times._asdict()
        total = sum(value for name, value in fields.items() if name not in _EXCLUDED_FIELDS)
        samples.append(CpuSample(idle_time=fields["idle"], total_time=total))
    return samples


def compute_usage(previous: list[CpuSample], current: list[CpuSample]) -> float:
    """
    Whole-machine utilization between two samples, in percent.

    Cores are aligned by index; if the core count changed, entries beyond
    the shorter sample are ignored (an approximation for hot-plugged CPUs).
    A counter that went backwards yields 0.0 for the whole tick.
    """
    idle_delta = 0.0
    total_delta = 0.0
    for prev, cur in zip(previous, current):
        core_idle = cur.idle_time - prev.idle_time
        core_total = cur.total_time - prev.total_time
        if core_idle < 0 or core_total < 0:
            return 0.0
        idle_delta += core_idle
        total_delta += core_total

    if total_delta <= 0:
        return 0.0

    usage = (1 - idle_delta / total_delta) * 100
    return round_half_up(min(max(usage, 0.0), 100.0), 1)


class CpuLoadTracker:
    """
    Converts two successive CPU counter samples into a utilization percentage.

    The first call after construction has nothing to compare against and
    returns 0.0.
    """

    def __init__(self, source: Callable[[], list[CpuSample]] = read_cpu_sample) -> None:
        self._source = source
        self._previous: list[CpuSample] | None = None

    def sample(self) -> float:
        current = self._source()
        previous = self._previous
        self._previous = current
        if previous is None:
            return 0.0
        return compute_usage(previous, current)
