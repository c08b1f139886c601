"""Aggregate network throughput from cumulative byte counters."""

import logging
import time
from pathlib import Path
from typing import Callable

import psutil

from statline.formatting import UNAVAILABLE_MARKER, format_rate
from statline.models import NetCounterSample

logger = logging.getLogger(__name__)

LOOPBACK_NAMES = frozenset({"lo", "lo0"})
PROC_NET_DEV = Path("/proc/net/dev")


class CounterUnavailableError(RuntimeError):
    """The platform offers no per-interface byte counters."""


def is_loopback(name: str) -> bool:
    """Match lo, lo0 and the Windows ``Loopback Pseudo-Interface N``."""
    return name in LOOPBACK_NAMES or name.lower().startswith("loopback")


def psutil_total_bytes() -> int:
    """Sum received and sent bytes over all non-loopback interfaces."""
    try:
        counters = psutil.net_io_counters(pernic=True)
    except (NotImplementedError, RuntimeError, OSError) as exc:
        raise CounterUnavailableError(str(exc)) from exc
    if not counters:
        raise CounterUnavailableError("no network interfaces reported")
    return sum(
        nic.bytes_recv + nic.bytes_sent
        for name, nic in counters.items()
        if not is_loopback(name)
    )


def parse_proc_net_dev(text: str) -> int:
    """
    Sum receive and transmit bytes from ``/proc/net/dev`` content.

    The file has two header lines followed by one line per interface::

        Inter-|   Receive                       ...|  Transmit
         face |bytes    packets errs drop fifo ... |bytes    packets ...
            lo: 1496      16    0    0    0  ...     1496      16 ...
          eth0:10485760  7000    0    0    0  ...   524288    3000 ...

    Large counters can run into the colon, so the name is split off at the
    first colon rather than on whitespace. Receive bytes is the first
    field after the name and transmit bytes the ninth.
    """
    total = 0
    for line in text.splitlines()[2:]:
        name, sep, counters = line.partition(":")
        if not sep:
            continue
        if is_loopback(name.strip()):
            continue
        fields = counters.split()
        if len(fields) < 9:
            continue
        try:
            total += int(fields[0]) + int(fields[8])
        except ValueError:
            continue
    return total


def proc_net_dev_total_bytes(path: Path = PROC_NET_DEV) -> int:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CounterUnavailableError(f"cannot read {path}: {exc}") from exc
    return parse_proc_net_dev(text)


def monotonic_ms() -> float:
    return time.monotonic() * 1000


class NetworkThroughputTracker:
    """
    Converts two successive byte counter readings into a bitrate.

    If the counter source is unavailable the tracker stops measuring for
    the rest of its life and reports "N/A".
    """

    def __init__(
        self,
        source: Callable[[], int] = psutil_total_bytes,
        clock: Callable[[], float] = monotonic_ms,
    ) -> None:
        self._source = source
        self._clock = clock
        self._previous: NetCounterSample | None = None
        self._available = True

    @property
    def available(self) -> bool:
        return self._available

    def measure(self) -> float | None:
        """Current rate in megabits per second, or None when unavailable."""
        if not self._available:
            return None
        try:
            total = self._source()
        except CounterUnavailableError as exc:
            logger.info("Network counters unavailable, traffic disabled: %s", exc)
            self._available = False
            return None

        current = NetCounterSample(total_bytes=total, timestamp_ms=self._clock())
        previous = self._previous
        self._previous = current
        if previous is None:
            return 0.0

        time_diff_sec = (current.timestamp_ms - previous.timestamp_ms) / 1000
        bytes_diff = current.total_bytes - previous.total_bytes
        if time_diff_sec <= 0 or bytes_diff < 0:
            return 0.0
        bps = bytes_diff / time_diff_sec
        return bps * 8 / 1_000_000

    def sample(self) -> str:
        mbps = self.measure()
        if mbps is None:
            return UNAVAILABLE_MARKER
        return format_rate(mbps)
