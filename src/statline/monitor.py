"""Sampling engine for statline."""

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from queue import Queue
from typing import Callable, TypeVar

import psutil

from statline.bandwidth import BandwidthProber
from statline.config import Settings
from statline.cpu import CpuLoadTracker
from statline.disk import DiskProbe
from statline.formatting import round_half_up
from statline.models import BandwidthProbeState, DiskUsage, Reading, Snapshot
from statline.network import (
    NetworkThroughputTracker,
    proc_net_dev_total_bytes,
    psutil_total_bytes,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

GIB = 1024**3


@dataclass(slots=True, frozen=True)
class MemoryReading:
    """Memory usage in GiB, rounded for display."""

    used_gb: float
    total_gb: float
    percent: float


def read_memory() -> MemoryReading:
    """Read instantaneous memory usage; no state is needed."""
    mem = psutil.virtual_memory()
    used = mem.total - mem.available
    return MemoryReading(
        used_gb=round_half_up(used / GIB, 1),
        total_gb=round_half_up(mem.total / GIB, 1),
        percent=round_half_up(used / mem.total * 100, 1) if mem.total else 0.0,
    )


class SamplingOrchestrator:
    """
    Gathers one Snapshot per tick from the individual trackers.

    ``tick()`` never raises: a failing probe only degrades its own field.
    The disk probe runs on a worker so a slow subprocess does not hold up
    the CPU and network trackers.
    """

    def __init__(
        self,
        cpu_tracker: CpuLoadTracker | None = None,
        net_tracker: NetworkThroughputTracker | None = None,
        disk_probe: DiskProbe | None = None,
        prober: BandwidthProber | None = None,
        memory_source: Callable[[], MemoryReading] = read_memory,
        disk_timeout: float = 3.0,
        executor: Executor | None = None,
    ) -> None:
        self.cpu_tracker = cpu_tracker or CpuLoadTracker()
        self.net_tracker = net_tracker or NetworkThroughputTracker()
        self.disk_probe = disk_probe or DiskProbe(timeout=disk_timeout)
        self.prober = prober
        self._memory_source = memory_source
        self._disk_timeout = disk_timeout
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="DiskProbe"
        )
        self._tick_lock = threading.Lock()
        self._disk_future: Future | None = None

    def tick(self) -> Snapshot:
        """Measure everything once and return the result."""
        with self._tick_lock:
            disk_future = self._submit_disk_probe()

            cpu = self._guarded("cpu", self.cpu_tracker.sample)
            memory = self._guarded("memory", self._memory_source)
            net_rate = self._net_reading()
            disk = self._disk_reading(disk_future)
            bandwidth = self.prober.state if self.prober is not None else BandwidthProbeState()

        if memory.ok:
            ram_used = Reading.of(memory.value.used_gb)
            ram_total = Reading.of(memory.value.total_gb)
            ram_percent = Reading.of(memory.value.percent)
        else:
            ram_used = ram_total = ram_percent = Reading.unknown()

        return Snapshot(
            cpu_percent=cpu,
            ram_used_gb=ram_used,
            ram_total_gb=ram_total,
            ram_percent=ram_percent,
            disk=disk,
            net_rate_mbps=net_rate,
            bandwidth=bandwidth,
        )

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)

    def _guarded(self, name: str, func: Callable[[], T]) -> Reading[T]:
        try:
            return Reading.of(func())
        except Exception:
            logger.debug("Sampling %s failed", name, exc_info=True)
            return Reading.unknown()

    def _net_reading(self) -> Reading[float]:
        reading = self._guarded("network", self.net_tracker.measure)
        if reading.ok and reading.value is None:
            return Reading.unavailable()
        return reading

    def _submit_disk_probe(self) -> Future | None:
        """Start a disk probe unless the previous one is still stuck."""
        if self._disk_future is not None and not self._disk_future.done():
            logger.debug("Previous disk probe still running, skipping this tick")
            return None
        self._disk_future = self._executor.submit(self.disk_probe.probe)
        return self._disk_future

    def _disk_reading(self, future: Future | None) -> Reading[DiskUsage]:
        if future is None:
            return Reading.unknown()
        try:
            usage = future.result(timeout=self._disk_timeout)
        except FutureTimeoutError:
            logger.debug("Disk probe did not finish within %.1fs", self._disk_timeout)
            return Reading.unknown()
        except Exception:
            logger.debug("Disk probe raised", exc_info=True)
            return Reading.unknown()
        if usage is None:
            return Reading.unknown()
        return Reading.of(usage)


def create_orchestrator(
    settings: Settings,
    prober: BandwidthProber | None = None,
) -> SamplingOrchestrator:
    """Wire up an orchestrator from configuration."""
    source = proc_net_dev_total_bytes if settings.traffic_source == "procfs" else psutil_total_bytes
    return SamplingOrchestrator(
        net_tracker=NetworkThroughputTracker(source=source),
        disk_probe=DiskProbe(strategy=settings.disk_strategy, timeout=settings.disk_timeout),
        prober=prober,
        disk_timeout=settings.disk_timeout,
    )


class SamplingMonitor:
    """
    Periodic driver that ticks a SamplingOrchestrator.

    Runs in a separate daemon thread and pushes Snapshots to a thread-safe Queue.
    """

    def __init__(
        self,
        orchestrator: SamplingOrchestrator,
        update_queue: Queue[Snapshot],
        poll_rate: float = 1.0,
    ) -> None:
        """
        Initialize the SamplingMonitor.

        Args:
            orchestrator: Engine to tick.
            update_queue: Thread-safe queue to push updates to.
            poll_rate: How often to sample (in seconds). Default 1.0s.
        """
        self._orchestrator = orchestrator
        self._queue = update_queue
        self._poll_rate = poll_rate
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def poll_rate(self) -> float:
        """Get the current poll rate."""
        return self._poll_rate

    @poll_rate.setter
    def poll_rate(self, value: float) -> None:
        """Set the poll rate."""
        self._poll_rate = max(0.1, value)  # Minimum 0.1 seconds

    @property
    def is_running(self) -> bool:
        """Check if the monitor thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the sampling thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            daemon=True,
            name="SamplingMonitor",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the sampling thread.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def _poll_loop(self) -> None:
        """Main polling loop running in the background thread."""
        while not self._stop_event.is_set():
            self._queue.put(self._orchestrator.tick())

            # Wait for poll_rate seconds or until stop is requested
            self._stop_event.wait(timeout=self._poll_rate)
