"""Data models for statline."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class CpuSample:
    """Cumulative time counters of one core."""

    idle_time: float
    total_time: float


@dataclass(slots=True, frozen=True)
class NetCounterSample:
    """Aggregate byte counter across all non-loopback interfaces."""

    total_bytes: int
    timestamp_ms: float


@dataclass(slots=True, frozen=True)
class DiskUsage:
    """Disk usage exactly as the probe reported it."""

    used_display: str  # e.g. "10G"
    total_display: str  # e.g. "20G"
    percent: str  # e.g. "53%"


class ReadingStatus(Enum):
    """Availability of a single Snapshot field."""

    VALUE = "value"
    UNAVAILABLE = "unavailable"  # not supported on this platform
    UNKNOWN = "unknown"  # probe failed this tick


@dataclass(slots=True, frozen=True)
class Reading(Generic[T]):
    """A Snapshot field: either a value or the reason there is none."""

    status: ReadingStatus
    value: T | None = None

    @classmethod
    def of(cls, value: T) -> "Reading[T]":
        return cls(ReadingStatus.VALUE, value)

    @classmethod
    def unknown(cls) -> "Reading[T]":
        return cls(ReadingStatus.UNKNOWN)

    @classmethod
    def unavailable(cls) -> "Reading[T]":
        return cls(ReadingStatus.UNAVAILABLE)

    @property
    def ok(self) -> bool:
        return self.status is ReadingStatus.VALUE


class ProbeStatus(Enum):
    """Lifecycle of the bandwidth probe."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class BandwidthProbeState:
    """Immutable view of the bandwidth prober, replaced on every transition."""

    status: ProbeStatus = ProbeStatus.IDLE
    mbps: float | None = None
    error: str | None = None
    started_at: float | None = None
    bytes_so_far: int = 0


@dataclass(slots=True, frozen=True)
class Snapshot:
    """Everything measured during one tick."""

    cpu_percent: Reading[float]
    ram_used_gb: Reading[float]
    ram_total_gb: Reading[float]
    ram_percent: Reading[float]
    disk: Reading[DiskUsage]
    net_rate_mbps: Reading[float]
    bandwidth: BandwidthProbeState
