"""Display formatting for statline snapshots.

All text markers live here; the engine itself only deals in readings and
probe states.
"""

from decimal import ROUND_HALF_UP, Decimal

from statline.config import DisplayOptions
from statline.models import (
    BandwidthProbeState,
    DiskUsage,
    ProbeStatus,
    Reading,
    ReadingStatus,
    Snapshot,
)

UNKNOWN_MARKER = "?"
UNAVAILABLE_MARKER = "N/A"
ERROR_MARKER = "Error"
TESTING_MARKER = "Testing..."

# Glyphs used in icon-only mode, in display order.
ICONS = {
    "os": "⌂",
    "cpu": "⚙",
    "ram": "▤",
    "disk": "⛁",
    "traffic": "⇅",
    "bandwidth": "↯",
}

LABELS = {
    "cpu": "CPU: ",
    "ram": "RAM: ",
    "disk": "DSK: ",
    "traffic": "TRAF: ",
    "bandwidth": "BW: ",
}


def round_half_up(value: float, places: int = 0) -> float:
    """Round with halves going up, so 2.5 becomes 3 rather than 2."""
    exponent = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP))


def format_rate(mbps: float) -> str:
    """Format a bitrate given in megabits per second."""
    if mbps < 1:
        return f"{round_half_up(mbps * 1000):.0f}Kbps"
    return format_mbps(mbps)


def format_mbps(mbps: float) -> str:
    """Format a bandwidth result, always in Mbps."""
    return f"{round_half_up(mbps, 1):.1f}Mbps"


def format_disk(disk: DiskUsage) -> str:
    return f"{disk.used_display}/{disk.total_display} {disk.percent}"


def format_bandwidth(state: BandwidthProbeState) -> str:
    if state.status is ProbeStatus.RUNNING:
        return TESTING_MARKER
    if state.status is ProbeStatus.FAILED:
        return ERROR_MARKER
    if state.status is ProbeStatus.COMPLETED and state.mbps is not None:
        return format_mbps(state.mbps)
    return UNAVAILABLE_MARKER


def _marker(reading: Reading) -> str:
    if reading.status is ReadingStatus.UNAVAILABLE:
        return UNAVAILABLE_MARKER
    return UNKNOWN_MARKER


def cpu_text(snapshot: Snapshot) -> str:
    if not snapshot.cpu_percent.ok:
        return _marker(snapshot.cpu_percent)
    return f"{snapshot.cpu_percent.value:.1f}%"


def ram_text(snapshot: Snapshot) -> str:
    if not snapshot.ram_used_gb.ok:
        return _marker(snapshot.ram_used_gb)
    return f"{snapshot.ram_used_gb.value:.1f} GB"


def ram_detail_text(snapshot: Snapshot) -> str:
    """Full RAM figure, e.g. "4.2/15.5GB 27.1%"."""
    used, total, percent = snapshot.ram_used_gb, snapshot.ram_total_gb, snapshot.ram_percent
    if not (used.ok and total.ok and percent.ok):
        return _marker(used)
    return f"{used.value:.1f}/{total.value:.1f}GB {percent.value:.1f}%"


def disk_text(snapshot: Snapshot) -> str:
    if not snapshot.disk.ok:
        return _marker(snapshot.disk)
    return snapshot.disk.value.percent


def disk_detail_text(snapshot: Snapshot) -> str:
    if not snapshot.disk.ok:
        return _marker(snapshot.disk)
    return format_disk(snapshot.disk.value)


def traffic_text(snapshot: Snapshot) -> str:
    if not snapshot.net_rate_mbps.ok:
        return _marker(snapshot.net_rate_mbps)
    return format_rate(snapshot.net_rate_mbps.value)


def field_texts(snapshot: Snapshot, os_name: str) -> dict[str, str]:
    """Short display text of every field, keyed by field name."""
    return {
        "os": os_name,
        "cpu": cpu_text(snapshot),
        "ram": ram_text(snapshot),
        "disk": disk_text(snapshot),
        "traffic": traffic_text(snapshot),
        "bandwidth": format_bandwidth(snapshot.bandwidth),
    }


def render_status_line(
    snapshot: Snapshot,
    os_name: str,
    options: DisplayOptions | None = None,
) -> str:
    """
    Render the one-line summary.

    Produces e.g. ``[Ubuntu 24.04] | CPU: 12.5% | RAM: 4.2 GB | DSK: 53% |
    TRAF: 12Kbps | BW: N/A``. Hidden fields are left out entirely.
    """
    options = options or DisplayOptions()
    texts = field_texts(snapshot, os_name)
    parts: list[str] = []
    for name in options.visible_fields():
        text = texts[name]
        if options.icon_only:
            parts.append(f"{ICONS[name]} {text}")
        elif name == "os":
            parts.append(f"[{text}]")
        else:
            parts.append(f"{LABELS[name]}{text}")
    return " | ".join(parts)


def render_details(snapshot: Snapshot, os_name: str) -> str:
    """Multi-line detail view with every field in full."""
    return (
        f"OS: {os_name}\n"
        f"CPU Usage: {cpu_text(snapshot)}\n"
        f"RAM Usage: {ram_detail_text(snapshot)}\n"
        f"Disk Usage: {disk_detail_text(snapshot)}\n"
        f"Traffic: {traffic_text(snapshot)}\n"
        f"Bandwidth: {format_bandwidth(snapshot.bandwidth)} (press b or click to test)"
    )
