"""Operating system name lookup."""

import platform

_CHROME_MARKERS = ("chrome os", "chromium os")


def _linux_name() -> str:
    try:
        release = platform.freedesktop_os_release()
    except OSError:
        return "Linux"
    text = " ".join(release.values()).lower()
    if any(marker in text for marker in _CHROME_MARKERS):
        return "ChromeOS"
    return release.get("PRETTY_NAME") or "Linux"


def get_os_name() -> str:
    """Short human-readable name of the host operating system."""
    system = platform.system()
    if system == "Linux":
        return _linux_name()
    if system == "Windows":
        return "Windows"
    if system == "Darwin":
        return "macOS"
    return system or "Unknown"
