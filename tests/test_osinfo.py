"""Tests for OS name detection."""

from statline import osinfo
from statline.osinfo import get_os_name


def test_windows(monkeypatch):
    monkeypatch.setattr(osinfo.platform, "system", lambda: "Windows")
    assert get_os_name() == "Windows"


def test_macos(monkeypatch):
    monkeypatch.setattr(osinfo.platform, "system", lambda: "Darwin")
    assert get_os_name() == "macOS"


def test_other_platform(monkeypatch):
    monkeypatch.setattr(osinfo.platform, "system", lambda: "FreeBSD")
    assert get_os_name() == "FreeBSD"


def test_linux_pretty_name(monkeypatch):
    """Test Linux reports the os-release PRETTY_NAME."""
    monkeypatch.setattr(osinfo.platform, "system", lambda: "Linux")
    monkeypatch.setattr(
        osinfo.platform,
        "freedesktop_os_release",
        lambda: {"NAME": "Ubuntu", "PRETTY_NAME": "Ubuntu 24.04 LTS"},
    )
    assert get_os_name() == "Ubuntu 24.04 LTS"


def test_chromeos(monkeypatch):
    """Test ChromeOS is recognised from os-release."""
    monkeypatch.setattr(osinfo.platform, "system", lambda: "Linux")
    monkeypatch.setattr(
        osinfo.platform,
        "freedesktop_os_release",
        lambda: {"NAME": "Chrome OS", "PRETTY_NAME": "Chrome OS 120"},
    )
    assert get_os_name() == "ChromeOS"


def test_linux_without_os_release(monkeypatch):
    """Test Linux without os-release falls back to the plain name."""

    def missing():
        raise OSError("no os-release")

    monkeypatch.setattr(osinfo.platform, "system", lambda: "Linux")
    monkeypatch.setattr(osinfo.platform, "freedesktop_os_release", missing)
    assert get_os_name() == "Linux"
