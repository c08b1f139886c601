"""statline - Textual status line application."""

import argparse
import dataclasses
import logging
import time
from queue import Empty, Queue

from textual.app import App, ComposeResult
from textual.events import Click
from textual.widgets import Footer, Static

from statline.bandwidth import BandwidthProber
from statline.config import ConfigError, DisplayOptions, Settings, load_settings
from statline.formatting import render_details, render_status_line
from statline.logging_setup import setup_logging
from statline.models import Snapshot
from statline.monitor import SamplingMonitor, SamplingOrchestrator, create_orchestrator
from statline.osinfo import get_os_name

logger = logging.getLogger(__name__)


class StatusLine(Static):
    """One-line summary; clicking it starts a bandwidth test."""

    DEFAULT_CSS = """
    StatusLine {
        height: 1;
        padding: 0 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize StatusLine."""
        super().__init__("Loading...", *args, **kwargs)
        self.text_line = ""

    def set_line(self, line: str) -> None:
        self.text_line = line
        self.update(line)

    def on_click(self, event: Click) -> None:
        self.app.action_bandwidth()


class DetailPanel(Static):
    """Full breakdown of every field."""

    DEFAULT_CSS = """
    DetailPanel {
        height: auto;
        padding: 1;
        border: solid $primary;
    }
    """


class StatlineApp(App):
    """Main statline application."""

    TITLE = "statline"
    SUB_TITLE = "Host Resource Monitor"

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("b", "bandwidth", "Bandwidth test"),
        ("d", "toggle_details", "Details"),
    ]

    def __init__(
        self,
        settings: Settings | None = None,
        orchestrator: SamplingOrchestrator | None = None,
        os_name: str | None = None,
    ) -> None:
        """Initialize the StatlineApp."""
        super().__init__()
        self._settings = settings or Settings()
        self._os_name = os_name or get_os_name()
        self._update_queue: Queue[Snapshot] = Queue()
        self._last_snapshot: Snapshot | None = None
        if orchestrator is None:
            prober = BandwidthProber(
                url=self._settings.bandwidth_url,
                timeout=self._settings.bandwidth_timeout,
            )
            orchestrator = create_orchestrator(self._settings, prober)
        self._orchestrator = orchestrator
        if self._orchestrator.prober is not None:
            self._orchestrator.prober.on_complete = self._probe_completed
            self._orchestrator.prober.on_failure = self._probe_failed
        self._monitor = SamplingMonitor(
            self._orchestrator,
            self._update_queue,
            poll_rate=self._settings.poll_rate,
        )

    @property
    def display_options(self) -> DisplayOptions:
        return self._settings.display

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield StatusLine(id="status-line")
        yield DetailPanel("", id="details")
        yield Footer()

    def on_mount(self) -> None:
        """Start the sampling monitor when the app is mounted."""
        self._monitor.start()
        self.set_interval(0.5, self._check_for_updates)

    def _check_for_updates(self) -> None:
        """Drain the queue and render the most recent snapshot."""
        snapshot = None
        while True:
            try:
                snapshot = self._update_queue.get_nowait()
            except Empty:
                break

        if snapshot is not None:
            self._show_snapshot(snapshot)

    def _show_snapshot(self, snapshot: Snapshot) -> None:
        self._last_snapshot = snapshot
        self.query_one("#status-line", StatusLine).set_line(
            render_status_line(snapshot, self._os_name, self.display_options)
        )
        self.query_one("#details", DetailPanel).update(render_details(snapshot, self._os_name))

    def _refresh_bandwidth(self) -> None:
        """Re-render the last snapshot with the prober's current state."""
        prober = self._orchestrator.prober
        if self._last_snapshot is None or prober is None:
            return
        self._show_snapshot(dataclasses.replace(self._last_snapshot, bandwidth=prober.state))

    def _probe_completed(self, display: str) -> None:
        self.call_from_thread(self._refresh_bandwidth)
        self.call_from_thread(self.notify, f"Speed Test Complete: {display}")

    def _probe_failed(self, error: str) -> None:
        self.call_from_thread(self._refresh_bandwidth)
        self.call_from_thread(self.notify, f"Speed Test Failed: {error}", severity="error")

    def action_bandwidth(self) -> None:
        """Start a bandwidth probe unless one is already running."""
        prober = self._orchestrator.prober
        if prober is None:
            return
        prober.start_probe()
        self._refresh_bandwidth()

    def action_toggle_details(self) -> None:
        details = self.query_one("#details", DetailPanel)
        details.display = not details.display

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._monitor.stop()
        self._orchestrator.shutdown()
        if self._orchestrator.prober is not None:
            self._orchestrator.prober.shutdown()
        self.exit()


def print_once(settings: Settings) -> str:
    """Sample twice, one refresh interval apart, and return the status line."""
    orchestrator = create_orchestrator(settings)
    try:
        orchestrator.tick()
        time.sleep(settings.poll_rate)
        snapshot = orchestrator.tick()
    finally:
        orchestrator.shutdown()
    return render_status_line(snapshot, get_os_name(), settings.display)


def main(argv: list[str] | None = None) -> int:
    """Entry point for statline."""
    parser = argparse.ArgumentParser(prog="statline", description="Host resource status line")
    parser.add_argument("-c", "--config", help="path to a YAML config file")
    parser.add_argument("--once", action="store_true", help="print one status line and exit")
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.config)
    except (ConfigError, FileNotFoundError) as exc:
        parser.error(str(exc))

    setup_logging(settings.log_level, settings.log_file, console=args.once)

    if args.once:
        print(print_once(settings))
        return 0

    logger.info("Starting statline, refresh interval %dms", settings.refresh_interval)
    app = StatlineApp(settings)
    app.run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
