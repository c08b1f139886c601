"""
On-demand download bandwidth measurement.

A probe downloads a fixed-size payload on a background worker so that the
periodic tick never waits for it. Only one probe can be in flight at a
time; asking for another while one runs does nothing.
"""

import logging
import threading
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import replace
from typing import Callable, Optional

import requests
from requests.exceptions import RequestException

from statline.config import DEFAULT_BANDWIDTH_URL
from statline.formatting import format_mbps
from statline.models import BandwidthProbeState, ProbeStatus

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class BandwidthProbeError(RuntimeError):
    """The download finished but cannot be used as a measurement."""


class BandwidthProber:
    """
    Measure achievable download bandwidth against a fixed payload.

    ``on_complete`` receives the formatted result and ``on_failure`` a
    human-readable error; each is called once per probe from the worker
    thread.
    """

    def __init__(
        self,
        url: str = DEFAULT_BANDWIDTH_URL,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
        executor: Optional[Executor] = None,
        on_complete: Optional[Callable[[str], None]] = None,
        on_failure: Optional[Callable[[str], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.on_complete = on_complete
        self.on_failure = on_failure
        self._session = session or requests.Session()
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="BandwidthProber"
        )
        self._clock = clock
        self._lock = threading.Lock()
        self._state = BandwidthProbeState()

    @property
    def state(self) -> BandwidthProbeState:
        """Current state; never blocks on a running download."""
        with self._lock:
            return self._state

    @property
    def is_running(self) -> bool:
        return self.state.status is ProbeStatus.RUNNING

    def start_probe(self) -> Optional[Future]:
        """
        Start a probe unless one is already running.

        Returns the worker future, or None if a probe was already in flight
        or the prober has been shut down.
        """
        with self._lock:
            if self._state.status is ProbeStatus.RUNNING:
                logger.debug("Bandwidth probe already running, ignoring request")
                return None
            self._state = BandwidthProbeState(
                status=ProbeStatus.RUNNING,
                started_at=self._clock(),
            )
        logger.info("Starting bandwidth probe against %s", self.url)
        try:
            return self._executor.submit(self._run)
        except RuntimeError as exc:
            # executor already shut down
            logger.warning("Cannot start bandwidth probe: %s", exc)
            with self._lock:
                self._state = replace(
                    self._state, status=ProbeStatus.FAILED, error="Prober is shut down"
                )
            return None

    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait)
        self._session.close()

    def _record_progress(self, downloaded: int) -> None:
        with self._lock:
            self._state = replace(self._state, bytes_so_far=downloaded)

    def _download(self) -> int:
        downloaded = 0
        with self._session.get(self.url, stream=True, timeout=self.timeout) as response:
            if response.status_code != 200:
                raise BandwidthProbeError(f"Request failed: {response.status_code}")
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                downloaded += len(chunk)
                self._record_progress(downloaded)
        return downloaded

    def _run(self) -> None:
        started_at = self.state.started_at
        if started_at is None:
            started_at = self._clock()
        mbps: Optional[float] = None
        error = "Probe interrupted"
        try:
            downloaded = self._download()
            duration = self._clock() - started_at
            if duration <= 0 or downloaded == 0:
                raise BandwidthProbeError("No data received")
            mbps = downloaded * 8 / duration / 1_000_000
        except (RequestException, BandwidthProbeError, OSError) as exc:
            error = str(exc) or exc.__class__.__name__
        except Exception as exc:
            logger.exception("Unexpected error during bandwidth probe")
            error = str(exc) or exc.__class__.__name__
        finally:
            with self._lock:
                if mbps is not None:
                    self._state = replace(self._state, status=ProbeStatus.COMPLETED, mbps=mbps)
                else:
                    self._state = replace(self._state, status=ProbeStatus.FAILED, error=error)

        if mbps is not None:
            display = format_mbps(mbps)
            logger.info("Bandwidth probe complete: %s", display)
            if self.on_complete is not None:
                self.on_complete(display)
        else:
            logger.warning("Bandwidth probe failed: %s", error)
            if self.on_failure is not None:
                self.on_failure(error)
