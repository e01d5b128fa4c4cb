"""Periodic fetching of status payloads with change detection."""

import logging
import threading
from collections.abc import Callable
from typing import Any

from .client import ApiError
from .config import DEFAULT_REFRESH_INTERVAL, normalize_refresh_interval
from .models import PayloadError
from .storage import Storage

logger = logging.getLogger(__name__)


class StatusPoller:
    """Fetches a payload on a timer and signals when it changes.

    Each request is tagged with the generation it started in and a sequence
    number. Changing the page or interval, or stopping the poller, starts a
    new generation; responses from an older generation, older than the last
    applied response, or arriving after teardown are discarded.

    Fetch failures are logged and the previous payload is kept. There is no
    retry beyond the next scheduled tick.
    """

    def __init__(
        self,
        fetch: Callable[[int], Any],
        on_change: Callable[[Any], None],
        parse: Callable[[Any], Any] | None = None,
        interval: int = DEFAULT_REFRESH_INTERVAL,
        page: int = 1,
        storage: Storage | None = None,
        name: str = "poller",
    ) -> None:
        """Initialize the poller.

        Args:
            fetch: Called with the page number; returns the decoded payload or
                raises ApiError/PayloadError.
            on_change: Called with the parsed payload whenever it changes.
            parse: Converts the raw payload before ``on_change``; a
                PayloadError is handled like a failed fetch.
            interval: Seconds between fetches, normalized to the allow-list.
            page: Initial page to request.
            storage: Where interval changes are persisted, if given.
            name: Label used in log messages.
        """
        self._fetch = fetch
        self._on_change = on_change
        self._parse = parse
        self._interval = normalize_refresh_interval(interval)
        self._page = max(1, page)
        self._storage = storage
        self._name = name

        self._lock = threading.Lock()
        self._generation = 0
        self._next_sequence = 0
        self._applied_sequence = -1
        self._payload: Any = None
        self._has_payload = False
        self._stopped = False

        self._stop_event = threading.Event()
        self._reschedule = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def interval(self) -> int:
        return self._interval

    @property
    def page(self) -> int:
        return self._page

    @property
    def payload(self) -> Any:
        """Last applied raw payload, or None before the first successful poll."""
        return self._payload

    @property
    def has_payload(self) -> bool:
        return self._has_payload

    def start(self) -> None:
        """Fetch immediately, then keep fetching every ``interval`` seconds."""
        if self._thread and self._thread.is_alive():
            logger.warning("[%s] Poller already running", self._name)
            return
        if self._stopped:
            logger.warning("[%s] Poller was stopped and cannot be restarted", self._name)
            return

        self.poll()
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()
        logger.info("[%s] Polling every %ds", self._name, self._interval)

    def stop(self, timeout: float = 5.0) -> None:
        """Tear down: clear the timer and ignore any response still in flight."""
        with self._lock:
            self._stopped = True
            self._generation += 1
        self._stop_event.set()
        self._reschedule.set()

        thread = self._thread
        self._thread = None
        if thread is None or thread is threading.current_thread():
            return
        thread.join(timeout=timeout)
        if thread.is_alive():
            logger.warning("[%s] Poller thread did not stop within timeout", self._name)
        else:
            logger.info("[%s] Poller stopped", self._name)

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def set_interval(self, seconds: int) -> int:
        """Change the refresh interval, refetch now and reschedule.

        Returns:
            The interval in effect, after normalization to the allow-list.
        """
        interval = normalize_refresh_interval(seconds)
        if self._storage is not None:
            self._storage.set_refresh_interval(interval)
        with self._lock:
            self._interval = interval
            self._generation += 1
        self._reschedule.set()
        logger.debug("[%s] Refresh interval set to %ds", self._name, interval)
        self.poll()
        return interval

    def set_page(self, page: int) -> None:
        """Request a different page and refetch immediately."""
        with self._lock:
            self._page = max(1, page)
            self._generation += 1
        self.poll()

    def refresh(self) -> None:
        """Refetch immediately, outside the timer cadence."""
        self.poll()

    def poll(self) -> bool:
        """Fetch once and apply the result if it is still current.

        Returns:
            True if the payload changed and ``on_change`` was called.
        """
        with self._lock:
            if self._stopped:
                return False
            generation = self._generation
            sequence = self._next_sequence
            self._next_sequence += 1
            page = self._page

        try:
            raw = self._fetch(page)
            parsed = self._parse(raw) if self._parse is not None else raw
        except (ApiError, PayloadError) as e:
            logger.warning("[%s] Fetch failed, keeping previous state: %s", self._name, e)
            return False

        with self._lock:
            if self._stopped or generation != self._generation or sequence < self._applied_sequence:
                logger.debug("[%s] Discarding stale response (request %d)", self._name, sequence)
                return False
            self._applied_sequence = sequence
            if self._has_payload and raw == self._payload:
                return False
            self._payload = raw
            self._has_payload = True

        try:
            self._on_change(parsed)
        except Exception as e:
            logger.error("[%s] Change callback failed: %s", self._name, e)
        return True

    def _run(self) -> None:
        """Timer loop - runs in background thread."""
        while not self._stop_event.is_set():
            rescheduled = self._reschedule.wait(timeout=self._interval)
            if self._stop_event.is_set():
                break
            if rescheduled:
                # Interval changed; the caller already refetched
                self._reschedule.clear()
                continue
            try:
                self.poll()
            except Exception as e:
                logger.error("[%s] Unexpected error while polling: %s", self._name, e)
