"""
Purpose: Single-file queue in front of the reverse geocoder.
What it does:

- All callers share one FIFO; one worker thread services it in submission order.
- Each request starts at least `min_interval_sec` after the previous one finished
  (Nominatim allows one request per second), so simultaneous submissions are
  throttled instead of firing in parallel.
- enqueue(coordinate) returns a concurrent.futures.Future that resolves to an
  address string. A failed lookup resolves to ADDRESS_LOOKUP_FAILED instead of
  raising, and the worker moves on to the next entry.

Rule: No reordering or priorities. Strict FIFO.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from concurrent.futures import Future
from typing import Callable, Optional, Tuple

from routing.geo import LatLon, validate_coordinate

from .nominatim_client import GeocodeFailure, NominatimClient

logger = logging.getLogger(__name__)

ADDRESS_LOOKUP_FAILED = "Address lookup failed"

_STOP = object()  # sentinel that tells the worker to exit


class GeocodeQueue:
    """
    Rate-limited reverse-geocoding queue with a single worker thread.
    """

    def __init__(self,
                 geocoder: NominatimClient,
                 min_interval_sec: float = 1.0,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        if min_interval_sec < 0:
            raise ValueError("min_interval_sec must be >= 0")

        self.geocoder = geocoder
        self.min_interval_sec = min_interval_sec
        self._clock = clock
        self._sleep = sleep

        self._queue: "queue.Queue[object]" = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False
        self._last_finished_at: Optional[float] = None

        self._worker = threading.Thread(target=self._run, daemon=True, name="GeocodeQueueWorker")
        self._worker.start()

    # --- Public API ---

    def enqueue(self, coordinate: LatLon) -> "Future[str]":
        """
        Queue a reverse lookup. The returned future always resolves to a string.
        """
        coordinate = validate_coordinate(coordinate)
        future: "Future[str]" = Future()

        with self._lock:
            if self._closed:
                raise RuntimeError("GeocodeQueue is closed")
            self._queue.put((coordinate, future))

        logger.debug("Queued reverse geocode for %s (%d waiting)", coordinate, self._queue.qsize())
        return future

    @property
    def pending_count(self) -> int:
        return self._queue.qsize()

    def close(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        """
        Stop accepting work. Entries already queued are still serviced.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_STOP)

        if wait:
            self._worker.join(timeout)

    def __enter__(self) -> GeocodeQueue:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # --- Worker ---

    def _wait_for_slot(self) -> None:
        if self._last_finished_at is None:
            return
        delay = self._last_finished_at + self.min_interval_sec - self._clock()
        if delay > 0:
            self._sleep(delay)

    def _lookup(self, coordinate: LatLon) -> str:
        lat, lon = coordinate
        try:
            return self.geocoder.reverse(lat, lon)
        except GeocodeFailure as e:
            logger.warning("Reverse geocode failed for %s: %s", coordinate, e)
        except Exception:
            # anything else from the provider must not kill the worker
            logger.exception("Unexpected error while reverse geocoding %s", coordinate)
        return ADDRESS_LOOKUP_FAILED

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                break

            coordinate, future = item  # type: Tuple[LatLon, Future]
            if not future.set_running_or_notify_cancel():
                continue

            self._wait_for_slot()
            address = self._lookup(coordinate)
            future.set_result(address)

            # measured after callbacks ran, so completions are spaced by the full interval
            self._last_finished_at = self._clock()

        logger.debug("GeocodeQueue worker stopped")
