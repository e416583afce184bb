"""
Refresh loop that keeps the cache file in step with the remote resource.
"""
import threading
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional
from datetime import datetime

from urlcache.errors import CallbackError, CommitError, FetchError, ProbeError
from urlcache.freshness import FreshnessScheme, select_scheme
from urlcache.http_client import ResourceClient
from urlcache.storage import PathLike, UpdateCallback, commit

logger = logging.getLogger("urlcache.poller")


class PollerState(Enum):
    """Where the poller is within its current cycle."""
    UNSELECTED = "unselected"   # No freshness scheme established yet
    SELECTING = "selecting"     # Probing metadata to pick a scheme
    PROBING = "probing"         # Conditional GET in flight
    FETCHING = "fetching"       # Changed body being validated and committed
    IDLE = "idle"               # Waiting for the next interval


class CachePoller:
    """
    Owns the freshness scheme for one URL and drives refresh cycles:
    - Picks a scheme lazily, retrying the probe until one succeeds
    - Sends a conditional GET every interval
    - Hands changed bodies to the callback, then swaps the cache file
    - Advances the stored token only after a successful commit

    The scheme is only ever touched from the thread running the cycles.
    """

    def __init__(
        self,
        url: str,
        cache_path: PathLike,
        interval: float,
        on_update: UpdateCallback,
        baseline: Optional[datetime] = None,
        client: Optional[ResourceClient] = None,
    ):
        """
        Initialize the poller.

        Args:
            url: Resource to mirror
            cache_path: File that holds the last accepted copy
            interval: Seconds to wait between cycles
            on_update: Receives a binary stream of every new version
            baseline: Modification time of an already-accepted local copy
            client: HTTP client (one is built for url if omitted)
        """
        self.url = url
        self.cache_path = Path(cache_path)
        self.interval = interval
        self._on_update = on_update
        self._baseline = baseline
        self._client = client or ResourceClient(url)

        self._scheme: Optional[FreshnessScheme] = None
        self._state = PollerState.UNSELECTED

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        # Stats tracking
        self._stats_lock = threading.Lock()
        self._stats = {
            "cycles": 0,
            "updates": 0,
            "not_modified": 0,
            "probe_failures": 0,
            "fetch_failures": 0,
            "callback_failures": 0,
            "commit_failures": 0,
        }

    @property
    def state(self) -> PollerState:
        return self._state

    @property
    def scheme(self) -> Optional[FreshnessScheme]:
        return self._scheme

    def _count(self, key: str) -> None:
        with self._stats_lock:
            self._stats[key] += 1

    def _ensure_scheme(self) -> bool:
        """Select a scheme if none is established yet. Returns False on probe failure."""
        if self._scheme is not None:
            return True

        self._state = PollerState.SELECTING
        try:
            self._scheme = select_scheme(self._client, self._baseline)
        except ProbeError as e:
            logger.warning(f"Unable to select freshness scheme: {e}")
            self._count("probe_failures")
            self._state = PollerState.UNSELECTED
            return False
        return True

    def run_once(self) -> bool:
        """
        Run a single refresh cycle without waiting afterwards.

        Returns:
            True if new content was accepted and committed
        """
        self._count("cycles")

        if not self._ensure_scheme():
            return False

        try:
            self._state = PollerState.PROBING
            try:
                result = self._client.fetch(self._scheme)
            except FetchError as e:
                logger.warning(f"Unable to check for updates: {e}")
                self._count("fetch_failures")
                return False

            if result.not_modified:
                logger.debug(f"Not modified: {self.url} [{self._scheme.describe()}]")
                self._count("not_modified")
                return False

            self._state = PollerState.FETCHING
            try:
                commit(self.cache_path, result.body, self._on_update)
            except CallbackError as e:
                logger.warning(f"Discarding update from {self.url}: {e}")
                self._count("callback_failures")
                return False
            except CommitError as e:
                logger.error(f"Unable to update cache file: {e}")
                self._count("commit_failures")
                return False

            self._scheme.observe(result.headers)
            self._count("updates")
            logger.info(
                f"Updated {self.cache_path} from {self.url} "
                f"({len(result.body)} bytes) [{self._scheme.describe()}]"
            )
            return True
        finally:
            self._state = PollerState.IDLE

    def run_forever(self) -> None:
        """Run cycles until stop() is called, waiting interval seconds after each."""
        logger.debug(f"Polling {self.url} every {self.interval}s")
        try:
            while not self._stop_event.is_set():
                try:
                    self.run_once()
                except Exception:
                    logger.exception(f"Unexpected error while refreshing {self.url}")
                self._stop_event.wait(self.interval)
        finally:
            self._client.close()
            logger.debug(f"Stopped polling {self.url}")

    def start(self) -> "CachePoller":
        """Run the loop on a daemon thread and return immediately."""
        if self._thread is not None:
            raise RuntimeError("Poller already started")
        self._thread = threading.Thread(
            target=self.run_forever,
            name="urlcache-poller",
            daemon=True,
        )
        self._thread.start()
        return self

    def stop(self) -> None:
        """Ask the loop to exit at its next wait."""
        self._stop_event.set()

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the loop thread to finish.

        Returns:
            True if the thread has exited (or was never started)
        """
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def get_stats(self) -> Dict[str, Any]:
        """Get refresh statistics."""
        scheme = self._scheme
        with self._stats_lock:
            stats = dict(self._stats)
        stats.update({
            "state": self._state.value,
            "scheme": scheme.kind.value if scheme else None,
            "token": scheme.token if scheme else None,
        })
        return stats
