"""
Entry point: mirror a URL into a local file and keep it fresh.
"""
import logging
from datetime import timedelta
from pathlib import Path
from typing import Optional, Union

import requests

from .settings import settings
from .errors import SetupError
from .http_client import ResourceClient
from .poller import CachePoller
from .storage import PathLike, UpdateCallback, read_initial

logger = logging.getLogger("urlcache.mirror")

Interval = Union[float, int, timedelta, None]


def normalize_interval(interval: Interval) -> float:
    """Convert an interval to seconds, substituting the default for zero or negative values."""
    if isinstance(interval, timedelta):
        seconds = interval.total_seconds()
    else:
        seconds = float(interval or 0)

    if seconds <= 0:
        return settings.default_check_interval
    return seconds


def _ensure_cache_dir(cache_path: Path) -> None:
    directory = cache_path.parent
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise SetupError(f"Unable to create cache dir {directory}: {e}") from e


def start(
    url: str,
    cache_path: PathLike,
    interval: Interval,
    on_update: UpdateCallback,
    *,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
) -> CachePoller:
    """
    Start mirroring url into cache_path.

    If cache_path already holds a copy, on_update is called with it before
    this function returns and before any request is made. After that a
    background thread polls url every interval and calls on_update with
    each new version.

    Args:
        url: Resource to mirror
        cache_path: File that holds the last accepted copy
        interval: Seconds or timedelta between checks (<= 0 uses the default)
        on_update: Receives a binary stream; raising rejects the data
        session: Optional requests session to reuse
        timeout: Optional per-request timeout in seconds

    Returns:
        The running CachePoller; call stop() on it to end polling

    Raises:
        SetupError: If the cache directory cannot be created
    """
    cache_path = Path(cache_path)
    _ensure_cache_dir(cache_path)

    baseline = read_initial(cache_path, on_update)
    client = ResourceClient(url, session=session, timeout=timeout)

    poller = CachePoller(
        url=url,
        cache_path=cache_path,
        interval=normalize_interval(interval),
        on_update=on_update,
        baseline=baseline,
        client=client,
    )
    logger.info(f"Mirroring {url} to {cache_path} every {poller.interval}s")
    return poller.start()
