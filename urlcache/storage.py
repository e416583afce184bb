"""
Local cache file handling.

Handles the startup read of an existing copy and the crash-safe replacement
of the cache file after a refresh. The file at the cache path only ever holds
bytes that on_update accepted; new content is written next to it and renamed
into place.
"""
import io
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Callable, Optional, Union

from .settings import settings
from .errors import CallbackError, CommitError

logger = logging.getLogger("urlcache.storage")

PathLike = Union[str, os.PathLike]
UpdateCallback = Callable[[BinaryIO], None]

# Permissions for committed cache files (temp files start out as 0600)
CACHE_FILE_MODE = 0o644


def read_initial(path: PathLike, on_update: UpdateCallback) -> Optional[datetime]:
    """
    Feed an existing cache file to the callback once.

    Args:
        path: Cache file location
        on_update: Receives an open binary stream of the file

    Returns:
        The file's modification time (UTC) if the callback accepted it,
        otherwise None
    """
    path = Path(path)
    try:
        stream = path.open("rb")
    except FileNotFoundError:
        logger.debug(f"No cached copy at {path}")
        return None
    except OSError as e:
        logger.warning(f"Unable to open cached copy {path}: {e}")
        return None

    with stream:
        try:
            on_update(stream)
        except Exception as e:
            logger.warning(f"Callback rejected cached copy {path}: {e}")
            return None

    try:
        mtime = path.stat().st_mtime
    except OSError as e:
        logger.warning(f"Unable to stat cached copy {path}: {e}")
        return None

    logger.debug(f"Successfully initialized from {path}")
    return datetime.fromtimestamp(mtime, tz=timezone.utc)


def fallback_temp_path(path: Path) -> Path:
    """Fixed temp name next to the destination, used when mkstemp is unavailable."""
    return path.with_name(path.name + settings.temp_suffix)


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except OSError as e:
        logger.debug(f"Unable to remove temp file {path}: {e}")


def _open_temp(path: Path) -> BinaryIO:
    try:
        return tempfile.NamedTemporaryFile(
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=settings.temp_suffix,
            delete=False,
        )
    except OSError as e:
        fallback = fallback_temp_path(path)
        logger.debug(f"Unable to create temp file, writing {fallback} instead: {e}")
        return open(fallback, "wb")


def _write_temp(path: Path, data: bytes) -> Path:
    """Write data to a temp file in the destination directory and return its path."""
    stream = _open_temp(path)
    tmp_path = Path(stream.name)
    try:
        with stream:
            stream.write(data)
            stream.flush()
            os.fsync(stream.fileno())
        os.chmod(tmp_path, CACHE_FILE_MODE)
    except OSError:
        _discard(tmp_path)
        raise
    return tmp_path


def _replace(tmp_path: Path, path: Path) -> None:
    """
    Move tmp_path onto path.

    os.replace swaps the file atomically on POSIX and Windows, so readers see
    either the old or the new file. A failed replace leaves the old file in
    place; it is never removed ahead of the rename.
    """
    os.replace(tmp_path, path)


def write_atomic(path: PathLike, data: bytes) -> None:
    """
    Replace the file at path with data without exposing a partial write.

    Raises:
        CommitError: If the temp file cannot be written or moved into place
    """
    path = Path(path)
    try:
        tmp_path = _write_temp(path, data)
    except OSError as e:
        raise CommitError(f"Unable to write temp file for {path}: {e}") from e

    try:
        _replace(tmp_path, path)
    except OSError as e:
        _discard(tmp_path)
        raise CommitError(f"Unable to move temp file onto {path}: {e}") from e


def commit(path: PathLike, data: bytes, on_update: UpdateCallback) -> None:
    """
    Validate fetched data through the callback, then store it.

    The callback sees the bytes before the cache file is touched, so a
    rejected fetch leaves the previous copy in place.

    Raises:
        CallbackError: If on_update raised
        CommitError: If the file could not be replaced
    """
    try:
        on_update(io.BytesIO(data))
    except Exception as e:
        raise CallbackError(f"Callback rejected {len(data)} fetched bytes: {e}") from e

    write_atomic(path, data)
    logger.debug(f"Committed {len(data)} bytes to {path}")
