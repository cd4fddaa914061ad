"""Key/value persistence for leaderboards, settings and puzzle progress.

Storage is best-effort: every method reports failure through its return
value and a log line instead of raising, so gameplay never stops on a bad
disk.
"""

import contextlib
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Dict, Protocol

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStorage(Protocol):
    """Protocol for the string store the progress system writes to."""

    def load(self, key: str) -> str | None: ...

    def save(self, key: str, value: str) -> bool: ...

    def remove(self, key: str) -> bool: ...


class InMemoryStorage:
    """Dictionary-backed storage for tests and headless runs."""

    def __init__(self, initial: Dict[str, str] | None = None) -> None:
        self.values: Dict[str, str] = dict(initial or {})

    def load(self, key: str) -> str | None:
        return self.values.get(key)

    def save(self, key: str, value: str) -> bool:
        self.values[key] = value
        return True

    def remove(self, key: str) -> bool:
        self.values.pop(key, None)
        return True


class LocalFileStorage:
    """Stores each key as ``<key>.json`` under a directory.

    Writes go to a temp file in the same directory and are renamed into
    place, so a crash mid-write leaves the previous value intact.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory).resolve()

    @property
    def directory(self) -> Path:
        return self._directory

    def _path_for(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key '{key}'")
        return self._directory / f"{key}.json"

    def load(self, key: str) -> str | None:
        try:
            path = self._path_for(key)
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, ValueError, UnicodeDecodeError):
            logger.warning("Failed to load '%s' from %s", key, self._directory, exc_info=True)
            return None

    def save(self, key: str, value: str) -> bool:
        try:
            target = self._path_for(key)
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=str(self._directory), suffix=".tmp", prefix=f".{key}_")
            fd_owned = True
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    fd_owned = False
                    handle.write(value)
                Path(tmp_path).replace(target)
            except BaseException:
                if fd_owned:
                    with contextlib.suppress(OSError):
                        os.close(fd)
                with contextlib.suppress(OSError):
                    Path(tmp_path).unlink()
                raise
        except (OSError, ValueError):
            logger.warning("Failed to save '%s' to %s", key, self._directory, exc_info=True)
            return False
        return True

    def remove(self, key: str) -> bool:
        try:
            self._path_for(key).unlink(missing_ok=True)
        except (OSError, ValueError):
            logger.warning("Failed to remove '%s' from %s", key, self._directory, exc_info=True)
            return False
        return True
