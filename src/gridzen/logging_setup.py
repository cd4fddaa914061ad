"""Logging for the game process.

Records go to stdout and, when a log directory is given, to one file per play
session. Old session files are pruned so a long-lived install keeps only the
most recent few.
"""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
SESSION_PREFIX = "gridzen_"
SESSION_STAMP = "%Y-%m-%d_%H-%M-%S"
KEEP_SESSIONS = 10

# Chatty at INFO while a window is open.
QUIET_LOGGERS = ("arcade", "pyglet", "PIL")

logger = logging.getLogger(__name__)


def session_files(log_dir: Path | str) -> List[Path]:
    """Session logs in ``log_dir``, oldest first."""
    return sorted(Path(log_dir).glob(f"{SESSION_PREFIX}*.log"))


def prune_sessions(log_dir: Path | str, keep: int = KEEP_SESSIONS) -> List[Path]:
    files = session_files(log_dir)
    stale = files[:-keep] if keep > 0 else files
    removed = []
    for path in stale:
        try:
            path.unlink()
        except OSError:
            logger.warning("Could not remove old session log %s", path, exc_info=True)
            continue
        removed.append(path)
    return removed


def _reset_root(level: int) -> logging.Logger:
    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    return root


def setup_logging(
    log_dir: Path | str | None = None,
    level: int = logging.INFO,
    *,
    keep_sessions: int = KEEP_SESSIONS,
) -> Path | None:
    """Configure the root logger and return this session's log file, if any.

    Repeated calls replace the previous handlers rather than stacking them.
    """
    root = _reset_root(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    root.addHandler(console)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    if log_dir is None:
        return None

    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    # The new file counts towards the kept sessions.
    prune_sessions(directory, keep=max(keep_sessions - 1, 0))
    stamp = datetime.now(tz=timezone.utc).strftime(SESSION_STAMP)
    session_file = directory / f"{SESSION_PREFIX}{stamp}.log"
    file_handler = logging.FileHandler(session_file, encoding="utf-8")
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)
    logger.debug("Session log opened at %s", session_file)
    return session_file
