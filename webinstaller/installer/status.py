from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

LOG_NAME_PATTERN = re.compile(r"^install-(\d+)\.log$")


def log_filename(timestamp) -> str:
    return f"install-{timestamp}.log"


class InstallLogError(Exception):
    pass


class InstallLogNotFound(InstallLogError):
    """No install log matches the query (no install has been run yet)."""


class InstallLogUnreadable(InstallLogError):
    """A matching install log exists but could not be read."""


@dataclass(frozen=True)
class InstallStatus:
    timestamp: str
    content: str

    def to_dict(self) -> dict:
        return {"timestamp": self.timestamp, "content": self.content}


class InstallStatusReporter:
    """Reads install logs for the polling endpoint and the failure page.

    A single operator is assumed: the newest log is picked by directory scan
    with no locking, and logs are read while the installer may still append.
    """

    def __init__(self, log_dir):
        self.log_dir = Path(log_dir)

    def latest_log(self) -> Optional[Tuple[str, Path]]:
        if not self.log_dir.is_dir():
            return None

        newest: Optional[Tuple[str, Path]] = None
        newest_mtime = 0.0
        for item in self.log_dir.iterdir():
            match = LOG_NAME_PATTERN.match(item.name)
            if not match or not item.is_file():
                continue
            try:
                mtime = item.stat().st_mtime
            except OSError:
                # Removed between the listing and the stat.
                continue
            if newest is None or mtime > newest_mtime:
                newest_mtime = mtime
                newest = (match.group(1), item)
        return newest

    def get_status(self, timestamp: Optional[str] = None) -> InstallStatus:
        if timestamp is None:
            latest = self.latest_log()
            if latest is None:
                raise InstallLogNotFound(f"No install log found in {self.log_dir}")
            timestamp, path = latest
        else:
            timestamp = str(timestamp)
            if not timestamp.isdigit():
                raise InstallLogNotFound(f"Invalid install timestamp: {timestamp!r}")
            path = self.log_dir / log_filename(timestamp)
            if not path.exists():
                raise InstallLogNotFound(f"No install log for timestamp {timestamp}")

        try:
            content = path.read_bytes().decode("utf-8", errors="replace")
        except OSError as exc:
            logger.error("Cannot read install log %s: %s", path, exc)
            raise InstallLogUnreadable(f"Cannot read install log {path.name}") from exc

        return InstallStatus(timestamp=timestamp, content=content)

    def read_failed_log(self, filename: str) -> Optional[str]:
        """Content of a named log for the failure page, ``None`` when absent."""
        if not LOG_NAME_PATTERN.match(filename or ""):
            return None
        path = self.log_dir / filename
        if not path.is_file():
            return None
        try:
            return path.read_bytes().decode("utf-8", errors="replace")
        except OSError as exc:
            logger.error("Cannot read install log %s: %s", path, exc)
            return None
