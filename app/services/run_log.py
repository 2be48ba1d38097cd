"""Durable, append-only run log file."""

import logging
import time
from pathlib import Path
from typing import Union


class RunLog:
    """Writes bracketed-timestamp lines to a log file.

    This is the only persistent record of runs. Lines look like
    ``[2024-05-01 12:00:00.123] TEST RUN STARTED  [<id>]`` with UTC times.
    """

    def __init__(self, path: Union[str, Path]):
        """Initialize the log.

        Args:
            path: File to append to; parent directories are created
        """
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

        formatter = logging.Formatter("[%(asctime)s] %(message)s")
        formatter.default_time_format = "%Y-%m-%d %H:%M:%S"
        formatter.default_msec_format = "%s.%03d"
        formatter.converter = time.gmtime

        self._handler = logging.FileHandler(self.path, mode="a", encoding="utf-8")
        self._handler.setFormatter(formatter)

        # Standalone logger so run lines never reach the root handlers
        self._logger = logging.Logger(f"runlog:{self.path}", level=logging.INFO)
        self._logger.addHandler(self._handler)

    def write(self, line: str = ""):
        """Append one line."""
        self._logger.info(line)

    def section(self, char: str = "─", width: int = 60):
        """Append a separator line."""
        self.write(char * width)

    def close(self):
        """Flush and release the file handle."""
        self._logger.removeHandler(self._handler)
        self._handler.close()
