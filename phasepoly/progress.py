"""Light-weight textual progress reporting for batch commands."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import IO
import sys


@dataclass
class ProgressReporter:
    """Render one status line per input file of a batch run.

    Lines look like ``[ 2/10]   message``.  :meth:`announce` rewrites the
    current line in place, :meth:`report` prints a permanent line and
    :meth:`advance` moves on to the next file.
    """

    total: int
    stream: IO[str] = field(default_factory=lambda: sys.stdout)
    enabled: bool = True

    def __post_init__(self) -> None:
        self.total = max(int(self.total), 1)
        self._index = 0
        self._last_len = 0

    @property
    def prefix(self) -> str:
        width = len(str(self.total))
        return f"[{self._index + 1:>{width}}/{self.total}]"

    # ------------------------------------------------------------------
    def announce(self, message: str) -> None:
        """Display ``message`` on the transient status line."""

        self._write(f"{self.prefix}   {message}", done=False)

    # ------------------------------------------------------------------
    def report(self, message: str) -> None:
        """Display ``message`` on its own line."""

        self._write(f"{self.prefix}   {message}", done=True)

    # ------------------------------------------------------------------
    def advance(self) -> None:
        """Terminate the current line and move on to the next input."""

        self.close()
        self._index = min(self._index + 1, self.total - 1)

    # ------------------------------------------------------------------
    def _write(self, text: str, *, done: bool) -> None:
        if not self.enabled:
            return
        blank = "\r" + (" " * self._last_len) + "\r"
        self.stream.write(blank)
        self.stream.write(text)
        if done:
            self.stream.write("\n")
            self._last_len = 0
        else:
            self._last_len = len(text)
        self.stream.flush()

    # ------------------------------------------------------------------
    def close(self) -> None:
        """Ensure the current line is terminated with a newline."""

        if self.enabled and self._last_len:
            self.stream.write("\n")
            self.stream.flush()
            self._last_len = 0


__all__ = ["ProgressReporter"]
