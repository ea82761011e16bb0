# src/zaremba/progress.py
from __future__ import annotations

import sys
import time

from zaremba.fmt import format_duration
from zaremba.utility import get_terminal_width


class Progress:
    """
    Throttled spinner + bar for long record scans.

    Draws on stderr so it never interleaves with record lines on stdout, and
    stays silent when disabled (non-TTY, --no-progress, or profile setting).
    """

    SPIN = "|/-\\"
    THROTTLE = 0.1   # seconds between redraws
    BAR_LEN = 24

    def __init__(self, total: int, *, enabled: bool = True, stream=None):
        self.total = max(1, int(total))
        self.stream = stream if stream is not None else sys.stderr
        self.enabled = enabled
        self.start = time.perf_counter()
        self.last_draw = 0.0
        self.i = 0

    def __call__(self, done: int) -> None:
        # RecordScanner calls progress(n)
        self.update(done)

    def update(self, done: int, label: str = "") -> None:
        if not self.enabled:
            return
        now = time.perf_counter()
        if now - self.last_draw < self.THROTTLE:
            return
        self.last_draw = now
        self.i = (self.i + 1) % len(self.SPIN)

        frac = min(max(done / self.total, 0.0), 1.0)
        fill = int(frac * self.BAR_LEN)
        bar = "#" * fill + "-" * (self.BAR_LEN - fill)

        elapsed = now - self.start
        eta = ""
        if 0.0 < frac < 1.0 and elapsed > 0:
            eta = f" ETA {format_duration(elapsed * (1.0 - frac) / frac)}"
        tail = label or f"n={done}"
        self.stream.write(f"\r[{self.SPIN[self.i]}] [{bar}] {int(frac * 100):3d}%{eta}  {tail[:40]}")
        self.stream.flush()

    def done(self) -> None:
        if not self.enabled:
            return
        self.stream.write("\r" + " " * (get_terminal_width() - 1) + "\r")
        self.stream.flush()
