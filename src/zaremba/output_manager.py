# output_manager.py

from __future__ import annotations

import os
import re
import sys

from zaremba.fmt import strip_ansi
from zaremba.workspace import workspace_dir

_SAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9._=-]+")


def resolve_output_path(path: str, workspace_root: str) -> str:
    """
    Resolve user-provided output path.

    Rules:
    - '~' expanded to user home
    - Absolute paths unchanged
    - Relative paths are relative to workspace_root
    """
    if not path:
        raise ValueError("Output path is empty")

    path = os.path.expanduser(path)
    if os.path.isabs(path):
        return os.path.normpath(path)
    return os.path.normpath(os.path.join(workspace_root, path))


def run_filename(label: str, ext: str = ".txt") -> str:
    """Filesystem-safe per-run file name, e.g. 'records_100000.txt'."""
    stem = _SAFE_CHARS_RE.sub("_", label).strip("._-=") or "run"
    return stem + ext


class OutputManager:
    """
    Handles all report output, to screen and/or file.

    Usage:
        # Per-run file in a directory:
        om = OutputManager(output_file="results/", label="records_1000")
        om.write("...")   # prints and buffers; file written on close()
        om.close()

        # Single file (append all runs to one file):
        om = OutputManager(output_file="results/all.txt")
        om.write("...")   # prints and appends
        om.close()
    """

    def __init__(self, output_file: str | None = None, quiet: bool = False, label: str | None = None, stream=None):
        """
        Parameters:
            output_file:
                None or ""       => screen only
                "." or "./"      => per-run file in the workspace
                endswith "/"     => per-run file in that directory
                path/to/file.txt => append all runs to this file
            quiet: if True, no output to screen (only to file)
            label: used for the file name in per-run mode
            stream: screen stream (defaults to sys.stdout at write time)
        """
        self.quiet = quiet
        self.output_file = output_file or ""
        self.label = label
        self.stream = stream
        self._buffer: list[str] = []
        self._closed = False

        self._mode: str = "none"     # "none" | "split" | "single"
        self.path: str | None = None

        workspace = str(workspace_dir())
        if self.output_file in (".", "./") or self.output_file.endswith("/"):
            if not label:
                raise ValueError("A run label must be provided when outputting to a directory.")
            directory = resolve_output_path(self.output_file, workspace)
            os.makedirs(directory, exist_ok=True)
            self._mode = "split"
            self.path = os.path.join(directory, run_filename(label))

        elif self.output_file:
            path = resolve_output_path(self.output_file, workspace)
            parent = os.path.dirname(path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            self._mode = "single"
            self.path = path

    def write(self, *args, sep: str = " ", end: str = "\n") -> None:
        """Write to screen and file (if configured)."""
        text = sep.join(str(a) for a in args) + end
        self._buffer.append(text)

        if not self.quiet:
            out = self.stream or sys.stdout
            # colors only on a terminal; pipes and captures get plain text
            isatty = getattr(out, "isatty", None)
            out.write(text if isatty is not None and isatty() else strip_ansi(text))
            out.flush()

        if self._mode == "single" and self.path:
            with open(self.path, "a", encoding="utf-8") as fh:
                fh.write(strip_ansi(text))
        # split mode is written once on close()

    def close(self) -> None:
        """Flush buffered output to the per-run file, or add a separator in single-file mode."""
        if self._closed:
            return
        self._closed = True

        if self._mode == "split" and self.path and self._buffer:
            with open(self.path, "w", encoding="utf-8") as fh:
                fh.write(strip_ansi("".join(self._buffer)))
            return

        if self._mode == "single" and self.path and self._buffer:
            with open(self.path, "a", encoding="utf-8") as fh:
                fh.write("\n")  # one empty line between runs

    def __enter__(self) -> OutputManager:
        return self

    def __exit__(self, *exc) -> None:
        self.close()
