# -----------------------------------------------------------------------------
#  Utility functions
# -----------------------------------------------------------------------------

from __future__ import annotations

import os
import shutil

from sympy import divisors, factorint


class UserInputError(Exception):
    pass


def dec_digits(n: int) -> int:
    """Exact decimal digit count without str(); handles n >= 0."""
    n = abs(n)
    if n == 0:
        return 1
    # floor(log10(n)) ~= floor(bitlen*log10(2)), 0.30103 ~ log10(2)
    est = (n.bit_length() * 30103) // 100000
    p10 = 10 ** est
    if n < p10:
        while n < p10:
            est -= 1
            p10 //= 10
    else:
        p10 *= 10
        while n >= p10:
            est += 1
            p10 *= 10
    return est + 1


def prime_factorization(n: int) -> dict[int, int]:
    """{p: e} for n >= 1 (empty for n = 1), via sympy."""
    if n < 1:
        raise ValueError(f"factorization needs n >= 1, got {n}")
    return {int(p): int(e) for p, e in factorint(n).items()}


def divisor_list(n: int, limit: int | None = None) -> tuple[list[int], bool]:
    """
    Sorted divisors of n, truncated to the first `limit` entries.
    Returns (divisors, truncated).
    """
    ds = [int(d) for d in divisors(n)]
    if limit is not None and len(ds) > limit:
        return ds[:limit], True
    return ds, False


def get_terminal_width(default=80):
    """
    Return the terminal's character width if detected, else the default
    value (80 by default).
    """
    try:
        return shutil.get_terminal_size().columns
    except (OSError, ValueError):
        return default


# output targets that would clobber project files or hit Windows device names
_FORBIDDEN_STEMS = frozenset(
    ["license", "con", "prn", "aux", "nul"]
    + [f"com{i}" for i in range(1, 10)]
    + [f"lpt{i}" for i in range(1, 10)]
)
_FORBIDDEN_EXTENSIONS = frozenset({".py", ".md", ".toml"})


def validate_output_setting(output_file: str | None) -> str | None:
    """
    Check an --output / OUTPUT.OUTPUT_FILE value and return it unchanged.

    Empty means screen only; ".", "./" or a trailing "/" mean one file per
    run in that directory. Anything else is a single append-to file and may
    not carry a source/doc extension or a reserved name (ValueError).
    """
    if not output_file or output_file in (".", "./") or output_file.endswith("/"):
        return output_file

    basename = os.path.basename(output_file)
    stem, ext = os.path.splitext(basename)
    if stem.lower() in _FORBIDDEN_STEMS:
        raise ValueError(f"Forbidden output filename: {basename}")
    if ext.lower() in _FORBIDDEN_EXTENSIONS:
        raise ValueError(f"Forbidden output file extension: {ext.lower()}")
    return output_file


def typename(v: object) -> str:
    return type(v).__name__


def flatten_dotted(d: dict, prefix: str = "") -> dict[str, object]:
    out: dict[str, object] = {}
    for k, v in (d or {}).items():
        key = f"{prefix}.{k}" if prefix else str(k)
        if isinstance(v, dict):
            out.update(flatten_dotted(v, key))
        else:
            out[key] = v
    return out
