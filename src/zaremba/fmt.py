# src/zaremba/fmt.py
from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping, Sequence
from typing import Any

from zaremba.runtime import CFG

# Single source of truth for ANSI stripping
ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


def strip_ansi(s: str | None) -> str:
    return ANSI_RE.sub("", s or "")


def format_float(x: float, digits: int | None = None) -> str:
    """
    Render a float for reports.

    digits = 0 (the default profile) gives the shortest repr that round-trips,
    otherwise a fixed number of decimals. NaN and infinities are always
    'nan', 'inf', '-inf'.
    """
    if digits is None:
        digits = int(CFG("FORMATTING.FLOAT_DIGITS", 0))
    if not math.isfinite(x) or digits <= 0:
        return repr(float(x))
    return f"{x:.{digits}f}"


def format_factorization(fac: Mapping[int, int]) -> str:
    """
    Turn {p: e, ...} into a tidy string like: 2^3 × 3 × 5^2
    """
    parts: list[str] = []
    for p, e in sorted(fac.items()):
        parts.append(f"{p}^{e}" if e > 1 else f"{p}")
    return " × ".join(parts) if parts else "1"


def format_divisors(ds: Sequence[int], truncated: bool = False) -> str:
    ell = CFG("FORMATTING.ELLIPSIS", "…")
    body = ", ".join(str(d) for d in ds)
    return f"{body}, {ell}" if truncated else body


def format_duration(seconds: float) -> str:
    """ms if <1s; s with millis if <60s; else mm:ss.mmm (and hh:mm:ss.mmm if ≥1h)."""
    MAX_SECONDS = 60
    if seconds < 1:
        ms = round(seconds * 1000)
        return f"{ms} ms"
    if seconds < MAX_SECONDS:
        return f"{seconds:.3f} s"
    m, s = divmod(seconds, MAX_SECONDS)
    if m < MAX_SECONDS:
        return f"{int(m)}:{s:06.3f}"               # mm:ss.mmm
    h, m = divmod(int(m), MAX_SECONDS)
    return f"{h}:{m:02d}:{s:06.3f}"                # hh:mm:ss.mmm


# --- one-line record formats --------------------------------------------------

def format_single_line(n: int, z: float, tau: int, ratio: float) -> str:
    """z(n) = Z<TAB>tau(n) = T<TAB>z(n)/ln(tau(n)) = R"""
    return (
        f"z({n}) = {format_float(z)}\t"
        f"tau({n}) = {tau}\t"
        f"z({n})/ln(tau({n})) = {format_float(ratio)}"
    )


def format_record_line(n: int, kind: str, z: float, tau: int, ratio: float) -> str:
    """n<TAB>record=KIND<TAB>z(n) = Z<TAB>tau(n) = T<TAB>z(n)/ln(tau(n)) = R"""
    return f"{n}\trecord={kind}\t{format_single_line(n, z, tau, ratio)}"


def format_json(payload: Mapping[str, Any]) -> str:
    """
    One compact JSON object per line. Floats are written in full precision
    regardless of FLOAT_DIGITS; NaN is written as the (non-standard) NaN token
    that json.loads accepts.
    """
    return json.dumps(dict(payload), separators=(", ", ": "))
