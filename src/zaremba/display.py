# src/zaremba/display.py
from __future__ import annotations

import json
import math
from collections.abc import Iterable
from pathlib import Path

from colorama import Fore, Style

from zaremba.divisors import DivisorResult, compute_divisor_sum
from zaremba.fmt import (
    format_divisors,
    format_factorization,
    format_float,
    format_json,
    format_record_line,
)
from zaremba.output_manager import OutputManager
from zaremba.records import RECORD_KINDS, RecordEvent, classify_record
from zaremba.runtime import CFG
from zaremba.utility import UserInputError, divisor_list, prime_factorization
from zaremba.vsearch import search_v_record_kprimes
from zaremba.waterfall import factor_waterfall, nth_prime, primes_to_primorials, primorial, waterfall_numbers

ALIGN_WIDTH = 25  # label column


def _line(label: str, value: str) -> str:
    return f"  {label + ':':<{ALIGN_WIDTH}}{value}"


def print_statistics(n: int, user_input: str | None = None, *, om: OutputManager,
                     fmt: str = "text") -> DivisorResult:
    """
    Report z(n), tau(n) and z(n)/ln(tau(n)) for one n.
    fmt="json" writes a single JSON object instead of the text block.
    """
    res = compute_divisor_sum(n)
    ratio = res.ratio

    if fmt == "json":
        om.write(format_json({"n": n, "z": res.z, "tau": res.tau, "ratio": ratio}))
        return res

    om.write(f"{Fore.CYAN + Style.BRIGHT}Zaremba statistics:{Style.RESET_ALL}")
    if user_input is not None and user_input.strip() != str(n):
        om.write(_line("Input", user_input))
    om.write(_line("Number", f"{Fore.YELLOW}{Style.BRIGHT}{n}{Style.RESET_ALL}"))

    if CFG("DISPLAY_SETTINGS.SHOW_FACTORIZATION", True):
        om.write(_line("Prime factorization", format_factorization(prime_factorization(n))))

    if CFG("DISPLAY_SETTINGS.SHOW_DIVISORS", True):
        limit = int(CFG("DISPLAY_SETTINGS.MAX_DIVISORS_SHOWN", 64))
        ds, truncated = divisor_list(n, limit if limit > 0 else None)
        om.write(_line("Divisors", format_divisors(ds, truncated)))

    om.write(_line("tau(n)", str(res.tau)))
    om.write(_line("z(n)", format_float(res.z)))

    ratio_str = format_float(ratio)
    if not math.isfinite(ratio):
        ratio_str += f" {Style.DIM}(undefined: ln(tau) = 0){Style.RESET_ALL}"
    om.write(_line("z(n)/ln(tau(n))", ratio_str))
    return res


class RecordPrinter:
    """
    Record-event sink for scan_for_records(): one line per event, either the
    tab-separated text format or JSON lines.
    """

    def __init__(self, om: OutputManager, fmt: str = "text"):
        self.om = om
        self.fmt = fmt
        self.count = 0

    def __call__(self, n: int, kind: str, z: float, tau: int, ratio: float) -> None:
        self.count += 1
        if self.fmt == "json":
            ev = RecordEvent(n=n, kind=kind, z=z, tau=tau, ratio=ratio)
            self.om.write(format_json(ev.as_dict()))
        else:
            self.om.write(format_record_line(n, kind, z, tau, ratio))


# --- JSON lines -> LaTeX ---------------------------------------------------------

def _event_from_dict(obj: dict, where: str) -> RecordEvent:
    try:
        n, z, tau, ratio = int(obj["n"]), float(obj["z"]), int(obj["tau"]), float(obj["ratio"])
    except (KeyError, TypeError, ValueError) as e:
        raise UserInputError(f"{where}: missing or malformed field ({e}).") from None

    kind = obj.get("kind")
    if kind is None:
        # also accept the two boolean flags on their own
        kind = classify_record(bool(obj.get("is_z_record")), bool(obj.get("is_ratio_record")))
    if kind not in RECORD_KINDS:
        raise UserInputError(f"{where}: non-record-setter entry found: {obj!r}")
    return RecordEvent(n=n, kind=kind, z=z, tau=tau, ratio=ratio)


def load_records_jsonl(path: str | Path) -> list[RecordEvent]:
    """Read a JSON-lines file written by `zaremba records --json`."""
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise UserInputError(f"cannot read {p}: {e.strerror or e}") from None

    events: list[RecordEvent] = []
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue
        where = f"{p.name} line {lineno}"
        try:
            obj = json.loads(line)
        except json.JSONDecodeError as e:
            raise UserInputError(f"{where}: not valid JSON ({e.msg}).") from None
        if not isinstance(obj, dict):
            raise UserInputError(f"{where}: expected a JSON object.")
        events.append(_event_from_dict(obj, where))
    return events


LATEX_HEADER = r"n & z(n) & $\tau(n)$ & v(n) & type of record \\"

# table labels: Z = z(n) record, V = v(n) = z(n)/ln(tau(n)) record
LATEX_KIND_LABELS = {"z": "Z", "ratio": "V", "both": "both"}


def records_to_latex(records: Iterable[RecordEvent]) -> list[str]:
    """LaTeX table body: a header row and one row per record."""
    rows = [LATEX_HEADER]
    for r in records:
        rows.append(" & ".join([str(r.n), repr(r.z), str(r.tau), repr(r.ratio), LATEX_KIND_LABELS[r.kind]]) + r" \\")
    return rows


# --- waterfall numbers -----------------------------------------------------------

SPARK_LEVELS = " ▁▂▃▄▅▆▇"


def print_waterfall(max_n: int, *, om: OutputManager, fmt: str = "text") -> int:
    """List the waterfall numbers <= max_n as `value: [primorial exponents]`."""
    found = waterfall_numbers(max_n)
    for w in found:
        exps = list(w.primorials)
        if fmt == "json":
            om.write(format_json({"n": w.value, "primorials": exps}))
        else:
            om.write(f"{w.value}: {exps}")
    return len(found)


def primorial_sparkline(primorial_exps: list[int]) -> str | None:
    """One block character per primorial exponent; None if any exceeds 7."""
    if any(e >= len(SPARK_LEVELS) for e in primorial_exps):
        return None
    return "".join(SPARK_LEVELS[e] for e in primorial_exps)


def print_factor_report(n: int, *, om: OutputManager, fmt: str = "text") -> list[int]:
    """Prime and primorial exponents of a waterfall number."""
    primes = factor_waterfall(n)
    if primes is None:
        raise UserInputError(f"{n} is not a waterfall number, cannot factor.")
    primorials = primes_to_primorials(primes)

    if fmt == "json":
        om.write(format_json({"n": n, "primes": primes, "primorials": primorials}))
        return primes

    om.write(_line("Prime exponents", str(primes)))
    om.write(_line("Repeated prime factors",
                   " * ".join(f"{nth_prime(i)}^{a}" for i, a in enumerate(primes))))
    om.write(_line("Primorial exponents", str(primorials)))
    om.write(_line("Primorial factors",
                   " * ".join(f"{primorial(i + 1)}^{e}" for i, e in enumerate(primorials) if e)))
    spark = primorial_sparkline(primorials)
    if spark is None:
        om.write(f"  {Style.DIM}Could not make primorial sparkline{Style.RESET_ALL}")
    else:
        om.write(_line("Primorial sparkline", f"[{spark}]"))
    return primes


def print_kprimes(k: int, v_record: float, *, om: OutputManager, fmt: str = "text") -> list:
    """
    Every waterfall candidate with exactly the first k primes that the bound
    for v_record admits, then the ones that beat v_record.
    """
    bounds, candidates = search_v_record_kprimes(k, v_record)
    new_records = []
    checked = 0

    if fmt != "json":
        om.write(f"Max z(n) = {format_float(bounds.z_max)}")
        om.write(f"Max log(tau(n)) = {format_float(bounds.log_tau_max)}, tau(n) = {bounds.tau_max}")

    for c in candidates:
        checked += 1
        if fmt == "json":
            om.write(format_json({"n": c.n, "tau": c.tau, "z": c.z, "v": c.v,
                                  "primes": list(c.primes), "primorials": list(c.primorials),
                                  "is_record": c.v > v_record}))
        else:
            om.write(f"primorials={list(c.primorials)}\tprimes = {list(c.primes)}\ttau = {c.tau}"
                     f"\tn = {c.n}\tz = {format_float(c.z)}\tv = {format_float(c.v)}")
        if c.v > v_record:
            new_records.append(c)

    if fmt != "json":
        om.write(f"Checked {checked} candidates; {len(new_records)} new records found.")
        for c in new_records:
            om.write(f"{Fore.GREEN}New record!{Style.RESET_ALL} n = {c.n}\ttau = {c.tau}"
                     f"\tz = {format_float(c.z)}\tv = {format_float(c.v)}")
    return new_records
