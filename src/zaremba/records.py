# -----------------------------------------------------------------------------
#  records.py
#  Increasing scan over n = 1 .. max_n - 1 reporting record-setters for
#  z(n) and for z(n)/ln(tau(n))
# -----------------------------------------------------------------------------

from __future__ import annotations

import math
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any, Literal

from zaremba.divisors import DivisorResult, compute_divisor_sum, zaremba_ratio
from zaremba.waterfall import tau_from_primes, waterfall_numbers, weber_z

RecordKind = Literal["z", "ratio", "both"]
RECORD_KINDS: tuple[RecordKind, ...] = ("z", "ratio", "both")

# emit(n, kind, z, tau, ratio)
Emitter = Callable[[int, str, float, int, float], None]

PROGRESS_EVERY = 1024  # values between progress callbacks


@dataclass
class RunningMax:
    """
    Running maximum with an explicit "no baseline yet" state.

    The first positive, finite value only establishes the baseline; later
    values are records when they strictly exceed it. Zero and non-finite
    values (z(1) = 0, ratio(1) = NaN) never set or break a record.
    """
    value: float | None = None

    @property
    def is_set(self) -> bool:
        return self.value is not None

    def exceeded_by(self, x: float) -> bool:
        return self.value is not None and math.isfinite(x) and x > self.value

    def update(self, x: float) -> None:
        if not math.isfinite(x) or x <= 0.0:
            return
        if self.value is None or x > self.value:
            self.value = x

    def current(self) -> float:
        return 0.0 if self.value is None else self.value


@dataclass
class ScanState:
    n: int = 0                  # last n evaluated
    z: RunningMax = field(default_factory=RunningMax)
    ratio: RunningMax = field(default_factory=RunningMax)
    records: int = 0            # events emitted so far

    @property
    def record_z(self) -> float:
        return self.z.current()

    @property
    def record_ratio(self) -> float:
        return self.ratio.current()


@dataclass(frozen=True, slots=True)
class RecordEvent:
    n: int
    kind: RecordKind
    z: float
    tau: int
    ratio: float

    @property
    def is_z_record(self) -> bool:
        return self.kind in ("z", "both")

    @property
    def is_ratio_record(self) -> bool:
        return self.kind in ("ratio", "both")

    def as_dict(self) -> dict[str, Any]:
        return {
            "n": self.n,
            "kind": self.kind,
            "z": self.z,
            "tau": self.tau,
            "ratio": self.ratio,
            "is_z_record": self.is_z_record,
            "is_ratio_record": self.is_ratio_record,
        }


def classify_record(is_record_z: bool, is_record_ratio: bool) -> RecordKind | None:
    """Combine the two record flags into a single event kind (or None)."""
    if is_record_z and is_record_ratio:
        return "both"
    if is_record_z:
        return "z"
    if is_record_ratio:
        return "ratio"
    return None


class RecordScanner:
    """
    Drives a divisor-sum function over n = 1, 2, ... and yields a RecordEvent
    whenever z or the ratio breaks its running maximum.

    `compute` defaults to compute_divisor_sum; any callable n -> (z, tau)
    will do.
    """

    def __init__(self, compute: Callable[[int], DivisorResult | tuple[float, int]] = compute_divisor_sum):
        self.compute = compute
        self.state = ScanState()

    def step(self, n: int) -> RecordEvent | None:
        z, tau = self.compute(n)
        return self.observe(n, z, tau)

    def observe(self, n: int, z: float, tau: int) -> RecordEvent | None:
        """Feed an already computed (z, tau) for n; n must increase between calls."""
        ratio = zaremba_ratio(z, tau)

        st = self.state
        kind = classify_record(st.z.exceeded_by(z), st.ratio.exceeded_by(ratio))

        # maxima move every iteration, event or not
        st.z.update(z)
        st.ratio.update(ratio)
        st.n = n

        if kind is None:
            return None
        st.records += 1
        return RecordEvent(n=n, kind=kind, z=z, tau=tau, ratio=ratio)

    def scan(self, max_n: int, progress: Callable[[int], None] | None = None) -> Iterator[RecordEvent]:
        """Yield record events for n = 1 .. max_n - 1, in increasing n."""
        for n in range(1, max_n):
            event = self.step(n)
            if event is not None:
                yield event
            if progress is not None and n % PROGRESS_EVERY == 0:
                progress(n)


def scan_for_records(
    max_n: int,
    emit: Emitter,
    *,
    progress: Callable[[int], None] | None = None,
    compute: Callable[[int], DivisorResult | tuple[float, int]] = compute_divisor_sum,
) -> ScanState:
    """
    Scan n = 1 .. max_n - 1 and call emit(n, kind, z, tau, ratio) once per
    record event. Returns the final ScanState.
    """
    scanner = RecordScanner(compute)
    for ev in scanner.scan(max_n, progress=progress):
        emit(ev.n, ev.kind, ev.z, ev.tau, ev.ratio)
    return scanner.state


def scan_waterfall_records(
    max_n: int,
    emit: Emitter,
    *,
    progress: Callable[[int], None] | None = None,
) -> ScanState:
    """
    Like scan_for_records(), but only waterfall numbers n < max_n are
    evaluated, with z from the prime exponents (weber_z). Far larger max_n
    become reachable; small non-waterfall setters such as 3 are not seen,
    and z may differ from compute_divisor_sum() in the last bits.
    """
    scanner = RecordScanner()
    for i, w in enumerate(waterfall_numbers(max_n - 1), start=1):
        exps = w.primes
        ev = scanner.observe(w.value, weber_z(w.value, exps), tau_from_primes(exps))
        if ev is not None:
            emit(ev.n, ev.kind, ev.z, ev.tau, ev.ratio)
        if progress is not None and i % PROGRESS_EVERY == 0:
            progress(w.value)
    return scanner.state
