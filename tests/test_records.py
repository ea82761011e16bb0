# tests/test_records.py
from __future__ import annotations

import math

import pytest

from zaremba.divisors import compute_divisor_sum
from zaremba.records import (
    RecordEvent,
    RecordScanner,
    RunningMax,
    ScanState,
    classify_record,
    scan_for_records,
    scan_waterfall_records,
)
from zaremba.waterfall import waterfall_numbers

# ---------- helpers -----------------------------------------------------------


def _fmax(a: float, b: float) -> float:
    """max() that ignores a NaN operand, like IEEE maxNum."""
    if math.isnan(a):
        return b
    if math.isnan(b):
        return a
    return max(a, b)


def _reference_scan(max_n: int) -> list[tuple[int, str]]:
    """Plain 0.0-sentinel scan, written independently of RecordScanner."""
    record_z = 0.0
    record_ratio = 0.0
    out = []
    for n in range(1, max_n):
        z, tau = compute_divisor_sum(n)
        ratio = z / math.log(tau) if tau > 1 else math.nan
        is_z = record_z > 0.0 and z > record_z
        is_ratio = record_ratio > 0.0 and ratio > record_ratio
        if is_z and is_ratio:
            out.append((n, "both"))
        elif is_z:
            out.append((n, "z"))
        elif is_ratio:
            out.append((n, "ratio"))
        record_z = _fmax(record_z, z)
        record_ratio = _fmax(record_ratio, ratio)
    return out


def _scripted(values: dict[int, tuple[float, int]]):
    """compute() replacement returning canned (z, tau) pairs."""
    def compute(n: int):
        return values[n]
    return compute


def _collect(max_n: int, **kw) -> tuple[list[RecordEvent], ScanState]:
    events: list[RecordEvent] = []

    def emit(n, kind, z, tau, ratio):
        events.append(RecordEvent(n=n, kind=kind, z=z, tau=tau, ratio=ratio))

    state = scan_for_records(max_n, emit, **kw)
    return events, state


# ---------- classification ----------------------------------------------------

@pytest.mark.parametrize("is_z,is_ratio,expected", [
    (True, True, "both"),
    (True, False, "z"),
    (False, True, "ratio"),
    (False, False, None),
])
def test_classify_record(is_z, is_ratio, expected):
    assert classify_record(is_z, is_ratio) == expected


# ---------- running maximum ---------------------------------------------------

def test_running_max_first_positive_value_is_baseline_only():
    m = RunningMax()
    assert not m.is_set
    assert not m.exceeded_by(0.5)
    m.update(0.5)
    assert m.is_set and m.current() == 0.5
    assert m.exceeded_by(0.6)
    assert not m.exceeded_by(0.5)  # strictly greater


def test_running_max_ignores_zero_and_non_finite():
    m = RunningMax()
    m.update(0.0)
    m.update(math.nan)
    assert not m.is_set
    assert m.current() == 0.0
    m.update(1.0)
    m.update(math.nan)
    m.update(math.inf)
    assert m.current() == 1.0
    assert not m.exceeded_by(math.nan)
    assert not m.exceeded_by(math.inf)


# ---------- real scans --------------------------------------------------------

def test_first_records_below_ten():
    events, state = _collect(10)
    assert [(e.n, e.kind) for e in events] == [(3, "both"), (4, "both"), (6, "both")]
    assert events[1].z == pytest.approx(0.6931471805599453)
    assert events[1].tau == 3
    assert events[1].ratio == pytest.approx(0.6309297535714574)
    assert events[2].ratio == pytest.approx(0.7295739585136225)
    assert state.n == 9
    assert state.records == 3


@pytest.mark.parametrize("max_n", [0, 1, 2, 3])
def test_tiny_ranges_emit_nothing(max_n):
    events, _ = _collect(max_n)
    assert events == []


def test_n_equal_one_never_corrupts_the_ratio_baseline():
    # n = 1 has ratio NaN, n = 2 sets the baseline 0.5, n = 3 beats it
    events, state = _collect(4)
    assert [(e.n, e.kind) for e in events] == [(3, "both")]
    assert math.isfinite(state.record_ratio)


@pytest.mark.parametrize("max_n", [50, 500, 3000])
def test_matches_independent_reference(max_n):
    events, _ = _collect(max_n)
    assert [(e.n, e.kind) for e in events] == _reference_scan(max_n)


def test_final_state_holds_range_maxima():
    max_n = 2000
    _, state = _collect(max_n)
    results = [compute_divisor_sum(n) for n in range(1, max_n)]
    assert state.record_z == max(r.z for r in results)
    finite = [r.ratio for r in results if math.isfinite(r.ratio)]
    assert state.record_ratio == max(finite)


def test_events_are_increasing_and_exclusive():
    events, _ = _collect(5000)
    ns = [e.n for e in events]
    assert ns == sorted(ns)
    assert len(ns) == len(set(ns))  # at most one event per n
    assert {e.kind for e in events} <= {"z", "ratio", "both"}


def test_every_event_beats_its_predecessors():
    max_n = 3000
    events, _ = _collect(max_n)
    results = {n: compute_divisor_sum(n) for n in range(1, max_n)}
    for e in events:
        earlier = [results[m] for m in range(1, e.n)]
        if e.is_z_record:
            assert e.z > max(r.z for r in earlier)
        if e.is_ratio_record:
            assert e.ratio > max(r.ratio for r in earlier if math.isfinite(r.ratio))


# ---------- scripted sequences (one kind at a time) ---------------------------

def test_scripted_z_only_and_ratio_only_records():
    values = {
        1: (0.0, 1),                  # ratio NaN, nothing set
        2: (1.0, 2),                  # baseline z=1.0, ratio=1/ln2
        3: (2.0, 1000),               # z record only (ratio tiny)
        4: (1.5, 2),                  # ratio record only (1.5/ln2 > 1/ln2)
        5: (3.0, 2),                  # both
        6: (0.1, 2),                  # nothing
    }
    events, state = _collect(7, compute=_scripted(values))
    assert [(e.n, e.kind) for e in events] == [(3, "z"), (4, "ratio"), (5, "both")]
    assert state.record_z == 3.0
    assert state.record_ratio == pytest.approx(3.0 / math.log(2))


def test_first_positive_value_is_a_silent_baseline():
    values = {1: (0.5, 2), 2: (0.4, 2), 3: (0.45, 2), 4: (0.6, 2)}
    events, state = _collect(5, compute=_scripted(values))
    # n=1 is the baseline, only n=4 beats 0.5
    assert [e.n for e in events] == [4]
    assert state.record_z == 0.6


def test_scanner_generator_and_step():
    scanner = RecordScanner()
    assert scanner.step(1) is None
    assert scanner.step(2) is None
    ev = scanner.step(3)
    assert ev is not None and ev.kind == "both"
    assert ev.as_dict()["is_z_record"] is True

    fresh = RecordScanner()
    assert [e.n for e in fresh.scan(10)] == [3, 4, 6]


def test_progress_callback_is_called_periodically():
    seen = []
    _collect(3000, progress=seen.append)
    assert seen == [1024, 2048]


# ---------- waterfall-only scan -----------------------------------------------

def _collect_waterfall(max_n: int) -> tuple[list[RecordEvent], ScanState]:
    events: list[RecordEvent] = []

    def emit(n, kind, z, tau, ratio):
        events.append(RecordEvent(n=n, kind=kind, z=z, tau=tau, ratio=ratio))

    state = scan_waterfall_records(max_n, emit)
    return events, state


def test_waterfall_scan_below_ten():
    events, _ = _collect_waterfall(10)
    assert [(e.n, e.kind, e.tau) for e in events] == [(4, "both", 3), (6, "both", 4)]
    assert events[0].z == 0.6931471805599453
    assert events[0].ratio == 0.6309297535714574
    assert events[1].z == pytest.approx(1.0114042647073518, rel=1e-14)
    assert events[1].ratio == pytest.approx(0.7295739585136225, rel=1e-14)


def test_observe_matches_step():
    a, b = RecordScanner(), RecordScanner()
    for n in range(1, 200):
        z, tau = compute_divisor_sum(n)
        assert a.step(n) == b.observe(n, z, tau)
    assert a.state == b.state


def test_waterfall_scan_matches_reference_over_waterfall_numbers():
    record_z = record_ratio = 0.0
    expected = []
    for w in waterfall_numbers(4999):
        z, tau = compute_divisor_sum(w.value)
        ratio = z / math.log(tau) if tau > 1 else math.nan
        if (record_z > 0.0 and z > record_z) or (record_ratio > 0.0 and ratio > record_ratio):
            expected.append(w.value)
        record_z = _fmax(z, record_z)
        record_ratio = _fmax(ratio, record_ratio)

    events, _ = _collect_waterfall(5000)
    assert [e.n for e in events] == expected
    # 3 is a record-setter of the full scan but not a waterfall number
    assert 3 not in expected


def test_waterfall_scan_reaches_large_n():
    events, state = _collect_waterfall(10**12)
    last = events[-1]
    assert last.n == 963761198400
    assert last.tau == 6720
    assert last.kind == "z"
    assert last.z == pytest.approx(14.960783769593887, rel=1e-13)
    assert last.ratio == pytest.approx(1.6976114329564411, rel=1e-13)
    assert state.records == len(events)
