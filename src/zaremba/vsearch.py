# -----------------------------------------------------------------------------
#  vsearch.py
#  Bounded search for record-setters of v(n) = z(n)/ln(tau(n)) among waterfall
#  numbers built from exactly the first k primes
# -----------------------------------------------------------------------------
"""
Given a known record V for v(n), any n with k distinct primes that beats it
has z(n) <= z_max(k), where z_max uses every one of the first k primes:

    z_max = prod p/(p-1) * sum ln(p)/(p-1)          (Weber's lemma)

so ln(tau(n)) < z_max / V. That bounds tau(n), and the waterfall numbers
with k primes and tau(n) <= tau_max form a finite set we can enumerate.
Repeating with k = 1, 2, ... gives max_v_bootstrap().
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from zaremba.divisors import zaremba_ratio
from zaremba.waterfall import nth_prime, primes_to_primorials, tau_from_primes, unfactor, weber_z

V_OF_4 = 0.6309297535714574  # v(4) = ln(2)/ln(3), the first ratio record


@dataclass(frozen=True, slots=True)
class KPrimesBounds:
    z_max: float
    log_tau_max: float
    tau_max: int
    tau_min: int

    @property
    def v_max(self) -> float:
        """Largest v any k-prime candidate could reach (z_max / ln(tau_min))."""
        return self.z_max / math.log(self.tau_min)


@dataclass(frozen=True, slots=True)
class KPrimesResult:
    primorials: tuple[int, ...]
    primes: tuple[int, ...]
    tau: int
    n: int
    z: float
    v: float


def kprimes_bounds(k: int, v_record: float) -> KPrimesBounds:
    if k < 1:
        raise ValueError(f"k must be >= 1, got {k}")
    if not (v_record > 0.0 and math.isfinite(v_record)):
        raise ValueError(f"the known v record must be a positive number, got {v_record}")

    ps = [float(nth_prime(i)) for i in range(k)]
    z_max = math.prod(p / (p - 1.0) for p in ps) * sum(math.log(p) / (p - 1.0) for p in ps)
    log_tau_max = z_max / v_record
    tau_max = math.floor(math.exp(log_tau_max) + 0.5)
    return KPrimesBounds(z_max=z_max, log_tau_max=log_tau_max, tau_max=tau_max, tau_min=2 ** k)


def _exponent_lists(k: int, max_exp: int, tau_budget: int) -> Iterator[list[int]]:
    # non-ascending exponents a1 >= ... >= ak >= 1 with prod(a + 1) <= tau_budget
    if k == 0:
        yield []
        return
    for a in range(1, max_exp + 1):
        if (a + 1) * 2 ** (k - 1) > tau_budget:
            break
        for rest in _exponent_lists(k - 1, a, tau_budget // (a + 1)):
            yield [a] + rest


def kprimes_candidates(k: int, tau_max: int) -> Iterator[KPrimesResult]:
    """Waterfall numbers using all of the first k primes with tau(n) <= tau_max."""
    for exps in _exponent_lists(k, max(tau_max - 1, 0), tau_max):
        n = unfactor(exps)
        tau = tau_from_primes(exps)
        z = weber_z(n, exps)
        yield KPrimesResult(
            primorials=tuple(primes_to_primorials(exps)), primes=tuple(exps),
            tau=tau, n=n, z=z, v=zaremba_ratio(z, tau),
        )


def search_v_record_kprimes(k: int, v_record: float) -> tuple[KPrimesBounds, Iterator[KPrimesResult]]:
    """
    Bounds for k primes plus every candidate inside them. The candidates are
    not filtered; callers pick those with v > v_record.
    """
    bounds = kprimes_bounds(k, v_record)
    return bounds, kprimes_candidates(k, bounds.tau_max)


def max_v_bootstrap(
    v_start: float = V_OF_4,
    report: Callable[[str], None] | None = None,
) -> Iterator[KPrimesResult]:
    """
    Yield successively larger v(n) record-setters, starting from v_start.

    For the current record, try k = 1, 2, ... until some k yields a larger v
    (the best of that k becomes the new record) or until z_max / ln(2^k)
    drops below the record, at which point no larger k can win and the
    search stops. The stopping rule is empirical: it halts at k = 35.
    """
    say = report or (lambda _msg: None)
    v_record = v_start
    say(f"Starting bootstrap with v = {v_record!r}")

    while True:
        k = 1
        while True:
            say(f"  Searching for next record with {k} primes")
            bounds, candidates = search_v_record_kprimes(k, v_record)
            checked = 0
            best: KPrimesResult | None = None
            for c in candidates:
                checked += 1
                if c.v > v_record and (best is None or c.v > best.v):
                    best = c
            say(f"    Checked {checked} candidates, with max tau = {bounds.tau_max}")

            if best is not None:
                say(f"    Found new record! v={best.v!r}\tn={best.n}\tz={best.z!r}\ttau={best.tau}")
                v_record = best.v
                yield best
                break

            if bounds.v_max < v_record:
                say(f"    Stopping: z-max/log(min-tau) = {bounds.z_max!r}/{math.log(bounds.tau_min)!r}"
                    f" < {v_record!r} = record-v")
                return
            k += 1
