# -----------------------------------------------------------------------------
#  divisors.py
#  Divisor-weighted logarithmic sum z(n) and divisor count tau(n)
# -----------------------------------------------------------------------------

from __future__ import annotations

import math
from dataclasses import dataclass
from math import isqrt, log


@dataclass(frozen=True, slots=True)
class DivisorResult:
    z: float     # sum of ln(d)/d over all divisors d of n
    tau: int     # number of divisors; 0 only for n = 0

    def __iter__(self):
        # allows: z, tau = compute_divisor_sum(n)
        yield self.z
        yield self.tau

    @property
    def ratio(self) -> float:
        return zaremba_ratio(self.z, self.tau)


def compute_divisor_sum(n: int) -> DivisorResult:
    """
    Return (z, tau) for n by walking divisor pairs (d, n // d) with
    d = 1 .. isqrt(n).

    Each divisor is counted exactly once: the pair partner is only added when
    it differs from d, and the walk stops at the square root of a perfect
    square. n = 0 gives (0.0, 0). Negative n raises ValueError.
    """
    z = 0.0
    tau = 0

    for d in range(1, isqrt(n) + 1):
        if n % d:
            continue

        e = n // d
        if e < d:
            # past the midpoint, every pair has been seen already
            break

        z += log(d) / d
        tau += 1

        if e > d:
            z += log(e) / e
            tau += 1
        else:
            # e == d: square root of a perfect square, count it once
            break

    return DivisorResult(z=z, tau=tau)


def zaremba_ratio(z: float, tau: int) -> float:
    """
    z / ln(tau) with IEEE-754 division semantics.

    For tau = 1 the denominator is 0 and Python would raise; we return NaN for
    0/0 (the n = 1 case) and a signed infinity otherwise. tau = 0 raises
    ValueError (math domain error), it is not a valid divisor count.
    """
    log_tau = log(tau)
    if log_tau == 0.0:
        if z == 0.0 or math.isnan(z):
            return math.nan
        return math.copysign(math.inf, z)
    return z / log_tau
