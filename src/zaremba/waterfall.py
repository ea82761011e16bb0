# -----------------------------------------------------------------------------
#  waterfall.py
#  Waterfall numbers (OEIS A025487), primorial factorizations and z(n) from
#  the prime exponents alone
# -----------------------------------------------------------------------------
"""
A waterfall number has prime factorization 2^a1 * 3^a2 * ... * p_k^ak with
no gaps and a1 >= a2 >= ... >= ak, e.g. 10080 = 2^5 * 3^2 * 5 * 7.
Equivalently it is a product of primorials (2, 6, 30, 210, ...), so it can
be written as a list of primorial exponents: 5400 = 6^1 * 30^2 -> [0, 1, 2].

Record searches over large ranges consider waterfall numbers only: for a
given tau(n) they sit where z(n) is largest, apart from tiny cases such as
z(3) > z(2).
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from functools import lru_cache

from sympy import nextprime, prime

PrimeExp = list[int]       # exponents of 2, 3, 5, ...
PrimorialExp = list[int]   # exponents of 2, 6, 30, ...


@dataclass(frozen=True, slots=True)
class WaterfallNumber:
    value: int
    primorials: tuple[int, ...]

    @property
    def primes(self) -> PrimeExp:
        return primorials_to_primes(self.primorials)


@lru_cache(maxsize=None)
def nth_prime(k: int) -> int:
    """k-th prime, 0-based: nth_prime(0) == 2."""
    return int(prime(k + 1))


def primorial(k: int) -> int:
    """Product of the first k primes; primorial(0) == 1."""
    prod = 1
    for i in range(k):
        prod *= nth_prime(i)
    return prod


def primorials_upto(max_n: int) -> list[int]:
    """All primorials 2, 6, 30, ... that are <= max_n."""
    out: list[int] = []
    prod, p = 1, 2
    while True:
        prod *= p
        if prod > max_n:
            return out
        out.append(prod)
        p = nextprime(p)


def primes_to_primorials(prime_exps: Sequence[int]) -> PrimorialExp:
    """[9, 5, 3, 2, 2, 1, 1] -> [4, 2, 1, 0, 1, 0, 1]"""
    padded = list(prime_exps) + [0]
    return [a - b for a, b in zip(padded, padded[1:])]


def primorials_to_primes(primorial_exps: Sequence[int]) -> PrimeExp:
    """[4, 2, 1, 0, 1, 0, 1] -> [9, 5, 3, 2, 2, 1, 1]"""
    out: list[int] = []
    running = 0
    for e in reversed(primorial_exps):
        running += e
        out.append(running)
    return out[::-1]


def unfactor(prime_exps: Sequence[int]) -> int:
    n = 1
    for i, a in enumerate(prime_exps):
        n *= nth_prime(i) ** a
    return n


def factor_waterfall(n: int) -> PrimeExp | None:
    """
    Prime exponents of n if it is a waterfall number, else None.
    1 -> [], 16 * 27 -> [4, 3], 42 -> None (gap at 5), 8 * 81 -> None.
    """
    if n < 1:
        raise ValueError(f"waterfall factorization needs n >= 1, got {n}")

    exps: PrimeExp = []
    remainder, p = n, 2
    previous = math.inf
    while remainder > 1:
        repeats = 0
        while remainder % p == 0:
            remainder //= p
            repeats += 1
        if repeats == 0 or repeats > previous:
            return None
        exps.append(repeats)
        previous = repeats
        p = nextprime(p)
    return exps


def _walk(primorials: list[int], idx: int, max_n: int,
          base_exp: tuple[int, ...], base_product: int) -> Iterator[WaterfallNumber]:
    # multiples of base_product by powers of primorials[idx], then recurse
    # into the next primorial for each power (including the zeroth)
    if idx == len(primorials):
        return
    factor = primorials[idx]
    yield from _walk(primorials, idx + 1, max_n, base_exp + (0,), base_product)

    product, exponent = base_product, 0
    while True:
        product *= factor
        if product > max_n:
            break
        exponent += 1
        exp = base_exp + (exponent,)
        yield WaterfallNumber(product, exp)
        yield from _walk(primorials, idx + 1, max_n, exp, product)


def waterfall_numbers(max_n: int) -> list[WaterfallNumber]:
    """Every waterfall number <= max_n in increasing order, starting with 1."""
    if max_n < 1:
        return []
    found = list(_walk(primorials_upto(max_n), 0, max_n, (), 1))
    found.append(WaterfallNumber(1, ()))
    found.sort(key=lambda w: w.value)
    return found


# --- z(n) from the factorization --------------------------------------------

def tau_from_primes(prime_exps: Sequence[int]) -> int:
    tau = 1
    for a in prime_exps:
        tau *= a + 1
    return tau


def sigma_approx(prime_exps: Sequence[int]) -> float:
    """sigma_1(n) as a float product over (p^(a+1) - 1)/(p - 1)."""
    return math.prod(
        (float(nth_prime(i)) ** (a + 1) - 1) / (float(nth_prime(i)) - 1)
        for i, a in enumerate(prime_exps)
    )


def h_approx(n: float, prime_exps: Sequence[int]) -> float:
    """h(n) = sigma(n)/n = sum of 1/d over the divisors."""
    return sigma_approx(prime_exps) / n


def weber_z(n: int, prime_exps: Sequence[int]) -> float:
    """
    z(n) without enumerating divisors (Weber 2020, arXiv:1810.10876):

        z(n) = sum over p^a || n of  h(n / p^a) * sum_{j=1..a} j ln(p) / p^j

    `prime_exps` must be the exponents of 2, 3, 5, ... in n.
    """
    n_approx = float(n)
    total = 0.0
    for i, a in enumerate(prime_exps):
        p = float(nth_prime(i))
        ln_p = math.log(p)
        rest = [0 if j == i else e for j, e in enumerate(prime_exps)]
        h = h_approx(n_approx / p ** a, rest)
        total += sum(j * ln_p / p ** j for j in range(1, a + 1)) * h
    return total
