from __future__ import annotations

from math import comb
from typing import Iterator

from . import checks
from .cache import EXACT, TriangleCache

_BINOMIAL = TriangleCache("binomial")
_STIRLING2 = TriangleCache("stirling2")


def binomial(n: int, k: int) -> int:
    checks.check_triangle(n, k, "binomial")
    hit = _BINOMIAL.lookup(n, k, EXACT)
    if hit is not None:
        return hit
    val = comb(n, k)
    _BINOMIAL.store(n, k, val, EXACT)
    return val


def binomial_row(n: int) -> Iterator[int]:
    """Yield C(n, 0), C(n, 1), ..., C(n, n) in O(1) per step."""
    checks.check_index(n, "binomial_row")
    c = 1
    yield c
    for k in range(1, n + 1):
        c = c * (n - k + 1) // k
        yield c


def stirling2(n: int, k: int) -> int:
    checks.check_triangle(n, k, "stirling2")
    hit = _STIRLING2.lookup(n, k, EXACT)
    if hit is not None:
        return hit
    if k == n:
        val = 1
    elif k == 0:
        val = 0
    else:
        val = k * stirling2(n - 1, k) + stirling2(n - 1, k - 1)
    _STIRLING2.store(n, k, val, EXACT)
    return val


def clear_caches() -> None:
    _BINOMIAL.clear()
    _STIRLING2.clear()


__all__ = ["binomial", "binomial_row", "stirling2", "clear_caches"]
