from __future__ import annotations

import numbers


def _check(cond: bool, msg: str, *args) -> None:
    if not cond:
        raise ValueError(msg.format(*args))


def check_dps(dps: int, label: str) -> int:
    _check(isinstance(dps, numbers.Integral) and not isinstance(dps, bool), "{}: expected int digits, got {!r}", label, dps)
    _check(dps > 0, "{}: expected positive digits, got {}", label, dps)
    return int(dps)


def check_index(n: int, label: str) -> int:
    _check(isinstance(n, numbers.Integral) and not isinstance(n, bool), "{}: expected int index, got {!r}", label, n)
    _check(n >= 0, "{}: expected non-negative index, got {}", label, n)
    return int(n)


def check_triangle(n: int, k: int, label: str) -> None:
    check_index(n, label)
    check_index(k, label)
    _check(k <= n, "{}: expected 0 <= k <= n, got n={} k={}", label, n, k)


__all__ = ["check_dps", "check_index", "check_triangle"]
