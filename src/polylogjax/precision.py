from __future__ import annotations

import threading
from contextlib import contextmanager
from math import ceil, log10

import mpmath

_DPS = 30

LOG2_10 = 3.321928095
LOG10_2 = 0.301029996

# mpmath.mp.prec is process-global; every engine block holds this while it is raised
_MP_LOCK = threading.RLock()


def dps_to_bits(dps: int) -> int:
    return int(ceil(dps * log10(10) / log10(2)))


def bits_to_dps(prec_bits: int) -> int:
    return int(ceil(prec_bits * log10(2) / log10(10)))


def set_dps(dps: int) -> None:
    global _DPS
    _DPS = int(dps)


def get_dps() -> int:
    return _DPS


def resolve_dps(dps: int | None) -> int:
    if dps is None:
        return _DPS
    return int(dps)


def working_bits(dps: int, headroom: float = 1.0, guard_bits: int = 50) -> int:
    # 3.322 bits per digit plus guard; cached values are stored at this width too
    return int(ceil(3.322 * dps * headroom)) + int(guard_bits)


def max_terms(dps: int, headroom: float = 2.0, guard_bits: int = 50) -> int:
    return working_bits(dps, headroom, guard_bits) - int(LOG2_10 * dps)


@contextmanager
def workdps(dps: int):
    with _MP_LOCK:
        old = _DPS
        set_dps(dps)
        try:
            with mpmath.workprec(working_bits(dps)):
                yield
        finally:
            set_dps(old)


@contextmanager
def extraprec(dps: int, headroom: float = 1.0, guard_bits: int = 50):
    # never lowers the precision already in force
    with _MP_LOCK:
        bits = max(mpmath.mp.prec, working_bits(dps, headroom, guard_bits))
        with mpmath.workprec(bits):
            yield


__all__ = [
    "LOG2_10",
    "LOG10_2",
    "dps_to_bits",
    "bits_to_dps",
    "set_dps",
    "get_dps",
    "resolve_dps",
    "working_bits",
    "max_terms",
    "workdps",
    "extraprec",
]
