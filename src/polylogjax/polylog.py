from __future__ import annotations

import enum
import logging
import math
from typing import Callable

import mpmath
import numpy as np

from . import checks
from . import estimates
from . import zeta
from .bernoulli import bernoulli_polynomial
from .cache import PrecisionCache
from .combinatorics import binomial_row, stirling2
from .context import EvalContext, resolve_context
from .errors import ConvergenceFailure, DomainError, EvalResult
from .precision import LOG10_2, extraprec, max_terms, resolve_dps

logger = logging.getLogger(__name__)

_LN10 = 2.302585093


class Mode(enum.Enum):
    AWAY = "away"
    TOWARD = "toward"


class Region(enum.Enum):
    DIRECT = "direct"
    DUPLICATE = "duplicate"
    INVERT = "invert"
    SQRT = "sqrt"


def _prec(prec: int | None, label: str) -> int:
    return checks.check_dps(resolve_dps(prec), label)


def _working(prec: int, ctx: EvalContext):
    return extraprec(prec, ctx.config.headroom, ctx.config.guard_bits)


def _extra_digits(factor) -> int:
    return int(mpmath.ceil(mpmath.log10(abs(factor) + 1)))


def _real_int(s: mpmath.mpc) -> int | None:
    if s.imag == 0 and s.real == mpmath.floor(s.real):
        return int(s.real)
    return None


def polylog_borwein(s, z, nterms: int, prec: int, ctx: EvalContext | None = None) -> mpmath.mpc:
    """Borwein-style sum of Li_s(z) with nterms leading terms.

    Li_s(z) ~ sum_{k<=m} z^k k^-s + (1-z)^-m sum_{k=m+1}^{2m} z^k k^-s B_{2m-k},
    where B_j = sum_{i<=j} C(m, i) (-z)^i are partial sums of (1-z)^m.
    """
    ctx = resolve_context(ctx)
    m = int(nterms)
    checks._check(m >= 1, "polylog_borwein: expected nterms >= 1, got {}", m)
    # the (1-z)^-m recombination costs about m bits
    dps = prec + int(LOG10_2 * m) + 1
    with _working(dps, ctx):
        s = mpmath.mpc(s)
        z = mpmath.mpc(z)
    powers = ctx.powers_for(s)

    def power(k: int) -> mpmath.mpc:
        hit = powers.lookup(k, dps)
        if hit is None:
            hit = mpmath.power(k, -s)
            powers.store(k, hit, dps)
        return hit

    with _working(dps, ctx):
        acc = mpmath.mpc(0)
        zk = mpmath.mpc(1)
        for k in range(1, m + 1):
            zk *= z
            acc += zk * power(k)

        # built once per call, indices 0..m-1
        partial = PrecisionCache("binsum")
        running = mpmath.mpc(0)
        mz = -z
        mzi = mpmath.mpc(1)
        for i, c in enumerate(binomial_row(m)):
            if i == m:
                break
            running += c * mzi
            partial.store(i, running, dps)
            mzi *= mz

        tail = mpmath.mpc(0)
        for k in range(m + 1, 2 * m + 1):
            zk *= z
            tail += zk * power(k) * partial.fetch(2 * m - k)
        return acc + tail / mpmath.power(1 - z, m)


def polylog_terms_est(s, z, prec: int) -> int:
    return estimates.polylog_terms_est(complex(s), complex(z), prec)


def _classify(mode: Mode, s: mpmath.mpc, z: mpmath.mpc, prec: int, ctx: EvalContext) -> tuple[Region, int]:
    cfg = ctx.config
    den = estimates.polylog_zone(complex(z))
    nterms = polylog_terms_est(s, z, prec)
    budget = max_terms(prec, cfg.headroom, cfg.guard_bits)
    # den is NaN at z = 1, which must not count as in-zone
    if den <= cfg.zone_bound and 1 <= nterms <= budget:
        return Region.DIRECT, nterms
    if mode is Mode.AWAY:
        return Region.DUPLICATE, nterms
    if abs(z) <= 1:
        return Region.DUPLICATE, nterms
    if math.log(estimates.polylog_modsq(complex(z))) < cfg.invert_log_bound:
        return Region.INVERT, nterms
    return Region.SQRT, nterms


def _recurse(mode: Mode, s: mpmath.mpc, z: mpmath.mpc, prec: int, depth: int, ctx: EvalContext) -> mpmath.mpc:
    cfg = ctx.config
    if mode is Mode.AWAY:
        if estimates.polylog_modsq(complex(z)) > cfg.away_modsq_bound:
            raise ConvergenceFailure(f"polylog: |z|^2 too large on the away path at z={z}")
        if depth > cfg.away_depth_cap:
            raise ConvergenceFailure(f"polylog: recursion too deep at s={s}, z={z}")
    elif depth > cfg.toward_depth_cap:
        raise ConvergenceFailure(f"polylog: recursion too deep at s={s}, z={z}")
    depth += 1

    if z == 0:
        return mpmath.mpc(0)
    region, nterms = _classify(mode, s, z, prec, ctx)
    logger.debug("polylog %s depth=%d z=%s -> %s (%d terms)", mode.value, depth, z, region.value, nterms)
    with _working(prec, ctx):
        return _HANDLERS[region](s, z, prec, depth, nterms, ctx)


def _direct(s, z, prec, depth, nterms, ctx) -> mpmath.mpc:
    return polylog_borwein(s, z, nterms, prec, ctx)


def _duplicate(s, z, prec, depth, nterms, ctx) -> mpmath.mpc:
    dup = mpmath.power(2, 1 - s)
    sub = prec + _extra_digits(dup)
    return dup * _recurse(Mode.AWAY, s, z * z, sub, depth, ctx) - _recurse(Mode.AWAY, s, -z, sub, depth, ctx)


def _invert_integer(n: int, z, prec, depth, ctx) -> mpmath.mpc:
    # Li_n(z) + (-1)^n Li_n(1/z) = -(2 pi i)^n / n! B_n(1/2 + log(-z) / (2 pi i))
    twopii = 2j * mpmath.pi
    poly = bernoulli_polynomial(n, mpmath.mpf(0.5) + mpmath.log(-z) / twopii)
    head = -mpmath.power(twopii, n) / mpmath.factorial(n) * poly
    sub = prec + _extra_digits(head)
    tail = _recurse(Mode.AWAY, mpmath.mpc(n), 1 / z, sub, depth, ctx)
    return head - tail if n % 2 == 0 else head + tail


def _invert(s, z, prec, depth, nterms, ctx) -> mpmath.mpc:
    n = _real_int(s)
    # zeta(1 - s, q) has its pole at s = 0, Gamma(1 - s) at s = 1, 2, ...
    if n == 0:
        return polylog_nint(0, z, prec)
    if n is not None and n > 0:
        return _invert_integer(n, z, prec, depth, ctx)

    q = mpmath.log(z) / (2j * mpmath.pi)
    if q.real < 0:
        q += 1
    sp = 1 - s

    def build():
        return (
            mpmath.gamma(sp) * mpmath.power(2 * mpmath.pi, -sp) * mpmath.expjpi(sp / 2),
            mpmath.expjpi(-sp),
        )

    scale, twist = ctx.scale("invert", s, prec, build)
    sub = prec + _extra_digits(scale)
    left = zeta.hurwitz_zeta(sp, q, sub, ctx)
    right = zeta.hurwitz_zeta(sp, 1 - q, sub, ctx)
    return scale * (left + twist * right)


def _sqrt(s, z, prec, depth, nterms, ctx) -> mpmath.mpc:
    half = mpmath.power(2, s - 1)
    sub = prec + _extra_digits(half)
    r = mpmath.sqrt(z)
    return half * (_recurse(Mode.TOWARD, s, r, sub, depth, ctx) + _recurse(Mode.TOWARD, s, -r, sub, depth, ctx))


_HANDLERS: dict[Region, Callable[..., mpmath.mpc]] = {
    Region.DIRECT: _direct,
    Region.DUPLICATE: _duplicate,
    Region.INVERT: _invert,
    Region.SQRT: _sqrt,
}


def _evaluate(mode: Mode, s, z, prec: int | None, ctx: EvalContext | None, label: str) -> EvalResult:
    prec = _prec(prec, label)
    ctx = resolve_context(ctx)
    with _working(prec, ctx):
        s = mpmath.mpc(s)
        z = mpmath.mpc(z)
        try:
            value = _recurse(mode, s, z, prec, 0, ctx)
        except (DomainError, ConvergenceFailure) as exc:
            logger.warning("%s(s=%s, z=%s) failed: %s", label, s, z, exc)
            return EvalResult.failure(str(exc))
        return EvalResult.success(value)


def polylog_away(s, z, prec: int | None = None, ctx: EvalContext | None = None) -> EvalResult:
    return _evaluate(Mode.AWAY, s, z, prec, ctx, "polylog_away")


def polylog(s, z, prec: int | None = None, ctx: EvalContext | None = None) -> EvalResult:
    """Li_s(z) to prec digits.

    Real z > 1 lies on the branch cut; there the value returned is the limit
    from above (Im z -> 0+), the complex conjugate of mpmath.polylog.
    """
    return _evaluate(Mode.TOWARD, s, z, prec, ctx, "polylog")


def polylog_sum(s, z, prec: int | None = None) -> mpmath.mpc:
    prec = _prec(prec, "polylog_sum")
    msq = estimates.polylog_modsq(complex(z))
    if msq >= 1:
        raise DomainError(f"polylog_sum: expected |z| < 1, got z={z}")
    nterms = int(-2 * prec * _LN10 / math.log(msq)) + 1 if msq > 0 else 0
    with extraprec(prec, 2.0):
        s = mpmath.mpc(s)
        z = mpmath.mpc(z)
        acc = mpmath.mpc(0)
        zk = mpmath.mpc(1)
        for k in range(1, nterms + 1):
            zk *= z
            acc += zk * mpmath.power(k, -s)
        return acc


def polylog_nint(n: int, z, prec: int | None = None) -> mpmath.mpc:
    """Li_{-n}(z) = sum_k k! S(n+1, k+1) (z/(1-z))^(k+1)."""
    prec = _prec(prec, "polylog_nint")
    checks.check_index(n, "polylog_nint")
    if mpmath.mpc(z) == 1:
        raise DomainError("polylog_nint: pole at z = 1")
    with extraprec(prec, 2.0):
        z = mpmath.mpc(z)
        w = z / (1 - z)
        acc = mpmath.mpc(0)
        wk = w
        for k in range(n + 1):
            acc += math.factorial(k) * stirling2(n + 1, k + 1) * wk
            wk *= w
        return acc


def polylog_batch(s, zs, prec: int | None = None, ctx: EvalContext | None = None) -> tuple[np.ndarray, np.ndarray]:
    zs = np.asarray(zs, dtype=np.complex128)
    values = np.zeros(zs.shape, dtype=np.complex128)
    ok = np.zeros(zs.shape, dtype=bool)
    for idx in np.ndindex(zs.shape):
        res = polylog(s, complex(zs[idx]), prec, ctx)
        values[idx] = complex(res.value)
        ok[idx] = res.ok
    return values, ok


__all__ = [
    "Mode",
    "Region",
    "polylog_borwein",
    "polylog_terms_est",
    "polylog_away",
    "polylog",
    "polylog_sum",
    "polylog_nint",
    "polylog_batch",
]
