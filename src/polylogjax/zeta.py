from __future__ import annotations

import logging
import math
from fractions import Fraction

import mpmath

from . import checks
from . import estimates
from . import polylog
from .bernoulli import bernoulli_mpf
from .cache import EXACT
from .context import EvalContext, resolve_context
from .errors import ConvergenceFailure, DomainError, EvalResult
from .precision import bits_to_dps, extraprec, resolve_dps

logger = logging.getLogger(__name__)

# q this close to an integer is treated as q = 0
_INTEGER_Q_TOL = 1.0e-15
_BRUTE_ODD_MARGIN = 3.3
_BRUTE_EVEN_MARGIN = 1.8
_BRUTE_MIN_S = 20


def _prec(prec: int | None, label: str) -> int:
    return checks.check_dps(resolve_dps(prec), label)


def _working(prec: int, ctx: EvalContext):
    return extraprec(prec, ctx.config.headroom, ctx.config.guard_bits)


def _is_real_int(s: mpmath.mpc) -> bool:
    return s.imag == 0 and s.real == mpmath.floor(s.real)


def _convert(x, prec: int, ctx: EvalContext) -> mpmath.mpc:
    with _working(prec, ctx):
        return mpmath.mpc(x)


def _extra_digits(factor) -> int:
    # |factor| can exceed the float range for large |s|
    return int(mpmath.ceil(mpmath.log10(abs(factor) + 1)))


def zeta_even(n: int, prec: int | None = None, ctx: EvalContext | None = None) -> mpmath.mpf:
    prec = _prec(prec, "zeta_even")
    ctx = resolve_context(ctx)
    checks.check_index(n, "zeta_even")
    if n < 2 or n % 2:
        raise DomainError(f"zeta_even: expected even n >= 2, got {n}")
    with _working(prec, ctx):
        sign = 1 if (n // 2) % 2 else -1
        return sign * bernoulli_mpf(n) * (2 * mpmath.pi) ** n / (2 * mpmath.factorial(n))


def zeta_brute(s: int, prec: int | None = None, ctx: EvalContext | None = None) -> mpmath.mpf:
    """Sum 1/n^s directly; only sensible when prec/(s-1) is small.

    Partial sums are kept per s, so a later call needing more terms resumes
    from where the last one stopped when its arithmetic was wide enough.
    """
    prec = _prec(prec, "zeta_brute")
    ctx = resolve_context(ctx)
    checks.check_index(s, "zeta_brute")
    if s < 2:
        raise DomainError(f"zeta_brute: expected s >= 2, got {s}")
    exponent = prec / (s - 1)
    if exponent > math.log10(ctx.config.brute_max_terms):
        raise ConvergenceFailure(f"zeta_brute: s={s} at {prec} digits needs 10^{exponent:.1f} terms")
    nterms = int(10.0**exponent) + 3

    with _working(prec, ctx):
        hit = ctx.zeta_brute.lookup(s, prec)
        if hit is not None:
            total, done = hit
            if done >= nterms:
                return +total
        else:
            total, done = mpmath.mpf(0), 0
        for k in range(done + 1, nterms + 1):
            total += mpmath.mpf(k) ** (-s)
        # digits the running sum still carries after nterms additions
        supported = bits_to_dps(mpmath.mp.prec) - len(str(nterms))
        if hit is not None:
            supported = min(supported, ctx.zeta_brute.check(s))
        ctx.zeta_brute.store(s, (total, nterms), supported)
        return +total


def _borwein_d(n: int, ctx: EvalContext) -> list[Fraction]:
    cache = ctx.borwein_d.get(n)
    if cache.check(n) == EXACT:
        return [cache.fetch(k) for k in range(n + 1)]
    out = []
    term = Fraction(1, n)
    acc = Fraction(0)
    for i in range(n + 1):
        if i:
            term = term * 4 * (n + i - 1) * (n - i + 1) / ((2 * i) * (2 * i - 1))
        acc += term
        d = n * acc
        cache.store(i, d, EXACT)
        out.append(d)
    return out


def zeta_borwein(s, prec: int | None = None, ctx: EvalContext | None = None) -> mpmath.mpc:
    prec = _prec(prec, "zeta_borwein")
    ctx = resolve_context(ctx)
    s = _convert(s, prec, ctx)
    if s == 1:
        raise DomainError("zeta_borwein: pole at s = 1")
    n = estimates.borwein_terms_est(complex(s), prec)
    d = _borwein_d(n, ctx)
    with _working(prec, ctx):
        dn = mpmath.mpf(d[n].numerator) / d[n].denominator
        acc = mpmath.mpc(0)
        for k in range(n):
            dk = mpmath.mpf(d[k].numerator) / d[k].denominator
            term = (dk - dn) * mpmath.power(k + 1, -s)
            acc += -term if k % 2 else term
        eta = 1 - mpmath.power(2, 1 - s)
        if eta == 0:
            raise ConvergenceFailure(f"zeta_borwein: eta factor vanishes at s={s}")
        return -acc / (dn * eta)


def zeta_int(s: int, prec: int | None = None, ctx: EvalContext | None = None) -> mpmath.mpf:
    prec = _prec(prec, "zeta_int")
    ctx = resolve_context(ctx)
    if s < 2:
        raise DomainError(f"zeta_int: expected s >= 2, got {s}")
    checks.check_index(s, "zeta_int")

    hit = ctx.zeta_int.lookup(s, prec)
    if hit is not None:
        return hit
    if ctx.store is not None:
        with _working(prec, ctx):
            hit = ctx.store.get(s, prec)
        if hit is not None:
            ctx.zeta_int.store(s, hit, prec)
            return hit

    margin = prec / (s - 1)
    even = s % 2 == 0
    if s > _BRUTE_MIN_S and margin < (_BRUTE_EVEN_MARGIN if even else _BRUTE_ODD_MARGIN):
        logger.debug("zeta_int(%d): brute force, margin %.2f", s, margin)
        val = zeta_brute(s, prec, ctx)
    elif even:
        val = zeta_even(s, prec, ctx)
    else:
        val = zeta_borwein(s, prec, ctx).real

    ctx.zeta_int.store(s, val, prec)
    if ctx.store is not None:
        ctx.store.put(s, val, prec)
    return val


def riemann_zeta(s, prec: int | None = None, ctx: EvalContext | None = None) -> mpmath.mpc:
    prec = _prec(prec, "riemann_zeta")
    ctx = resolve_context(ctx)
    s = _convert(s, prec, ctx)
    if s == 1:
        raise DomainError("riemann_zeta: pole at s = 1")
    if s == 0:
        return mpmath.mpc(-0.5)
    if _is_real_int(s) and s.real >= 2:
        val = zeta_int(int(s.real), prec, ctx)
        with _working(prec, ctx):
            return mpmath.mpc(val)
    if s.real >= 0.5:
        return zeta_borwein(s, prec, ctx)

    with _working(prec, ctx):
        sp = 1 - s
        factor = mpmath.power(2, s) * mpmath.power(mpmath.pi, s - 1) * mpmath.sin(mpmath.pi * s / 2) * mpmath.gamma(sp)
    inner = riemann_zeta(sp, prec + _extra_digits(factor), ctx)
    with _working(prec, ctx):
        return factor * inner


def periodic_zeta(s, q, prec: int | None = None, ctx: EvalContext | None = None) -> mpmath.mpc:
    """F(s, q) = Li_s(exp(2 pi i q)) for real q."""
    prec = _prec(prec, "periodic_zeta")
    ctx = resolve_context(ctx)
    s = _convert(s, prec, ctx)
    with _working(prec, ctx):
        q = mpmath.mpf(q)
        q = q - mpmath.floor(q)
        if q < _INTEGER_Q_TOL or 1 - q < _INTEGER_Q_TOL:
            return riemann_zeta(s, prec, ctx)

        if q < 0.25 or q > 0.75:
            dup = mpmath.power(2, 1 - s)
            sub = prec + _extra_digits(dup)
            if q < 0.25:
                return dup * periodic_zeta(s, 2 * q, sub, ctx) - periodic_zeta(s, q + 0.5, sub, ctx)
            return dup * periodic_zeta(s, 2 * q - 1, sub, ctx) - periodic_zeta(s, q - 0.5, sub, ctx)

        z = mpmath.expjpi(2 * q)
    nterms = estimates.polylog_terms_est(complex(s), complex(z), prec)
    if nterms <= ctx.config.min_periodic_terms or nterms >= estimates.TERMS_CEILING:
        raise ConvergenceFailure(f"periodic_zeta: bad term estimate {nterms} at s={s}, q={q}")
    return polylog.polylog_borwein(s, z, nterms, prec, ctx)


def periodic_beta(s, q, prec: int | None = None, ctx: EvalContext | None = None) -> mpmath.mpc:
    """beta(s, q) = 2 Gamma(s+1) (2 pi)^-s F(s, q)."""
    prec = _prec(prec, "periodic_beta")
    ctx = resolve_context(ctx)
    s = _convert(s, prec, ctx)

    def build():
        with _working(prec, ctx):
            return 2 * mpmath.gamma(s + 1) * mpmath.power(2 * mpmath.pi, -s)

    scale = ctx.scale("beta", s, prec, build)
    val = periodic_zeta(s, q, prec + _extra_digits(scale), ctx)
    with _working(prec, ctx):
        return scale * val


def hurwitz_euler(s, q, prec: int | None = None, ctx: EvalContext | None = None) -> mpmath.mpc:
    """Euler-Maclaurin summation of zeta(s, q); q may be complex."""
    prec = _prec(prec, "hurwitz_euler")
    ctx = resolve_context(ctx)
    s = _convert(s, prec, ctx)
    q = _convert(q, prec, ctx)
    if s == 1:
        raise DomainError("hurwitz_euler: pole at s = 1")
    if _is_real_int(q) and q.real <= 0:
        raise DomainError(f"hurwitz_euler: q={q} hits a singular term")

    leading = prec + 12
    with _working(prec, ctx):
        acc = mpmath.fsum(mpmath.power(q + k, -s) for k in range(leading))
        a = q + leading
        acc += mpmath.power(a, 1 - s) / (s - 1) + mpmath.power(a, -s) / 2
        eps2 = mpmath.mpf(10) ** (-2 * prec)
        a2 = a * a
        rising = s
        apow = mpmath.power(a, -s - 1)
        fact = mpmath.mpf(2)
        for j in range(1, 4 * prec + 100):
            term = bernoulli_mpf(2 * j) / fact * rising * apow
            acc += term
            if abs(term) ** 2 < eps2:
                return acc
            rising *= (s + 2 * j - 1) * (s + 2 * j)
            apow /= a2
            fact *= (2 * j + 1) * (2 * j + 2)
    raise ConvergenceFailure(f"hurwitz_euler: no convergence at s={s}, q={q}")


def hurwitz_zeta(s, q, prec: int | None = None, ctx: EvalContext | None = None) -> mpmath.mpc:
    prec = _prec(prec, "hurwitz_zeta")
    ctx = resolve_context(ctx)
    s = _convert(s, prec, ctx)
    q = mpmath.mpmathify(q)
    if s == 1:
        raise DomainError("hurwitz_zeta: pole at s = 1")
    if isinstance(q, mpmath.mpc) and q.imag != 0:
        return hurwitz_euler(s, q, prec, ctx)
    q = q.real if isinstance(q, mpmath.mpc) else q
    if q <= 0:
        raise DomainError(f"hurwitz_zeta: expected q > 0, got {q}")
    if q == 1:
        return riemann_zeta(s, prec, ctx)
    # Gamma(1 - s) has a pole
    if _is_real_int(s) and s.real >= 1:
        return hurwitz_euler(s, q, prec, ctx)

    with _working(prec, ctx):
        lead = mpmath.mpc(0)
        while q > 1:
            q -= 1
            lead += mpmath.power(q, -s)
        if q == 1:
            return riemann_zeta(s, prec, ctx) - lead
        sp = 1 - s
        coq = 1 - q

    def build():
        with _working(prec, ctx):
            return (
                mpmath.gamma(sp) * mpmath.power(2 * mpmath.pi, -sp),
                mpmath.expjpi(-sp / 2),
                mpmath.expjpi(sp / 2),
            )

    scale, phase, cophase = ctx.scale("hurwitz", s, prec, build)
    sub = prec + _extra_digits(scale)
    left = periodic_zeta(sp, q, sub, ctx)
    right = periodic_zeta(sp, coq, sub, ctx)
    with _working(prec, ctx):
        return scale * (phase * left + cophase * right) - lead


def _evaluate(fn, label: str, *args) -> EvalResult:
    try:
        value = fn(*args)
    except (DomainError, ConvergenceFailure) as exc:
        logger.warning("%s%s failed: %s", label, args[:-2], exc)
        return EvalResult.failure(str(exc))
    return EvalResult.success(value)


def zeta_int_result(s: int, prec: int | None = None, ctx: EvalContext | None = None) -> EvalResult:
    return _evaluate(zeta_int, "zeta_int", s, prec, ctx)


def riemann_zeta_result(s, prec: int | None = None, ctx: EvalContext | None = None) -> EvalResult:
    return _evaluate(riemann_zeta, "riemann_zeta", s, prec, ctx)


def hurwitz_zeta_result(s, q, prec: int | None = None, ctx: EvalContext | None = None) -> EvalResult:
    return _evaluate(hurwitz_zeta, "hurwitz_zeta", s, q, prec, ctx)


__all__ = [
    "zeta_even",
    "zeta_brute",
    "zeta_borwein",
    "zeta_int",
    "riemann_zeta",
    "periodic_zeta",
    "periodic_beta",
    "hurwitz_euler",
    "hurwitz_zeta",
    "zeta_int_result",
    "riemann_zeta_result",
    "hurwitz_zeta_result",
]
