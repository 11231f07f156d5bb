import logging

import mpmath
import pytest

from polylogjax import zeta
from polylogjax.context import EvalContext
from polylogjax.errors import ConvergenceFailure, DomainError

from tests._test_checks import _check, _close


def test_poles_and_domain():
    ctx = EvalContext()
    with pytest.raises(DomainError):
        zeta.zeta_int(1, 30, ctx)
    with pytest.raises(DomainError):
        zeta.zeta_borwein(1, 30, ctx)
    with pytest.raises(DomainError):
        zeta.riemann_zeta(1, 30, ctx)
    with pytest.raises(DomainError):
        zeta.zeta_even(3, 30, ctx)
    with pytest.raises(DomainError):
        zeta.hurwitz_zeta(2, -0.5, 30, ctx)


def test_brute_force_refuses_huge_sums():
    with pytest.raises(ConvergenceFailure):
        zeta.zeta_brute(2, 30, EvalContext())


def test_brute_force_resumes():
    ctx = EvalContext()
    zeta.zeta_brute(10, 20, ctx)
    _, done = ctx.zeta_brute.fetch(10)
    _check(done == int(10.0 ** (20 / 9)) + 3)
    val = zeta.zeta_brute(10, 30, ctx)
    _, done = ctx.zeta_brute.fetch(10)
    _check(done == int(10.0 ** (30 / 9)) + 3)
    with mpmath.workdps(40):
        _close(val, mpmath.zeta(10), 28)
    # a lower request is served from the longer sum
    again = zeta.zeta_brute(10, 20, ctx)
    _check(ctx.zeta_brute.fetch(10)[1] == done)
    with mpmath.workdps(40):
        _close(again, val, 30)


def test_zeta_int_uses_brute_force_for_large_odd_s():
    ctx = EvalContext()
    val = zeta.zeta_int(25, 30, ctx)
    _check(ctx.zeta_brute.check(25) > 0)
    with mpmath.workdps(40):
        _close(val, mpmath.zeta(25), 28)


def test_zeta_int_memo_returns_cached_value():
    ctx = EvalContext()
    first = zeta.zeta_int(4, 30, ctx)
    _check(zeta.zeta_int(4, 20, ctx) is first)


def test_borwein_coefficients_cached_per_n():
    ctx = EvalContext()
    zeta.zeta_borwein(3, 30, ctx)
    _check(len(ctx.borwein_d) == 1)
    zeta.zeta_borwein(5, 30, ctx)
    _check(len(ctx.borwein_d) == 1)


def test_periodic_zeta_at_integer_q_is_zeta():
    ctx = EvalContext()
    got = zeta.periodic_zeta(3, 2.0, 30, ctx)
    with mpmath.workdps(40):
        _close(got, mpmath.zeta(3), 25)


def test_scales_cached_per_s():
    ctx = EvalContext()
    zeta.periodic_beta(2, 0.3, 20, ctx)
    zeta.periodic_beta(2, 0.4, 20, ctx)
    _check(len(ctx.scales) == 1)


def test_result_entry_points_report_failures(caplog):
    ctx = EvalContext()
    with caplog.at_level(logging.WARNING, logger="polylogjax.zeta"):
        for res in (
            zeta.zeta_int_result(1, 30, ctx),
            zeta.zeta_int_result(-4, 30, ctx),
            zeta.riemann_zeta_result(1, 30, ctx),
            zeta.hurwitz_zeta_result(2.5, -0.5, 30, ctx),
        ):
            _check(not res.ok)
            _check(res.value == 0)
            _check("expected" in res.error or "pole" in res.error)
    _check("failed" in caplog.text)


def test_result_entry_points_carry_values():
    ctx = EvalContext()
    res = zeta.zeta_int_result(3, 30, ctx)
    _check(res.ok and res.error is None)
    hz = zeta.hurwitz_zeta_result(2.5, 0.3, 30, ctx)
    rz = zeta.riemann_zeta_result(-2.5, 30, ctx)
    _check(hz.ok and rz.ok)
    with mpmath.workdps(40):
        _close(res.value, mpmath.zeta(3), 28)
        _close(hz.value, mpmath.zeta(2.5, 0.3), 22)
        _close(rz.value, mpmath.zeta(-2.5), 25)
