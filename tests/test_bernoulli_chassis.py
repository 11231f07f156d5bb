from fractions import Fraction

import jax
import jax.numpy as jnp
import mpmath
import pytest

from polylogjax import bernoulli, combinatorics

from tests._test_checks import _check, _close


def test_exact_small_values():
    want = {
        0: Fraction(1),
        1: Fraction(-1, 2),
        2: Fraction(1, 6),
        4: Fraction(-1, 30),
        6: Fraction(1, 42),
        8: Fraction(-1, 30),
        10: Fraction(5, 66),
        12: Fraction(-691, 2730),
    }
    for n, val in want.items():
        _check(bernoulli.bernoulli_fraction(n) == val, f"B_{n}")
    for n in (3, 5, 7, 21):
        _check(bernoulli.bernoulli_fraction(n) == 0)


def test_matches_mpmath_for_larger_index():
    with mpmath.workdps(40):
        _close(bernoulli.bernoulli_mpf(30), mpmath.bernoulli(30), 35)


def test_negative_index_rejected():
    with pytest.raises(ValueError):
        bernoulli.bernoulli_fraction(-2)


def test_polynomial_degree_two():
    with mpmath.workdps(30):
        x = mpmath.mpf("0.3")
        _close(bernoulli.bernoulli_polynomial(2, x), x * x - x + mpmath.mpf(1) / 6, 28)
        _close(bernoulli.bernoulli_polynomial(3, x), mpmath.bernpoly(3, x), 28)


def test_jit_compiles():
    n = jnp.array([0, 1, 2, 4, 6], dtype=jnp.int64)
    out = bernoulli.bernoulli_number_batch_jit(n)
    _check(out.shape == (5,))
    _check(bool(jnp.abs(out[2] - 1.0 / 6.0) < 1e-15))


def test_out_of_table_is_nan():
    out = bernoulli.bernoulli_number(jnp.array([-1, 100]), nmax=64)
    _check(bool(jnp.all(jnp.isnan(out))))


def test_grad_path():
    def loss(t):
        n = jnp.asarray(t, dtype=jnp.float64)
        return bernoulli.bernoulli_number(jnp.asarray(2)) * n

    g = jax.grad(loss)(jnp.float64(0.2))
    _check(bool(jnp.isfinite(g)))


def test_binomial_and_row():
    _check(combinatorics.binomial(10, 3) == 120)
    _check(list(combinatorics.binomial_row(5)) == [1, 5, 10, 10, 5, 1])
    _check(list(combinatorics.binomial_row(40)) == [combinatorics.binomial(40, k) for k in range(41)])
    with pytest.raises(ValueError):
        combinatorics.binomial(3, 4)


def test_stirling2():
    _check(combinatorics.stirling2(0, 0) == 1)
    _check(combinatorics.stirling2(4, 0) == 0)
    _check(combinatorics.stirling2(5, 2) == 15)
    _check(combinatorics.stirling2(6, 3) == 90)


def test_clear_caches_keeps_values_correct():
    combinatorics.stirling2(8, 3)
    combinatorics.clear_caches()
    _check(combinatorics.stirling2(8, 3) == 966)
    _check(combinatorics.binomial(12, 6) == 924)
