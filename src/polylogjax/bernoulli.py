from __future__ import annotations

from fractions import Fraction

import jax
import jax.numpy as jnp
import mpmath
import numpy as np

from . import checks
from .cache import EXACT, PrecisionCache
from .combinatorics import binomial

jax.config.update("jax_enable_x64", True)

# indexed by n/2, even n only
_BERNOULLI = PrecisionCache("bernoulli")


def bernoulli_fraction(n: int) -> Fraction:
    checks.check_index(n, "bernoulli_fraction")
    if n == 0:
        return Fraction(1)
    if n == 1:
        return Fraction(-1, 2)
    if n % 2:
        return Fraction(0)

    hn = n // 2
    hit = _BERNOULLI.lookup(hn, EXACT)
    if hit is not None:
        return hit

    # B_0 and B_1 terms folded into (1-n)/2
    acc = Fraction(1 - n, 2)
    for i in range(1, hn):
        k = 2 * i
        acc += binomial(n + 1, k) * bernoulli_fraction(k)
    bern = -acc / (n + 1)
    _BERNOULLI.store(hn, bern, EXACT)
    return bern


def bernoulli_mpf(n: int) -> mpmath.mpf:
    b = bernoulli_fraction(n)
    return mpmath.mpf(b.numerator) / b.denominator


def bernoulli_polynomial(n: int, x) -> mpmath.mpc:
    """B_n(x) = sum_k C(n, k) B_k x^(n-k), evaluated by Horner in x."""
    checks.check_index(n, "bernoulli_polynomial")
    x = mpmath.mpmathify(x)
    acc = mpmath.mpf(0)
    for k in range(n + 1):
        acc = acc * x + binomial(n, k) * bernoulli_mpf(k)
    return acc


def bernoulli_table(nmax: int) -> np.ndarray:
    checks.check_index(nmax, "bernoulli_table")
    return np.array([float(bernoulli_fraction(n)) for n in range(nmax + 1)], dtype=np.float64)


def bernoulli_number(n: jax.Array, nmax: int = 64) -> jax.Array:
    n = jnp.asarray(n, dtype=jnp.int64)
    table = jnp.asarray(bernoulli_table(nmax))
    inside = (n >= 0) & (n <= nmax)
    return jnp.where(inside, jnp.take(table, jnp.clip(n, 0, nmax)), jnp.nan)


def bernoulli_number_batch(n: jax.Array, nmax: int = 64) -> jax.Array:
    return bernoulli_number(n, nmax)


bernoulli_number_batch_jit = jax.jit(bernoulli_number_batch, static_argnames=("nmax",))


__all__ = [
    "bernoulli_fraction",
    "bernoulli_mpf",
    "bernoulli_polynomial",
    "bernoulli_table",
    "bernoulli_number",
    "bernoulli_number_batch",
    "bernoulli_number_batch_jit",
]
